from enum import Enum


class SimStatus(str, Enum):
    AVAILABLE = "Available"
    SOLD = "Sold"
    NOT_AVAILABLE = "Not Available"


class PaymentStatus(str, Enum):
    PAID = "paid"
    UNPAID = "unpaid"
    PAYMENT_FAILED = "payment_failed"


class OrderEvent(str, Enum):
    ORDER_CREATION = "ORDER_CREATION"
    PAYMENT_SUCCESSFUL = "PAYMENT_SUCCESSFUL"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    RELEASE_INVENTORY = "RELEASE_INVENTORY"
    CANCELED = "CANCELED"
    ORDER_COMPLETED = "ORDER_COMPLETED"
    ASSIGN_NUMBER = "ASSIGN_NUMBER"
    AUTO_RELEASE_INVENTORY = "AUTO_RELEASE_INVENTORY"


class DoneBy(str, Enum):
    SYSTEM = "system"
    USER = "user"


# Moving an order into a status holding one of these events hands its SIM back
RELEASING_EVENTS = (
    OrderEvent.RELEASE_INVENTORY,
    OrderEvent.CANCELED,
    OrderEvent.AUTO_RELEASE_INVENTORY,
)


class AuditAction(str, Enum):
    CREATE = "CREATE"
    STATUS_CHANGED = "STATUS_CHANGED"
    PAYMENT_STATUS_CHANGED = "PAYMENT_STATUS_CHANGED"
    TRANSACTION_UPDATED = "TRANSACTION_UPDATED"
    MSISDN_CHANGED = "MSISDN_CHANGED"
    NOTES_UPDATED = "NOTES_UPDATED"
    CNIC_UPDATED = "CNIC_UPDATED"
    CITY_UPDATED = "CITY_UPDATED"
    DETAILS_UPDATED = "DETAILS_UPDATED"
    DELETE = "DELETE"
    AUTO_RELEASE_INVENTORY = "AUTO_RELEASE_INVENTORY"
