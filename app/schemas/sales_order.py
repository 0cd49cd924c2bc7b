from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from app.models.enums import PaymentStatus
from app.schemas.common import Pagination
from app.schemas.order_status import OrderStatusNested
from app.schemas.sim_inventory import SimInventoryNested

class SalesOrderBase(BaseModel):
    customer_name: Optional[str] = Field(default=None, max_length=100)
    personal_phone: str = Field(..., min_length=1, max_length=20)
    alternate_phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = None
    notes: Optional[str] = None

class SalesOrderCreate(SalesOrderBase):
    """
    Data for placing an order.
    - The SIM may be referenced by uuid (partner API) or by its number (admin UI);
      the uuid wins when both are given.
    - The initial order status is never supplied; it comes from the ORDER_CREATION mapping.
    """
    cnic: Optional[str] = Field(default=None, max_length=15)
    city_uuid: Optional[str] = None
    msisdn_uuid: Optional[str] = None
    msisdn: Optional[str] = Field(default=None, max_length=20)
    bundle_uuid: Optional[str] = None
    total_transaction_price: Decimal = Field(default=Decimal("0"), ge=0)
    payment_method: Optional[str] = Field(default=None, max_length=50)
    transaction_ref: Optional[str] = Field(default=None, max_length=100)
    payment_status: PaymentStatus = PaymentStatus.UNPAID

class OrderStatusChange(BaseModel):
    order_status_uuid: str

class PaymentStatusChange(BaseModel):
    payment_status: PaymentStatus

class TransactionUpdate(BaseModel):
    """Transaction details keyed by order uuid or human readable order id (uuid is tried first)."""
    uuid: Optional[str] = None
    order_id: Optional[str] = None
    total_transaction_price: Optional[Decimal] = Field(default=None, ge=0)
    payment_method: Optional[str] = Field(default=None, max_length=50)
    transaction_ref: Optional[str] = Field(default=None, max_length=100)
    transaction_created_date: Optional[datetime] = None
    payment_status: PaymentStatus = PaymentStatus.UNPAID

    @model_validator(mode="after")
    def check_identifier(self):
        if not self.uuid and not self.order_id:
            raise ValueError("Either uuid or order_id is required")
        return self

class MsisdnChange(BaseModel):
    msisdn_uuid: str
    bundle_uuid: Optional[str] = None

class NotesUpdate(BaseModel):
    notes: str = ""

class CnicUpdate(BaseModel):
    cnic: Optional[str] = Field(default=None, max_length=15)

class CityChange(BaseModel):
    city_uuid: str

class SalesOrderDetailsUpdate(BaseModel):
    customer_name: Optional[str] = Field(default=None, max_length=100)
    personal_phone: Optional[str] = Field(default=None, min_length=1, max_length=20)
    alternate_phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = None

class SalesOrder(SalesOrderBase):
    """Full schema for returning order data. The encrypted CNIC is never exposed."""
    id: int
    uuid: str
    order_id: str
    msisdn_id: Optional[int] = None
    bundle_id: Optional[int] = None
    city_id: Optional[int] = None
    order_status_id: int
    total_transaction_price: Optional[Decimal] = None
    payment_method: Optional[str] = None
    transaction_ref: Optional[str] = None
    transaction_created_date: Optional[datetime] = None
    payment_status: str
    created_date: datetime
    is_deleted: bool

    order_status: Optional[OrderStatusNested] = None
    sim_inventory: Optional[SimInventoryNested] = None

    class Config:
        from_attributes = True

class SalesOrderPage(BaseModel):
    content: List[SalesOrder]
    pagination: Pagination

class OrderStatusInfo(BaseModel):
    order_id: str
    current_status: str
    is_order_inventory_auto_released: bool

class ReleasedOrder(BaseModel):
    """One order reclaimed by the inventory release sweep."""
    uuid: str
    order_id: str
    msisdn: Optional[str] = None
    created_date: datetime
    payment_deadline_exceeded_by: int  # minutes past creation at sweep time
