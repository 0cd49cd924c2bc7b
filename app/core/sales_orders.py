"""
Sales order lifecycle.

Every public operation here is one unit of work: order row, SIM inventory and
audit trail change together and are committed once, or not at all. Operations
return a ServiceResult (see app.core.result) instead of raising.

A SIM is `Sold` exactly while one live order holds it. Claiming goes through a
conditional UPDATE (crud_sim_inventory.claim_sim), so two orders racing for the
same SIM cannot both win; the loser gets a Conflict.
"""
import json
import logging
import math
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core import config
from app.core.encryption import encrypt_cnic
from app.core.exceptions import NotFoundError, ConflictError, ValidationFailedError
from app.core.order_status_registry import resolve_status_for_event
from app.core.result import service_operation
from app.core.time_utils import utcnow
from app.crud import (
    crud_audit_log,
    crud_bundle,
    crud_location,
    crud_order_status,
    crud_sales_order,
    crud_sim_inventory,
)
from app.models.enums import SimStatus, PaymentStatus, OrderEvent, AuditAction, RELEASING_EVENTS
from app.models.order_status import OrderStatus as OrderStatusModel
from app.models.sales_order import SalesOrder as SalesOrderModel
from app.models.sim_inventory import SimInventory as SimInventoryModel
from app.schemas.common import Actor, DataAccessFilter, Pagination
from app.schemas.audit_log import SalesOrderAuditLog
from app.schemas.sales_order import (
    SalesOrder,
    SalesOrderCreate,
    SalesOrderPage,
    SalesOrderDetailsUpdate,
    TransactionUpdate,
    OrderStatusInfo,
)

logger = logging.getLogger(__name__)

SIM_NOT_AVAILABLE = "SIM not available"

# payment_status value -> event applied when payment event transitions are enabled
PAYMENT_EVENTS = {
    PaymentStatus.PAID: OrderEvent.PAYMENT_SUCCESSFUL,
    PaymentStatus.PAYMENT_FAILED: OrderEvent.PAYMENT_FAILED,
}


# --- helpers (no commit) ---

def _get_order_or_404(db: Session, order_uuid: str, access: Optional[DataAccessFilter] = None) -> SalesOrderModel:
    db_order = crud_sales_order.get_sales_order_by_uuid(db, order_uuid, access=access)
    if db_order is None:
        raise NotFoundError("Sales order", order_uuid)
    return db_order


def _get_sim_or_404(db: Session, sim_uuid: Optional[str] = None, number: Optional[str] = None) -> SimInventoryModel:
    if sim_uuid:
        db_sim = crud_sim_inventory.get_sim_by_uuid(db, sim_uuid)
    else:
        db_sim = crud_sim_inventory.get_sim_by_number(db, number)
    if db_sim is None:
        raise NotFoundError("SIM", sim_uuid or number)
    return db_sim


def _claim(db: Session, db_sim: SimInventoryModel, for_order_id: Optional[int] = None):
    if db_sim.status != SimStatus.AVAILABLE.value:
        raise ConflictError(SIM_NOT_AVAILABLE)
    if crud_sales_order.count_active_orders_for_sim(db, sim_id=db_sim.id, exclude_order_id=for_order_id):
        # Ledger says Available but a live order still points at the SIM
        logger.warning(f"SIM {db_sim.number} is Available but still held by a live order")
        raise ConflictError(SIM_NOT_AVAILABLE)
    if not crud_sim_inventory.claim_sim(db, db_sim.id):
        # Someone else sold it between our read and the UPDATE
        raise ConflictError(SIM_NOT_AVAILABLE)


def _initial_status(db: Session) -> OrderStatusModel:
    db_status = resolve_status_for_event(db, OrderEvent.ORDER_CREATION)
    if db_status is not None:
        return db_status
    db_status = crud_order_status.get_order_status_by_name(db, config.DEFAULT_ORDER_STATUS_NAME)
    if db_status is None:
        logger.warning(
            f"No status mapped to {OrderEvent.ORDER_CREATION.value}; "
            f"creating default status '{config.DEFAULT_ORDER_STATUS_NAME}'"
        )
        db_status = crud_order_status.create_order_status(db, name=config.DEFAULT_ORDER_STATUS_NAME)
    return db_status


def _next_order_id(db: Session) -> str:
    latest = crud_sales_order.get_latest_order_id(db)
    next_number = config.ORDER_ID_START
    if latest:
        try:
            next_number = int(latest.rsplit("-", 1)[-1]) + 1
        except ValueError:
            logger.warning(f"Unexpected order id format '{latest}', restarting at {config.ORDER_ID_START}")
    return f"{config.ORDER_ID_PREFIX}-{next_number}"


def _set_status(db_order: SalesOrderModel, db_status: OrderStatusModel):
    db_order.order_status_id = db_status.id
    db_order.order_status = db_status


def release_order_inventory(db: Session, db_order: SalesOrderModel) -> Optional[str]:
    """
    Hand the order's SIM back to stock and unassign SIM and bundle.
    Returns the released number, or None when the order held no SIM.
    The caller commits.
    """
    db_sim = db_order.sim_inventory
    if db_sim is None:
        return None
    if not crud_sim_inventory.release_sim(db, db_sim.id):
        logger.warning(f"SIM {db_sim.number} of order {db_order.order_id} was not Sold (status={db_sim.status})")
    db_order.msisdn_id = None
    db_order.sim_inventory = None
    db_order.bundle_id = None
    db_order.bundle = None
    return db_sim.number


def _apply_payment_status(
    db: Session, db_order: SalesOrderModel, payment_status: PaymentStatus, transitions: bool
) -> Optional[str]:
    """
    Set the payment axis. With `transitions` on, `paid` and
    `payment_failed` also move the order to the status mapped to
    PAYMENT_SUCCESSFUL / PAYMENT_FAILED, and a failed payment releases the SIM
    when a RELEASE_INVENTORY status exists.
    Returns the new order status name when the status moved.
    """
    db_order.payment_status = payment_status.value
    event = PAYMENT_EVENTS.get(payment_status)
    if not transitions or event is None:
        return None

    db_status = resolve_status_for_event(db, event)
    if db_status is None:
        logger.info(f"No status mapped to {event.value}; order {db_order.order_id} keeps its status")
        return None
    _set_status(db_order, db_status)

    if payment_status == PaymentStatus.PAYMENT_FAILED and resolve_status_for_event(db, OrderEvent.RELEASE_INVENTORY):
        released = release_order_inventory(db, db_order)
        if released:
            logger.info(f"Released SIM {released} of order {db_order.order_id} after failed payment")
    return db_status.name


def _to_schema(db_order: SalesOrderModel) -> SalesOrder:
    return SalesOrder.model_validate(db_order)


# --- operations ---

@service_operation
def create_sales_order(db: Session, obj_in: SalesOrderCreate, actor: Optional[Actor] = None) -> SalesOrder:
    city = None
    if obj_in.city_uuid:
        city = crud_location.get_city_by_uuid(db, obj_in.city_uuid)
        if city is None:
            raise NotFoundError("City", obj_in.city_uuid)

    bundle = None
    if obj_in.bundle_uuid:
        bundle = crud_bundle.get_bundle_by_uuid(db, obj_in.bundle_uuid)
        if bundle is None:
            raise NotFoundError("Bundle", obj_in.bundle_uuid)

    db_sim = None
    if obj_in.msisdn_uuid or obj_in.msisdn:
        db_sim = _get_sim_or_404(db, obj_in.msisdn_uuid, obj_in.msisdn)
        _claim(db, db_sim)

    db_status = _initial_status(db)
    db_order = SalesOrderModel(
        uuid=str(uuid.uuid4()),
        order_id=_next_order_id(db),
        customer_name=obj_in.customer_name,
        cnic=encrypt_cnic(obj_in.cnic),
        personal_phone=obj_in.personal_phone,
        alternate_phone=obj_in.alternate_phone,
        address=obj_in.address,
        notes=obj_in.notes or "",
        sim_inventory=db_sim,
        bundle=bundle,
        city=city,
        order_status=db_status,
        total_transaction_price=obj_in.total_transaction_price,
        payment_method=obj_in.payment_method,
        transaction_ref=obj_in.transaction_ref,
        payment_status=obj_in.payment_status.value,
        created_date=utcnow(),
        is_deleted=False,
    )
    crud_sales_order.create_sales_order(db, db_obj=db_order)
    crud_audit_log.create_audit_log(
        db,
        sales_order=db_order,
        action=AuditAction.CREATE.value,
        actor=actor,
        new_value=db_status.name,
        details=json.dumps({"orderId": db_order.order_id, "msisdn": db_sim.number if db_sim else None}),
    )
    db.commit()
    logger.info(f"Created sales order {db_order.order_id} (SIM={db_sim.number if db_sim else None})")
    return _to_schema(db_order)


@service_operation
def get_sales_order(db: Session, order_uuid: str, access: Optional[DataAccessFilter] = None) -> SalesOrder:
    return _to_schema(_get_order_or_404(db, order_uuid, access))


@service_operation
def list_sales_orders(
    db: Session,
    access: Optional[DataAccessFilter] = None,
    *,
    page: int = 1,
    limit: int = 10,
    order_status_uuid: Optional[str] = None,
    payment_status: Optional[PaymentStatus] = None,
    city_uuid: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> SalesOrderPage:
    if page < 1 or limit < 1:
        raise ValidationFailedError("page and limit must be positive")

    order_status_id = None
    if order_status_uuid:
        db_status = crud_order_status.get_order_status_by_uuid(db, order_status_uuid)
        if db_status is None:
            raise NotFoundError("Order status", order_status_uuid)
        order_status_id = db_status.id

    city_id = None
    if city_uuid:
        city = crud_location.get_city_by_uuid(db, city_uuid)
        if city is None:
            raise NotFoundError("City", city_uuid)
        city_id = city.id

    rows, total = crud_sales_order.get_sales_orders(
        db,
        access=access,
        order_status_id=order_status_id,
        payment_status=payment_status,
        city_id=city_id,
        search=search,
        start_date=start_date,
        end_date=end_date,
        skip=(page - 1) * limit,
        limit=limit,
    )
    total_pages = math.ceil(total / limit) if total else 0
    return SalesOrderPage(
        content=[_to_schema(row) for row in rows],
        pagination=Pagination(
            total=total,
            current_page=page,
            per_page=limit,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        ),
    )


@service_operation
def update_order_status(db: Session, order_uuid: str, status_uuid: str, actor: Optional[Actor] = None) -> SalesOrder:
    """Move an order to an explicit status. A status holding a releasing event also hands the SIM back."""
    db_order = _get_order_or_404(db, order_uuid)
    db_status = crud_order_status.get_order_status_by_uuid(db, status_uuid)
    if db_status is None:
        raise NotFoundError("Order status", status_uuid)

    previous = db_order.order_status.name if db_order.order_status else None
    _set_status(db_order, db_status)

    details = None
    if db_status.event in [e.value for e in RELEASING_EVENTS]:
        released = release_order_inventory(db, db_order)
        if released:
            details = json.dumps({"releasedMsisdn": released})

    crud_audit_log.create_audit_log(
        db,
        sales_order=db_order,
        action=AuditAction.STATUS_CHANGED.value,
        actor=actor,
        previous_value=previous,
        new_value=db_status.name,
        details=details,
    )
    db.commit()
    return _to_schema(db_order)


@service_operation
def update_payment_status(
    db: Session, order_uuid: str, payment_status: PaymentStatus, actor: Optional[Actor] = None
) -> SalesOrder:
    db_order = _get_order_or_404(db, order_uuid)
    previous = db_order.payment_status
    moved_to = _apply_payment_status(db, db_order, payment_status, config.PAYMENT_EVENT_TRANSITIONS)

    crud_audit_log.create_audit_log(
        db,
        sales_order=db_order,
        action=AuditAction.PAYMENT_STATUS_CHANGED.value,
        actor=actor,
        previous_value=previous,
        new_value=payment_status.value,
        details=json.dumps({"orderStatus": moved_to}) if moved_to else None,
    )
    db.commit()
    return _to_schema(db_order)


@service_operation
def update_transaction(db: Session, obj_in: TransactionUpdate, actor: Optional[Actor] = None) -> SalesOrder:
    """
    Record transaction details. The order is looked up by uuid first, then by human
    readable order id. A `paid` or `payment_failed` result moves the order status
    unless TRANSACTION_EVENT_TRANSITIONS is off.
    """
    db_order = None
    if obj_in.uuid:
        db_order = crud_sales_order.get_sales_order_by_uuid(db, obj_in.uuid)
    if db_order is None and obj_in.order_id:
        db_order = crud_sales_order.get_sales_order_by_order_id(db, obj_in.order_id)
    if db_order is None:
        raise NotFoundError("Sales order", obj_in.uuid or obj_in.order_id)

    changes = {}
    for field in ("total_transaction_price", "payment_method", "transaction_ref", "transaction_created_date"):
        value = getattr(obj_in, field)
        if value is not None:
            setattr(db_order, field, value)
            changes[field] = str(value)

    previous = db_order.payment_status
    moved_to = _apply_payment_status(
        db, db_order, obj_in.payment_status, config.TRANSACTION_EVENT_TRANSITIONS
    )
    if moved_to:
        changes["order_status"] = moved_to

    crud_audit_log.create_audit_log(
        db,
        sales_order=db_order,
        action=AuditAction.TRANSACTION_UPDATED.value,
        actor=actor,
        previous_value=previous,
        new_value=obj_in.payment_status.value,
        details=json.dumps(changes),
    )
    db.commit()
    return _to_schema(db_order)


@service_operation
def update_msisdn(
    db: Session, order_uuid: str, sim_uuid: str, bundle_uuid: Optional[str] = None, actor: Optional[Actor] = None
) -> SalesOrder:
    """
    Swap the order's SIM: the old one goes back to stock, the new one must be
    Available and becomes Sold. Applies the ASSIGN_NUMBER status when mapped.
    """
    db_order = _get_order_or_404(db, order_uuid)
    new_sim = _get_sim_or_404(db, sim_uuid)

    bundle = None
    if bundle_uuid:
        bundle = crud_bundle.get_bundle_by_uuid(db, bundle_uuid)
        if bundle is None:
            raise NotFoundError("Bundle", bundle_uuid)

    old_number = db_order.sim_inventory.number if db_order.sim_inventory else None
    if db_order.msisdn_id != new_sim.id:
        bundle = bundle or db_order.bundle
        release_order_inventory(db, db_order)
        _claim(db, new_sim, for_order_id=db_order.id)
        db_order.msisdn_id = new_sim.id
        db_order.sim_inventory = new_sim
    if bundle is not None:
        db_order.bundle_id = bundle.id
        db_order.bundle = bundle

    assign_status = resolve_status_for_event(db, OrderEvent.ASSIGN_NUMBER)
    if assign_status is not None:
        _set_status(db_order, assign_status)

    crud_audit_log.create_audit_log(
        db,
        sales_order=db_order,
        action=AuditAction.MSISDN_CHANGED.value,
        actor=actor,
        previous_value=old_number,
        new_value=new_sim.number,
    )
    db.commit()
    logger.info(f"Order {db_order.order_id} moved from SIM {old_number} to {new_sim.number}")
    return _to_schema(db_order)


@service_operation
def delete_sales_order(db: Session, order_uuid: str, actor: Optional[Actor] = None) -> dict:
    db_order = _get_order_or_404(db, order_uuid)
    db_sim = db_order.sim_inventory
    if db_sim is not None and not crud_sim_inventory.release_sim(db, db_sim.id):
        logger.warning(f"SIM {db_sim.number} of deleted order {db_order.order_id} was not Sold")

    crud_sales_order.soft_delete_sales_order(db, db_obj=db_order)
    crud_audit_log.create_audit_log(
        db,
        sales_order=db_order,
        action=AuditAction.DELETE.value,
        actor=actor,
        previous_value=db_sim.number if db_sim else None,
    )
    db.commit()
    logger.info(f"Deleted sales order {db_order.order_id}")
    return {}


@service_operation
def update_notes(db: Session, order_uuid: str, notes: str, actor: Optional[Actor] = None) -> SalesOrder:
    db_order = _get_order_or_404(db, order_uuid)
    previous = db_order.notes
    db_order.notes = notes
    crud_audit_log.create_audit_log(
        db,
        sales_order=db_order,
        action=AuditAction.NOTES_UPDATED.value,
        actor=actor,
        previous_value=previous,
        new_value=notes,
    )
    db.commit()
    return _to_schema(db_order)


@service_operation
def update_cnic(db: Session, order_uuid: str, cnic: Optional[str], actor: Optional[Actor] = None) -> SalesOrder:
    """Replace the stored CNIC. Neither the old nor the new value reaches the audit trail."""
    if cnic and len(cnic) > 15:
        raise ValidationFailedError("CNIC must be at most 15 characters")
    db_order = _get_order_or_404(db, order_uuid)
    db_order.cnic = encrypt_cnic(cnic)
    crud_audit_log.create_audit_log(
        db,
        sales_order=db_order,
        action=AuditAction.CNIC_UPDATED.value,
        actor=actor,
        details="CNIC updated" if cnic else "CNIC cleared",
    )
    db.commit()
    return _to_schema(db_order)


@service_operation
def update_city(db: Session, order_uuid: str, city_uuid: str, actor: Optional[Actor] = None) -> SalesOrder:
    db_order = _get_order_or_404(db, order_uuid)
    city = crud_location.get_city_by_uuid(db, city_uuid)
    if city is None:
        raise NotFoundError("City", city_uuid)

    previous = db_order.city.name if db_order.city else None
    db_order.city_id = city.id
    db_order.city = city
    crud_audit_log.create_audit_log(
        db,
        sales_order=db_order,
        action=AuditAction.CITY_UPDATED.value,
        actor=actor,
        previous_value=previous,
        new_value=city.name,
    )
    db.commit()
    return _to_schema(db_order)


@service_operation
def update_order_details(
    db: Session, order_uuid: str, obj_in: SalesOrderDetailsUpdate, actor: Optional[Actor] = None
) -> SalesOrder:
    db_order = _get_order_or_404(db, order_uuid)
    update_data = obj_in.model_dump(exclude_unset=True)
    if update_data.get("personal_phone", "") is None:
        raise ValidationFailedError("personal_phone cannot be empty")

    previous, new = {}, {}
    for field, value in update_data.items():
        old = getattr(db_order, field)
        if old != value:
            previous[field] = old
            new[field] = value
            setattr(db_order, field, value)

    crud_audit_log.create_audit_log(
        db,
        sales_order=db_order,
        action=AuditAction.DETAILS_UPDATED.value,
        actor=actor,
        previous_value=json.dumps(previous),
        new_value=json.dumps(new),
    )
    db.commit()
    return _to_schema(db_order)


@service_operation
def get_order_status_info(db: Session, order_id: str) -> OrderStatusInfo:
    db_order = crud_sales_order.get_sales_order_by_order_id(db, order_id)
    if db_order is None:
        raise NotFoundError("Sales order", order_id)
    db_status = db_order.order_status
    return OrderStatusInfo(
        order_id=db_order.order_id,
        current_status=db_status.name,
        is_order_inventory_auto_released=db_status.event == OrderEvent.AUTO_RELEASE_INVENTORY.value,
    )


@service_operation
def get_audit_logs(db: Session, order_uuid: str) -> list:
    db_order = crud_sales_order.get_sales_order_by_uuid(db, order_uuid, include_deleted=True)
    if db_order is None:
        raise NotFoundError("Sales order", order_uuid)
    return [
        SalesOrderAuditLog.model_validate(row)
        for row in crud_audit_log.get_audit_logs_for_order(db, sales_order_id=db_order.id)
    ]
