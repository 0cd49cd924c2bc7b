"""
Order statuses and the lifecycle events they stand for.

Each live status may hold one event (ORDER_CREATION, PAYMENT_SUCCESSFUL, ...),
and an event is held by at most one live status at a time. Lifecycle code asks
"which status does this event mean right now?" through resolve_status_for_event
and never hardcodes status names.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.crud import crud_order_status
from app.core.exceptions import NotFoundError, ConflictError
from app.core.result import service_operation
from app.models.enums import OrderEvent
from app.models.order_status import OrderStatus as OrderStatusModel
from app.schemas.order_status import OrderStatus, OrderStatusCreate, OrderStatusUpdate

logger = logging.getLogger(__name__)


def resolve_status_for_event(db: Session, event: OrderEvent) -> Optional[OrderStatusModel]:
    """The live status mapped to `event`, or None. None means: do not transition."""
    return crud_order_status.get_order_status_by_event(db, event)


def _get_or_404(db: Session, status_uuid: str) -> OrderStatusModel:
    db_status = crud_order_status.get_order_status_by_uuid(db, status_uuid)
    if db_status is None:
        raise NotFoundError("Order status", status_uuid)
    return db_status


def _ensure_event_free(db: Session, event: OrderEvent, status_id: Optional[int] = None):
    holder = crud_order_status.get_order_status_by_event(db, event)
    if holder is not None and holder.id != status_id:
        raise ConflictError(f"Event {event.value} is already mapped to status '{holder.name}'")


@service_operation
def create_order_status(db: Session, obj_in: OrderStatusCreate) -> OrderStatus:
    if crud_order_status.get_order_status_by_name(db, obj_in.name):
        raise ConflictError(f"Order status '{obj_in.name}' already exists")
    if obj_in.event is not None:
        _ensure_event_free(db, obj_in.event)

    db_status = crud_order_status.create_order_status(db, name=obj_in.name, event=obj_in.event)
    db.commit()
    logger.info(f"Created order status '{db_status.name}' (event={db_status.event})")
    return OrderStatus.model_validate(db_status)


@service_operation
def get_order_status(db: Session, status_uuid: str) -> OrderStatus:
    return OrderStatus.model_validate(_get_or_404(db, status_uuid))


@service_operation
def list_order_statuses(db: Session, skip: int = 0, limit: int = 100) -> list:
    return [OrderStatus.model_validate(s) for s in crud_order_status.get_order_statuses(db, skip=skip, limit=limit)]


@service_operation
def get_order_status_by_event(db: Session, event: OrderEvent) -> OrderStatus:
    db_status = resolve_status_for_event(db, event)
    if db_status is None:
        raise NotFoundError(f"Order status mapped to event {event.value}")
    return OrderStatus.model_validate(db_status)


@service_operation
def update_order_status_definition(db: Session, status_uuid: str, obj_in: OrderStatusUpdate) -> OrderStatus:
    """
    Rename a status and/or change its event.
    Unlike set_event_mapping, an event already held by another status is a conflict here.
    """
    db_status = _get_or_404(db, status_uuid)

    if obj_in.name is not None and obj_in.name != db_status.name:
        if crud_order_status.get_order_status_by_name(db, obj_in.name):
            raise ConflictError(f"Order status '{obj_in.name}' already exists")
        db_status.name = obj_in.name

    if "event" in obj_in.model_fields_set:
        if obj_in.event is not None:
            _ensure_event_free(db, obj_in.event, db_status.id)
        db_status.event = obj_in.event.value if obj_in.event else None

    db.add(db_status)
    db.commit()
    return OrderStatus.model_validate(db_status)


@service_operation
def set_event_mapping(db: Session, status_uuid: str, event: Optional[OrderEvent]) -> OrderStatus:
    """
    Point `event` at the given status, taking it away from whichever status held it.
    Clearing and assigning happen in one transaction; the partial unique index on
    (event) among live statuses turns a concurrent double assignment into a Conflict.
    """
    db_status = _get_or_404(db, status_uuid)

    if event is not None:
        cleared = crud_order_status.clear_event(db, event=event, keep_status_id=db_status.id)
        if cleared:
            logger.info(f"Event {event.value} moved to status '{db_status.name}' from {cleared} previous holder(s)")

    db_status.event = event.value if event else None
    db.add(db_status)
    db.commit()
    return OrderStatus.model_validate(db_status)


@service_operation
def delete_order_status(db: Session, status_uuid: str) -> dict:
    db_status = _get_or_404(db, status_uuid)
    in_use = crud_order_status.count_orders_with_status(db, status_id=db_status.id)
    if in_use:
        raise ConflictError(f"Order status '{db_status.name}' is used by {in_use} order(s)")

    crud_order_status.soft_delete_order_status(db, db_obj=db_status)
    db.commit()
    logger.info(f"Deleted order status '{db_status.name}'")
    return {}
