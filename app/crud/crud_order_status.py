from sqlalchemy import update
from sqlalchemy.orm import Session
from typing import Optional, List
import uuid

from app.models.order_status import OrderStatus
from app.models.sales_order import SalesOrder
from app.models.enums import OrderEvent
from app.core.time_utils import utcnow

def get_order_status(db: Session, status_id: int) -> Optional[OrderStatus]:
    return db.query(OrderStatus).filter(OrderStatus.id == status_id).first()

def get_order_status_by_uuid(db: Session, status_uuid: str, *, include_deleted: bool = False) -> Optional[OrderStatus]:
    query = db.query(OrderStatus).filter(OrderStatus.uuid == status_uuid)
    if not include_deleted:
        query = query.filter(OrderStatus.is_deleted == False)
    return query.first()

def get_order_status_by_name(db: Session, name: str) -> Optional[OrderStatus]:
    return (
        db.query(OrderStatus)
        .filter(OrderStatus.name == name, OrderStatus.is_deleted == False)
        .first()
    )

def get_order_status_by_event(db: Session, event: OrderEvent) -> Optional[OrderStatus]:
    """The live status currently holding `event`, if any."""
    return (
        db.query(OrderStatus)
        .filter(OrderStatus.event == event.value, OrderStatus.is_deleted == False)
        .order_by(OrderStatus.id)
        .first()
    )

def get_order_statuses(db: Session, *, skip: int = 0, limit: int = 100) -> List[OrderStatus]:
    return (
        db.query(OrderStatus)
        .filter(OrderStatus.is_deleted == False)
        .order_by(OrderStatus.name)
        .offset(skip)
        .limit(limit)
        .all()
    )

def create_order_status(db: Session, *, name: str, event: Optional[OrderEvent] = None) -> OrderStatus:
    db_obj = OrderStatus(
        uuid=str(uuid.uuid4()),
        name=name,
        event=event.value if event else None,
        is_deleted=False,
    )
    db.add(db_obj)
    db.flush()
    return db_obj

def clear_event(db: Session, *, event: OrderEvent, keep_status_id: Optional[int] = None) -> int:
    """Remove `event` from every live status except `keep_status_id`. Returns the number of rows cleared."""
    stmt = update(OrderStatus).where(
        OrderStatus.event == event.value,
        OrderStatus.is_deleted == False,
    )
    if keep_status_id is not None:
        stmt = stmt.where(OrderStatus.id != keep_status_id)
    result = db.execute(stmt.values(event=None).execution_options(synchronize_session="fetch"))
    return result.rowcount

def soft_delete_order_status(db: Session, *, db_obj: OrderStatus) -> OrderStatus:
    db_obj.is_deleted = True
    db_obj.deleted_at = utcnow()
    db_obj.event = None
    db.add(db_obj)
    db.flush()
    return db_obj

def count_orders_with_status(db: Session, *, status_id: int) -> int:
    return (
        db.query(SalesOrder)
        .filter(SalesOrder.order_status_id == status_id, SalesOrder.is_deleted == False)
        .count()
    )
