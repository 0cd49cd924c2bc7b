from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload
from typing import Optional, List, Sequence, Tuple
from datetime import datetime

from app.models.sales_order import SalesOrder
from app.models.location import City
from app.models.enums import PaymentStatus
from app.schemas.common import DataAccessFilter
from app.core.time_utils import utcnow

def _with_relations(query):
    return query.options(
        joinedload(SalesOrder.order_status),
        joinedload(SalesOrder.sim_inventory),
        joinedload(SalesOrder.bundle),
        joinedload(SalesOrder.city),
    )

def _apply_access_filter(query, access: Optional[DataAccessFilter]):
    """City-level access wins over region-level access; no filter leaves the query unscoped."""
    if access is None or not access.is_scoped:
        return query
    if access.city_ids:
        return query.filter(SalesOrder.city_id.in_(access.city_ids))
    return query.join(City, SalesOrder.city_id == City.id).filter(City.region_id.in_(access.region_ids))

def create_sales_order(db: Session, *, db_obj: SalesOrder) -> SalesOrder:
    db.add(db_obj)
    db.flush()
    return db_obj

def get_sales_order_by_uuid(
    db: Session, order_uuid: str, *, include_deleted: bool = False, access: Optional[DataAccessFilter] = None
) -> Optional[SalesOrder]:
    query = _with_relations(db.query(SalesOrder)).filter(SalesOrder.uuid == order_uuid)
    if not include_deleted:
        query = query.filter(SalesOrder.is_deleted == False)
    return _apply_access_filter(query, access).first()

def get_sales_order_by_order_id(db: Session, order_id: str, *, include_deleted: bool = False) -> Optional[SalesOrder]:
    query = _with_relations(db.query(SalesOrder)).filter(SalesOrder.order_id == order_id)
    if not include_deleted:
        query = query.filter(SalesOrder.is_deleted == False)
    return query.first()

def get_latest_order_id(db: Session) -> Optional[str]:
    """Human readable id of the most recently inserted order, deleted ones included."""
    row = db.query(SalesOrder.order_id).order_by(SalesOrder.id.desc()).first()
    return row[0] if row else None

def get_sales_orders(
    db: Session,
    *,
    access: Optional[DataAccessFilter] = None,
    order_status_id: Optional[int] = None,
    payment_status: Optional[PaymentStatus] = None,
    city_id: Optional[int] = None,
    search: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    skip: int = 0,
    limit: int = 10,
) -> Tuple[List[SalesOrder], int]:
    """
    Get a page of non-deleted orders, newest first, plus the total matching count.
    `search` matches order id, customer name and both phone numbers.
    """
    query = db.query(SalesOrder).filter(SalesOrder.is_deleted == False)
    query = _apply_access_filter(query, access)
    if order_status_id is not None:
        query = query.filter(SalesOrder.order_status_id == order_status_id)
    if payment_status is not None:
        query = query.filter(SalesOrder.payment_status == payment_status.value)
    if city_id is not None:
        query = query.filter(SalesOrder.city_id == city_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                SalesOrder.order_id.ilike(pattern),
                SalesOrder.customer_name.ilike(pattern),
                SalesOrder.personal_phone.ilike(pattern),
                SalesOrder.alternate_phone.ilike(pattern),
            )
        )
    if start_date is not None and end_date is not None:
        query = query.filter(SalesOrder.created_date >= start_date, SalesOrder.created_date <= end_date)

    total = query.count()
    rows = (
        _with_relations(query)
        .order_by(SalesOrder.created_date.desc(), SalesOrder.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return rows, total

def count_active_orders_for_sim(db: Session, *, sim_id: int, exclude_order_id: Optional[int] = None) -> int:
    query = db.query(SalesOrder).filter(SalesOrder.msisdn_id == sim_id, SalesOrder.is_deleted == False)
    if exclude_order_id is not None:
        query = query.filter(SalesOrder.id != exclude_order_id)
    return query.count()

def get_expired_unpaid_orders(
    db: Session,
    *,
    status_ids: Sequence[int],
    cutoff: datetime,
    limit: int = 500,
) -> List[SalesOrder]:
    """
    Orders sitting in one of `status_ids` (the order creation status), still
    holding a SIM, not paid and created before `cutoff`.
    Oldest first, at most `limit` rows.
    """
    if not status_ids:
        return []
    query = db.query(SalesOrder).filter(
        SalesOrder.order_status_id.in_(list(status_ids)),
        SalesOrder.is_deleted == False,
        SalesOrder.msisdn_id.isnot(None),
        SalesOrder.payment_status != PaymentStatus.PAID.value,
        SalesOrder.created_date < cutoff,
    )
    return (
        _with_relations(query)
        .order_by(SalesOrder.created_date.asc(), SalesOrder.id.asc())
        .limit(limit)
        .all()
    )

def soft_delete_sales_order(db: Session, *, db_obj: SalesOrder) -> SalesOrder:
    db_obj.is_deleted = True
    db_obj.deleted_at = utcnow()
    db.add(db_obj)
    db.flush()
    return db_obj
