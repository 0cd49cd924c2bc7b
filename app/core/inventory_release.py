"""
Sweeper that takes SIMs back from orders left unpaid past their deadline.

The deadline follows the sweep schedule's own period: with a run every five
minutes, an order unpaid for more than five minutes is released. Config
(INVENTORY_RELEASE_DEADLINE_MINUTES) or the caller may override it.
"""
import json
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core import config
from app.core.cron_schedule import current_schedule, schedule_interval_minutes
from app.core.order_status_registry import resolve_status_for_event
from app.core.sales_orders import release_order_inventory
from app.core.time_utils import utcnow
from app.crud import crud_audit_log, crud_sales_order
from app.models.enums import OrderEvent, AuditAction
from app.models.order_status import OrderStatus
from app.models.sales_order import SalesOrder
from app.schemas.sales_order import ReleasedOrder

logger = logging.getLogger(__name__)


def deadline_window_minutes(db: Session, schedule: Optional[str] = None, now: Optional[datetime] = None) -> int:
    if config.INVENTORY_RELEASE_DEADLINE_MINUTES:
        return config.INVENTORY_RELEASE_DEADLINE_MINUTES
    return schedule_interval_minutes(schedule or current_schedule(db), now)


def _release_one(
    db: Session, db_order: SalesOrder, release_status: OrderStatus, now: datetime, deadline_minutes: int
) -> ReleasedOrder:
    previous_status = db_order.order_status.name if db_order.order_status else None
    exceeded_by = int((now - db_order.created_date).total_seconds() // 60)

    number = release_order_inventory(db, db_order)
    db_order.order_status_id = release_status.id
    db_order.order_status = release_status

    crud_audit_log.create_audit_log(
        db,
        sales_order=db_order,
        action=AuditAction.AUTO_RELEASE_INVENTORY.value,
        previous_value=previous_status,
        new_value=release_status.name,
        details=json.dumps({
            "paymentDeadlineExceededBy": exceeded_by,
            "createdDate": db_order.created_date.isoformat(),
            "deadlineMinutes": deadline_minutes,
            "msisdn": number,
        }),
    )
    return ReleasedOrder(
        uuid=db_order.uuid,
        order_id=db_order.order_id,
        msisdn=number,
        created_date=db_order.created_date,
        payment_deadline_exceeded_by=exceeded_by,
    )


def release_expired_orders(
    db: Session,
    schedule: Optional[str] = None,
    now: Optional[datetime] = None,
    deadline_minutes: Optional[int] = None,
) -> List[ReleasedOrder]:
    """
    Run one sweep and return the orders released by it.

    Only unpaid orders still in the status mapped to ORDER_CREATION are
    candidates; an order moved on to any other status keeps its SIM.

    Each order is committed on its own; an order that fails is rolled back,
    logged and skipped, and the sweep moves on. Released orders no longer hold
    a SIM and sit in the AUTO_RELEASE_INVENTORY status, so a second sweep does
    not pick them up again.
    """
    now = now or utcnow()
    creation_status = resolve_status_for_event(db, OrderEvent.ORDER_CREATION)
    if creation_status is None:
        logger.warning(f"No status mapped to {OrderEvent.ORDER_CREATION.value}; nothing to release")
        return []

    if deadline_minutes is None:
        deadline_minutes = deadline_window_minutes(db, schedule, now)
    cutoff = now - timedelta(minutes=deadline_minutes)

    release_status = resolve_status_for_event(db, OrderEvent.AUTO_RELEASE_INVENTORY)
    candidates = crud_sales_order.get_expired_unpaid_orders(
        db,
        status_ids=[creation_status.id],
        cutoff=cutoff,
        limit=config.INVENTORY_RELEASE_BATCH_LIMIT,
    )
    if not candidates:
        return []

    if release_status is None:
        for db_order in candidates:
            logger.warning(
                f"No status mapped to {OrderEvent.AUTO_RELEASE_INVENTORY.value}; "
                f"skipping expired order {db_order.order_id}"
            )
        return []

    released = []
    for db_order in candidates:
        order_id = db_order.order_id
        try:
            released.append(_release_one(db, db_order, release_status, now, deadline_minutes))
            db.commit()
        except Exception:
            db.rollback()
            logger.exception(f"Failed to release inventory of order {order_id}")

    logger.info(f"Inventory release: {len(released)} of {len(candidates)} expired order(s) released")
    return released
