from sqlalchemy.orm import Session
from typing import Optional, List
import uuid

from app.models.audit_log import SalesOrderAuditLog
from app.models.sales_order import SalesOrder
from app.models.enums import DoneBy
from app.schemas.common import Actor
from app.core.time_utils import utcnow

SYSTEM_ACTOR_NAME = "Bot"

def create_audit_log(
    db: Session,
    *,
    sales_order: SalesOrder,
    action: str,
    actor: Optional[Actor] = None,
    previous_value: Optional[str] = None,
    new_value: Optional[str] = None,
    details: Optional[str] = None,
) -> SalesOrderAuditLog:
    """
    Append one audit row for `sales_order`.
    A missing actor records the change as done by the system, without an email.
    """
    db_obj = SalesOrderAuditLog(
        uuid=str(uuid.uuid4()),
        sales_order_id=sales_order.id,
        sales_order_uuid=sales_order.uuid,
        user_full_name=actor.full_name if actor else SYSTEM_ACTOR_NAME,
        user_email=actor.email if actor else None,
        done_by=DoneBy.USER.value if actor else DoneBy.SYSTEM.value,
        action=action,
        previous_value=previous_value,
        new_value=new_value,
        details=details,
        created_at=utcnow(),
        is_deleted=False,
    )
    db.add(db_obj)
    db.flush()
    return db_obj

def get_audit_logs_for_order(db: Session, *, sales_order_id: int) -> List[SalesOrderAuditLog]:
    """Audit rows of one order in the order the changes happened."""
    return (
        db.query(SalesOrderAuditLog)
        .filter(
            SalesOrderAuditLog.sales_order_id == sales_order_id,
            SalesOrderAuditLog.is_deleted == False,
        )
        .order_by(SalesOrderAuditLog.created_at.asc(), SalesOrderAuditLog.id.asc())
        .all()
    )
