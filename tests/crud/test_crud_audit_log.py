import pytest
from sqlalchemy.orm import Session
import uuid

from app.crud import crud_audit_log, crud_sales_order, crud_cron_setting
from app.core.time_utils import utcnow
from app.models.enums import DoneBy
from app.models.sales_order import SalesOrder
from app.schemas.common import Actor

pytestmark = pytest.mark.crud

def _order(db: Session, status) -> SalesOrder:
    db_order = SalesOrder(
        uuid=str(uuid.uuid4()), order_id="SO-1000", personal_phone="03211234567",
        order_status_id=status.id, created_date=utcnow(), is_deleted=False,
    )
    crud_sales_order.create_sales_order(db, db_obj=db_order)
    db.commit()
    return db_order

def test_audit_log_user_and_system(db_session: Session, pending_status):
    db_order = _order(db_session, pending_status)
    actor = Actor(full_name="Hina Malik", email="hina@example.com")

    crud_audit_log.create_audit_log(db_session, sales_order=db_order, action="CREATE", actor=actor)
    crud_audit_log.create_audit_log(db_session, sales_order=db_order, action="AUTO_RELEASE_INVENTORY")
    db_session.commit()

    logs = crud_audit_log.get_audit_logs_for_order(db_session, sales_order_id=db_order.id)
    assert [log.action for log in logs] == ["CREATE", "AUTO_RELEASE_INVENTORY"]

    user_log, system_log = logs
    assert user_log.done_by == DoneBy.USER.value
    assert user_log.user_email == "hina@example.com"
    assert system_log.done_by == DoneBy.SYSTEM.value
    assert system_log.user_full_name == crud_audit_log.SYSTEM_ACTOR_NAME
    assert system_log.user_email is None
    assert system_log.sales_order_uuid == db_order.uuid

def test_upsert_cron_setting(db_session: Session):
    assert crud_cron_setting.get_setting_by_key(db_session, "cron_schedule") is None

    crud_cron_setting.upsert_setting(db_session, key="cron_schedule", value="*/5 * * * *")
    crud_cron_setting.upsert_setting(db_session, key="cron_schedule", value="*/10 * * * *")
    db_session.commit()

    settings = crud_cron_setting.get_all_settings(db_session)
    assert len(settings) == 1
    assert settings[0].value == "*/10 * * * *"
