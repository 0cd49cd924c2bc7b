import pytest
from sqlalchemy.orm import Session

from app.core import config, sales_orders
from app.core.encryption import decrypt_cnic
from app.core.exceptions import ErrorKind
from app.crud import crud_sales_order, crud_sim_inventory, crud_order_status, crud_audit_log
from app.models.enums import SimStatus, PaymentStatus, OrderEvent, DoneBy
from app.models.sim_inventory import SimInventory
from app.schemas.common import Actor, DataAccessFilter
from app.schemas.sales_order import SalesOrderCreate, TransactionUpdate, SalesOrderDetailsUpdate

pytestmark = pytest.mark.core

ACTOR = Actor(full_name="Hina Malik", email="hina@example.com")

def _create(db: Session, sim=None, city=None, actor=ACTOR, **fields):
    order_in = SalesOrderCreate(
        customer_name=fields.pop("customer_name", "Ali Khan"),
        personal_phone=fields.pop("personal_phone", "03211234567"),
        msisdn_uuid=sim.uuid if sim else None,
        city_uuid=city.uuid if city else None,
        **fields
    )
    return sales_orders.create_sales_order(db, order_in, actor=actor)

def _sim_status(db: Session, sim: SimInventory) -> str:
    db.expire_all()
    return crud_sim_inventory.get_sim(db, sim.id).status

def _assert_sold_iff_held(db: Session):
    db.expire_all()
    for sim in db.query(SimInventory).all():
        holders = crud_sales_order.count_active_orders_for_sim(db, sim_id=sim.id)
        assert (sim.status == SimStatus.SOLD.value) == (holders == 1), sim.number

def _actions(db: Session, order_uuid: str):
    return [log.action for log in sales_orders.get_audit_logs(db, order_uuid).data]

# --- creation ---

def test_create_order_claims_sim(db_session: Session, test_sim, test_city, pending_status):
    result = _create(db_session, sim=test_sim, city=test_city, cnic="3520212345671")

    assert result.ok, result.message
    order = result.data
    assert order.order_id == "SO-1000"
    assert order.payment_status == PaymentStatus.UNPAID.value
    assert order.order_status.name == "Pending"
    assert order.sim_inventory.number == test_sim.number
    assert _sim_status(db_session, test_sim) == SimStatus.SOLD.value

    logs = sales_orders.get_audit_logs(db_session, order.uuid).data
    assert len(logs) == 1
    assert logs[0].action == "CREATE"
    assert logs[0].done_by == DoneBy.USER.value

    stored = crud_sales_order.get_sales_order_by_uuid(db_session, order.uuid)
    assert stored.cnic != "3520212345671"
    assert decrypt_cnic(stored.cnic) == "3520212345671"
    _assert_sold_iff_held(db_session)

def test_create_by_sim_number_and_sequential_ids(db_session: Session, test_sim, second_sim, pending_status):
    first = sales_orders.create_sales_order(
        db_session, SalesOrderCreate(personal_phone="0321", msisdn=test_sim.number)
    )
    second = _create(db_session, sim=second_sim, actor=None)

    assert first.data.order_id == "SO-1000"
    assert second.data.order_id == "SO-1001"
    logs = sales_orders.get_audit_logs(db_session, second.data.uuid).data
    assert logs[0].done_by == DoneBy.SYSTEM.value
    assert logs[0].user_email is None

def test_create_without_creation_mapping_uses_default_status(db_session: Session, test_sim):
    result = _create(db_session, sim=test_sim)
    assert result.ok
    assert result.data.order_status.name == config.DEFAULT_ORDER_STATUS_NAME

def test_create_with_sold_sim_conflict(db_session: Session, test_sim, pending_status):
    assert _create(db_session, sim=test_sim).ok

    result = _create(db_session, sim=test_sim)
    assert result.error_kind == ErrorKind.CONFLICT
    assert result.message == "SIM not available"
    _, total = crud_sales_order.get_sales_orders(db_session)
    assert total == 1

def test_create_with_unknown_city_rolls_back(db_session: Session, test_sim, pending_status):
    order_in = SalesOrderCreate(personal_phone="0321", msisdn_uuid=test_sim.uuid, city_uuid="missing")
    result = sales_orders.create_sales_order(db_session, order_in)

    assert result.error_kind == ErrorKind.NOT_FOUND
    assert _sim_status(db_session, test_sim) == SimStatus.AVAILABLE.value

def test_concurrent_creates_one_wins(db_session: Session, test_sim, pending_status):
    other_session = Session(bind=db_session.get_bind())
    try:
        # Both callers see the SIM as Available before either commits
        stale = crud_sim_inventory.get_sim_by_uuid(other_session, test_sim.uuid)
        assert stale.status == SimStatus.AVAILABLE.value

        first = _create(db_session, sim=test_sim)
        second = _create(other_session, sim=test_sim)
    finally:
        other_session.close()

    assert first.ok
    assert not second.ok
    assert second.error_kind == ErrorKind.CONFLICT
    _, total = crud_sales_order.get_sales_orders(db_session)
    assert total == 1
    _assert_sold_iff_held(db_session)

def test_create_rejects_sim_still_held_by_live_order(db_session: Session, test_sim, pending_status):
    holder = _create(db_session, sim=test_sim).data
    # Inventory row flipped back to Available behind the order's back
    crud_sim_inventory.release_sim(db_session, test_sim.id)
    db_session.commit()

    result = _create(db_session, sim=test_sim)

    assert result.error_kind == ErrorKind.CONFLICT
    assert result.message == sales_orders.SIM_NOT_AVAILABLE
    db_session.expire_all()
    assert crud_sales_order.get_sales_order_by_uuid(db_session, holder.uuid).msisdn_id == test_sim.id
    assert _sim_status(db_session, test_sim) == SimStatus.AVAILABLE.value

# --- status and payment ---

def test_update_order_status_audits_names(db_session: Session, test_sim, pending_status):
    order = _create(db_session, sim=test_sim).data
    confirmed = crud_order_status.create_order_status(db_session, name="Confirmed")
    db_session.commit()

    result = sales_orders.update_order_status(db_session, order.uuid, confirmed.uuid, actor=ACTOR)
    assert result.ok
    assert result.data.order_status.name == "Confirmed"

    log = sales_orders.get_audit_logs(db_session, order.uuid).data[-1]
    assert (log.action, log.previous_value, log.new_value) == ("STATUS_CHANGED", "Pending", "Confirmed")
    assert _sim_status(db_session, test_sim) == SimStatus.SOLD.value

def test_update_order_status_to_cancel_releases_sim(db_session: Session, test_sim, pending_status):
    order = _create(db_session, sim=test_sim).data
    cancelled = crud_order_status.create_order_status(db_session, name="Cancelled", event=OrderEvent.CANCELED)
    db_session.commit()

    result = sales_orders.update_order_status(db_session, order.uuid, cancelled.uuid)
    assert result.ok
    assert result.data.sim_inventory is None
    assert _sim_status(db_session, test_sim) == SimStatus.AVAILABLE.value
    _assert_sold_iff_held(db_session)

def test_update_order_status_unknown_status(db_session: Session, test_sim, pending_status):
    order = _create(db_session, sim=test_sim).data
    result = sales_orders.update_order_status(db_session, order.uuid, "missing")
    assert result.error_kind == ErrorKind.NOT_FOUND

def test_payment_failed_keeps_status(db_session: Session, test_sim, pending_status, monkeypatch):
    monkeypatch.setattr(config, "PAYMENT_EVENT_TRANSITIONS", False)
    crud_order_status.create_order_status(db_session, name="Payment failed", event=OrderEvent.PAYMENT_FAILED)
    db_session.commit()
    order = _create(db_session, sim=test_sim).data

    result = sales_orders.update_payment_status(db_session, order.uuid, PaymentStatus.PAYMENT_FAILED, actor=ACTOR)

    assert result.ok
    assert result.data.payment_status == "payment_failed"
    assert result.data.order_status_id == order.order_status_id
    assert _actions(db_session, order.uuid) == ["CREATE", "PAYMENT_STATUS_CHANGED"]

def test_payment_events_move_status_when_enabled(db_session: Session, test_sim, pending_status, monkeypatch):
    monkeypatch.setattr(config, "PAYMENT_EVENT_TRANSITIONS", True)
    paid_status = crud_order_status.create_order_status(db_session, name="Paid", event=OrderEvent.PAYMENT_SUCCESSFUL)
    db_session.commit()
    order = _create(db_session, sim=test_sim).data

    result = sales_orders.update_payment_status(db_session, order.uuid, PaymentStatus.PAID)

    assert result.ok
    assert result.data.order_status_id == paid_status.id
    assert _sim_status(db_session, test_sim) == SimStatus.SOLD.value

def test_failed_payment_releases_sim_when_enabled(db_session: Session, test_sim, pending_status, monkeypatch):
    monkeypatch.setattr(config, "PAYMENT_EVENT_TRANSITIONS", True)
    failed = crud_order_status.create_order_status(db_session, name="Payment failed", event=OrderEvent.PAYMENT_FAILED)
    crud_order_status.create_order_status(db_session, name="Released manually", event=OrderEvent.RELEASE_INVENTORY)
    db_session.commit()
    order = _create(db_session, sim=test_sim).data

    result = sales_orders.update_payment_status(db_session, order.uuid, PaymentStatus.PAYMENT_FAILED)

    assert result.data.order_status_id == failed.id
    assert result.data.sim_inventory is None
    assert _sim_status(db_session, test_sim) == SimStatus.AVAILABLE.value

def test_update_transaction_by_order_id(db_session: Session, test_sim, pending_status):
    order = _create(db_session, sim=test_sim).data

    result = sales_orders.update_transaction(
        db_session,
        TransactionUpdate(order_id=order.order_id, payment_method="JazzCash", transaction_ref="TX-1",
                          payment_status=PaymentStatus.PAID),
    )
    assert result.ok
    assert result.data.payment_method == "JazzCash"
    assert result.data.payment_status == "paid"

def test_update_transaction_uuid_takes_priority(db_session: Session, test_sim, second_sim, pending_status):
    first = _create(db_session, sim=test_sim).data
    second = _create(db_session, sim=second_sim).data

    result = sales_orders.update_transaction(
        db_session, TransactionUpdate(uuid=second.uuid, order_id=first.order_id, transaction_ref="TX-2")
    )
    assert result.data.uuid == second.uuid

def test_update_transaction_not_found(db_session: Session):
    result = sales_orders.update_transaction(db_session, TransactionUpdate(uuid="nope", order_id="SO-9"))
    assert result.error_kind == ErrorKind.NOT_FOUND

def test_transaction_payment_failed_releases_sim(db_session: Session, test_sim, pending_status, monkeypatch):
    monkeypatch.setattr(config, "PAYMENT_EVENT_TRANSITIONS", False)
    failed = crud_order_status.create_order_status(db_session, name="Payment failed", event=OrderEvent.PAYMENT_FAILED)
    crud_order_status.create_order_status(db_session, name="Released manually", event=OrderEvent.RELEASE_INVENTORY)
    db_session.commit()
    order = _create(db_session, sim=test_sim).data

    result = sales_orders.update_transaction(
        db_session,
        TransactionUpdate(order_id=order.order_id, transaction_ref="TX-9", payment_status=PaymentStatus.PAYMENT_FAILED),
    )

    assert result.ok
    assert result.data.order_status_id == failed.id
    assert result.data.sim_inventory is None
    assert _sim_status(db_session, test_sim) == SimStatus.AVAILABLE.value
    _assert_sold_iff_held(db_session)

def test_transaction_paid_moves_status(db_session: Session, test_sim, pending_status):
    paid_status = crud_order_status.create_order_status(db_session, name="Paid", event=OrderEvent.PAYMENT_SUCCESSFUL)
    db_session.commit()
    order = _create(db_session, sim=test_sim).data

    result = sales_orders.update_transaction(
        db_session, TransactionUpdate(uuid=order.uuid, payment_status=PaymentStatus.PAID)
    )

    assert result.data.order_status_id == paid_status.id
    assert _sim_status(db_session, test_sim) == SimStatus.SOLD.value

def test_transaction_transitions_can_be_disabled(db_session: Session, test_sim, pending_status, monkeypatch):
    monkeypatch.setattr(config, "TRANSACTION_EVENT_TRANSITIONS", False)
    crud_order_status.create_order_status(db_session, name="Payment failed", event=OrderEvent.PAYMENT_FAILED)
    db_session.commit()
    order = _create(db_session, sim=test_sim).data

    result = sales_orders.update_transaction(
        db_session, TransactionUpdate(uuid=order.uuid, payment_status=PaymentStatus.PAYMENT_FAILED)
    )

    assert result.data.payment_status == "payment_failed"
    assert result.data.order_status_id == order.order_status_id
    assert _sim_status(db_session, test_sim) == SimStatus.SOLD.value

# --- SIM reassignment and deletion ---

def test_reassign_sim_round_trip(db_session: Session, test_sim, second_sim, test_bundle, pending_status):
    order = _create(db_session, sim=test_sim, bundle_uuid=test_bundle.uuid).data

    result = sales_orders.update_msisdn(db_session, order.uuid, second_sim.uuid, actor=ACTOR)

    assert result.ok
    assert result.data.sim_inventory.number == second_sim.number
    assert result.data.bundle_id == test_bundle.id
    assert _sim_status(db_session, test_sim) == SimStatus.AVAILABLE.value
    assert _sim_status(db_session, second_sim) == SimStatus.SOLD.value

    changes = [log for log in sales_orders.get_audit_logs(db_session, order.uuid).data if log.action == "MSISDN_CHANGED"]
    assert len(changes) == 1
    assert (changes[0].previous_value, changes[0].new_value) == (test_sim.number, second_sim.number)
    _assert_sold_iff_held(db_session)

def test_reassign_to_sold_sim_conflict_keeps_old(db_session: Session, test_sim, second_sim, pending_status):
    order = _create(db_session, sim=test_sim).data
    assert _create(db_session, sim=second_sim).ok

    result = sales_orders.update_msisdn(db_session, order.uuid, second_sim.uuid)

    assert result.error_kind == ErrorKind.CONFLICT
    assert _sim_status(db_session, test_sim) == SimStatus.SOLD.value
    assert sales_orders.get_sales_order(db_session, order.uuid).data.sim_inventory.number == test_sim.number
    _assert_sold_iff_held(db_session)

def test_reassign_applies_assign_number_status(db_session: Session, test_sim, second_sim, pending_status):
    assigned = crud_order_status.create_order_status(db_session, name="Number assigned", event=OrderEvent.ASSIGN_NUMBER)
    db_session.commit()
    order = _create(db_session, sim=test_sim).data

    result = sales_orders.update_msisdn(db_session, order.uuid, second_sim.uuid)
    assert result.data.order_status_id == assigned.id

def test_delete_releases_sim(db_session: Session, test_sim, pending_status):
    order = _create(db_session, sim=test_sim).data

    result = sales_orders.delete_sales_order(db_session, order.uuid, actor=ACTOR)

    assert result.ok
    assert _sim_status(db_session, test_sim) == SimStatus.AVAILABLE.value
    assert sales_orders.get_sales_order(db_session, order.uuid).error_kind == ErrorKind.NOT_FOUND
    assert _actions(db_session, order.uuid) == ["CREATE", "DELETE"]
    _assert_sold_iff_held(db_session)

    # The SIM can be sold again
    assert _create(db_session, sim=test_sim).ok

# --- other edits ---

def test_update_cnic_never_audits_value(db_session: Session, test_sim, pending_status):
    order = _create(db_session, sim=test_sim).data

    assert sales_orders.update_cnic(db_session, order.uuid, "1234567890123456").error_kind == ErrorKind.VALIDATION_FAILED
    assert sales_orders.update_cnic(db_session, order.uuid, "4210112345671").ok

    stored = crud_sales_order.get_sales_order_by_uuid(db_session, order.uuid)
    assert decrypt_cnic(stored.cnic) == "4210112345671"
    for log in crud_audit_log.get_audit_logs_for_order(db_session, sales_order_id=stored.id):
        for value in (log.previous_value, log.new_value, log.details):
            assert "4210112345671" not in (value or "")

def test_update_notes_city_and_details(db_session: Session, test_sim, test_city, other_city, pending_status):
    order = _create(db_session, sim=test_sim, city=test_city).data

    assert sales_orders.update_notes(db_session, order.uuid, "call after 5pm").data.notes == "call after 5pm"
    assert sales_orders.update_city(db_session, order.uuid, other_city.uuid).data.city_id == other_city.id
    details = sales_orders.update_order_details(
        db_session, order.uuid, SalesOrderDetailsUpdate(customer_name="Ali Raza", address="Gulberg")
    ).data
    assert (details.customer_name, details.address) == ("Ali Raza", "Gulberg")

    assert _actions(db_session, order.uuid) == ["CREATE", "NOTES_UPDATED", "CITY_UPDATED", "DETAILS_UPDATED"]
    city_log = sales_orders.get_audit_logs(db_session, order.uuid).data[2]
    assert (city_log.previous_value, city_log.new_value) == ("Lahore", "Karachi")

def test_list_sales_orders_scoped(db_session: Session, make_sim, test_city, other_city, pending_status):
    _create(db_session, sim=make_sim("03000000001"), city=test_city)
    _create(db_session, sim=make_sim("03000000002"), city=other_city)
    _create(db_session, sim=make_sim("03000000003"), city=other_city)

    page = sales_orders.list_sales_orders(db_session, DataAccessFilter(city_ids=[other_city.id]), limit=1).data
    assert page.pagination.total == 2
    assert page.pagination.total_pages == 2
    assert page.pagination.has_next_page is True
    assert page.pagination.has_prev_page is False
    assert page.content[0].city_id == other_city.id

    everything = sales_orders.list_sales_orders(db_session).data
    assert everything.pagination.total == 3

def test_list_sales_orders_filters(db_session: Session, make_sim, pending_status):
    first = _create(db_session, sim=make_sim("03000000001"), customer_name="Sara Ahmed").data
    _create(db_session, sim=make_sim("03000000002"))
    sales_orders.update_payment_status(db_session, first.uuid, PaymentStatus.PAID)

    paid = sales_orders.list_sales_orders(db_session, payment_status=PaymentStatus.PAID).data
    assert [o.uuid for o in paid.content] == [first.uuid]

    found = sales_orders.list_sales_orders(db_session, search="Sara").data
    assert [o.uuid for o in found.content] == [first.uuid]

    by_status = sales_orders.list_sales_orders(db_session, order_status_uuid=pending_status.uuid).data
    assert by_status.pagination.total == 2

def test_order_status_info(db_session: Session, test_sim, pending_status, released_status):
    order = _create(db_session, sim=test_sim).data

    info = sales_orders.get_order_status_info(db_session, order.order_id).data
    assert info.current_status == "Pending"
    assert info.is_order_inventory_auto_released is False

    sales_orders.update_order_status(db_session, order.uuid, released_status.uuid)
    info = sales_orders.get_order_status_info(db_session, order.order_id).data
    assert info.current_status == "Released"
    assert info.is_order_inventory_auto_released is True

    assert sales_orders.get_order_status_info(db_session, "SO-404").error_kind == ErrorKind.NOT_FOUND
