from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime

from app.api.errors import unwrap
from app.core import sales_orders
from app.core.dependencies import get_actor, get_data_access_filter
from app.core.time_utils import to_naive_utc
from app.db.session import get_db
from app.models.enums import PaymentStatus
from app.schemas.common import Actor, DataAccessFilter
from app.schemas.audit_log import SalesOrderAuditLog
from app.schemas.sales_order import (
    SalesOrder,
    SalesOrderCreate,
    SalesOrderPage,
    OrderStatusChange,
    PaymentStatusChange,
    TransactionUpdate,
    MsisdnChange,
    NotesUpdate,
    CnicUpdate,
    CityChange,
    SalesOrderDetailsUpdate,
    OrderStatusInfo,
)

router = APIRouter()

@router.post("/", response_model=SalesOrder, status_code=201)
async def create_sales_order(
    order_in: SalesOrderCreate,
    db: Session = Depends(get_db),
    actor: Optional[Actor] = Depends(get_actor)
):
    """
    Place an order. The referenced SIM must be Available and is marked Sold;
    a SIM taken by someone else in the meantime gives 409.
    """
    return unwrap(sales_orders.create_sales_order(db, order_in, actor=actor))

@router.get("/", response_model=SalesOrderPage)
async def read_sales_orders(
    db: Session = Depends(get_db),
    access: Optional[DataAccessFilter] = Depends(get_data_access_filter),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=200),
    order_status_uuid: Optional[str] = None,
    payment_status: Optional[PaymentStatus] = None,
    city_uuid: Optional[str] = None,
    search: Optional[str] = Query(None, description="Order id, customer name or phone number."),
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None
):
    """
    List orders, newest first. Callers scoped through X-City-Ids / X-Region-Ids
    only see orders of those cities or regions.
    """
    return unwrap(sales_orders.list_sales_orders(
        db,
        access,
        page=page,
        limit=limit,
        order_status_uuid=order_status_uuid,
        payment_status=payment_status,
        city_uuid=city_uuid,
        search=search,
        start_date=to_naive_utc(start_date),
        end_date=to_naive_utc(end_date),
    ))

@router.get("/status-info/{order_id}", response_model=OrderStatusInfo)
async def read_order_status_info(order_id: str, db: Session = Depends(get_db)):
    """Current status of an order by its human readable id, e.g. for partner status checks."""
    return unwrap(sales_orders.get_order_status_info(db, order_id))

@router.put("/transaction", response_model=SalesOrder)
async def update_transaction(
    transaction_in: TransactionUpdate,
    db: Session = Depends(get_db),
    actor: Optional[Actor] = Depends(get_actor)
):
    return unwrap(sales_orders.update_transaction(db, transaction_in, actor=actor))

@router.get("/{order_uuid}", response_model=SalesOrder)
async def read_sales_order(
    order_uuid: str,
    db: Session = Depends(get_db),
    access: Optional[DataAccessFilter] = Depends(get_data_access_filter)
):
    return unwrap(sales_orders.get_sales_order(db, order_uuid, access=access))

@router.patch("/{order_uuid}/status", response_model=SalesOrder)
async def change_order_status(
    order_uuid: str,
    change_in: OrderStatusChange,
    db: Session = Depends(get_db),
    actor: Optional[Actor] = Depends(get_actor)
):
    return unwrap(sales_orders.update_order_status(db, order_uuid, change_in.order_status_uuid, actor=actor))

@router.patch("/{order_uuid}/payment-status", response_model=SalesOrder)
async def change_payment_status(
    order_uuid: str,
    change_in: PaymentStatusChange,
    db: Session = Depends(get_db),
    actor: Optional[Actor] = Depends(get_actor)
):
    return unwrap(sales_orders.update_payment_status(db, order_uuid, change_in.payment_status, actor=actor))

@router.patch("/{order_uuid}/msisdn", response_model=SalesOrder)
async def change_msisdn(
    order_uuid: str,
    change_in: MsisdnChange,
    db: Session = Depends(get_db),
    actor: Optional[Actor] = Depends(get_actor)
):
    return unwrap(sales_orders.update_msisdn(
        db, order_uuid, change_in.msisdn_uuid, bundle_uuid=change_in.bundle_uuid, actor=actor
    ))

@router.patch("/{order_uuid}/notes", response_model=SalesOrder)
async def change_notes(
    order_uuid: str,
    notes_in: NotesUpdate,
    db: Session = Depends(get_db),
    actor: Optional[Actor] = Depends(get_actor)
):
    return unwrap(sales_orders.update_notes(db, order_uuid, notes_in.notes, actor=actor))

@router.patch("/{order_uuid}/cnic", response_model=SalesOrder)
async def change_cnic(
    order_uuid: str,
    cnic_in: CnicUpdate,
    db: Session = Depends(get_db),
    actor: Optional[Actor] = Depends(get_actor)
):
    return unwrap(sales_orders.update_cnic(db, order_uuid, cnic_in.cnic, actor=actor))

@router.patch("/{order_uuid}/city", response_model=SalesOrder)
async def change_city(
    order_uuid: str,
    city_in: CityChange,
    db: Session = Depends(get_db),
    actor: Optional[Actor] = Depends(get_actor)
):
    return unwrap(sales_orders.update_city(db, order_uuid, city_in.city_uuid, actor=actor))

@router.patch("/{order_uuid}/details", response_model=SalesOrder)
async def change_order_details(
    order_uuid: str,
    details_in: SalesOrderDetailsUpdate,
    db: Session = Depends(get_db),
    actor: Optional[Actor] = Depends(get_actor)
):
    return unwrap(sales_orders.update_order_details(db, order_uuid, details_in, actor=actor))

@router.delete("/{order_uuid}", status_code=204)
async def delete_sales_order(
    order_uuid: str,
    db: Session = Depends(get_db),
    actor: Optional[Actor] = Depends(get_actor)
):
    """Soft delete an order and put its SIM back in stock."""
    unwrap(sales_orders.delete_sales_order(db, order_uuid, actor=actor))

@router.get("/{order_uuid}/audit-logs", response_model=List[SalesOrderAuditLog])
async def read_audit_logs(order_uuid: str, db: Session = Depends(get_db)):
    return unwrap(sales_orders.get_audit_logs(db, order_uuid))
