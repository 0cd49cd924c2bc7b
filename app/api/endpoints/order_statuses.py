from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from app.api.errors import unwrap
from app.core import order_status_registry
from app.db.session import get_db
from app.models.enums import OrderEvent
from app.schemas.order_status import OrderStatus, OrderStatusCreate, OrderStatusUpdate, EventMappingUpdate

router = APIRouter()

@router.post("/", response_model=OrderStatus, status_code=201)
async def create_order_status(status_in: OrderStatusCreate, db: Session = Depends(get_db)):
    """
    Create an order status, optionally holding a lifecycle event.
    Fails with 409 if the name exists or the event is already mapped elsewhere.
    """
    return unwrap(order_status_registry.create_order_status(db, status_in))

@router.get("/", response_model=List[OrderStatus])
async def read_order_statuses(
    db: Session = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)
):
    return unwrap(order_status_registry.list_order_statuses(db, skip=skip, limit=limit))

@router.get("/by-event/{event}", response_model=OrderStatus)
async def read_order_status_by_event(event: OrderEvent, db: Session = Depends(get_db)):
    return unwrap(order_status_registry.get_order_status_by_event(db, event))

@router.get("/{status_uuid}", response_model=OrderStatus)
async def read_order_status(status_uuid: str, db: Session = Depends(get_db)):
    return unwrap(order_status_registry.get_order_status(db, status_uuid))

@router.patch("/{status_uuid}", response_model=OrderStatus)
async def update_order_status(status_uuid: str, status_in: OrderStatusUpdate, db: Session = Depends(get_db)):
    return unwrap(order_status_registry.update_order_status_definition(db, status_uuid, status_in))

@router.put("/{status_uuid}/event", response_model=OrderStatus)
async def map_event_to_order_status(status_uuid: str, mapping_in: EventMappingUpdate, db: Session = Depends(get_db)):
    """
    Point an event at this status. The previous holder of the event, if any, loses it.
    An empty event unmaps the status.
    """
    return unwrap(order_status_registry.set_event_mapping(db, status_uuid, mapping_in.event))

@router.delete("/{status_uuid}", status_code=204)
async def delete_order_status(status_uuid: str, db: Session = Depends(get_db)):
    unwrap(order_status_registry.delete_order_status(db, status_uuid))
