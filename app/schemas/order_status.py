from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.models.enums import OrderEvent

class OrderStatusBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    event: Optional[OrderEvent] = None

class OrderStatusCreate(OrderStatusBase):
    pass

class OrderStatusUpdate(BaseModel):
    """Rename a status and/or change its event. Unset fields are left alone; event=None unmaps."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    event: Optional[OrderEvent] = None

class EventMappingUpdate(BaseModel):
    event: Optional[OrderEvent] = None

class OrderStatus(OrderStatusBase):
    id: int
    uuid: str
    is_deleted: bool
    created_at: datetime

    class Config:
        from_attributes = True

class OrderStatusNested(BaseModel):
    uuid: str
    name: str
    event: Optional[str] = None

    class Config:
        from_attributes = True
