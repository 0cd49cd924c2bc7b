from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal

from app.models.enums import SimStatus

class SimInventoryBase(BaseModel):
    number: str = Field(..., min_length=1, max_length=20)
    sim_price: Decimal = Field(default=Decimal("0"), ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)

class SimInventoryCreate(SimInventoryBase):
    number_type_uuid: Optional[str] = None
    city_uuid: Optional[str] = None
    status: SimStatus = SimStatus.AVAILABLE

class SimInventory(SimInventoryBase):
    id: int
    uuid: str
    final_sim_price: Decimal
    number_type_id: Optional[int] = None
    city_id: Optional[int] = None
    status: str
    is_deleted: bool

    class Config:
        from_attributes = True

class SimInventoryNested(BaseModel):
    """A simplified SIM schema for nesting within SalesOrder."""
    uuid: str
    number: str
    status: str
    final_sim_price: Decimal

    class Config:
        from_attributes = True
