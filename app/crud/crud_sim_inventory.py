from sqlalchemy import update
from sqlalchemy.orm import Session
from typing import Optional, List
import uuid

from app.models.sim_inventory import SimInventory, NumberType
from app.models.enums import SimStatus
from app.schemas.sim_inventory import SimInventoryCreate

# Functions here only flush; the calling operation owns the transaction.

def get_sim(db: Session, sim_id: int) -> Optional[SimInventory]:
    return db.query(SimInventory).filter(SimInventory.id == sim_id).first()

def get_sim_by_uuid(db: Session, sim_uuid: str, *, include_deleted: bool = False) -> Optional[SimInventory]:
    query = db.query(SimInventory).filter(SimInventory.uuid == sim_uuid)
    if not include_deleted:
        query = query.filter(SimInventory.is_deleted == False)
    return query.first()

def get_sim_by_number(db: Session, number: str, *, include_deleted: bool = False) -> Optional[SimInventory]:
    query = db.query(SimInventory).filter(SimInventory.number == number)
    if not include_deleted:
        query = query.filter(SimInventory.is_deleted == False)
    return query.first()

def get_sims(
    db: Session, *, status: Optional[SimStatus] = None, skip: int = 0, limit: int = 100
) -> List[SimInventory]:
    query = db.query(SimInventory).filter(SimInventory.is_deleted == False)
    if status is not None:
        query = query.filter(SimInventory.status == status.value)
    return query.order_by(SimInventory.number).offset(skip).limit(limit).all()

def create_sim(
    db: Session, *, obj_in: SimInventoryCreate, number_type_id: Optional[int] = None, city_id: Optional[int] = None
) -> SimInventory:
    db_obj = SimInventory(
        uuid=str(uuid.uuid4()),
        number=obj_in.number,
        sim_price=obj_in.sim_price,
        discount=obj_in.discount,
        final_sim_price=max(obj_in.sim_price - obj_in.discount, 0),
        number_type_id=number_type_id,
        city_id=city_id,
        status=obj_in.status.value,
        is_deleted=False,
    )
    db.add(db_obj)
    db.flush()
    return db_obj

def claim_sim(db: Session, sim_id: int) -> bool:
    """
    Flip a SIM from Available to Sold.
    The status check is part of the UPDATE itself, so of two racing claims only
    one can match the row. Returns False when the SIM was no longer Available.
    """
    result = db.execute(
        update(SimInventory)
        .where(
            SimInventory.id == sim_id,
            SimInventory.status == SimStatus.AVAILABLE.value,
            SimInventory.is_deleted == False,
        )
        .values(status=SimStatus.SOLD.value)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount == 1

def release_sim(db: Session, sim_id: int) -> bool:
    """Hand a Sold SIM back to Available. Returns False when it was not Sold."""
    result = db.execute(
        update(SimInventory)
        .where(SimInventory.id == sim_id, SimInventory.status == SimStatus.SOLD.value)
        .values(status=SimStatus.AVAILABLE.value)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount == 1

def get_number_type_by_uuid(db: Session, number_type_uuid: str) -> Optional[NumberType]:
    return (
        db.query(NumberType)
        .filter(NumberType.uuid == number_type_uuid, NumberType.is_deleted == False)
        .first()
    )

def create_number_type(db: Session, *, name: str) -> NumberType:
    db_obj = NumberType(uuid=str(uuid.uuid4()), name=name, is_deleted=False)
    db.add(db_obj)
    db.flush()
    return db_obj
