from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.crud import crud_sim_inventory, crud_location
from app.db.session import get_db
from app.models.enums import SimStatus
from app.schemas.sim_inventory import SimInventory, SimInventoryCreate

router = APIRouter()

@router.post("/", response_model=SimInventory, status_code=201)
def create_sim(sim_in: SimInventoryCreate, db: Session = Depends(get_db)):
    """Add a SIM to stock."""
    if crud_sim_inventory.get_sim_by_number(db, sim_in.number, include_deleted=True):
        raise HTTPException(status_code=409, detail=f"SIM {sim_in.number} already exists")

    number_type_id = None
    if sim_in.number_type_uuid:
        number_type = crud_sim_inventory.get_number_type_by_uuid(db, sim_in.number_type_uuid)
        if not number_type:
            raise HTTPException(status_code=404, detail="Number type not found")
        number_type_id = number_type.id

    city_id = None
    if sim_in.city_uuid:
        city = crud_location.get_city_by_uuid(db, sim_in.city_uuid)
        if not city:
            raise HTTPException(status_code=404, detail="City not found")
        city_id = city.id

    db_sim = crud_sim_inventory.create_sim(db, obj_in=sim_in, number_type_id=number_type_id, city_id=city_id)
    db.commit()
    return db_sim

@router.get("/", response_model=List[SimInventory])
def read_sims(
    db: Session = Depends(get_db),
    status: Optional[SimStatus] = Query(None, description="Only SIMs in this stock status."),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)
):
    return crud_sim_inventory.get_sims(db, status=status, skip=skip, limit=limit)

@router.get("/{sim_uuid}", response_model=SimInventory)
def read_sim(sim_uuid: str, db: Session = Depends(get_db)):
    db_sim = crud_sim_inventory.get_sim_by_uuid(db, sim_uuid)
    if db_sim is None:
        raise HTTPException(status_code=404, detail="SIM not found")
    return db_sim
