from sqlalchemy.orm import Session, joinedload
from typing import Optional
import uuid

from app.models.location import Region, City

def get_city_by_uuid(db: Session, city_uuid: str, *, include_deleted: bool = False) -> Optional[City]:
    """Get a city by uuid with its region eagerly loaded. Inactive cities are still returned."""
    query = db.query(City).options(joinedload(City.region)).filter(City.uuid == city_uuid)
    if not include_deleted:
        query = query.filter(City.is_deleted == False)
    return query.first()

def create_region(db: Session, *, name: str) -> Region:
    db_obj = Region(uuid=str(uuid.uuid4()), name=name, is_deleted=False)
    db.add(db_obj)
    db.flush()
    return db_obj

def create_city(db: Session, *, name: str, region_id: Optional[int] = None) -> City:
    db_obj = City(uuid=str(uuid.uuid4()), name=name, region_id=region_id, is_deleted=False)
    db.add(db_obj)
    db.flush()
    return db_obj
