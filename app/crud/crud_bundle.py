from sqlalchemy.orm import Session
from typing import Optional
from decimal import Decimal
import uuid

from app.models.bundle import Bundle

def get_bundle_by_uuid(db: Session, bundle_uuid: str, *, include_deleted: bool = False) -> Optional[Bundle]:
    query = db.query(Bundle).filter(Bundle.uuid == bundle_uuid)
    if not include_deleted:
        query = query.filter(Bundle.is_deleted == False)
    return query.first()

def create_bundle(
    db: Session,
    *,
    bundle_name: str,
    bundle_code: Optional[str] = None,
    bundle_price: Decimal = Decimal("0"),
    discount: Decimal = Decimal("0"),
    offer_id: Optional[str] = None,
) -> Bundle:
    db_obj = Bundle(
        uuid=str(uuid.uuid4()),
        bundle_code=bundle_code,
        bundle_name=bundle_name,
        bundle_price=bundle_price,
        discount=discount,
        bundle_final_price=max(bundle_price - discount, Decimal("0")),
        offer_id=offer_id,
        status=True,
        is_deleted=False,
    )
    db.add(db_obj)
    db.flush()
    return db_obj
