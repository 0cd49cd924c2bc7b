from sqlalchemy.orm import Session
from typing import Optional, List
import uuid

from app.models.cron_setting import CronSetting

def get_setting_by_key(db: Session, key: str) -> Optional[CronSetting]:
    return db.query(CronSetting).filter(CronSetting.key == key, CronSetting.is_deleted == False).first()

def get_all_settings(db: Session) -> List[CronSetting]:
    return db.query(CronSetting).filter(CronSetting.is_deleted == False).order_by(CronSetting.key).all()

def upsert_setting(db: Session, *, key: str, value: str) -> CronSetting:
    db_obj = db.query(CronSetting).filter(CronSetting.key == key).first()
    if db_obj is None:
        db_obj = CronSetting(uuid=str(uuid.uuid4()), key=key, value=value, is_deleted=False)
    else:
        db_obj.value = value
        db_obj.is_deleted = False
    db.add(db_obj)
    db.flush()
    return db_obj
