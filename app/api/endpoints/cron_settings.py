from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.api.errors import unwrap
from app.core import cron_schedule
from app.core.dependencies import get_scheduler
from app.db.session import get_db
from app.schemas.cron_setting import CronSetting, CronScheduleUpdate, CronScheduleUpdated

router = APIRouter()

@router.get("/", response_model=List[CronSetting])
async def read_cron_settings(db: Session = Depends(get_db)):
    return unwrap(cron_schedule.list_cron_settings(db))

@router.get("/cron_schedule", response_model=CronSetting)
async def read_cron_schedule(db: Session = Depends(get_db)):
    """The inventory release schedule; the default is returned while none is stored."""
    return unwrap(cron_schedule.get_cron_schedule(db))

@router.put("/cron_schedule", response_model=CronScheduleUpdated)
async def update_cron_schedule(
    schedule_in: CronScheduleUpdate,
    db: Session = Depends(get_db),
    scheduler=Depends(get_scheduler)
):
    """
    Change the inventory release schedule. Accepts a cron expression or a daily "H:MM" time.
    The running sweep restarts only when the schedule actually changed.
    """
    return unwrap(await cron_schedule.update_cron_schedule(db, schedule_in.value, scheduler=scheduler))
