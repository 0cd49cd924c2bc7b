from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

class CronSetting(BaseModel):
    key: str
    value: str
    updated_at: Optional[datetime] = None  # None while the default schedule has never been stored

    class Config:
        from_attributes = True

class CronScheduleUpdate(BaseModel):
    # Either a 5-field cron expression or a daily "H:MM" time
    value: str = Field(..., min_length=1, max_length=100)

class CronScheduleUpdated(BaseModel):
    key: str
    value: str
    restarted: bool
