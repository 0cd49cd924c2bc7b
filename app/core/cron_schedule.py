"""
The inventory release schedule: parsing, validation and persistence.

A schedule is stored as a 5-field cron expression. Callers may also give a
daily time as "H:MM", which is turned into the matching cron expression.
"""
import logging
import re
from datetime import datetime
from typing import Optional

from croniter import croniter
from sqlalchemy.orm import Session

from app.core.config import CRON_SCHEDULE_SETTING_KEY, DEFAULT_CRON_SCHEDULE
from app.core.exceptions import ValidationFailedError
from app.core.result import ServiceResult, service_operation
from app.core.time_utils import utcnow
from app.crud import crud_cron_setting
from app.schemas.cron_setting import CronSetting, CronScheduleUpdated

logger = logging.getLogger(__name__)

_DAILY_TIME = re.compile(r"^(\d{1,2}):(\d{2})$")
_EVERY_N_MINUTES = re.compile(r"^\*/(\d+)$")

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR
MINUTES_PER_WEEK = 7 * MINUTES_PER_DAY
MINUTES_PER_MONTH = 30 * MINUTES_PER_DAY


def to_cron_expression(value: Optional[str]) -> str:
    """
    Normalize a schedule to a cron expression.
    "0:29" becomes "29 0 * * *"; a valid 5-field cron expression is returned
    with its whitespace collapsed. Anything else raises ValidationFailedError.
    """
    if value is None or not value.strip():
        raise ValidationFailedError("Schedule is required")
    value = value.strip()

    match = _DAILY_TIME.match(value)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23 or minute > 59:
            raise ValidationFailedError(f"Invalid time '{value}': expected H:MM between 0:00 and 23:59")
        return f"{minute} {hour} * * *"

    fields = value.split()
    if len(fields) != 5 or not croniter.is_valid(" ".join(fields)):
        raise ValidationFailedError(f"Invalid schedule '{value}': expected a cron expression or H:MM")
    return " ".join(fields)


def resolve_startup_schedule(value: Optional[str]) -> str:
    """Like to_cron_expression, but falls back to the default schedule instead of failing."""
    try:
        return to_cron_expression(value)
    except ValidationFailedError as exc:
        logger.warning(f"Stored schedule unusable ({exc.message}); falling back to '{DEFAULT_CRON_SCHEDULE}'")
        return DEFAULT_CRON_SCHEDULE


def schedule_interval_minutes(expression: str, now: Optional[datetime] = None) -> int:
    """
    The period of a schedule in minutes. This is also the payment deadline the
    sweeper applies, so an order is released after roughly one missed run.
    """
    minute, hour, day, month, weekday = expression.split()
    rest_wildcards = day == "*" and month == "*" and weekday == "*"

    every = _EVERY_N_MINUTES.match(minute)
    if every and hour == "*" and rest_wildcards:
        return int(every.group(1))
    if minute == "*" and hour == "*" and rest_wildcards:
        return 1
    if minute.isdigit() and hour == "*" and rest_wildcards:
        return MINUTES_PER_HOUR
    if minute.isdigit() and hour.isdigit() and month == "*":
        if day == "*" and weekday == "*":
            return MINUTES_PER_DAY
        if day == "*" and weekday.isdigit():
            return MINUTES_PER_WEEK
        if day.isdigit() and weekday == "*":
            return MINUTES_PER_MONTH

    it = croniter(expression, now or utcnow())
    first = it.get_next(datetime)
    second = it.get_next(datetime)
    return max(1, int((second - first).total_seconds() // 60))


def current_schedule(db: Session) -> str:
    """The stored schedule, or the default when none is stored or it no longer parses."""
    setting = crud_cron_setting.get_setting_by_key(db, CRON_SCHEDULE_SETTING_KEY)
    return resolve_startup_schedule(setting.value if setting else None)


@service_operation
def get_cron_schedule(db: Session) -> CronSetting:
    setting = crud_cron_setting.get_setting_by_key(db, CRON_SCHEDULE_SETTING_KEY)
    if setting is None:
        return CronSetting(key=CRON_SCHEDULE_SETTING_KEY, value=DEFAULT_CRON_SCHEDULE)
    return CronSetting.model_validate(setting)


@service_operation
def list_cron_settings(db: Session) -> list:
    return [CronSetting.model_validate(s) for s in crud_cron_setting.get_all_settings(db)]


@service_operation
def save_cron_schedule(db: Session, value: str) -> str:
    expression = to_cron_expression(value)
    crud_cron_setting.upsert_setting(db, key=CRON_SCHEDULE_SETTING_KEY, value=expression)
    db.commit()
    logger.info(f"Inventory release schedule set to '{expression}'")
    return expression


async def update_cron_schedule(db: Session, value: str, scheduler=None) -> ServiceResult:
    """
    Validate and store a new schedule, then hand it to the running scheduler.
    `restarted` tells whether the scheduler actually restarted (it does not when
    the schedule is unchanged or no scheduler is running).
    """
    saved = save_cron_schedule(db, value)
    if not saved.ok:
        return saved

    restarted = False
    if scheduler is not None:
        restarted = await scheduler.reschedule(saved.data)
    return ServiceResult.success(
        CronScheduleUpdated(key=CRON_SCHEDULE_SETTING_KEY, value=saved.data, restarted=restarted)
    )
