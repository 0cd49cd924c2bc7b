import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./simsales.db")
SQLALCHEMY_DATABASE_URI = DATABASE_URL

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# CNIC encryption (AES-256-CBC needs exactly 32 bytes of key material)
CNIC_ENCRYPTION_KEY: str = os.getenv("CNIC_ENCRYPTION_KEY", "change_me_32_bytes_cnic_key_0000")

# Sales orders
ORDER_ID_PREFIX: str = os.getenv("ORDER_ID_PREFIX", "SO")
ORDER_ID_START: int = int(os.getenv("ORDER_ID_START", 1000))
DEFAULT_ORDER_STATUS_NAME: str = os.getenv("DEFAULT_ORDER_STATUS_NAME", "Draft")

# When enabled, moving payment_status to paid / payment_failed also applies the
# PAYMENT_SUCCESSFUL / PAYMENT_FAILED event mapping to the order status.
PAYMENT_EVENT_TRANSITIONS: bool = _env_flag("PAYMENT_EVENT_TRANSITIONS", False)
# Same transitions for transaction updates (partner payment callbacks); on unless disabled
TRANSACTION_EVENT_TRANSITIONS: bool = _env_flag("TRANSACTION_EVENT_TRANSITIONS", True)

# Inventory release sweeper
CRON_SCHEDULE_SETTING_KEY: str = "cron_schedule"
DEFAULT_CRON_SCHEDULE: str = "*/5 * * * *"
INVENTORY_RELEASE_ENABLED: bool = _env_flag("INVENTORY_RELEASE_ENABLED", True)
INVENTORY_RELEASE_BATCH_LIMIT: int = int(os.getenv("INVENTORY_RELEASE_BATCH_LIMIT", 500))

# Unset means the deadline window follows the configured schedule's period
_deadline_override = os.getenv("INVENTORY_RELEASE_DEADLINE_MINUTES")
INVENTORY_RELEASE_DEADLINE_MINUTES: Optional[int] = int(_deadline_override) if _deadline_override else None

if len(CNIC_ENCRYPTION_KEY.encode("utf-8")) != 32:
    print("WARNING: CNIC_ENCRYPTION_KEY must be exactly 32 bytes; CNIC encryption will fail.")
