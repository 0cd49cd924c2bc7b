import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.endpoints import order_statuses as order_statuses_api
from app.api.endpoints import sales_orders as sales_orders_api
from app.api.endpoints import sim_inventory as sim_inventory_api
from app.api.endpoints import cron_settings as cron_settings_api
from app.core.config import INVENTORY_RELEASE_ENABLED
from app.core.cron_schedule import current_schedule
from app.core.logging_config import setup_logging
from app.core.scheduler import InventoryReleaseScheduler
from app.db.session import SessionLocal, init_db

setup_logging()
logger = logging.getLogger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    scheduler = InventoryReleaseScheduler()
    app.state.inventory_release_scheduler = scheduler

    if INVENTORY_RELEASE_ENABLED:
        db = SessionLocal()
        try:
            # An unusable stored schedule falls back to the default here, never at update time
            schedule = current_schedule(db)
        finally:
            db.close()
        scheduler.start(schedule)
    else:
        logger.info("Inventory release disabled (INVENTORY_RELEASE_ENABLED is off)")

    yield

    await scheduler.stop()


app = FastAPI(title="SIM Sales Orders API", version="0.1.0", lifespan=lifespan)

# Include API routers
app.include_router(order_statuses_api.router, prefix="/api/v1/order-statuses", tags=["Order Statuses"])
app.include_router(sales_orders_api.router, prefix="/api/v1/sales-orders", tags=["Sales Orders"])
app.include_router(sim_inventory_api.router, prefix="/api/v1/sim-inventory", tags=["SIM Inventory"])
app.include_router(cron_settings_api.router, prefix="/api/v1/cron-settings", tags=["Cron Settings"])

@app.get("/ping", tags=["Health Check"])
async def ping():
    return {"message": "pong"}
