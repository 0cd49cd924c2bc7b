import asyncio
import logging
from datetime import datetime
from typing import Callable, Iterator, List, Optional

from croniter import croniter

from app.core.inventory_release import release_expired_orders
from app.db.session import SessionLocal
from app.schemas.sales_order import ReleasedOrder

logger = logging.getLogger(__name__)


def fire_times(schedule: str, start: Optional[datetime] = None) -> Iterator[datetime]:
    """
    Successive fire times of `schedule` after `start`, as aware datetimes.
    Fire times are on the server's local clock, so `29 0 * * *` fires at 00:29 local time.
    """
    fires = croniter(schedule, start or datetime.now().astimezone())
    while True:
        yield fires.get_next(datetime)


class InventoryReleaseScheduler:
    """
    Runs the inventory release sweep on a cron schedule inside the app's event loop.

    Each tick gets its own session and runs in a worker thread, so a sweep does
    not block request handling. Ticks never overlap: they are serialized by a lock
    that stays held until the worker thread returns, even when the tick is cancelled.
    A reschedule cancels and awaits the old loop, and so any tick it was running,
    before starting the new one.
    """

    def __init__(self, session_factory: Callable = SessionLocal, release: Callable = release_expired_orders):
        self._session_factory = session_factory
        self._release = release
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()
        self.schedule: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, schedule: str):
        if self.running:
            logger.warning(f"Inventory release already running on '{self.schedule}'; start ignored")
            return
        self.schedule = schedule
        self._task = asyncio.create_task(self._run(schedule), name="inventory-release")
        logger.info(f"Inventory release scheduled with '{schedule}'")

    async def stop(self):
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Inventory release stopped")

    async def reschedule(self, schedule: str) -> bool:
        """
        Switch a running scheduler to `schedule`. Returns True only when it was
        actually restarted; an unchanged schedule or a stopped scheduler is left as is.
        """
        if not self.running:
            self.schedule = schedule
            return False
        if schedule == self.schedule:
            return False
        await self.stop()
        self.start(schedule)
        return True

    async def run_once(self, schedule: Optional[str] = None) -> List[ReleasedOrder]:
        async with self._lock:
            tick = asyncio.ensure_future(asyncio.to_thread(self._tick, schedule or self.schedule))
            try:
                return await asyncio.shield(tick)
            except asyncio.CancelledError:
                await self._wait_for_worker(tick)
                raise
            except Exception:
                logger.exception("Inventory release tick failed")
                return []

    async def _wait_for_worker(self, tick: asyncio.Future):
        # A worker thread cannot be interrupted; keep the lock until it returns
        while not tick.done():
            try:
                await asyncio.wait([tick])
            except asyncio.CancelledError:
                continue
        if tick.exception() is not None:
            logger.error("Inventory release tick failed after cancellation", exc_info=tick.exception())

    def _tick(self, schedule: Optional[str]) -> List[ReleasedOrder]:
        db = self._session_factory()
        try:
            return self._release(db, schedule)
        finally:
            db.close()

    async def _run(self, schedule: str):
        for next_fire in fire_times(schedule):
            delay = (next_fire - datetime.now().astimezone()).total_seconds()
            if delay > 0:
                await asyncio.sleep(delay)
            await self.run_once(schedule)
