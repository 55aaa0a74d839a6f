"""Polling scheduler

The training server has no push channel, so the local view is kept current
by three independent fixed-interval streams:

- health     -> ServerHealth record (and offline detection)
- tasks      -> task list merge, followed by detail hydration
- progress   -> full detail of running tasks

There is no backoff: a failing stream keeps ticking at its interval.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Set

from ..config import PollingConfig, default_polling_config
from .hydration import HYDRATION_BATCH_SIZE, hydrate_missing_details
from .progress import refresh_running_progress
from .task_store import TaskStore, task_store
from .training_api import TrainingApiClient, training_api

logger = logging.getLogger(__name__)


def _message(e: BaseException, fallback: str) -> str:
    return getattr(e, "message", None) or str(e) or fallback


class TrainingPoller:
    """Owns the three polling timers and their start/stop lifecycle"""

    def __init__(
        self,
        api,
        store: TaskStore,
        config: Optional[PollingConfig] = None,
        hydration_batch_size: int = HYDRATION_BATCH_SIZE,
        task_list_limit: int = 50,
    ):
        self.api = api
        self.store = store
        self.config = config or default_polling_config()
        self.hydration_batch_size = hydration_batch_size
        self.task_list_limit = task_list_limit
        self._timers: Dict[str, asyncio.Task] = {}
        self._inflight: Set[asyncio.Task] = set()
        # Bumped on every stop(); results of refreshes started earlier are dropped
        self._generation = 0

    @property
    def is_running(self) -> bool:
        return bool(self._timers)

    @property
    def generation(self) -> int:
        return self._generation

    # ---- lifecycle ----

    def start(self):
        """Restart polling: one immediate fetch per stream, then arm the timers"""
        self.stop()
        self._spawn(self.refresh_health)
        self._spawn(self.refresh_tasks)
        self._spawn(self.refresh_progress)

        self._timers = {
            "health": asyncio.create_task(self._tick_loop(self.config.health_interval_ms, self.refresh_health)),
            "tasks": asyncio.create_task(self._tick_loop(self.config.tasks_interval_ms, self.refresh_tasks)),
            "progress": asyncio.create_task(self._tick_loop(self.config.progress_interval_ms, self.refresh_progress)),
        }
        logger.info(
            f"Polling started (health={self.config.health_interval_ms}ms, "
            f"tasks={self.config.tasks_interval_ms}ms, progress={self.config.progress_interval_ms}ms)"
        )

    def stop(self):
        """Cancel all timers. Safe to call when already stopped."""
        self._generation += 1
        if not self._timers:
            return
        for timer in self._timers.values():
            timer.cancel()
        self._timers = {}
        logger.info("Polling stopped")

    def set_config(self, **changes) -> PollingConfig:
        """Merge new intervals into the config and restart the timers"""
        unknown = set(changes) - set(PollingConfig.model_fields)
        if unknown:
            raise ValueError(f"Unknown polling settings: {', '.join(sorted(unknown))}")
        # Validated before the old timers are torn down
        self.config = PollingConfig.model_validate({**self.config.model_dump(), **changes})
        self.stop()
        self.start()
        return self.config

    async def _tick_loop(self, interval_ms: int, refresh: Callable[[Optional[int]], Awaitable[None]]):
        interval = interval_ms / 1000
        while True:
            await asyncio.sleep(interval)
            self._spawn(refresh)

    def _spawn(self, refresh: Callable[[Optional[int]], Awaitable[None]]):
        task = asyncio.create_task(refresh(self._generation))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    # ---- streams ----

    async def refresh_health(self, generation: Optional[int] = None):
        if generation is None:
            generation = self._generation
        if not self._is_current(generation):
            return
        try:
            health = await self.api.get_health()
        except Exception as e:
            if not self._is_current(generation):
                return
            message = _message(e, "health check failed")
            logger.warning(f"Health check failed: {message}")
            self.store.clear_health()
            self.store.set_error(message, stream="health")
            return

        if not self._is_current(generation):
            return
        self.store.set_health(health)
        self.store.clear_error(stream="health")
        self.store.clear_related_error()

    async def refresh_tasks(self, generation: Optional[int] = None):
        if generation is None:
            generation = self._generation
        if not self._is_current(generation):
            return
        try:
            listing = await self.api.get_all_tasks(limit=self.task_list_limit)
        except Exception as e:
            if not self._is_current(generation):
                return
            message = _message(e, "Failed to load tasks")
            logger.warning(f"Task list refresh failed: {message}")
            self.store.set_error(message, stream="tasks")
            return

        if not self._is_current(generation):
            return
        self.store.merge_list(listing.tasks)
        self.store.clear_error(stream="tasks")

        try:
            await hydrate_missing_details(
                self.api,
                self.store,
                batch_size=self.hydration_batch_size,
                is_current=lambda: self._is_current(generation),
            )
        except Exception as e:
            logger.warning(f"Failed to hydrate task details: {e}")

    async def refresh_progress(self, generation: Optional[int] = None):
        if generation is None:
            generation = self._generation
        if not self._is_current(generation):
            return
        try:
            await refresh_running_progress(
                self.api,
                self.store,
                is_current=lambda: self._is_current(generation),
            )
        except Exception as e:
            if not self._is_current(generation):
                return
            message = _message(e, "Failed to refresh progress")
            logger.error(f"Progress refresh failed: {message}")
            self.store.set_error(message, stream="progress")
            return

        if self._is_current(generation):
            self.store.clear_error(stream="progress")

    async def refresh_all(self):
        """Run one refresh of every stream and wait for all of them"""
        await asyncio.gather(self.refresh_health(), self.refresh_tasks(), self.refresh_progress())


def create_poller(api: TrainingApiClient, store: TaskStore = task_store) -> TrainingPoller:
    """Build a poller from the client's settings"""
    settings = api.settings
    return TrainingPoller(
        api,
        store,
        config=settings.polling,
        hydration_batch_size=settings.hydration_concurrency,
        task_list_limit=settings.task_list_limit,
    )


# Global poller instance
poller = create_poller(training_api)
