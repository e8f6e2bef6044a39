"""Scheduler service - runs due health checks on a fixed tick.

Design:
- A single APScheduler job ticks every few seconds; the tick is only the
  sampling granularity, each service keeps its own check interval
- A service is due once its interval has fully elapsed since its last check
- Due checks run concurrently, bounded by a semaphore
- Each tick runs as its own task, so a slow check never delays the next tick;
  a service with a check still in flight is skipped until it lands
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..models import ServiceRecord
from .checker import CheckerService
from .registry import ServiceRegistry

logger = logging.getLogger(__name__)

# Scheduler tick interval in seconds
SCHEDULER_TICK_SECONDS = 5

# Maximum concurrent checks per tick
MAX_CONCURRENT_CHECKS = 4


class SchedulerService:
    """Service for scheduling and running periodic checks."""

    def __init__(
        self,
        registry: ServiceRegistry,
        checker: CheckerService,
        tick_seconds: int = SCHEDULER_TICK_SECONDS,
        max_concurrent_checks: int = MAX_CONCURRENT_CHECKS,
    ):
        self.registry = registry
        self.checker = checker
        self.tick_seconds = tick_seconds
        self.max_concurrent_checks = max_concurrent_checks
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False
        self._in_flight: Set[str] = set()
        self._ticks: Set[asyncio.Task] = set()
        # Shared by overlapping ticks so the bound holds across them
        self._semaphore = asyncio.Semaphore(max_concurrent_checks)

    @property
    def running(self) -> bool:
        return self._running

    @property
    def active_ticks(self) -> Set[asyncio.Task]:
        """Ticks whose checks have not all landed yet."""
        return set(self._ticks)

    def start(self):
        """Start the scheduler."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self._tick,
            trigger=IntervalTrigger(seconds=self.tick_seconds),
            id="run_checks",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.tick_seconds,
        )
        self.scheduler.start()
        self._running = True
        logger.info(
            f"Scheduler started (tick={self.tick_seconds}s, max_concurrent={self.max_concurrent_checks})"
        )

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            for task in self._ticks:
                task.cancel()
            self._running = False
            logger.info("Scheduler stopped")

    async def _tick(self):
        """Start a round of checks without waiting for it to finish."""
        task = asyncio.create_task(self.run_checks())
        self._ticks.add(task)
        task.add_done_callback(self._ticks.discard)

    def is_due(self, service: ServiceRecord, now: datetime) -> bool:
        """Determine if a service is due for checking.

        Never-checked services are due immediately. Otherwise the full
        check interval must have elapsed since the last check.
        """
        if service.last_checked_at is None:
            return True
        elapsed = (now - service.last_checked_at).total_seconds()
        return elapsed >= service.check_interval

    async def run_checks(self, now: Optional[datetime] = None):
        """Run one tick: check every service that is due."""
        try:
            now = now or self.registry.now()
            services = await self.registry.list_services()

            due = [
                s for s in services
                if s.id not in self._in_flight and self.is_due(s, now)
            ]
            if not due:
                return

            logger.debug(f"Checking {len(due)} due services out of {len(services)} total")

            # Stamp first so a slow check cannot be picked up again
            for service in due:
                self.registry.mark_checked(service.id, now)
                self._in_flight.add(service.id)

            async def check_with_limit(service: ServiceRecord):
                async with self._semaphore:
                    await self._check_service(service, now)

            await asyncio.gather(*[check_with_limit(s) for s in due])

        except Exception as e:
            logger.error(f"Error running checks: {e}")

    async def _check_service(self, service: ServiceRecord, now: datetime):
        """Check a single service and record the verdict."""
        try:
            result = await self.checker.check(service)
            changed = self.registry.update_status(service.id, result.is_up, result.error, now)

            if changed is None:
                logger.debug(f"Service {service.id} was removed during its check, result dropped")
            elif changed:
                logger.info(f"Service '{service.name}' is now {'UP' if result.is_up else 'DOWN'}")
            elif not result.is_up:
                logger.debug(f"Service '{service.name}' still down: {result.error}")

        except Exception as e:
            logger.error(f"Error checking service {service.id}: {e}")
        finally:
            self._in_flight.discard(service.id)
