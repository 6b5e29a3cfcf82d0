from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable

from opentelemetry import trace

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class PeriodicTask:
    """Runs ``func`` every ``interval_seconds``; at most one run is in flight."""

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        func: Callable[[], Awaitable[Any]],
        *,
        max_backoff_seconds: float = 3600.0,
        run_immediately: bool = True,
    ) -> None:
        self.name = name
        self.interval_seconds = max(0.0, interval_seconds)
        self.func = func
        self.max_backoff_seconds = max_backoff_seconds
        self.run_immediately = run_immediately
        self.skipped_runs = 0
        self._lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    async def run_once(self) -> Any:
        """Run now unless a previous run is still going; a skipped run returns None."""
        if self._lock.locked():
            self.skipped_runs += 1
            logger.warning("periodic task %s still running; skipping overlapping run", self.name)
            return None
        async with self._lock:
            with tracer.start_as_current_span(f"scheduler.{self.name}"):
                return await self.func()

    async def run_forever(self) -> None:
        backoff = self.interval_seconds
        if not self.run_immediately:
            await asyncio.sleep(self.interval_seconds)
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                jitter = random.uniform(0.0, 0.5)
                sleep_for = min(max(backoff, 1.0) * (1.0 + jitter), self.max_backoff_seconds)
                logger.exception("periodic task %s failed: %s; retry in %.1fs", self.name, exc, sleep_for)
                backoff = sleep_for
                await asyncio.sleep(sleep_for)
                continue
            backoff = self.interval_seconds
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(self.run_forever(), name=f"periodic-{self.name}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
