"""Polling consumer of a submission's status read.

Polls on a fixed interval while any tracked carrier is still queued, accepted
or running, and stops once every task is terminal or there are no tasks. The
simulated progression is derived on demand from the latest authoritative
snapshot, so a poll result always replaces whatever was being simulated.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from src.integrations.contracts.carriers import RpaTaskStatus, load_task_map
from src.submissions.status_tracker import (
    ACCEPT_DWELL_SECONDS,
    EXPECTED_RUN_SECONDS,
    RUN_DWELL_SECONDS,
    has_active_tasks,
    progress_percent,
    simulate_progress,
)

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 5.0

FetchTasks = Callable[[], Awaitable[Optional[Dict[str, Any]]]]
UpdateCallback = Callable[["StatusPoller"], None]


class StatusPoller:
    def __init__(
        self,
        fetch: FetchTasks,
        clock: Optional[Callable[[], datetime]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        poll_interval_seconds: float = POLL_INTERVAL_SECONDS,
        accept_dwell_seconds: float = ACCEPT_DWELL_SECONDS,
        run_dwell_seconds: float = RUN_DWELL_SECONDS,
        expected_run_seconds: float = EXPECTED_RUN_SECONDS,
    ) -> None:
        self._fetch = fetch
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._sleep = sleep
        self.poll_interval_seconds = poll_interval_seconds
        self.accept_dwell_seconds = accept_dwell_seconds
        self.run_dwell_seconds = run_dwell_seconds
        self.expected_run_seconds = expected_run_seconds
        self.tasks: Dict[str, RpaTaskStatus] = {}
        self.polls = 0

    def seed(self, raw_tasks: Optional[Dict[str, Any]]) -> None:
        """Start from a snapshot the caller already has (e.g. a dispatch response)."""
        self.tasks = load_task_map(raw_tasks)

    async def refresh(self) -> Dict[str, RpaTaskStatus]:
        raw = await self._fetch()
        self.tasks = load_task_map(raw)
        self.polls += 1
        return self.tasks

    def is_active(self) -> bool:
        return has_active_tasks(self.tasks)

    def display_tasks(self, now: Optional[datetime] = None) -> Dict[str, RpaTaskStatus]:
        now = now or self._clock()
        return {
            key: simulate_progress(task, now, self.accept_dwell_seconds, self.run_dwell_seconds)
            for key, task in self.tasks.items()
        }

    def progress(self, now: Optional[datetime] = None) -> Dict[str, int]:
        now = now or self._clock()
        return {
            key: progress_percent(task, now, self.expected_run_seconds)
            for key, task in self.display_tasks(now).items()
        }

    async def run(self, on_update: Optional[UpdateCallback] = None, max_polls: Optional[int] = None) -> Dict[str, RpaTaskStatus]:
        """Poll until nothing is active (or `max_polls` reads were made) and return the final snapshot."""
        await self._poll_once()
        if on_update:
            on_update(self)

        while self.is_active() and (max_polls is None or self.polls < max_polls):
            await self._sleep(self.poll_interval_seconds)
            await self._poll_once()
            if on_update:
                on_update(self)

        return self.tasks

    async def _poll_once(self) -> None:
        try:
            await self.refresh()
        except Exception:
            # Keep the last snapshot; the next tick tries again.
            self.polls += 1
            logger.warning("Failed to fetch RPA status", exc_info=True)
