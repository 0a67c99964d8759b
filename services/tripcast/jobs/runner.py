"""
Job runner seam.

Stages hand follow-up work to a JobRunner instead of calling it directly:

    ctx.runner.perform_later(run_recommendation_analysis, ctx, trip_id)

A durable queue can implement the same two methods. InProcessJobRunner runs
jobs as asyncio tasks inside the API process; it is what the FastAPI app and
the test suite use.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import sentry_sdk

logger = logging.getLogger(__name__)

Job = Callable[..., Awaitable[Any]]


class JobRunner(Protocol):
    def perform_later(self, job: Job, *args: Any) -> Any:
        ...

    async def perform_now(self, job: Job, *args: Any) -> Any:
        ...


class InProcessJobRunner:
    """
    Runs each job as an asyncio task on the running loop.

    Job failures are logged, reported to Sentry, and recorded in ``failures``.
    The job itself is responsible for leaving the trip in a consistent status
    before it raises.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()
        self.failures: list[tuple[str, BaseException]] = []

    def perform_later(self, job: Job, *args: Any) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(
            self._run(job, *args), name=f"job:{job.__name__}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug("Scheduled job %s", job.__name__)
        return task

    async def perform_now(self, job: Job, *args: Any) -> Any:
        return await job(*args)

    async def _run(self, job: Job, *args: Any) -> Any:
        try:
            return await job(*args)
        except Exception as exc:
            logger.error("Job %s failed: %s", job.__name__, exc, exc_info=True)
            sentry_sdk.capture_exception(exc)
            self.failures.append((job.__name__, exc))
            return None

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until every scheduled job, including jobs they schedule, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
