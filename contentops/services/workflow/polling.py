"""Cancellable polling of content generation jobs."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from contentops.core.exceptions import JobFailedError, JobTimeoutError, WorkflowCancelledError
from contentops.integrations.content_jobs import ContentJobStatus

logger = logging.getLogger(__name__)

PollTick = Callable[[int, ContentJobStatus | None], Awaitable[None]]


class JobStatusSource(Protocol):
    async def get_job_status(self, job_id: str) -> ContentJobStatus | None: ...


async def wait_for_cancel(cancel_event: asyncio.Event, timeout: float) -> bool:
    """Sleep up to ``timeout`` seconds; return True if cancelled meanwhile."""
    if cancel_event.is_set():
        return True
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=max(0.0, timeout))
    except TimeoutError:
        return False
    return True


async def poll_until_complete(
    jobs: JobStatusSource,
    job_id: str,
    *,
    interval_seconds: float,
    max_attempts: int,
    cancel_event: asyncio.Event,
    deadline_seconds: float | None = None,
    on_tick: PollTick | None = None,
) -> ContentJobStatus:
    """Poll ``job_id`` until it completes.

    Each status request counts as one attempt, including requests that
    return no status. Between attempts the wait wakes early on cancellation.

    Args:
        jobs: Source of job status
        job_id: Job to poll
        interval_seconds: Pause between attempts
        max_attempts: Upper bound on status requests
        cancel_event: Set to abandon polling
        deadline_seconds: Optional wall-clock bound for the whole loop
        on_tick: Awaited after every non-terminal attempt

    Returns:
        The completed job status

    Raises:
        JobFailedError: If the job reports failure
        JobTimeoutError: If attempts or the deadline run out
        WorkflowCancelledError: If ``cancel_event`` is set
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + deadline_seconds if deadline_seconds else None

    attempts = 0
    while attempts < max_attempts:
        if cancel_event.is_set():
            raise WorkflowCancelledError()

        status = await jobs.get_job_status(job_id)
        attempts += 1

        if status is not None and status.is_completed:
            logger.info("Content job completed", extra={"job_id": job_id, "attempts": attempts})
            return status
        if status is not None and status.is_failed:
            raise JobFailedError(status.error_message, job_id=job_id)

        if on_tick is not None:
            await on_tick(attempts, status)
        if attempts >= max_attempts:
            break

        wait = interval_seconds
        if deadline is not None:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            wait = min(wait, remaining)
        if await wait_for_cancel(cancel_event, wait):
            raise WorkflowCancelledError()

    logger.warning(
        "Content job polling exhausted",
        extra={"job_id": job_id, "attempts": attempts},
    )
    raise JobTimeoutError(job_id, attempts)
