"""Unit tests for cancellable content job polling."""

from __future__ import annotations

import asyncio

import pytest

from contentops.core.exceptions import JobFailedError, JobTimeoutError, WorkflowCancelledError
from contentops.integrations.content_jobs import ContentJobStatus
from contentops.services.workflow.polling import poll_until_complete, wait_for_cancel


class _FakeJobs:
    def __init__(self, statuses: list[ContentJobStatus | None] | None = None) -> None:
        self.statuses = list(statuses or [])
        self.calls = 0

    async def get_job_status(self, job_id: str) -> ContentJobStatus | None:
        self.calls += 1
        if self.statuses:
            return self.statuses.pop(0)
        return ContentJobStatus(job_id=job_id, status="processing", progress_percentage=50)


@pytest.mark.asyncio
async def test_processing_job_times_out_after_max_attempts() -> None:
    jobs = _FakeJobs()

    with pytest.raises(JobTimeoutError) as exc_info:
        await poll_until_complete(
            jobs,
            "job_1",
            interval_seconds=0,
            max_attempts=60,
            cancel_event=asyncio.Event(),
        )

    assert jobs.calls == 60
    assert exc_info.value.message == "Content generation timed out"
    assert exc_info.value.details == {"job_id": "job_1", "attempts": 60}


@pytest.mark.asyncio
async def test_failed_job_surfaces_backend_message_verbatim() -> None:
    jobs = _FakeJobs(
        [
            ContentJobStatus(
                job_id="job_1",
                status="failed",
                error_message="Upstream model overloaded",
            )
        ]
    )

    with pytest.raises(JobFailedError) as exc_info:
        await poll_until_complete(
            jobs,
            "job_1",
            interval_seconds=0,
            max_attempts=5,
            cancel_event=asyncio.Event(),
        )

    assert str(exc_info.value) == "Upstream model overloaded"
    assert exc_info.value.details == {"job_id": "job_1"}


@pytest.mark.asyncio
async def test_missing_statuses_count_as_attempts() -> None:
    completed = ContentJobStatus(job_id="job_1", status="completed", result={"content": "<p>x</p>"})
    jobs = _FakeJobs([None, None, completed])
    ticks: list[tuple[int, ContentJobStatus | None]] = []

    async def on_tick(attempt: int, status: ContentJobStatus | None) -> None:
        ticks.append((attempt, status))

    status = await poll_until_complete(
        jobs,
        "job_1",
        interval_seconds=0,
        max_attempts=3,
        cancel_event=asyncio.Event(),
        on_tick=on_tick,
    )

    assert status is completed
    assert jobs.calls == 3
    assert ticks == [(1, None), (2, None)]


@pytest.mark.asyncio
async def test_cancelled_before_polling_makes_no_requests() -> None:
    cancel_event = asyncio.Event()
    cancel_event.set()
    jobs = _FakeJobs()

    with pytest.raises(WorkflowCancelledError):
        await poll_until_complete(
            jobs,
            "job_1",
            interval_seconds=0,
            max_attempts=5,
            cancel_event=cancel_event,
        )

    assert jobs.calls == 0


@pytest.mark.asyncio
async def test_cancel_interrupts_the_wait_between_attempts() -> None:
    cancel_event = asyncio.Event()
    jobs = _FakeJobs()

    async def cancel_on_tick(attempt: int, status: ContentJobStatus | None) -> None:
        cancel_event.set()

    with pytest.raises(WorkflowCancelledError):
        await asyncio.wait_for(
            poll_until_complete(
                jobs,
                "job_1",
                interval_seconds=30,
                max_attempts=5,
                cancel_event=cancel_event,
                on_tick=cancel_on_tick,
            ),
            timeout=5,
        )

    assert jobs.calls == 1


@pytest.mark.asyncio
async def test_deadline_bounds_polling() -> None:
    jobs = _FakeJobs()

    with pytest.raises(JobTimeoutError):
        await asyncio.wait_for(
            poll_until_complete(
                jobs,
                "job_1",
                interval_seconds=0.05,
                max_attempts=1000,
                cancel_event=asyncio.Event(),
                deadline_seconds=0.2,
            ),
            timeout=5,
        )

    assert 1 <= jobs.calls < 1000


@pytest.mark.asyncio
async def test_wait_for_cancel_reports_timeout_and_cancel() -> None:
    cancel_event = asyncio.Event()

    assert await wait_for_cancel(cancel_event, 0) is False

    cancel_event.set()
    assert await wait_for_cancel(cancel_event, 10) is True
