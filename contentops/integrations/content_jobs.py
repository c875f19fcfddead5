"""Client for the asynchronous content generation job service."""

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from contentops.config import settings
from contentops.core.exceptions import ExternalAPIError, RateLimitExceededError

logger = logging.getLogger(__name__)

JOB_STATUSES = frozenset({"pending", "queued", "processing", "completed", "failed"})


@dataclass
class ContentJob:
    """A submitted generation job."""

    job_id: str
    queue_id: str | None = None
    status: str = "queued"


@dataclass
class ContentJobStatus:
    """One poll of a generation job."""

    job_id: str
    status: str
    progress_percentage: float = 0.0
    current_stage: str | None = None
    result: dict[str, Any] = field(default_factory=dict)
    error_message: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def is_failed(self) -> bool:
        return self.status == "failed"


class ContentJobClient:
    """Submit, poll and cancel article generation jobs.

    Polling errors are reported as ``None`` so the caller can count the
    attempt and keep waiting; submission errors raise.
    """

    API_NAME = "Content generation"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key or settings.content_api_key
        self.base_url = (base_url or settings.content_api_base_url).rstrip("/")
        self.timeout = timeout or settings.content_api_timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "ContentJobClient":
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=headers,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client must be used as async context manager")
        return self._client

    async def create_job(self, payload: dict[str, Any]) -> ContentJob:
        """Submit a generation job.

        Args:
            payload: Job parameters (topic, keywords, tone, word_count, ...)

        Returns:
            The accepted job
        """
        try:
            response = await self.client.post(
                "/jobs",
                params={"async_mode": "true"},
                json=payload,
            )
        except httpx.HTTPError as e:
            logger.warning("Content job submission failed", extra={"error": str(e)})
            raise ExternalAPIError(self.API_NAME, str(e)) from e

        if response.status_code == 429:
            raise RateLimitExceededError(self.API_NAME)
        if response.status_code not in (200, 201, 202):
            logger.warning(
                "Content job submission rejected",
                extra={"status": response.status_code},
            )
            raise ExternalAPIError(
                self.API_NAME,
                f"API error: {response.status_code} - {response.text}",
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ExternalAPIError(self.API_NAME, "Invalid JSON response") from e
        job_id = data.get("job_id")
        if not job_id:
            raise ExternalAPIError(self.API_NAME, "Response did not include a job_id")

        logger.info("Content job created", extra={"job_id": job_id})
        return ContentJob(
            job_id=str(job_id),
            queue_id=data.get("queue_id"),
            status=str(data.get("status") or "queued"),
        )

    async def get_job_status(self, job_id: str) -> ContentJobStatus | None:
        """Fetch job status, or ``None`` when it is temporarily unavailable."""
        try:
            response = await self.client.get(f"/jobs/{job_id}")
        except httpx.HTTPError as e:
            logger.warning("Content job poll failed", extra={"job_id": job_id, "error": str(e)})
            return None

        if response.status_code != 200:
            logger.warning(
                "Content job poll returned error",
                extra={"job_id": job_id, "status": response.status_code},
            )
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning("Content job poll returned invalid JSON", extra={"job_id": job_id})
            return None
        status = str(data.get("status") or "").lower()
        if status not in JOB_STATUSES:
            logger.warning("Unknown content job status", extra={"job_id": job_id, "status": status})
            return None

        return ContentJobStatus(
            job_id=job_id,
            status=status,
            progress_percentage=float(data.get("progress_percentage") or 0.0),
            current_stage=data.get("current_stage"),
            result=data.get("result") or {},
            error_message=data.get("error_message"),
        )

    async def cancel_job(self, job_id: str) -> bool:
        """Ask the service to stop a job. Returns whether it acknowledged."""
        try:
            response = await self.client.delete(f"/jobs/{job_id}")
        except httpx.HTTPError as e:
            logger.warning("Content job cancel failed", extra={"job_id": job_id, "error": str(e)})
            return False
        return response.status_code in (200, 202, 204)
