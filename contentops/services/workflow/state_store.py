"""Workflow state mirror backed by Redis."""

from __future__ import annotations

import logging

from pydantic import ValidationError
from redis.asyncio import Redis

from contentops.config import settings
from contentops.core.redis import get_redis_client
from contentops.schemas.workflow import WorkflowState

logger = logging.getLogger(__name__)

WORKFLOW_KEY_PREFIX = "workflow"


class WorkflowStateStore:
    """Store and fetch the latest workflow snapshot from Redis.

    ``save`` is meant to be subscribed to a workflow's event bus so every
    published snapshot is mirrored with a sliding TTL.
    """

    def __init__(self, redis_client: Redis | None = None, ttl_seconds: int | None = None) -> None:
        self.redis = redis_client or get_redis_client()
        self.ttl_seconds = ttl_seconds or settings.workflow_state_ttl_seconds

    async def save(self, state: WorkflowState) -> None:
        await self.redis.set(
            self._workflow_key(state.id),
            state.model_dump_json(),
            ex=self.ttl_seconds,
        )

    async def get(self, workflow_id: str) -> WorkflowState | None:
        """Get the latest snapshot, or None if unknown or unreadable."""
        raw = await self.redis.get(self._workflow_key(workflow_id))
        if raw is None:
            return None

        try:
            return WorkflowState.model_validate_json(raw)
        except ValidationError:
            logger.warning("Invalid workflow payload in Redis", extra={"workflow_id": workflow_id})
            return None

    @staticmethod
    def _workflow_key(workflow_id: str) -> str:
        return f"{WORKFLOW_KEY_PREFIX}:{workflow_id}"
