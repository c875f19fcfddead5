"""In-process registry of workflows running in the background."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from functools import lru_cache

from contentops.schemas.workflow import WorkflowConfig, WorkflowState
from contentops.services.workflow.orchestrator import WorkflowOrchestrator
from contentops.services.workflow.state_store import WorkflowStateStore

logger = logging.getLogger(__name__)

OrchestratorFactory = Callable[[WorkflowConfig], WorkflowOrchestrator]


@dataclass
class RunningWorkflow:
    orchestrator: WorkflowOrchestrator
    task: asyncio.Task[WorkflowState]


class WorkflowRegistry:
    """Start workflows as asyncio tasks and track them until they finish.

    Snapshots of every run are mirrored to the state store, so finished runs
    (or runs owned by another process) remain readable through ``get``.
    """

    def __init__(
        self,
        state_store: WorkflowStateStore | None = None,
        orchestrator_factory: OrchestratorFactory | None = None,
    ) -> None:
        self.state_store = state_store or WorkflowStateStore()
        self.orchestrator_factory = orchestrator_factory or WorkflowOrchestrator
        self._runs: dict[str, RunningWorkflow] = {}

    def __contains__(self, workflow_id: str) -> bool:
        return workflow_id in self._runs

    async def start(self, config: WorkflowConfig) -> WorkflowState:
        """Start a run in the background and return its initial state."""
        orchestrator = self.orchestrator_factory(config)
        orchestrator.subscribe(self.state_store.save)
        initial = orchestrator.snapshot()
        await self.state_store.save(initial)

        workflow_id = orchestrator.workflow_id
        task = asyncio.create_task(orchestrator.execute(), name=f"workflow-{workflow_id}")
        self._runs[workflow_id] = RunningWorkflow(orchestrator=orchestrator, task=task)
        task.add_done_callback(lambda done: self._finished(workflow_id, done))

        logger.info(
            "Workflow started",
            extra={"workflow_id": workflow_id, "topic": config.topic},
        )
        return initial

    async def get(self, workflow_id: str) -> WorkflowState | None:
        run = self._runs.get(workflow_id)
        if run is not None:
            return run.orchestrator.snapshot()
        return await self.state_store.get(workflow_id)

    def cancel(self, workflow_id: str) -> bool:
        """Request cancellation of a running workflow; False if it is not running here."""
        run = self._runs.get(workflow_id)
        if run is None or run.task.done():
            return False
        run.orchestrator.cancel()
        return True

    def stream(self, workflow_id: str) -> AsyncIterator[WorkflowState] | None:
        """Live snapshots of a workflow running in this process, or None."""
        run = self._runs.get(workflow_id)
        if run is None:
            return None
        return run.orchestrator.events.stream(initial=run.orchestrator.snapshot())

    async def shutdown(self) -> None:
        """Cancel every running task and wait for them to settle."""
        tasks = [run.task for run in self._runs.values() if not run.task.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._runs.clear()

    def _finished(self, workflow_id: str, task: asyncio.Task[WorkflowState]) -> None:
        self._runs.pop(workflow_id, None)
        if task.cancelled():
            logger.warning("Workflow task cancelled", extra={"workflow_id": workflow_id})
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Workflow task crashed",
                extra={"workflow_id": workflow_id, "error": str(error)},
            )
            return

        final = task.result()
        logger.info(
            "Workflow finished",
            extra={"workflow_id": workflow_id, "phase": final.phase},
        )


@lru_cache
def get_workflow_registry() -> WorkflowRegistry:
    """Get the process-wide registry."""
    return WorkflowRegistry()
