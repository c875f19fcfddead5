"""Publish/subscribe channel for workflow state snapshots."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from contentops.schemas.workflow import WorkflowState

logger = logging.getLogger(__name__)

StateObserver = Callable[[WorkflowState], Awaitable[None] | None]


class WorkflowEventBus:
    """Fan state snapshots out to observers and streaming consumers.

    Observers are called in subscription order, each with its own deep copy of
    the state. A failing observer is logged and never interrupts the run.
    """

    def __init__(self) -> None:
        self._observers: list[StateObserver] = []
        self._queues: set[asyncio.Queue[WorkflowState]] = set()

    def subscribe(self, observer: StateObserver) -> Callable[[], None]:
        """Register ``observer`` and return a callable that unsubscribes it."""
        self._observers.append(observer)
        return lambda: self.unsubscribe(observer)

    def unsubscribe(self, observer: StateObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    async def publish(self, state: WorkflowState) -> None:
        for observer in list(self._observers):
            try:
                result = observer(state.model_copy(deep=True))
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(
                    "Workflow observer failed",
                    extra={"workflow_id": state.id, "error": str(e)},
                )

        for queue in list(self._queues):
            queue.put_nowait(state.model_copy(deep=True))

    async def stream(self, initial: WorkflowState | None = None) -> AsyncIterator[WorkflowState]:
        """Yield snapshots until the run reaches a terminal phase.

        Args:
            initial: Snapshot to emit first, typically the current state
        """
        queue: asyncio.Queue[WorkflowState] = asyncio.Queue()
        self._queues.add(queue)
        try:
            if initial is not None:
                yield initial
                if initial.is_terminal:
                    return
            while True:
                state = await queue.get()
                yield state
                if state.is_terminal:
                    return
        finally:
            self._queues.discard(queue)
