"""
Pipeline supervisor - tracked fire-and-forget scheduling.
Intake hands off a customer id and returns; results stay observable here.
"""
import asyncio
import logging
import uuid
from collections import OrderedDict
from typing import Callable, Dict, List, Optional, Set

from leadcapture.schemas.pipeline import PipelineResult, PipelineState
from leadcapture.services.pipeline_service import PipelineOrchestrator

logger = logging.getLogger(__name__)

MAX_RESULTS = 1000


class PipelineSupervisor:
    """
    Owns every running pipeline task.

    Keeps a strong reference to each task until it finishes and stores the
    latest result per customer, oldest evicted past max_results. A completion
    event exists per customer only while a run is outstanding; it is set and
    dropped when that run records its result. The completed/failed counters
    are the long-lived record.
    """

    def __init__(
        self,
        orchestrator: PipelineOrchestrator,
        on_complete: Optional[Callable[[PipelineResult], None]] = None,
        max_results: int = MAX_RESULTS
    ):
        self.orchestrator = orchestrator
        self.on_complete = on_complete
        self.max_results = max_results
        self.results: "OrderedDict[uuid.UUID, PipelineResult]" = OrderedDict()
        self._tasks: Set[asyncio.Task] = set()
        self._events: Dict[uuid.UUID, asyncio.Event] = {}
        self.completed = 0
        self.failed = 0

    def submit(self, customer_id: uuid.UUID) -> asyncio.Task:
        """Schedule the pipeline for a stored submission without waiting for it."""
        if customer_id not in self._events:
            # New run: waiters must not see the previous run's result
            self._events[customer_id] = asyncio.Event()
            self.results.pop(customer_id, None)

        task = asyncio.create_task(self._run(customer_id), name=f"pipeline-{customer_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(f"Scheduled pipeline for customer {customer_id}")
        return task

    async def _run(self, customer_id: uuid.UUID) -> PipelineResult:
        try:
            result = await self.orchestrator.process(customer_id)
        except Exception as e:
            logger.exception(f"Orchestrator raised for customer {customer_id}")
            result = PipelineResult(customer_id=customer_id).fail(str(e))

        self._record(result)
        return result

    def _record(self, result: PipelineResult) -> None:
        self.results.pop(result.customer_id, None)
        self.results[result.customer_id] = result
        while len(self.results) > self.max_results:
            self.results.popitem(last=False)

        if result.state == PipelineState.FAILED:
            self.failed += 1
        else:
            self.completed += 1

        if self.on_complete:
            try:
                self.on_complete(result)
            except Exception:
                logger.exception("Pipeline completion hook failed")

        event = self._events.pop(result.customer_id, None)
        if event:
            event.set()

    async def wait(self, customer_id: uuid.UUID, timeout: Optional[float] = None) -> PipelineResult:
        """
        Block until the outstanding run for this customer has finished.
        Returns at once with the stored result when nothing is outstanding.
        """
        event = self._events.get(customer_id)
        if event is None:
            if customer_id in self.results:
                return self.results[customer_id]
            # Waiting ahead of submit; the next run releases it
            event = self._events[customer_id] = asyncio.Event()

        await asyncio.wait_for(event.wait(), timeout)
        return self.results[customer_id]

    async def drain(self) -> List[PipelineResult]:
        """Wait for every in-flight pipeline (shutdown, tests)."""
        results = []
        while True:
            running = [task for task in self._tasks if not task.done()]
            if not running:
                return results
            results.extend(await asyncio.gather(*running))

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def stats(self) -> dict:
        return {
            "pending": self.pending,
            "completed": self.completed,
            "failed": self.failed,
        }
