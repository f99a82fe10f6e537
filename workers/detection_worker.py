"""
detection_worker.py
--------------------
Async request/response boundary around the synchronous detection engine.

Large transaction sets (thousands of rows) are offloaded to an executor so
the event loop stays responsive. Each request carries its own id; a failure
inside the engine comes back as an error response instead of propagating
into the caller. Cancelling the awaiting task simply means the late result
is ignored; the engine itself has no suspension points.

Usage:
    async with DetectionWorker() as worker:
        response = await worker.detect(transactions, {"min_occurrences": 4})
        if response.ok:
            series = response.result.series
"""

import asyncio
import itertools
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Any, Mapping, Optional, Sequence

from config.config_loader import get_worker_config
from recurrence.models import DetectionResult, Transaction
from recurrence.options import DetectionOptions
from recurrence.recurring_series_detector import detect_recurring_series

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerResponse:
    request_id: int
    ok: bool
    result: Optional[DetectionResult] = None
    error: Optional[str] = None


class DetectionWorker:
    """
    Runs detect_recurring_series in an executor, one response per request.

    Args:
        executor: Executor to run detection in. When omitted the worker owns a
            ThreadPoolExecutor sized from the worker config block and shuts it
            down on close().
    """

    def __init__(self, executor: Executor | None = None):
        self._owns_executor = executor is None
        if executor is None:
            executor = ThreadPoolExecutor(
                max_workers=get_worker_config().get("max_workers"),
                thread_name_prefix="recurring-detection",
            )
        self._executor = executor
        self._ids = itertools.count(1)

    async def detect(
        self,
        transactions: Sequence[Transaction],
        options: DetectionOptions | Mapping[str, Any] | None = None,
    ) -> WorkerResponse:
        request_id = next(self._ids)
        loop = asyncio.get_running_loop()
        call = partial(detect_recurring_series, transactions, options)

        try:
            result = await loop.run_in_executor(self._executor, call)
        except (TypeError, ValueError) as exc:
            logger.warning(f"Detection request {request_id} failed: {exc}")
            return WorkerResponse(request_id=request_id, ok=False, error=str(exc))

        return WorkerResponse(request_id=request_id, ok=True, result=result)

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    async def __aenter__(self) -> "DetectionWorker":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()
