"""Serialized payment-initiation queue with minimum spacing between gateway calls"""

import asyncio
import logging
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Dict

from checkout_gateway.config import settings
from checkout_gateway.domain.exceptions import CheckoutError, GatewayUnavailableError, UnknownGatewayError
from checkout_gateway.domain.models import GatewayParams, PaymentRequest
from checkout_gateway.infrastructure.observability.logging import log_queue_event
from checkout_gateway.infrastructure.observability.metrics import queue_depth_gauge, queue_wait_histogram

logger = logging.getLogger(__name__)

Sender = Callable[[PaymentRequest], Awaitable[GatewayParams]]


@dataclass
class QueueEntry:
    """A request waiting for its turn, owned by the queue until resolved"""

    request: PaymentRequest
    future: asyncio.Future
    enqueued_at: float
    id: str = field(default_factory=lambda: f"payment_{uuid.uuid4().hex[:12]}")


class PaymentRequestQueue:
    """
    Single-consumer FIFO in front of the gateway signing service.

    Guarantees:
    - one gateway call in flight at a time
    - consecutive call *starts* are at least min_interval seconds apart;
      early entries wait in place, they do not fail
    - each enqueue() resolves with the sender's result or raises its
      classified error; unclassified exceptions become UnknownGatewayError

    A caller that stops awaiting abandons its entry: it is still sent, the
    result is dropped. In-flight calls are never aborted by callers.
    """

    def __init__(
        self,
        send: Sender,
        min_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._send = send
        self.min_interval = settings.queue_min_interval_seconds if min_interval is None else min_interval
        self._clock = clock
        self._sleep = sleep
        self._entries: Deque[QueueEntry] = deque()
        self._wakeup = asyncio.Event()
        self._worker: asyncio.Task | None = None
        self._in_flight: QueueEntry | None = None
        self._last_started_at: float | None = None
        self._closed = False

    @classmethod
    def create(cls, send: Sender, **kwargs: Any) -> "PaymentRequestQueue":
        """Construct and start draining on the running event loop"""
        queue = cls(send, **kwargs)
        queue.start()
        return queue

    def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.get_running_loop().create_task(self._drain())

    async def enqueue(self, request: PaymentRequest) -> GatewayParams:
        if self._closed:
            raise GatewayUnavailableError("Payment queue is shut down.", details=request.transaction_id)

        entry = QueueEntry(
            request=request,
            future=asyncio.get_running_loop().create_future(),
            enqueued_at=self._clock(),
        )
        self._entries.append(entry)
        queue_depth_gauge.set(len(self._entries))
        log_queue_event("enqueued", entry.id, len(self._entries), transaction_id=request.transaction_id)
        self._wakeup.set()
        return await entry.future

    def get_status(self) -> Dict[str, Any]:
        return {
            "queue_length": len(self._entries),
            "is_processing": self._in_flight is not None,
            "last_started_at": self._last_started_at,
        }

    async def _drain(self) -> None:
        while True:
            while not self._entries:
                self._wakeup.clear()
                await self._wakeup.wait()

            entry = self._entries.popleft()
            queue_depth_gauge.set(len(self._entries))
            self._in_flight = entry
            try:
                await self._wait_for_slot(entry)
                self._last_started_at = self._clock()
                queue_wait_histogram.observe(max(self._last_started_at - entry.enqueued_at, 0.0))
                log_queue_event("sending", entry.id, len(self._entries))
                await self._process(entry)
            finally:
                self._in_flight = None

    async def _wait_for_slot(self, entry: QueueEntry) -> None:
        if self._last_started_at is None:
            return
        wait = self.min_interval - (self._clock() - self._last_started_at)
        if wait > 0:
            log_queue_event("waiting", entry.id, len(self._entries), wait_seconds=round(wait, 3))
            await self._sleep(wait)

    async def _process(self, entry: QueueEntry) -> None:
        try:
            result = await self._send(entry.request)
        except CheckoutError as e:
            self._settle(entry, error=e)
        except Exception as e:
            logger.exception("Unclassified gateway failure", extra={"entry_id": entry.id})
            wrapped = UnknownGatewayError("Payment could not be started. Please try again.", details=str(e))
            wrapped.__cause__ = e
            self._settle(entry, error=wrapped)
        else:
            self._settle(entry, result=result)

    def _settle(
        self,
        entry: QueueEntry,
        result: GatewayParams | None = None,
        error: CheckoutError | None = None,
    ) -> None:
        if entry.future.done():
            log_queue_event("abandoned", entry.id, len(self._entries))
            return
        if error is not None:
            entry.future.set_exception(error)
            log_queue_event("failed", entry.id, len(self._entries), error_code=error.code)
        else:
            entry.future.set_result(result)
            log_queue_event("done", entry.id, len(self._entries))

    async def shutdown(self) -> None:
        """Stop draining and reject everything not yet resolved"""
        self._closed = True
        in_flight = self._in_flight
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        pending = ([in_flight] if in_flight is not None else []) + list(self._entries)
        self._entries.clear()
        queue_depth_gauge.set(0)

        for entry in pending:
            self._settle(
                entry,
                error=GatewayUnavailableError("Payment queue is shut down.", details=entry.request.transaction_id),
            )
