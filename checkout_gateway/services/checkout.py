"""Checkout orchestration: pricing -> request -> queue -> redirect, with retry decisions"""

import asyncio
import logging
import time
from typing import Callable, Dict

from checkout_gateway.config import settings
from checkout_gateway.domain.controller import RetryController
from checkout_gateway.domain.exceptions import CheckoutError, UnknownGatewayError
from checkout_gateway.domain.models import CheckoutState, Package, Payer, RedirectForm
from checkout_gateway.domain.result import Err, Ok, Result
from checkout_gateway.infrastructure.observability.logging import log_payment_attempt
from checkout_gateway.infrastructure.observability.metrics import fallback_offered_counter, record_initiation
from checkout_gateway.infrastructure.queue import PaymentRequestQueue
from checkout_gateway.infrastructure.storage import SessionStorage
from checkout_gateway.services.gateway import GatewayClient

logger = logging.getLogger(__name__)


def default_controller() -> RetryController:
    return RetryController(
        cooldown_seconds=settings.rate_limit_cooldown_seconds,
        rate_limits_before_fallback=settings.rate_limits_before_fallback,
        failures_before_fallback=settings.failures_before_fallback,
    )


class CheckoutSession:
    """One payer's checkout: owns its RetryController, shares the queue and gateway"""

    def __init__(
        self,
        session_id: str,
        queue: PaymentRequestQueue,
        gateway: GatewayClient,
        controller: RetryController | None = None,
    ):
        self.session_id = session_id
        self.queue = queue
        self.gateway = gateway
        self.controller = controller or default_controller()

    async def submit(self, package: Package, payer: Payer, storage: SessionStorage) -> Result[RedirectForm]:
        """
        Start a gateway payment.

        Returns Ok(RedirectForm) once signed params are back (the caller posts
        the form, handing control to the hosted page) or Err(classified error)
        after the controller has decided what the payer sees next.
        """
        if not self.controller.can_submit:
            return Err(self.controller.blocked_reason())

        start_time = time.time()
        attempt_index = self.controller.begin_submission()
        transaction_id = ""
        try:
            request = self.gateway.prepare(package, payer, attempt_index)
            transaction_id = request.transaction_id
            params = await self.queue.enqueue(request)
            form = self.gateway.build_redirect_form(params)
            self.gateway.record_snapshot(storage, request, package, payer)
        except CheckoutError as e:
            return self._fail(e, storage, transaction_id, package.id, start_time)
        except asyncio.CancelledError:
            self.controller.abandon_submission()
            raise
        except Exception as e:
            logger.exception(
                "Unexpected checkout failure",
                extra={"session_id": self.session_id, "transaction_id": transaction_id},
            )
            error = UnknownGatewayError("Payment could not be started. Please try again.", details=str(e))
            error.__cause__ = e
            return self._fail(error, storage, transaction_id, package.id, start_time)

        self.controller.record_success()
        record_initiation("redirected")
        self._log(transaction_id, package.id, "redirected", start_time)
        return Ok(form)

    def retry(self) -> None:
        self.controller.retry()

    def reset(self) -> None:
        self.controller.reset()

    def _fail(
        self,
        error: CheckoutError,
        storage: SessionStorage,
        transaction_id: str,
        package_id: str,
        start_time: float,
    ) -> Err:
        self._record_failure(error, storage)
        self._log(transaction_id, package_id, error.code, start_time)
        return Err(error)

    def _record_failure(self, error: CheckoutError, storage: SessionStorage) -> None:
        previous = self.controller.state
        state = self.controller.record_failure(error)
        try:
            self.gateway.record_error(storage, error)
        except Exception:
            # The classified error still reaches the caller
            logger.exception("Could not store checkout error", extra={"session_id": self.session_id})
        record_initiation(error.code)
        if state == CheckoutState.FALLBACK_OFFERED and previous != CheckoutState.FALLBACK_OFFERED:
            fallback_offered_counter.inc()
            logger.warning(
                "Manual payment path offered",
                extra={"session_id": self.session_id, "retry_count": self.controller.attempt.retry_count},
            )

    def _log(self, transaction_id: str, package_id: str, outcome: str, start_time: float) -> None:
        duration_ms = (time.time() - start_time) * 1000
        log_payment_attempt(self.session_id, transaction_id, package_id, outcome, duration_ms)


class CheckoutSessionRegistry:
    """
    In-process map of session id -> CheckoutSession (sessions are tab-local by nature).

    Sessions untouched for idle_ttl_seconds are evicted on the next
    get_or_create, unless a submission is still in flight.
    """

    def __init__(
        self,
        queue: PaymentRequestQueue,
        gateway: GatewayClient,
        controller_factory: Callable[[], RetryController] = default_controller,
        idle_ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.queue = queue
        self.gateway = gateway
        self._controller_factory = controller_factory
        self.idle_ttl_seconds = settings.session_idle_ttl_seconds if idle_ttl_seconds is None else idle_ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, CheckoutSession] = {}
        self._last_seen: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get_or_create(self, session_id: str) -> CheckoutSession:
        self.evict_idle()
        session = self._sessions.get(session_id)
        if session is None:
            session = CheckoutSession(session_id, self.queue, self.gateway, self._controller_factory())
            self._sessions[session_id] = session
        self._last_seen[session_id] = self._clock()
        return session

    def get(self, session_id: str) -> CheckoutSession | None:
        """Existing session only; never creates one"""
        session = self._sessions.get(session_id)
        if session is not None:
            self._last_seen[session_id] = self._clock()
        return session

    def evict_idle(self) -> int:
        cutoff = self._clock() - self.idle_ttl_seconds
        stale = [
            session_id
            for session_id, seen in self._last_seen.items()
            if seen < cutoff and self._sessions[session_id].controller.state != CheckoutState.SUBMITTING
        ]
        for session_id in stale:
            self.discard(session_id)
        if stale:
            logger.info("Evicted idle checkout sessions", extra={"evicted": len(stale), "remaining": len(self)})
        return len(stale)

    def discard(self, session_id: str) -> None:
        self._last_seen.pop(session_id, None)
        session = self._sessions.pop(session_id, None)
        if session is not None:
            session.reset()

    def close(self) -> None:
        """Cancel every session's countdown"""
        for session in self._sessions.values():
            session.reset()
        self._sessions.clear()
        self._last_seen.clear()
