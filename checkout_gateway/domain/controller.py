"""Retry / rate-limit controller - decides what the payer sees after each attempt"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from checkout_gateway.domain.countdown import Countdown
from checkout_gateway.domain.exceptions import CheckoutError, CheckoutInProgressError, RateLimitedError
from checkout_gateway.domain.models import AttemptState, CheckoutState

logger = logging.getLogger(__name__)

_SUBMITTABLE = (CheckoutState.IDLE, CheckoutState.FATAL, CheckoutState.FALLBACK_OFFERED)


class RetryController:
    """
    Per-session state machine.

    IDLE -> SUBMITTING -> REDIRECTED | RATE_LIMITED | FATAL | IDLE
    RATE_LIMITED -> IDLE on countdown expiry or explicit retry()
    Nth rate limit (or Mth retryable failure) -> FALLBACK_OFFERED

    Rate limits start a visible countdown that blocks submission. Transient
    gateway failures return to IDLE straight away but still count towards
    fallback escalation. Rejections and malformed responses are terminal
    for the attempt and never escalate.
    """

    def __init__(
        self,
        cooldown_seconds: int = 60,
        rate_limits_before_fallback: int = 2,
        failures_before_fallback: int = 3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.cooldown_seconds = cooldown_seconds
        self.rate_limits_before_fallback = rate_limits_before_fallback
        self.failures_before_fallback = failures_before_fallback
        self._sleep = sleep
        self.attempt = AttemptState()
        self._countdown: Countdown | None = None

    @property
    def state(self) -> CheckoutState:
        return self.attempt.state

    @property
    def countdown(self) -> Countdown | None:
        return self._countdown

    @property
    def can_submit(self) -> bool:
        return self.attempt.state in _SUBMITTABLE and not self.attempt.is_rate_limited

    def blocked_reason(self) -> CheckoutError:
        """Error explaining why can_submit is False"""
        if self.attempt.is_rate_limited:
            return RateLimitedError(
                "Payment service is busy. Please wait before trying again.",
                details=f"retry_in_seconds={self.attempt.countdown_seconds_remaining}",
            )
        return CheckoutInProgressError(
            "A payment for this checkout is already in progress.",
            details=f"state={self.attempt.state.value}",
        )

    def begin_submission(self) -> int:
        """Enter SUBMITTING and return the attempt index for the transaction id"""
        if not self.can_submit:
            raise self.blocked_reason()
        attempt_index = self.attempt.attempts
        self.attempt.attempts += 1
        self.attempt.state = CheckoutState.SUBMITTING
        self.attempt.last_attempt_at = datetime.now(timezone.utc)
        return attempt_index

    def record_success(self) -> None:
        self._cancel_countdown()
        self.attempt.state = CheckoutState.REDIRECTED
        self.attempt.last_error = None

    def abandon_submission(self) -> None:
        """Caller stopped waiting; the queued request may still be sent"""
        if self.attempt.state == CheckoutState.SUBMITTING:
            self.attempt.state = CheckoutState.IDLE

    def record_failure(self, error: CheckoutError) -> CheckoutState:
        """Apply a classified failure and return the resulting state"""
        self.attempt.last_error = error.to_dict()

        if isinstance(error, RateLimitedError):
            self.attempt.retry_count += 1
            self.attempt.rate_limit_count += 1
            self._start_cooldown()
            if self.attempt.rate_limit_count >= self.rate_limits_before_fallback:
                self.attempt.state = CheckoutState.FALLBACK_OFFERED
            else:
                self.attempt.state = CheckoutState.RATE_LIMITED
        elif error.retryable:
            self.attempt.retry_count += 1
            if self.attempt.retry_count >= self.failures_before_fallback:
                self.attempt.state = CheckoutState.FALLBACK_OFFERED
            else:
                self.attempt.state = CheckoutState.IDLE
        else:
            self.attempt.state = CheckoutState.FATAL

        logger.info(
            "Checkout attempt failed",
            extra={
                "step": "attempt_failed",
                "error_code": error.code,
                "state": self.attempt.state.value,
                "retry_count": self.attempt.retry_count,
                "rate_limit_count": self.attempt.rate_limit_count,
            },
        )
        return self.attempt.state

    def retry(self) -> None:
        """Explicit retry: ends any cooldown early"""
        self._cancel_countdown()
        self._clear_rate_limit()

    def reset(self) -> None:
        """New package selection: start over"""
        self._cancel_countdown()
        self.attempt = AttemptState()

    def _start_cooldown(self) -> None:
        self._cancel_countdown()
        self.attempt.is_rate_limited = True
        self.attempt.countdown_seconds_remaining = self.cooldown_seconds
        self._countdown = Countdown(
            self.cooldown_seconds,
            on_tick=self._on_tick,
            on_expire=self._clear_rate_limit,
            sleep=self._sleep,
        )
        self._countdown.start()

    def _on_tick(self, remaining: int) -> None:
        self.attempt.countdown_seconds_remaining = remaining

    def _clear_rate_limit(self) -> None:
        self.attempt.is_rate_limited = False
        self.attempt.countdown_seconds_remaining = 0
        if self.attempt.state == CheckoutState.RATE_LIMITED:
            self.attempt.state = CheckoutState.IDLE

    def _cancel_countdown(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None
