"""Gateway signing-service HTTP client: turns a PaymentRequest into signed redirect params"""

import httpx
from typing import Any, Dict

from checkout_gateway.config import settings
from checkout_gateway.domain.exceptions import (
    CheckoutError,
    GatewayUnavailableError,
    MalformedGatewayResponseError,
    PaymentRejectedError,
    RateLimitedError,
    UnknownGatewayError,
)
from checkout_gateway.domain.models import GatewayParams, PaymentRequest
from checkout_gateway.infrastructure.observability.metrics import signing_latency_histogram

RATE_LIMIT_MARKERS = ("too many requests", "rate limit", "rate exceeded")
REJECTION_MARKERS = ("invalid", "failed")


def classify_gateway_error(status_code: int, body: str) -> CheckoutError:
    """
    Map a non-2xx signing response to a classified error.

    Order matters: rate-limit text wins over the status code, then 5xx,
    then rejection text.
    """
    text = (body or "").strip()
    lowered = text.lower()
    details = f"status={status_code} body={text[:500]}"

    if status_code == 429 or any(marker in lowered for marker in RATE_LIMIT_MARKERS):
        return RateLimitedError("Payment service is busy. Please try again in a minute.", details=details)
    if status_code >= 500:
        return GatewayUnavailableError("Payment service is temporarily unavailable.", details=details)
    if any(marker in lowered for marker in REJECTION_MARKERS):
        return PaymentRejectedError("The payment was rejected. Please check your details.", details=details)
    return UnknownGatewayError("Payment could not be started. Please try again.", details=details)


def parse_gateway_params(data: Any, redirect_field: str) -> GatewayParams:
    """Validate a 2xx signing response and extract the redirect URL"""
    if not isinstance(data, dict):
        raise MalformedGatewayResponseError(
            "Payment service returned an unexpected response.",
            details=f"expected JSON object, got {type(data).__name__}",
        )

    redirect_url = data.get(redirect_field)
    if not isinstance(redirect_url, str) or not redirect_url:
        raise MalformedGatewayResponseError(
            "Payment service returned an unexpected response.",
            details=f"missing redirect field '{redirect_field}'",
        )

    fields: Dict[str, str] = {
        str(key): str(value)
        for key, value in data.items()
        if key != redirect_field and value is not None
    }
    return GatewayParams(redirect_url=redirect_url, fields=fields)


class SigningClient:
    """Client for the external hash/order-signing endpoint"""

    def __init__(
        self,
        endpoint_url: str | None = None,
        timeout: float | None = None,
        redirect_field: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint_url = endpoint_url or settings.signing_endpoint_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.redirect_field = redirect_field or settings.redirect_url_field
        self._transport = transport

    async def sign(self, request: PaymentRequest) -> GatewayParams:
        """
        Send the request payload to the signing service.

        Raises:
            RateLimitedError, GatewayUnavailableError, PaymentRejectedError,
            UnknownGatewayError: non-2xx responses and transport failures
            MalformedGatewayResponseError: 2xx without usable redirect params
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                with signing_latency_histogram.time():
                    response = await client.post(self.endpoint_url, json=request.to_payload())
            except httpx.TimeoutException as e:
                raise GatewayUnavailableError(
                    "Payment service did not respond in time.",
                    details=f"timeout after {self.timeout}s",
                ) from e
            except httpx.RequestError as e:
                raise GatewayUnavailableError(
                    "Payment service could not be reached.",
                    details=str(e),
                ) from e

        if not response.is_success:
            raise classify_gateway_error(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedGatewayResponseError(
                "Payment service returned an unexpected response.",
                details=f"invalid JSON: {e}",
            ) from e

        return parse_gateway_params(data, self.redirect_field)
