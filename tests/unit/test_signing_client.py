"""Unit tests for the signing-service client and gateway error classification"""

import json
import httpx
import pytest
from checkout_gateway.domain.exceptions import (
    GatewayUnavailableError,
    MalformedGatewayResponseError,
    PaymentRejectedError,
    RateLimitedError,
    UnknownGatewayError,
)
from checkout_gateway.domain.payment_request import build_payment_request
from checkout_gateway.infrastructure.clients.signing import (
    SigningClient,
    classify_gateway_error,
    parse_gateway_params,
)

SIGNING_URL = "http://signing.test/api/payu-hash"


def signing_client(handler) -> SigningClient:
    return SigningClient(endpoint_url=SIGNING_URL, timeout=2.0, transport=httpx.MockTransport(handler))


@pytest.fixture
def payment_request(one_time_package, payer):
    return build_payment_request(one_time_package, payer, 0, origin="https://shop.test", now_ms=1700000000000)


@pytest.mark.parametrize(
    "status_code,body,expected",
    [
        (400, "Error: rate limit exceeded, slow down", RateLimitedError),
        (429, "", RateLimitedError),
        (500, "Too many Requests", RateLimitedError),
        (400, "RATE EXCEEDED", RateLimitedError),
        (503, "", GatewayUnavailableError),
        (502, "Bad Gateway", GatewayUnavailableError),
        (400, "Invalid hash", PaymentRejectedError),
        (400, "Transaction failed", PaymentRejectedError),
        (404, "", UnknownGatewayError),
        (400, "Missing required payment parameters", UnknownGatewayError),
    ],
)
def test_classify_gateway_error(status_code: int, body: str, expected: type):
    error = classify_gateway_error(status_code, body)

    assert type(error) is expected
    assert f"status={status_code}" in error.details


def test_parse_gateway_params_requires_redirect_field():
    with pytest.raises(MalformedGatewayResponseError):
        parse_gateway_params({"hash": "abc"}, "payuBaseUrl")
    with pytest.raises(MalformedGatewayResponseError):
        parse_gateway_params(["not", "an", "object"], "payuBaseUrl")
    with pytest.raises(MalformedGatewayResponseError):
        parse_gateway_params({"payuBaseUrl": ""}, "payuBaseUrl")


def test_parse_gateway_params_splits_redirect_url():
    params = parse_gateway_params(
        {"payuBaseUrl": "https://test.payu.in/_payment", "key": "k", "hash": "h", "udf6": None},
        "payuBaseUrl",
    )

    assert params.redirect_url == "https://test.payu.in/_payment"
    assert params.fields == {"key": "k", "hash": "h"}


async def test_sign_posts_payload_and_returns_params(payment_request):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "key": "test_key",
                "txnid": captured["body"]["txnid"],
                "amount": captured["body"]["amount"],
                "hash": "f" * 128,
                "payuBaseUrl": "https://test.payu.in/_payment",
            },
        )

    params = await signing_client(handler).sign(payment_request)

    assert captured["url"] == SIGNING_URL
    assert captured["body"]["amount"] == "1019.00"
    assert captured["body"]["productinfo"] == "Influencer Starter Package"
    assert captured["body"]["surl"].startswith("https://shop.test/payment-success")
    assert params.redirect_url == "https://test.payu.in/_payment"
    assert params.fields["txnid"] == payment_request.transaction_id
    assert "payuBaseUrl" not in params.fields


async def test_sign_rate_limited_text(payment_request):
    def handler(request):
        return httpx.Response(400, text="Error: rate limit exceeded, slow down")

    with pytest.raises(RateLimitedError):
        await signing_client(handler).sign(payment_request)


async def test_sign_service_unavailable(payment_request):
    def handler(request):
        return httpx.Response(503)

    with pytest.raises(GatewayUnavailableError):
        await signing_client(handler).sign(payment_request)


async def test_sign_success_without_redirect_field(payment_request):
    def handler(request):
        return httpx.Response(200, json={"key": "test_key", "hash": "abc"})

    with pytest.raises(MalformedGatewayResponseError):
        await signing_client(handler).sign(payment_request)


async def test_sign_success_with_non_json_body(payment_request):
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(MalformedGatewayResponseError) as exc_info:
        await signing_client(handler).sign(payment_request)

    assert exc_info.value.__cause__ is not None


async def test_sign_timeout_is_unavailable(payment_request):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(GatewayUnavailableError) as exc_info:
        await signing_client(handler).sign(payment_request)

    assert "timeout" in exc_info.value.details
    assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)


async def test_sign_connection_error_is_unavailable(payment_request):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayUnavailableError):
        await signing_client(handler).sign(payment_request)
