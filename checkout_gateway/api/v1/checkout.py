"""/v1/checkout - start gateway payments, inspect retry state, manual fallback"""

import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from checkout_gateway.api.v1.schemas import (
    AttemptStateResponse,
    CheckoutErrorResponse,
    CheckoutRequest,
    ManualPaymentResponse,
    CheckoutRedirectResponse,
)
from checkout_gateway.api.dependencies import (
    get_checkout_session,
    get_existing_checkout_session,
    get_fallback,
    get_request_id,
    get_session_id,
    get_session_storage,
)
from checkout_gateway.domain.exceptions import (
    CheckoutError,
    CheckoutInProgressError,
    GatewayUnavailableError,
    InvalidPackageError,
    MalformedGatewayResponseError,
    PaymentRejectedError,
    RateLimitedError,
    UnknownGatewayError,
)
from checkout_gateway.domain.controller import RetryController
from checkout_gateway.domain.models import AttemptState, CheckoutState
from checkout_gateway.domain.result import Err, Ok
from checkout_gateway.infrastructure.storage import SqlSessionStorage
from checkout_gateway.services.checkout import CheckoutSession
from checkout_gateway.services.fallback import ManualFallback

router = APIRouter()

ERROR_STATUS = {
    InvalidPackageError: 422,
    CheckoutInProgressError: 409,
    RateLimitedError: 429,
    GatewayUnavailableError: 503,
    PaymentRejectedError: 402,
    MalformedGatewayResponseError: 502,
    UnknownGatewayError: 502,
}


def attempt_state_response(session_id: str, controller: RetryController | None = None) -> AttemptStateResponse:
    """Attempt state for a session; a session that does not exist yet reports a fresh state"""
    attempt = controller.attempt if controller is not None else AttemptState()
    return AttemptStateResponse(
        session_id=session_id,
        state=attempt.state.value,
        can_submit=controller.can_submit if controller is not None else True,
        attempts=attempt.attempts,
        retry_count=attempt.retry_count,
        rate_limit_count=attempt.rate_limit_count,
        last_attempt_at=attempt.last_attempt_at.isoformat() if attempt.last_attempt_at else None,
        is_rate_limited=attempt.is_rate_limited,
        countdown_seconds_remaining=attempt.countdown_seconds_remaining,
        last_error=attempt.last_error,
    )


def error_response(error: CheckoutError, session: CheckoutSession) -> JSONResponse:
    """Render a classified error; rate limits carry Retry-After and the countdown"""
    status_code = ERROR_STATUS.get(type(error), 500)
    attempt = session.controller.attempt
    body = CheckoutErrorResponse(
        error=error.to_dict(),
        checkout=attempt_state_response(session.session_id, session.controller),
        alternative_payment_available=(
            isinstance(error, RateLimitedError) or attempt.state == CheckoutState.FALLBACK_OFFERED
        ),
    )
    headers = {}
    if isinstance(error, RateLimitedError) and attempt.countdown_seconds_remaining:
        headers["Retry-After"] = str(attempt.countdown_seconds_remaining)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


@router.post(
    "/checkout",
    response_model=CheckoutRedirectResponse,
    responses={code: {"model": CheckoutErrorResponse} for code in set(ERROR_STATUS.values())},
)
async def create_checkout(
    request_body: CheckoutRequest,
    session: CheckoutSession = Depends(get_checkout_session),
    storage: SqlSessionStorage = Depends(get_session_storage),
    request_id: str = Depends(get_request_id),
):
    """
    Start a hosted-page payment for the selected package.

    Flow:
    1. Validate package and payer
    2. Price the package and build the signed-request payload
    3. Wait for the payment queue to reach this request
    4. Return the auto-submitting redirect form, or a classified error with
       the countdown / fallback offer the payer should see
    """
    try:
        package = request_body.package.to_domain()
        payer = request_body.user.to_domain()
    except InvalidPackageError as e:
        logging.warning(f"Invalid checkout input: {e}", extra={"request_id": request_id})
        return error_response(e, session)

    result = await session.submit(package, payer, storage)

    match result:
        case Ok(value=form):
            return CheckoutRedirectResponse(
                session_id=session.session_id,
                transaction_id=form.fields.get("txnid"),
                form_action=form.action,
                form_fields=form.fields,
                html=form.to_html(),
            )
        case Err(error=error):
            logging.warning(
                f"Checkout failed: {error.message}",
                extra={"request_id": request_id, "error_code": error.code},
            )
            return error_response(error, session)


@router.get("/checkout/status", response_model=AttemptStateResponse)
async def get_checkout_status(
    session_id: str = Depends(get_session_id),
    session: CheckoutSession | None = Depends(get_existing_checkout_session),
):
    """Retry state, countdown and whether the submit button is enabled"""
    return attempt_state_response(session_id, session.controller if session else None)


@router.post("/checkout/retry", response_model=AttemptStateResponse)
async def retry_checkout(
    session_id: str = Depends(get_session_id),
    session: CheckoutSession | None = Depends(get_existing_checkout_session),
):
    """End a rate-limit cooldown early"""
    if session is None:
        return attempt_state_response(session_id)
    session.retry()
    return attempt_state_response(session_id, session.controller)


@router.post("/checkout/reset", response_model=AttemptStateResponse)
async def reset_checkout(
    session_id: str = Depends(get_session_id),
    session: CheckoutSession | None = Depends(get_existing_checkout_session),
):
    """New package selection: clear retry state"""
    if session is None:
        return attempt_state_response(session_id)
    session.reset()
    return attempt_state_response(session_id, session.controller)


@router.post("/checkout/manual", response_model=ManualPaymentResponse)
def create_manual_payment(
    request_body: CheckoutRequest,
    session: CheckoutSession = Depends(get_checkout_session),
    storage: SqlSessionStorage = Depends(get_session_storage),
    fallback: ManualFallback = Depends(get_fallback),
):
    """Record a pending manual payment instead of using the gateway"""
    try:
        package = request_body.package.to_domain()
        payer = request_body.user.to_domain()
    except InvalidPackageError as e:
        return error_response(e, session)

    record = fallback.submit_manual_request(package, payer, storage)
    return ManualPaymentResponse(
        message="Payment request submitted for manual processing",
        record=record.to_dict(),
        support_mailto=fallback.support_mailto(package, payer),
    )
