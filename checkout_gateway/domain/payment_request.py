"""Payment request construction - transaction ids, product info and standing instructions"""

import re
import time
import unicodedata
from datetime import date
from urllib.parse import urlencode

from checkout_gateway.domain.models import Package, Payer, PaymentRequest, StandingInstructionDetails
from checkout_gateway.domain.pricing import compute_amounts, standing_instruction_amount
from checkout_gateway.utils.date_utils import add_months
from checkout_gateway.utils.money import format_amount

DEFAULT_PRODUCT_INFO = "Subscription Package"

# ASCII punctuation the gateway accepts; everything else in P*/S* is dropped.
# '|' is the hash field separator and must never survive.
_SAFE_PUNCTUATION = frozenset(".,-_()&/:")
_WHITESPACE = re.compile(r"\s+")


def _keep(char: str) -> bool:
    if not char.isascii():
        return False
    if char.isspace():
        return True
    category = unicodedata.category(char)
    if category.startswith("C"):
        return False
    if category[0] in ("P", "S"):
        return char in _SAFE_PUNCTUATION
    return True


def normalize_product_info(text: str, max_length: int = 120) -> str:
    """
    Sanitize a product description before it is hashed by the gateway.

    Decomposes accents (é -> e), drops non-ASCII characters, control
    characters and punctuation/currency symbols outside a small safe set,
    collapses whitespace and truncates. Applying it twice changes nothing.
    """
    decomposed = unicodedata.normalize("NFKD", text or "")
    kept = "".join(char if _keep(char) else " " if char.isspace() else "" for char in decomposed)
    collapsed = _WHITESPACE.sub(" ", kept).strip()
    return collapsed[:max_length].rstrip()


def generate_transaction_id(attempt: int, now_ms: int | None = None) -> str:
    """txn_<epochMillis>_<attemptIndex>"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"txn_{now_ms}_{attempt}"


def build_callback_urls(origin: str, success_path: str, failure_path: str, transaction_id: str) -> tuple[str, str]:
    """Absolute return URLs carrying txnId and status for the reconciliation page"""
    base = origin.rstrip("/")
    success = f"{base}{success_path}?{urlencode({'txnId': transaction_id, 'status': 'success'})}"
    failure = f"{base}{failure_path}?{urlencode({'txnId': transaction_id, 'status': 'failure'})}"
    return success, failure


def build_standing_instruction(
    package: Package,
    currency: str,
    start_date: date | None = None,
) -> StandingInstructionDetails:
    """Monthly mandate spanning duration_months from start_date"""
    if start_date is None:
        start_date = date.today()
    return StandingInstructionDetails(
        billing_amount=standing_instruction_amount(package),
        billing_currency=currency,
        payment_start_date=start_date,
        payment_end_date=add_months(start_date, package.duration_months),
    )


def build_payment_request(
    package: Package,
    payer: Payer,
    attempt: int,
    *,
    origin: str,
    success_path: str = "/payment-success",
    failure_path: str = "/payment-failure",
    currency: str = "INR",
    standing_instructions_enabled: bool = True,
    default_phone: str = "9999999999",
    product_info_max_length: int = 120,
    now_ms: int | None = None,
    start_date: date | None = None,
) -> PaymentRequest:
    """
    Build the PaymentRequest for one submission attempt.

    Amount rule:
    - recurring package with standing instructions: the SI tick amount is
      charged at submission (not the one-time total)
    - otherwise: the full initial payment
    """
    amounts = compute_amounts(package)
    transaction_id = generate_transaction_id(attempt, now_ms)
    success_url, failure_url = build_callback_urls(origin, success_path, failure_path, transaction_id)

    standing_instruction = None
    if package.is_recurring and standing_instructions_enabled:
        standing_instruction = build_standing_instruction(package, currency, start_date)
        amount = standing_instruction.billing_amount
    else:
        amount = amounts.initial_payment

    cycle = package.effective_billing_cycle
    product_info = normalize_product_info(package.title, product_info_max_length) or DEFAULT_PRODUCT_INFO

    return PaymentRequest(
        transaction_id=transaction_id,
        amount=format_amount(amount),
        product_info=product_info,
        payer_name=payer.name,
        payer_email=payer.email,
        payer_phone=payer.phone or default_phone,
        success_url=success_url,
        failure_url=failure_url,
        user_id=payer.id,
        package_id=package.id,
        package_type=package.package_type or "",
        payment_type=package.payment_type.value,
        billing_cycle=cycle.value if cycle else "",
        standing_instruction=standing_instruction,
    )
