"""Domain models - pure Python dataclasses representing checkout entities"""

import html
import json
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping

from checkout_gateway.domain.exceptions import InvalidPackageError
from checkout_gateway.utils.money import coerce_amount, coerce_count, format_amount


class PaymentType(str, Enum):
    RECURRING = "recurring"
    ONE_TIME = "one-time"


class BillingCycle(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class CheckoutState(str, Enum):
    """Lifecycle of a single checkout session"""

    IDLE = "idle"
    SUBMITTING = "submitting"
    REDIRECTED = "redirected"
    RATE_LIMITED = "rate_limited"
    FATAL = "fatal"
    FALLBACK_OFFERED = "fallback_offered"


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _parse_payment_type(value: Any) -> PaymentType:
    if value is None:
        return PaymentType.ONE_TIME
    normalized = str(value).strip().lower().replace("_", "-")
    if normalized == "onetime":
        normalized = "one-time"
    try:
        return PaymentType(normalized)
    except ValueError:
        raise InvalidPackageError(f"Unsupported payment type: {value}") from None


def _parse_billing_cycle(value: Any) -> BillingCycle | None:
    if value is None:
        return None
    try:
        return BillingCycle(str(value).strip().lower())
    except ValueError:
        raise InvalidPackageError(f"Unsupported billing cycle: {value}") from None


# Longest term a standing instruction end date can be computed for
MAX_DURATION_MONTHS = 1200


@dataclass(frozen=True)
class Package:
    """Subscription package definition (read-only to checkout)"""

    id: str
    title: str
    price: Decimal
    setup_fee: Decimal = Decimal("0")
    duration_months: int = 12
    payment_type: PaymentType = PaymentType.ONE_TIME
    billing_cycle: BillingCycle | None = None
    advance_payment_months: int = 0
    monthly_price: Decimal | None = None
    package_type: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidPackageError("Package id is required")
        if not self.title:
            raise InvalidPackageError("Package title is required", details=f"package_id={self.id}")
        if self.price < 0:
            raise InvalidPackageError("Package price cannot be negative", details=str(self.price))
        if self.duration_months < 0:
            raise InvalidPackageError("Package duration cannot be negative", details=str(self.duration_months))
        if self.duration_months > MAX_DURATION_MONTHS:
            raise InvalidPackageError(
                f"Package duration cannot exceed {MAX_DURATION_MONTHS} months", details=str(self.duration_months)
            )
        if self.setup_fee < 0:
            raise InvalidPackageError("Setup fee cannot be negative", details=str(self.setup_fee))
        if self.monthly_price is not None and self.monthly_price < 0:
            raise InvalidPackageError("Monthly price cannot be negative", details=str(self.monthly_price))
        if self.advance_payment_months < 0:
            raise InvalidPackageError(
                "Advance payment months cannot be negative", details=str(self.advance_payment_months)
            )

    @property
    def is_recurring(self) -> bool:
        return self.payment_type == PaymentType.RECURRING

    @property
    def effective_billing_cycle(self) -> BillingCycle | None:
        """Billing cycle used for recurrence math; recurring packages default to yearly"""
        if not self.is_recurring:
            return None
        return self.billing_cycle or BillingCycle.YEARLY

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "Package":
        """
        Build a Package from a loose mapping (camelCase or snake_case keys).

        Monetary fields are coerced, never rejected for format; missing id/title
        or negative amounts raise InvalidPackageError.
        """
        monthly = _first(raw, "monthly_price", "monthlyPrice")
        duration = _first(raw, "duration_months", "durationMonths")
        return cls(
            id=str(_first(raw, "id", "_id") or ""),
            title=str(_first(raw, "title", "name") or ""),
            price=coerce_amount(raw.get("price")),
            setup_fee=coerce_amount(_first(raw, "setup_fee", "setupFee")),
            duration_months=coerce_count(duration) if duration is not None else 12,
            payment_type=_parse_payment_type(_first(raw, "payment_type", "paymentType")),
            billing_cycle=_parse_billing_cycle(_first(raw, "billing_cycle", "billingCycle")),
            advance_payment_months=coerce_count(_first(raw, "advance_payment_months", "advancePaymentMonths")),
            monthly_price=coerce_amount(monthly) if monthly is not None else None,
            package_type=_first(raw, "package_type", "type"),
        )


@dataclass(frozen=True)
class Payer:
    """Authenticated user paying for a package"""

    id: str
    email: str
    name: str = "Customer"
    phone: str | None = None

    def __post_init__(self) -> None:
        if not self.id or not self.email:
            raise InvalidPackageError("User not authenticated", details="payer id and email are required")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "Payer":
        return cls(
            id=str(_first(raw, "id", "uid", "_id") or ""),
            email=str(_first(raw, "email") or ""),
            name=str(_first(raw, "name", "full_name", "fullName") or "Customer"),
            phone=_first(raw, "phone"),
        )


@dataclass(frozen=True)
class PaymentAmounts:
    """Derived amounts for a package"""

    initial_payment: Decimal
    recurring_amount: Decimal
    first_term_total: Decimal


@dataclass(frozen=True)
class StandingInstructionDetails:
    """Recurring mandate attached to autopay packages"""

    billing_amount: Decimal
    billing_currency: str
    payment_start_date: date
    payment_end_date: date
    billing_cycle: str = "MONTHLY"
    billing_interval: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "billingAmount": format_amount(self.billing_amount),
            "billingCurrency": self.billing_currency,
            "billingCycle": self.billing_cycle,
            "billingInterval": self.billing_interval,
            "paymentStartDate": self.payment_start_date.isoformat(),
            "paymentEndDate": self.payment_end_date.isoformat(),
        }


@dataclass(frozen=True)
class PaymentRequest:
    """Single submission attempt sent to the signing service"""

    transaction_id: str
    amount: str
    product_info: str
    payer_name: str
    payer_email: str
    payer_phone: str
    success_url: str
    failure_url: str
    user_id: str
    package_id: str
    package_type: str
    payment_type: str
    billing_cycle: str
    standing_instruction: StandingInstructionDetails | None = None

    def to_payload(self) -> Dict[str, str]:
        """Gateway wire form of the request"""
        payload = {
            "txnid": self.transaction_id,
            "amount": self.amount,
            "productinfo": self.product_info,
            "firstname": self.payer_name,
            "email": self.payer_email,
            "phone": self.payer_phone,
            "surl": self.success_url,
            "furl": self.failure_url,
            "udf1": self.user_id,
            "udf2": self.package_id,
            "udf3": self.package_type,
            "udf4": self.payment_type,
            "udf5": self.billing_cycle,
        }
        if self.standing_instruction is not None:
            payload["si"] = "1"
            payload["si_details"] = json.dumps(self.standing_instruction.to_dict())
        return payload


@dataclass(frozen=True)
class GatewayParams:
    """Signed parameters returned by the signing service"""

    redirect_url: str
    fields: Dict[str, str]


@dataclass(frozen=True)
class RedirectForm:
    """Auto-submitting POST form that hands control to the hosted payment page"""

    action: str
    fields: Dict[str, str]

    def to_html(self) -> str:
        inputs = "\n".join(
            f'  <input type="hidden" name="{html.escape(name)}" value="{html.escape(value)}">'
            for name, value in self.fields.items()
        )
        return (
            f'<form id="payment-redirect" method="POST" action="{html.escape(self.action)}">\n'
            f"{inputs}\n"
            "</form>\n"
            '<script>document.getElementById("payment-redirect").submit();</script>'
        )


@dataclass(frozen=True)
class ManualPaymentRecord:
    """Pending manual payment intent recorded when the gateway is unusable"""

    package_id: str
    amount: Decimal
    package_name: str
    user_email: str
    user_name: str
    timestamp: datetime
    payment_type: str = "manual"
    status: str = "pending"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "packageId": self.package_id,
            "amount": format_amount(self.amount),
            "packageName": self.package_name,
            "userEmail": self.user_email,
            "userName": self.user_name,
            "paymentType": self.payment_type,
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class AttemptState:
    """Per-session retry bookkeeping (not persisted)"""

    state: CheckoutState = CheckoutState.IDLE
    attempts: int = 0
    retry_count: int = 0
    rate_limit_count: int = 0
    last_attempt_at: datetime | None = None
    is_rate_limited: bool = False
    countdown_seconds_remaining: int = 0
    last_error: Dict[str, Any] | None = field(default=None)
