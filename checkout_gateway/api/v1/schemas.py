"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional

from checkout_gateway.domain.models import Package, Payer

Amount = str | int | float


class PackageSchema(BaseModel):
    """Package definition as sent by the storefront (camelCase or snake_case)"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, description="Package identifier")
    title: str = Field(..., min_length=1)
    price: Amount = 0
    monthly_price: Optional[Amount] = Field(None, alias="monthlyPrice")
    setup_fee: Optional[Amount] = Field(None, alias="setupFee")
    duration_months: Optional[Amount] = Field(None, alias="durationMonths")
    payment_type: Optional[str] = Field(None, alias="paymentType", description="recurring | one-time")
    billing_cycle: Optional[str] = Field(None, alias="billingCycle", description="monthly | yearly")
    advance_payment_months: Optional[Amount] = Field(None, alias="advancePaymentMonths")
    package_type: Optional[str] = Field(None, alias="type", description="business | influencer")

    def to_domain(self) -> Package:
        return Package.from_mapping(self.model_dump())


class PayerSchema(BaseModel):
    """Authenticated user paying for the package"""

    id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    name: Optional[str] = None
    phone: Optional[str] = None

    def to_domain(self) -> Payer:
        return Payer.from_mapping(self.model_dump())


class CheckoutRequest(BaseModel):
    """Request body for POST /v1/checkout and /v1/checkout/manual"""

    package: PackageSchema
    user: PayerSchema


class PricingResponse(BaseModel):
    """Response for POST /v1/pricing"""

    package_id: str
    initial_payment: str
    recurring_amount: str
    first_term_total: str


class CheckoutRedirectResponse(BaseModel):
    """Signed redirect to the hosted payment page"""

    status: str = "redirect"
    session_id: str
    transaction_id: Optional[str] = None
    form_action: str
    form_fields: Dict[str, str]
    html: str


class AttemptStateResponse(BaseModel):
    """Current retry state of a checkout session"""

    session_id: str
    state: str
    can_submit: bool
    attempts: int
    retry_count: int
    rate_limit_count: int
    last_attempt_at: Optional[str] = None
    is_rate_limited: bool
    countdown_seconds_remaining: int
    last_error: Optional[Dict[str, Any]] = None


class CheckoutErrorResponse(BaseModel):
    """Classified failure with what the payer can do next"""

    status: str = "error"
    error: Dict[str, Any]
    checkout: AttemptStateResponse
    alternative_payment_available: bool


class ManualPaymentResponse(BaseModel):
    """Response for POST /v1/checkout/manual"""

    message: str
    record: Dict[str, Any]
    support_mailto: str


class QueueStatusResponse(BaseModel):
    """Response for GET /v1/queue/status"""

    queue_length: int
    is_processing: bool
    last_started_at: Optional[float] = None
