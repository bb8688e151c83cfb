"""Gateway client - builds payment requests, obtains signed params and the redirect form"""

from checkout_gateway.config import Settings, settings as default_settings
from checkout_gateway.domain.exceptions import CheckoutError
from checkout_gateway.domain.models import GatewayParams, Package, Payer, PaymentRequest, RedirectForm
from checkout_gateway.domain.payment_request import build_payment_request
from checkout_gateway.infrastructure.clients.signing import SigningClient
from checkout_gateway.infrastructure.storage import (
    PAYMENT_DETAILS_KEY,
    PAYMENT_ERROR_KEY,
    SessionStorage,
    write_json,
)
from checkout_gateway.utils.money import format_amount


class GatewayClient:
    """Everything checkout needs from the hosted payment gateway"""

    def __init__(self, signing_client: SigningClient | None = None, config: Settings | None = None):
        self.config = config or default_settings
        self.signing_client = signing_client or SigningClient(
            endpoint_url=self.config.signing_endpoint_url,
            timeout=self.config.http_timeout_seconds,
            redirect_field=self.config.redirect_url_field,
        )

    def prepare(self, package: Package, payer: Payer, attempt: int) -> PaymentRequest:
        return build_payment_request(
            package,
            payer,
            attempt,
            origin=self.config.app_origin,
            success_path=self.config.success_path,
            failure_path=self.config.failure_path,
            currency=self.config.billing_currency,
            standing_instructions_enabled=self.config.standing_instructions_enabled,
            default_phone=self.config.default_payer_phone,
            product_info_max_length=self.config.product_info_max_length,
        )

    async def request_signature(self, request: PaymentRequest) -> GatewayParams:
        """Queue sender: one call to the signing service"""
        return await self.signing_client.sign(request)

    def build_redirect_form(self, params: GatewayParams) -> RedirectForm:
        return RedirectForm(action=params.redirect_url, fields=dict(params.fields))

    def record_snapshot(
        self,
        storage: SessionStorage,
        request: PaymentRequest,
        package: Package,
        payer: Payer,
    ) -> None:
        """Persist what the return-callback page needs to reconcile the payment"""
        write_json(
            storage,
            PAYMENT_DETAILS_KEY,
            {
                "packageId": package.id,
                "amount": request.amount,
                "packageName": package.title,
                "txnid": request.transaction_id,
                "userEmail": payer.email,
                "userName": payer.name,
                "paymentType": package.payment_type.value,
                "billingCycle": request.billing_cycle or None,
                "packageType": package.package_type,
                "setupFee": format_amount(package.setup_fee),
                "durationMonths": package.duration_months,
                "advancePaymentMonths": package.advance_payment_months,
                "monthlyPrice": format_amount(package.monthly_price) if package.monthly_price is not None else None,
                "isSubscription": request.standing_instruction is not None,
            },
        )
        storage.remove_item(PAYMENT_ERROR_KEY)

    def record_error(self, storage: SessionStorage, error: CheckoutError) -> None:
        storage.set_item(PAYMENT_ERROR_KEY, error.message)
