"""Manual payment path used when the gateway is persistently unusable"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from urllib.parse import quote

from checkout_gateway.config import settings
from checkout_gateway.domain.models import ManualPaymentRecord, Package, Payer
from checkout_gateway.infrastructure.observability.metrics import manual_payment_counter
from checkout_gateway.infrastructure.storage import MANUAL_PAYMENT_KEY, SessionStorage, write_json

logger = logging.getLogger(__name__)


def manual_payment_amount(package: Package) -> Decimal:
    """Full package price plus setup fee, independent of billing cycle or advance months"""
    return package.price + package.setup_fee


class ManualFallback:
    """Records a pending manual payment intent; never talks to the gateway"""

    def __init__(self, support_email: str | None = None, currency: str | None = None):
        self.support_email = support_email or settings.support_email
        self.currency = currency or settings.billing_currency

    def submit_manual_request(self, package: Package, payer: Payer, storage: SessionStorage) -> ManualPaymentRecord:
        record = ManualPaymentRecord(
            package_id=package.id,
            amount=manual_payment_amount(package),
            package_name=package.title,
            user_email=payer.email,
            user_name=payer.name,
            timestamp=datetime.now(timezone.utc),
        )
        write_json(storage, MANUAL_PAYMENT_KEY, record.to_dict())
        manual_payment_counter.inc()
        logger.info(
            "Manual payment request recorded",
            extra={"step": "manual_payment", "package_id": package.id, "user_id": payer.id},
        )
        return record

    def support_mailto(self, package: Package, payer: Payer) -> str:
        """Pre-filled support email draft for the package and payer"""
        amount = manual_payment_amount(package)
        subject = f"Payment Issue - {package.title}"
        body = (
            "Hi Support Team,\n\n"
            "I'm experiencing issues with the payment gateway for the following package:\n\n"
            f"Package: {package.title}\n"
            f"Amount: {self.currency} {amount:,.2f}\n"
            f"User: {payer.name} ({payer.email})\n\n"
            "The payment gateway is showing a \"Too many Requests\" error. "
            "Please help me complete this payment.\n\n"
            "Best regards,\n"
            f"{payer.name}"
        )
        return f"mailto:{self.support_email}?subject={quote(subject)}&body={quote(body)}"
