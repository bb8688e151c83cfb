"""Unit tests for payment request construction"""

import json
import pytest
from datetime import date
from urllib.parse import parse_qs, urlparse
from checkout_gateway.domain.models import Package, Payer
from checkout_gateway.domain.payment_request import (
    DEFAULT_PRODUCT_INFO,
    build_payment_request,
    generate_transaction_id,
    normalize_product_info,
)
from checkout_gateway.utils.date_utils import add_months

ORIGIN = "https://growbharatvyapaar.com"


@pytest.mark.parametrize(
    "text",
    [
        "Premium Listing – Yearly ₹3,999",
        "Café  Owner\tBundle\n(12 months)",
        "Influencer | Starter ★★★ 💎",
        "   ",
        "",
        "naïve résumé — “quoted” text",
        "A" * 300,
        ("word " * 40) + "tail",
        "\x00\x07control\x1bchars",
    ],
)
def test_normalize_product_info_idempotent_and_ascii(text: str):
    """Test sanitization is idempotent, bounded and printable ASCII"""
    once = normalize_product_info(text)
    twice = normalize_product_info(once)

    assert once == twice
    assert len(once) <= 120
    assert all(32 <= ord(char) < 127 for char in once)


def test_normalize_product_info_strips_symbols_and_accents():
    assert normalize_product_info("Premium Listing – Yearly ₹3,999") == "Premium Listing Yearly 3,999"
    assert normalize_product_info("Café Owner") == "Cafe Owner"
    assert normalize_product_info("Starter | Pack") == "Starter Pack"


def test_normalize_product_info_truncates_without_trailing_space():
    text = ("word " * 40).strip()
    result = normalize_product_info(text)

    assert len(result) <= 120
    assert not result.endswith(" ")


def test_generate_transaction_id_format():
    assert generate_transaction_id(2, now_ms=1700000000123) == "txn_1700000000123_2"
    assert generate_transaction_id(0).startswith("txn_")


def test_one_time_request_charges_initial_payment(one_time_package: Package, payer: Payer):
    request = build_payment_request(one_time_package, payer, 0, origin=ORIGIN, now_ms=1700000000000)

    assert request.transaction_id == "txn_1700000000000_0"
    assert request.amount == "1019.00"
    assert request.standing_instruction is None
    assert request.product_info == "Influencer Starter Package"
    assert "si" not in request.to_payload()


def test_recurring_request_charges_standing_instruction_amount(monthly_package: Package, payer: Payer):
    """Test autopay packages charge the monthly tick, not the initial total"""
    start = date(2026, 1, 31)
    request = build_payment_request(monthly_package, payer, 1, origin=ORIGIN, start_date=start)

    assert request.amount == "199.00"
    si = request.standing_instruction
    assert si is not None
    assert si.billing_cycle == "MONTHLY"
    assert si.billing_interval == 1
    assert si.payment_start_date == start
    assert si.payment_end_date == date(2027, 1, 31)


def test_yearly_request_uses_monthly_standing_instruction(yearly_package: Package, payer: Payer):
    request = build_payment_request(yearly_package, payer, 0, origin=ORIGIN, start_date=date(2026, 3, 1))
    payload = request.to_payload()
    si_details = json.loads(payload["si_details"])

    assert payload["si"] == "1"
    assert si_details["billingCycle"] == "MONTHLY"
    assert si_details["billingAmount"] == "3999.00"
    assert si_details["billingCurrency"] == "INR"
    assert si_details["paymentStartDate"] == "2026-03-01"
    assert si_details["paymentEndDate"] == "2027-03-01"


def test_recurring_without_standing_instructions_charges_initial_payment(yearly_package: Package, payer: Payer):
    request = build_payment_request(
        yearly_package, payer, 0, origin=ORIGIN, standing_instructions_enabled=False
    )

    assert request.standing_instruction is None
    assert request.amount == "4019.00"


def test_request_correlation_fields(monthly_package: Package, payer: Payer):
    payload = build_payment_request(monthly_package, payer, 0, origin=ORIGIN).to_payload()

    assert payload["udf1"] == "user_42"
    assert payload["udf2"] == "pkg_growth_monthly"
    assert payload["udf3"] == "business"
    assert payload["udf4"] == "recurring"
    assert payload["udf5"] == "monthly"
    assert payload["firstname"] == "Asha Rao"
    assert payload["phone"] == "9876543210"


def test_callback_urls_carry_txn_and_status(one_time_package: Package, payer: Payer):
    request = build_payment_request(one_time_package, payer, 3, origin=ORIGIN + "/", now_ms=42)

    success = urlparse(request.success_url)
    failure = urlparse(request.failure_url)
    assert f"{success.scheme}://{success.netloc}{success.path}" == f"{ORIGIN}/payment-success"
    assert parse_qs(success.query) == {"txnId": ["txn_42_3"], "status": ["success"]}
    assert failure.path == "/payment-failure"
    assert parse_qs(failure.query)["status"] == ["failure"]


def test_missing_phone_uses_default(one_time_package: Package):
    payer = Payer.from_mapping({"uid": "u1", "email": "x@example.com"})
    request = build_payment_request(one_time_package, payer, 0, origin=ORIGIN, default_phone="9999999999")

    assert request.payer_name == "Customer"
    assert request.payer_phone == "9999999999"


def test_symbol_only_title_falls_back(payer: Payer):
    package = Package.from_mapping({"id": "p", "title": "★★★", "price": 10})
    request = build_payment_request(package, payer, 0, origin=ORIGIN)

    assert request.product_info == DEFAULT_PRODUCT_INFO


def test_add_months_clamps_to_month_end():
    assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2026, 11, 15), 3) == date(2027, 2, 15)
    assert add_months(date(2026, 5, 10), 0) == date(2026, 5, 10)
