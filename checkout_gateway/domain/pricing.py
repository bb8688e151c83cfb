"""Package pricing: initial payment, recurring amount and first-term total"""

from decimal import Decimal

from checkout_gateway.domain.exceptions import InvalidPackageError
from checkout_gateway.domain.models import BillingCycle, Package, PaymentAmounts

MONTHS_PER_YEAR = 12


def _validate(package: Package) -> None:
    if package.price < 0 or package.duration_months < 0:
        raise InvalidPackageError(
            "Package price and duration must be non-negative",
            details=f"price={package.price} duration_months={package.duration_months}",
        )


def monthly_amount(package: Package) -> Decimal:
    """Monthly tick amount: monthly_price, falling back to price when absent"""
    if package.monthly_price is not None:
        return package.monthly_price
    return package.price


def compute_amounts(package: Package) -> PaymentAmounts:
    """
    Derive checkout amounts from a package definition.

    Rules:
    - one-time:          initial = price + setup, recurring = 0, total = initial
    - recurring monthly: initial = setup + monthly, recurring = monthly,
                         total = setup + monthly * 12
    - recurring yearly:  initial = setup + (price if advance months > 0 else 0),
                         recurring = price, total = setup + price

    advance_payment_months only affects the yearly branch.

    Example:
        price=1999, monthly_price=199, setup_fee=20, monthly
        → initial 219, recurring 199, total 2408
    """
    _validate(package)

    cycle = package.effective_billing_cycle
    if cycle is None:
        initial = package.price + package.setup_fee
        return PaymentAmounts(
            initial_payment=initial,
            recurring_amount=Decimal("0"),
            first_term_total=initial,
        )

    if cycle == BillingCycle.MONTHLY:
        monthly = monthly_amount(package)
        return PaymentAmounts(
            initial_payment=package.setup_fee + monthly,
            recurring_amount=monthly,
            first_term_total=package.setup_fee + monthly * MONTHS_PER_YEAR,
        )

    advance = package.price if package.advance_payment_months > 0 else Decimal("0")
    return PaymentAmounts(
        initial_payment=package.setup_fee + advance,
        recurring_amount=package.price,
        first_term_total=package.setup_fee + package.price,
    )


def standing_instruction_amount(package: Package) -> Decimal:
    """
    Amount billed per standing-instruction tick.

    Yearly packages are billed as if monthly: the mandate always ticks
    monthly and uses the monthly amount.
    """
    _validate(package)
    return monthly_amount(package)
