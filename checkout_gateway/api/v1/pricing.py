"""POST /v1/pricing - amounts a package will charge"""

from fastapi import APIRouter, HTTPException

from checkout_gateway.api.v1.schemas import PackageSchema, PricingResponse
from checkout_gateway.domain.exceptions import InvalidPackageError
from checkout_gateway.domain.pricing import compute_amounts
from checkout_gateway.utils.money import format_amount

router = APIRouter()


@router.post("/pricing", response_model=PricingResponse)
def get_pricing(package: PackageSchema):
    """Initial payment, recurring amount and first-term total for a package"""
    try:
        amounts = compute_amounts(package.to_domain())
    except InvalidPackageError as e:
        raise HTTPException(status_code=422, detail=e.to_dict())

    return PricingResponse(
        package_id=package.id,
        initial_payment=format_amount(amounts.initial_payment),
        recurring_amount=format_amount(amounts.recurring_amount),
        first_term_total=format_amount(amounts.first_term_total),
    )
