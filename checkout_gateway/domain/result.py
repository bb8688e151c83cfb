"""Success/failure result returned by checkout operations"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from checkout_gateway.domain.exceptions import CheckoutError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: CheckoutError

    @property
    def ok(self) -> bool:
        return False


Result = Ok[T] | Err
