"""Dependency injection for FastAPI endpoints"""

import uuid
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from checkout_gateway.infrastructure.database.session import get_db
from checkout_gateway.infrastructure.queue import PaymentRequestQueue
from checkout_gateway.infrastructure.storage import SqlSessionStorage
from checkout_gateway.services.checkout import CheckoutSession, CheckoutSessionRegistry
from checkout_gateway.services.fallback import ManualFallback

SESSION_HEADER = "X-Checkout-Session"


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_session_id(request: Request) -> str:
    """Checkout session from the X-Checkout-Session header, minted when absent"""
    session_id = request.headers.get(SESSION_HEADER) or str(uuid.uuid4())
    request.state.checkout_session_id = session_id
    return session_id


def get_registry(request: Request) -> CheckoutSessionRegistry:
    return request.app.state.registry


def get_queue(request: Request) -> PaymentRequestQueue:
    return request.app.state.queue


def get_fallback(request: Request) -> ManualFallback:
    return request.app.state.fallback


def get_checkout_session(
    session_id: str = Depends(get_session_id),
    registry: CheckoutSessionRegistry = Depends(get_registry),
) -> CheckoutSession:
    return registry.get_or_create(session_id)


def get_session_storage(
    session_id: str = Depends(get_session_id),
    db: Session = Depends(get_db),
) -> SqlSessionStorage:
    return SqlSessionStorage(db, session_id)


def get_existing_checkout_session(
    session_id: str = Depends(get_session_id),
    registry: CheckoutSessionRegistry = Depends(get_registry),
) -> CheckoutSession | None:
    """Session for read-only and control endpoints; absent sessions stay absent"""
    return registry.get(session_id)
