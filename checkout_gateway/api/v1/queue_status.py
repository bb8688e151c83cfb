"""GET /v1/queue/status - payment queue depth"""

from fastapi import APIRouter, Depends

from checkout_gateway.api.dependencies import get_queue
from checkout_gateway.api.v1.schemas import QueueStatusResponse
from checkout_gateway.infrastructure.queue import PaymentRequestQueue

router = APIRouter()


@router.get("/queue/status", response_model=QueueStatusResponse)
def get_queue_status(queue: PaymentRequestQueue = Depends(get_queue)):
    return QueueStatusResponse(**queue.get_status())
