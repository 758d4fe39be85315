from fastapi import APIRouter, Depends, Form, status

from portal_api.adapters.queue import PlainText
from portal_api.dependencies import get_gateway
from portal_api.gateway import StorageGateway
from portal_api.schemas import MessageResponse

router = APIRouter()


@router.post("/orders", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
async def place_order(
    order_id: str = Form(..., min_length=1, description="Order to process"),
    gateway: StorageGateway = Depends(get_gateway),
) -> MessageResponse:
    """Queue an order for processing."""
    await gateway.enqueue_message(PlainText(f"Processing order: {order_id}"))
    return MessageResponse(message=f"Order {order_id} queued for processing")


@router.post("/orders/messages", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
async def send_order_message(
    payload: str = Form(..., description="JSON object/array sent as-is, or free text"),
    gateway: StorageGateway = Depends(get_gateway),
) -> MessageResponse:
    """
    Put an arbitrary message on the order queue.

    A payload that parses as a JSON object or array is sent verbatim; anything
    else is wrapped with a timestamp.
    """
    await gateway.enqueue_message(payload)
    return MessageResponse(message="Message queued")
