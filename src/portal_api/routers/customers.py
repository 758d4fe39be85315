from typing import Optional

from fastapi import APIRouter, Depends, Form, status

from portal_api.adapters.tables import RecordTable
from portal_api.dependencies import get_gateway
from portal_api.gateway import StorageGateway
from portal_api.schemas import RecordResponse

router = APIRouter()


@router.post("/customers", response_model=RecordResponse, status_code=status.HTTP_201_CREATED)
async def save_customer(
    name: str = Form(..., description="Customer name"),
    email: Optional[str] = Form(None, description="Contact email"),
    customer_id: Optional[str] = Form(None, alias="id", description="Existing customer id to update"),
    gateway: StorageGateway = Depends(get_gateway),
) -> RecordResponse:
    """Create a customer profile, or merge the given fields into an existing one."""
    record_key = await gateway.upsert_record(
        RecordTable.CUSTOMERS,
        customer_id,
        name,
        {"Email": email},
    )
    return RecordResponse(
        partition_key=record_key.partition_key,
        row_key=record_key.row_key,
        message="Customer added successfully!",
    )
