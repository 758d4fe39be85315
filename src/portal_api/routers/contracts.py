from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from portal_api.dependencies import get_gateway
from portal_api.gateway import StorageGateway
from portal_api.schemas import ContractUploadResponse

router = APIRouter()


@router.post("/contracts", response_model=ContractUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_contract(
    file: UploadFile = File(..., description="Contract document"),
    customer_id: Optional[str] = Form(None, description="Files the contract under this customer"),
    gateway: StorageGateway = Depends(get_gateway),
) -> ContractUploadResponse:
    """Store a contract on the contracts share, under the customer's folder if one is given."""
    file_path = await gateway.upload_file(file.filename, file.file, customer_scope=customer_id or None)
    return ContractUploadResponse(
        file_path=file_path,
        message=f"Contract uploaded to {file_path}",
    )
