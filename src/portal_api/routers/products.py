from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    Path,
    Response,
    UploadFile,
    status,
)

from portal_api.adapters.blobs import BlobContainer, BlobNaming
from portal_api.adapters.tables import RecordTable
from portal_api.dependencies import get_gateway
from portal_api.gateway import StorageGateway
from portal_api.schemas import BlobUploadResponse, RecordResponse

router = APIRouter()


@router.post("/products", response_model=RecordResponse, status_code=status.HTTP_201_CREATED)
async def save_product(
    name: str = Form(..., description="Product name"),
    price: float = Form(..., ge=0, allow_inf_nan=False, description="Unit price"),
    product_id: Optional[str] = Form(None, alias="id", description="Existing product id to update"),
    gateway: StorageGateway = Depends(get_gateway),
) -> RecordResponse:
    """Create a product, or update the price and name of an existing one."""
    record_key = await gateway.upsert_record(
        RecordTable.PRODUCTS,
        product_id,
        name,
        {"Price": price},
    )
    return RecordResponse(
        partition_key=record_key.partition_key,
        row_key=record_key.row_key,
        message="Product saved successfully!",
    )


@router.post("/products/images", response_model=BlobUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_product_image(
    file: UploadFile = File(..., description="Image to store"),
    gateway: StorageGateway = Depends(get_gateway),
) -> BlobUploadResponse:
    """
    Store a product image under a fresh, dated name.

    Uploading the same file twice stores two blobs; nothing is overwritten.
    """
    stored = await gateway.upload_blob(
        file.filename,
        file.file,
        file.content_type,
        container=BlobContainer.PRODUCT_IMAGES,
        naming=BlobNaming.UNIQUE,
    )
    return BlobUploadResponse(
        blob_name=stored.blob_name,
        url=stored.url,
        content_type=stored.content_type,
    )


@router.get("/products/images/{blob_name:path}")
async def get_product_image(
    blob_name: str = Path(..., description="Stored name returned by the upload"),
    gateway: StorageGateway = Depends(get_gateway),
) -> Response:
    """Return the bytes of a product image."""
    blob = await gateway.download_blob(blob_name, container=BlobContainer.PRODUCT_IMAGES)
    return Response(content=blob.data, media_type=blob.content_type)
