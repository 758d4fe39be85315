####################################
# --- Request/response schemas --- #
####################################

from typing import List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)


class RecordResponse(BaseModel):
    """Response model for record writes (customers, products, students)."""
    partition_key: str = Field(description="Partition the record was written to.")
    row_key: str = Field(description="Row key of the record.")
    message: str = Field(description="A message about the operation.")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "partition_key": "A",
                "row_key": "C42",
                "message": "Customer added successfully!",
            }
        }
    )


class BlobUploadResponse(BaseModel):
    """Response model for `POST /v1/products/images`."""
    blob_name: str = Field(
        description="The stored name of the blob.",
        json_schema_extra={"example": "2024/01/31/3f2b9c1e4d5a4b6c8e7f9a0b1c2d3e4f-photo.png"},
    )
    url: str = Field(description="URL the blob resolves to.")
    content_type: str = Field(description="Content type the blob was stored with.")


class MessageResponse(BaseModel):
    """Generic confirmation."""
    message: str


class ContractUploadResponse(BaseModel):
    """Response model for `POST /v1/contracts`."""
    file_path: str = Field(
        description="Path of the file relative to the contracts share.",
        json_schema_extra={"example": "C42/contract.pdf"},
    )
    message: str = Field(description="A message about the operation.")


class StudentMark(BaseModel):
    """One row of the StudentMarks table."""
    partition_key: str
    row_key: str
    name: str
    module: Optional[str] = None
    mark1: int = 0
    mark2: int = 0
    mark3: int = 0
    mark4: int = 0
    image_url: Optional[str] = None
    last_updated_utc: Optional[str] = None

    @classmethod
    def from_record(cls, record: dict) -> "StudentMark":
        return cls(
            partition_key=record["PartitionKey"],
            row_key=record["RowKey"],
            name=record.get("Name", ""),
            module=record.get("Module"),
            mark1=record.get("Mark1", 0),
            mark2=record.get("Mark2", 0),
            mark3=record.get("Mark3", 0),
            mark4=record.get("Mark4", 0),
            image_url=record.get("ImageUrl"),
            last_updated_utc=record.get("LastUpdatedUtc"),
        )


class StudentListResponse(BaseModel):
    """Response model for `GET /v1/students`."""
    students: List[StudentMark]
    total_count: int = Field(description="Total number of students")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "students": [
                    {
                        "partition_key": "T",
                        "row_key": "0b5c4c1e-8f1a-4c52-9a7e-2f1d5a3b6c7d",
                        "name": "Thandi",
                        "module": "CLDV6212",
                        "mark1": 72,
                        "mark2": 65,
                        "mark3": 80,
                        "mark4": 77,
                        "image_url": "https://studentimages.s3.us-east-1.amazonaws.com/thandi.jpg",
                        "last_updated_utc": "2024-03-01T09:30:00+00:00",
                    }
                ],
                "total_count": 1,
            }
        }
    )
