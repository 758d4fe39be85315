from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from portal_api.adapters.blobs import BlobContainer, BlobNaming
from portal_api.adapters.tables import RecordTable
from portal_api.dependencies import get_gateway
from portal_api.gateway import StorageGateway
from portal_api.schemas import RecordResponse, StudentListResponse, StudentMark

router = APIRouter()


@router.post("/students", response_model=RecordResponse, status_code=status.HTTP_201_CREATED)
async def add_student(
    name: str = Form(..., min_length=1, description="Student name"),
    module: str = Form(..., description="Module code"),
    mark1: int = Form(0, ge=0, le=100),
    mark2: int = Form(0, ge=0, le=100),
    mark3: int = Form(0, ge=0, le=100),
    mark4: int = Form(0, ge=0, le=100),
    image: UploadFile = File(..., description="Student photo"),
    gateway: StorageGateway = Depends(get_gateway),
) -> RecordResponse:
    """
    Add a student with their marks and photo.

    The photo is stored under its own file name, so a later upload with the
    same name replaces it. An empty photo is rejected before anything is written.
    """
    photo = await gateway.upload_blob(
        image.filename,
        image.file,
        image.content_type,
        container=BlobContainer.STUDENT_IMAGES,
        naming=BlobNaming.OVERWRITE,
    )
    record_key = await gateway.insert_record(
        RecordTable.STUDENTS,
        None,
        name,
        {
            "Module": module,
            "Mark1": mark1,
            "Mark2": mark2,
            "Mark3": mark3,
            "Mark4": mark4,
            "ImageUrl": photo.url,
        },
    )
    return RecordResponse(
        partition_key=record_key.partition_key,
        row_key=record_key.row_key,
        message="Student added successfully!",
    )


@router.get("/students", response_model=StudentListResponse)
async def list_students(gateway: StorageGateway = Depends(get_gateway)) -> StudentListResponse:
    records = await gateway.list_records(RecordTable.STUDENTS)
    students = [StudentMark.from_record(record) for record in records]
    return StudentListResponse(students=students, total_count=len(students))
