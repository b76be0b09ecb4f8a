from typing import Any, Optional

from fastapi import (
    APIRouter,
    Body,
    Depends,
    File,
    Form,
    Path,
    UploadFile,
    status,
)

from filehost_api.db_layer.file_service import FileService
from filehost_api.dependencies import get_caller_identity, get_file_service
from filehost_api.errors import InvalidInputError
from filehost_api.schemas import (
    AddTagsRequest,
    DeleteFileResponse,
    ErrorResponse,
    FileRecordResponse,
    GetFilesResponse,
    StatsResponse,
)

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse},
    status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
}

router = APIRouter(responses=ERROR_RESPONSES)


@router.post(
    "/upload",
    response_model=FileRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
def upload_file(
    file: Optional[UploadFile] = File(None, description="The image or video to store"),
    tags: Optional[str] = Form(None, description="Comma separated tags"),
    owner_id: str = Depends(get_caller_identity),
    file_service: FileService = Depends(get_file_service),
) -> FileRecordResponse:
    """
    Upload a single file.

    The payload is read up to one byte past the configured limit so an
    oversized upload is rejected without buffering all of it.
    """
    if file is None:
        raise InvalidInputError("No file uploaded")

    data = file.file.read(file_service.max_upload_bytes + 1)
    record = file_service.upload(
        owner_id,
        data,
        content_type=file.content_type,
        original_name=file.filename,
        raw_tags=tags,
    )
    return FileRecordResponse(**record)


@router.get("/list", response_model=GetFilesResponse)
def list_files(
    owner_id: str = Depends(get_caller_identity),
    file_service: FileService = Depends(get_file_service),
) -> GetFilesResponse:
    """List every file owned by the caller, oldest first."""
    files = file_service.list_files(owner_id)
    return GetFilesResponse(files=[FileRecordResponse(**doc) for doc in files])


@router.post("/{file_id}/share", response_model=FileRecordResponse)
def share_file(
    file_id: str = Path(..., description="The file to share"),
    owner_id: str = Depends(get_caller_identity),
    file_service: FileService = Depends(get_file_service),
) -> FileRecordResponse:
    """Return the file's shareable link, creating it on the first call. Counts one view."""
    return FileRecordResponse(**file_service.share(owner_id, file_id))


@router.get("/shared/{link}", response_model=FileRecordResponse)
def access_shared_file(
    link: str = Path(..., description="Shareable link token"),
    file_service: FileService = Depends(get_file_service),
) -> FileRecordResponse:
    """Public access through a shareable link. Counts one view."""
    return FileRecordResponse(**file_service.access_by_link(link))


@router.get("/stats/{file_id}", response_model=StatsResponse)
def get_file_stats(
    file_id: str = Path(...),
    owner_id: str = Depends(get_caller_identity),
    file_service: FileService = Depends(get_file_service),
) -> StatsResponse:
    return StatsResponse(views=file_service.stats(owner_id, file_id))


@router.delete("/{file_id}", response_model=DeleteFileResponse)
def delete_file(
    file_id: str = Path(...),
    owner_id: str = Depends(get_caller_identity),
    file_service: FileService = Depends(get_file_service),
) -> DeleteFileResponse:
    file_service.delete(owner_id, file_id)
    return DeleteFileResponse(message="File deleted successfully")


@router.post(
    "/{file_id}/tags",
    response_model=FileRecordResponse,
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": AddTagsRequest.model_json_schema()}},
            "required": True,
        }
    },
)
def add_tags(
    file_id: str = Path(...),
    body: Any = Body(None),
    owner_id: str = Depends(get_caller_identity),
    file_service: FileService = Depends(get_file_service),
) -> FileRecordResponse:
    """Merge tags into the file's tag set."""
    tags = body.get("tags") if isinstance(body, dict) else None
    return FileRecordResponse(**file_service.add_tags(owner_id, file_id, tags))
