####################################
# --- Request/response schemas --- #
####################################

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)

EXAMPLE_FILE_ID = "665f1c2b9d3e4a0012ab34cd"


class FileRecordResponse(BaseModel):
    """A stored file record."""
    file_id: str = Field(
        description="Identifier of the file.",
        json_schema_extra={"example": EXAMPLE_FILE_ID},
    )
    owner_id: str = Field(description="Identity of the uploading user.")
    filename: str = Field(description="Sanitized base name of the upload.")
    original_name: str = Field(description="File name as sent by the client.")
    mime_type: str
    size_bytes: int = Field(ge=0)
    blob_locator: str = Field(description="Opaque reference into the blob store.")
    tags: List[str] = Field(default_factory=list)
    shareable_link: Optional[str] = Field(
        None,
        description="Public link token, absent until the file is first shared.",
    )
    view_count: int = Field(0, ge=0)
    created_at: datetime

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "file_id": EXAMPLE_FILE_ID,
                "owner_id": "user-123",
                "filename": "holiday.jpg",
                "original_name": "holiday.jpg",
                "mime_type": "image/jpeg",
                "size_bytes": 20480,
                "blob_locator": "uploads/1717500000000-1a2b3c4d-holiday.jpg",
                "tags": ["travel", "beach"],
                "shareable_link": None,
                "view_count": 0,
                "created_at": "2024-06-04T10:00:00+00:00",
            }
        },
    )


class GetFilesResponse(BaseModel):
    """Response model for `GET /api/files/list`."""
    files: List[FileRecordResponse]


class AddTagsRequest(BaseModel):
    """Body of `POST /api/files/{file_id}/tags`. Documentation only; the route reads raw JSON."""
    tags: List[str] = Field(min_length=1, json_schema_extra={"example": ["travel", "2024"]})


class StatsResponse(BaseModel):
    """Response model for `GET /api/files/stats/{file_id}`."""
    views: int = Field(ge=0)


class DeleteFileResponse(BaseModel):
    """Response model for `DELETE /api/files/{file_id}`."""
    message: str


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    """Error descriptor returned with every non-2xx response."""
    error: ErrorDetail

    model_config = ConfigDict(
        json_schema_extra={"example": {"error": {"code": "NOT_FOUND", "message": "File not found"}}}
    )


class HealthResponse(BaseModel):
    status: str
    deployment_mode: str
    components: Dict[str, str]
    ready: bool
