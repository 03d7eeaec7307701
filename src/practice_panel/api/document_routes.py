"""
Practice Panel Document Routes

Endpoints for uploading, deleting and replacing a client's monthly files.
Files are described by their storage location; the bytes are handled by
the storage layer.
"""

from datetime import datetime
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from domain.value_objects import FileRecord

from .common import format_success_response, get_document_service, parse_selector

logger = logging.getLogger(__name__)

document_router = APIRouter(prefix="/clients/{client_id}/documents", tags=["Documents"])


# =============================================================================
# REQUEST MODELS
# =============================================================================

class FileRequest(BaseModel):
    """Descriptor of a stored file."""
    url: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1)
    file_size: int = Field(0, ge=0)
    file_type: Optional[str] = None

    def to_record(self, uploaded_by: str) -> FileRecord:
        return FileRecord(
            url=self.url,
            file_name=self.file_name,
            file_size=self.file_size,
            file_type=self.file_type,
            uploaded_by=uploaded_by,
            uploaded_at=datetime.utcnow(),
        )


class UploadRequest(BaseModel):
    """Append files to a category."""
    category: str = Field(..., description="sales, purchase, bank or other")
    category_name: Optional[str] = Field(None, description="Required for 'other'")
    files: List[FileRequest] = Field(..., min_length=1)
    actor: str = Field(..., min_length=1)
    actor_name: Optional[str] = None
    note: Optional[str] = Field(None, description="Required once the category has been locked")


class DeleteFileRequest(BaseModel):
    category: str
    category_name: Optional[str] = None
    file_name: str = Field(..., min_length=1)
    actor: str = Field(..., min_length=1)
    actor_name: Optional[str] = None
    reason: str = Field(..., description="Why the file is removed")


class ReplaceFileRequest(BaseModel):
    category: str
    category_name: Optional[str] = None
    file_name: str = Field(..., min_length=1)
    new_file: FileRequest
    actor: str = Field(..., min_length=1)
    actor_name: Optional[str] = None
    note: Optional[str] = None


# =============================================================================
# ENDPOINTS
# =============================================================================

@document_router.get("/{year}/{month}")
async def get_month_documents(year: int, month: int, client_id: str, service=Depends(get_document_service)):
    """Get all categories of a client month."""
    return format_success_response(service.get_month_documents(client_id, year, month))


@document_router.post("/{year}/{month}/upload", status_code=201)
async def upload_files(
    year: int,
    month: int,
    client_id: str,
    request: UploadRequest,
    service=Depends(get_document_service),
):
    """
    Upload files to a category.

    Returns 423 when the category or month is locked and 400 when a
    previously locked category is updated without a note.
    """
    selector = parse_selector(request.category, request.category_name)
    result = service.upload_files(
        client_id,
        year,
        month,
        selector,
        [f.to_record(request.actor) for f in request.files],
        actor=request.actor,
        actor_name=request.actor_name,
        note=request.note,
    )
    return format_success_response({**result, "message": "Files uploaded successfully"})


@document_router.post("/{year}/{month}/delete")
async def delete_file(
    year: int,
    month: int,
    client_id: str,
    request: DeleteFileRequest,
    service=Depends(get_document_service),
):
    """Delete a file. The response carries the descriptor of the removed object."""
    selector = parse_selector(request.category, request.category_name)
    result = service.delete_file(
        client_id,
        year,
        month,
        selector,
        request.file_name,
        actor=request.actor,
        reason=request.reason,
        actor_name=request.actor_name,
    )
    return format_success_response({**result, "message": "File deleted successfully"})


@document_router.post("/{year}/{month}/replace")
async def replace_file(
    year: int,
    month: int,
    client_id: str,
    request: ReplaceFileRequest,
    service=Depends(get_document_service),
):
    """Replace a file in place."""
    selector = parse_selector(request.category, request.category_name)
    result = service.replace_file(
        client_id,
        year,
        month,
        selector,
        request.file_name,
        request.new_file.to_record(request.actor),
        actor=request.actor,
        note=request.note,
        actor_name=request.actor_name,
    )
    return format_success_response({**result, "message": "File replaced successfully"})
