"""
Practice Panel Notes Routes

Endpoints for reading notes, tracking who has seen them and adding notes.
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from domain.value_objects import ViewerKind

from .common import format_success_response, get_note_service, parse_selector

logger = logging.getLogger(__name__)

notes_router = APIRouter(prefix="/clients/{client_id}", tags=["Notes"])


class ViewerRequest(BaseModel):
    viewer_id: str = Field(..., min_length=1)
    viewer_kind: ViewerKind


class MarkAllViewedRequest(ViewerRequest):
    year: Optional[int] = None
    month: Optional[int] = None


class FileNoteRequest(BaseModel):
    category: str
    category_name: Optional[str] = None
    file_name: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    employee_id: str = Field(..., min_length=1)
    employee_name: Optional[str] = None


class MonthNoteRequest(BaseModel):
    text: str = Field(..., min_length=1)
    author_id: str = Field(..., min_length=1)
    author_name: Optional[str] = None


@notes_router.get("/notes")
async def list_notes(
    client_id: str,
    year: Optional[int] = None,
    month: Optional[int] = None,
    viewer_id: Optional[str] = None,
    viewer_kind: Optional[ViewerKind] = None,
    service=Depends(get_note_service),
):
    """
    List notes newest first.

    Each note carries its source (client or employee) and, when a viewer
    is given, whether that viewer has seen it.
    """
    notes = service.list_notes(client_id, year, month, viewer_id, viewer_kind)
    return format_success_response({"client_id": client_id, "notes": notes, "total": len(notes)})


@notes_router.get("/notes/unviewed-count")
async def unviewed_count(
    client_id: str,
    viewer_id: str = Query(..., min_length=1),
    viewer_kind: Optional[ViewerKind] = None,
    service=Depends(get_note_service),
):
    count = service.count_unviewed(client_id, viewer_id, viewer_kind)
    return format_success_response({"client_id": client_id, "viewer_id": viewer_id, "unviewed": count})


@notes_router.post("/notes/view-all")
async def mark_all_viewed(client_id: str, request: MarkAllViewedRequest, service=Depends(get_note_service)):
    """Mark every note (or one period's notes) as viewed."""
    counts = service.mark_all_viewed(
        client_id, request.viewer_id, request.viewer_kind, year=request.year, month=request.month,
    )
    return format_success_response({"client_id": client_id, **counts})


@notes_router.post("/notes/{note_id}/view")
async def mark_note_viewed(client_id: str, note_id: str, request: ViewerRequest, service=Depends(get_note_service)):
    result = service.mark_note_viewed(client_id, note_id, request.viewer_id, request.viewer_kind)
    return format_success_response(result)


@notes_router.post("/documents/{year}/{month}/file-notes", status_code=201)
async def add_file_note(
    client_id: str,
    year: int,
    month: int,
    request: FileNoteRequest,
    service=Depends(get_note_service),
):
    """Add staff feedback to a file."""
    selector = parse_selector(request.category, request.category_name)
    result = service.add_file_note(
        client_id, year, month, selector, request.file_name, request.text,
        request.employee_id, request.employee_name,
    )
    return format_success_response({**result, "message": "Note added successfully"})


@notes_router.post("/months/{year}/{month}/notes", status_code=201)
async def add_month_note(
    client_id: str,
    year: int,
    month: int,
    request: MonthNoteRequest,
    service=Depends(get_note_service),
):
    result = service.add_month_note(client_id, year, month, request.text, request.author_id, request.author_name)
    return format_success_response({**result, "message": "Note added successfully"})
