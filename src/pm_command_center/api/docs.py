"""Document and project link endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter

from pm_command_center.api.models import DocResponse, ProjectLinksResponse, SaveDocRequest
from pm_command_center.factory import get_repository
from pm_command_center.models import Doc

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/docs", response_model=list[DocResponse])
async def list_docs() -> list[DocResponse]:
    """List workspace documents."""
    docs = await get_repository().fetch_docs()
    return [DocResponse.from_doc(doc) for doc in docs]


@router.put("/docs/{doc_id}", response_model=DocResponse)
async def save_doc(doc_id: str, request: SaveDocRequest) -> DocResponse:
    """Insert or replace a document, stamping its modification time."""
    doc = Doc(
        id=doc_id,
        title=request.title,
        content=request.content,
        last_modified=datetime.now(),
        owner=request.owner,
        status=request.status,
    )
    if not await get_repository().save_doc(doc):
        logger.warning(f"Saving document {doc_id} reported failure")
    return DocResponse.from_doc(doc)


@router.delete("/docs/{doc_id}")
async def delete_doc(doc_id: str) -> dict[str, str]:
    """Delete a document by id."""
    if not await get_repository().delete_doc(doc_id):
        logger.warning(f"Deleting document {doc_id} reported failure")
    return {"status": "success", "doc_id": doc_id}


@router.get("/links", response_model=ProjectLinksResponse)
async def get_project_links() -> ProjectLinksResponse:
    """Return links to external project resources."""
    links = await get_repository().fetch_project_links()
    return ProjectLinksResponse(
        scope_doc=links.scope_doc,
        requirements_doc=links.requirements_doc,
        drive_folder=links.drive_folder,
    )
