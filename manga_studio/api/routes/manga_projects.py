"""Manga project endpoints: projects, pages, panel content, publication."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from manga_studio.api.schemas.manga_projects import (
    AddPageRequest,
    CreateProjectRequest,
    CreateProjectResponse,
    CurrentPageRequest,
    PagePatch,
    ProjectPatch,
    PublishRequest,
    SaveBubblesRequest,
    SavePathsRequest,
    TemplateItem,
)
from manga_studio.db.document_store import SqliteDocumentStore
from manga_studio.models.manga_project import MangaPage, MangaProject
from manga_studio.services.manga_project_service import (
    InvalidPageOperationError,
    MangaNotFoundError,
    MangaProjectService,
)
from manga_studio.services.panel_templates import UnknownTemplateError, list_templates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/manga", tags=["manga"])


def get_manga_service() -> MangaProjectService:
    return MangaProjectService(SqliteDocumentStore())


@router.get("/templates")
async def get_templates(category: str | None = None):
    """Return the available panel layouts for new pages."""
    templates = [
        TemplateItem(id=t.id, name=t.name, category=t.category, panel_count=len(t.rects))
        for t in list_templates(category)
    ]
    return {"templates": templates}


@router.post("/projects", response_model=CreateProjectResponse, status_code=201)
async def create_project(
    req: CreateProjectRequest,
    service: MangaProjectService = Depends(get_manga_service),
):
    try:
        project_id = await service.create_project(
            title=req.title,
            author_id=req.author_id,
            author_uid=req.author_uid,
            author=req.author,
            pages=req.pages,
            template_id=req.template_id,
            description=req.description,
            genre=req.genre,
        )
    except InvalidPageOperationError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return CreateProjectResponse(id=project_id)


@router.get("/projects")
async def list_projects(
    author_uid: str = Query(..., min_length=1),
    service: MangaProjectService = Depends(get_manga_service),
):
    projects = await service.list_projects(author_uid)
    return {"projects": projects, "total": len(projects)}


@router.get("/projects/{project_id}", response_model=MangaProject)
async def get_project(
    project_id: str,
    service: MangaProjectService = Depends(get_manga_service),
):
    project = await service.get_project(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Projet non trouvé")
    return project


@router.patch("/projects/{project_id}")
async def update_project(
    project_id: str,
    updates: ProjectPatch,
    service: MangaProjectService = Depends(get_manga_service),
):
    """Patch top-level project fields (title, status, tags, ...)."""
    try:
        await service.update_project(project_id, updates)
    except MangaNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidPageOperationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True}


@router.put("/projects/{project_id}/current-page")
async def set_current_page(
    project_id: str,
    req: CurrentPageRequest,
    service: MangaProjectService = Depends(get_manga_service),
):
    try:
        await service.set_current_page(project_id, req.page_id)
    except MangaNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True}


@router.post("/projects/{project_id}/pages", response_model=MangaPage, status_code=201)
async def add_page(
    project_id: str,
    req: AddPageRequest,
    service: MangaProjectService = Depends(get_manga_service),
):
    try:
        return await service.add_page(
            project_id,
            insert_after_page_number=req.insert_after_page_number,
            template_id=req.template_id,
        )
    except (MangaNotFoundError, UnknownTemplateError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidPageOperationError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/projects/{project_id}/pages/{page_id}")
async def delete_page(
    project_id: str,
    page_id: str,
    service: MangaProjectService = Depends(get_manga_service),
):
    try:
        await service.delete_page(project_id, page_id)
    except MangaNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidPageOperationError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"ok": True}


@router.post("/projects/{project_id}/pages/{page_id}/duplicate", response_model=MangaPage, status_code=201)
async def duplicate_page(
    project_id: str,
    page_id: str,
    service: MangaProjectService = Depends(get_manga_service),
):
    try:
        return await service.duplicate_page(project_id, page_id)
    except MangaNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/projects/{project_id}/pages/{page_id}", response_model=MangaPage)
async def save_page(
    project_id: str,
    page_id: str,
    page_data: PagePatch,
    service: MangaProjectService = Depends(get_manga_service),
):
    try:
        return await service.save_page(project_id, page_id, page_data)
    except MangaNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/projects/{project_id}/pages/{page_id}/panels/{panel_id}/paths")
async def save_panel_drawings(
    project_id: str,
    page_id: str,
    panel_id: str,
    req: SavePathsRequest,
    service: MangaProjectService = Depends(get_manga_service),
):
    """Replace the panel's strokes with the complete list sent by the editor."""
    try:
        await service.save_panel_drawings(project_id, page_id, panel_id, req.paths)
    except MangaNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True, "path_count": len(req.paths)}


@router.put("/projects/{project_id}/pages/{page_id}/panels/{panel_id}/bubbles")
async def save_panel_text_bubbles(
    project_id: str,
    page_id: str,
    panel_id: str,
    req: SaveBubblesRequest,
    service: MangaProjectService = Depends(get_manga_service),
):
    try:
        await service.save_panel_text_bubbles(project_id, page_id, panel_id, req.bubbles)
    except MangaNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True, "bubble_count": len(req.bubbles)}


@router.post("/projects/{project_id}/publish")
async def publish_project(
    project_id: str,
    req: PublishRequest,
    service: MangaProjectService = Depends(get_manga_service),
):
    details = req.model_dump(exclude={"draft"}, exclude_none=True)
    try:
        if req.draft:
            await service.save_draft(project_id, details)
        else:
            await service.publish_project(project_id, details)
    except MangaNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True, "published": not req.draft}
