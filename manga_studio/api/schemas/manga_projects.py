"""Pydantic request/response schemas for manga project endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from manga_studio.models.manga_project import DrawingPath, MangaPage, TextBubble


class CreateProjectRequest(BaseModel):
    title: str = Field(min_length=1)
    author_id: str
    author_uid: str
    author: str
    pages: list[MangaPage] | None = None
    template_id: str | None = None
    description: str | None = None
    genre: str | None = None


class CreateProjectResponse(BaseModel):
    id: str


class AddPageRequest(BaseModel):
    insert_after_page_number: int | None = None
    template_id: str | None = None  # panel layout for the new page


class CurrentPageRequest(BaseModel):
    page_id: str


class SavePathsRequest(BaseModel):
    paths: list[DrawingPath]


class SaveBubblesRequest(BaseModel):
    bubbles: list[TextBubble]


class PublishRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    tags: list[str] | None = None
    genre: str | None = None
    cover_image: str | None = None
    draft: bool = False  # save details without publishing


class TemplateItem(BaseModel):
    id: str
    name: str
    category: str
    panel_count: int


ProjectPatch = dict[str, Any]
PagePatch = dict[str, Any]
