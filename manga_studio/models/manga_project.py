"""Pydantic models for manga projects: project -> pages -> panels -> strokes/bubbles.

Persisted documents use camelCase field names (``pageNumber``,
``strokeWidth``, ``currentPageId``); the models expose snake_case attributes
and accept either spelling on input.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from manga_studio.utils.data_cleaner import clean_data
from manga_studio.utils.path_descriptor import parse_path

DrawingTool = Literal["pen", "brush", "eraser"]
BubbleStyle = Literal["speech", "thought", "shout", "whisper"]
ProjectStatus = Literal["draft", "writing", "editing", "published"]

MANGA_TYPE = "manga"


class _DocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        """Camel-cased, sanitized dict ready for the document store."""
        return clean_data(self.model_dump(by_alias=True)) or {}


class DrawingPath(_DocumentModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    d: str
    stroke: str = "#000000"
    stroke_width: float = 4
    tool: DrawingTool = "pen"
    timestamp: int = 0  # epoch milliseconds

    def points(self) -> list[tuple[str, float, float]]:
        return parse_path(self.d)


class TextBubble(_DocumentModel):
    id: str
    x: float
    y: float
    width: float
    height: float
    text: str = ""
    font_size: float = 16
    font_family: str = "System"
    color: str = "#000000"
    background_color: str = "#FFFFFF"
    border_radius: float = 20
    rotation: float = 0
    style: BubbleStyle = "speech"


class MangaPanel(_DocumentModel):
    id: str
    # Percentages of the page canvas
    x: float = Field(ge=0, le=100)
    y: float = Field(ge=0, le=100)
    width: float = Field(ge=0, le=100)
    height: float = Field(ge=0, le=100)
    paths: list[DrawingPath] = []
    text_bubbles: list[TextBubble] = []
    background_image: str | None = None
    order: int = Field(default=0, ge=0)


def default_panel() -> MangaPanel:
    """Single panel covering the page with a 5% margin."""
    return MangaPanel(id="1", x=5, y=5, width=90, height=90, order=0)


class MangaPage(_DocumentModel):
    id: str
    page_number: int = Field(ge=1)
    panels: list[MangaPanel] = []
    title: str | None = None
    background_color: str | None = None
    order: int = Field(default=0, ge=0)

    def find_panel(self, panel_id: str) -> MangaPanel | None:
        return next((p for p in self.panels if p.id == panel_id), None)


def default_page(page_number: int = 1, page_id: str | None = None) -> MangaPage:
    return MangaPage(
        id=page_id or str(page_number),
        page_number=page_number,
        order=page_number - 1,
        title=f"Page {page_number}",
        panels=[default_panel()],
    )


class MangaProject(_DocumentModel):
    id: str
    title: str
    author_id: str
    author_uid: str
    author: str  # display name
    created_at: str | None = None
    updated_at: str | None = None
    status: ProjectStatus = "draft"
    pages: list[MangaPage] = []
    current_page_id: str | None = None
    template_id: str | None = None
    is_published: bool = False
    description: str | None = None
    cover_image: str | None = None
    genre: str | None = None
    tags: list[str] = []
    total_pages: int = 0
    type: Literal["manga"] = MANGA_TYPE
    published_at: str | None = None

    def find_page(self, page_id: str) -> MangaPage | None:
        return next((p for p in self.pages if p.id == page_id), None)

    def page_numbers(self) -> list[int]:
        return [p.page_number for p in self.pages]
