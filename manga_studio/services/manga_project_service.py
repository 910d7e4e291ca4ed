"""Manga project persistence and page/panel mutation protocol.

Every mutating operation is a read-modify-write of the whole project
document: fetch the latest copy, rebuild the pages array, write it back with a
top-level merge. Nothing guards against a concurrent writer; the last write
wins, including for the pages array as a whole.

Page numbering invariant: after add/delete/duplicate the page numbers are
exactly 1..N. Insertion shifts only the pages at or after the new number,
deletion renumbers every remaining page, duplication appends at the end.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel

from manga_studio.db.document_store import SERVER_TIMESTAMP, DocumentNotFoundError, DocumentStore
from manga_studio.infra.config import PROJECTS_COLLECTION
from manga_studio.models.manga_project import (
    MANGA_TYPE,
    DrawingPath,
    MangaPage,
    MangaProject,
    TextBubble,
    default_page,
)
from manga_studio.services.panel_templates import build_template_page
from manga_studio.utils.data_cleaner import clean_data

logger = logging.getLogger(__name__)

# Page fields owned by the numbering operations
_PAGE_LAYOUT_FIELDS = frozenset({"id", "pageNumber", "order"})

# Project fields written only by creation and the page operations
_LOCKED_PROJECT_FIELDS = frozenset({"id", "type", "pages", "totalPages", "authorUid", "createdAt"})

_PUBLISH_DETAIL_FIELDS = frozenset({"title", "description", "tags", "genre", "coverImage"})


class MangaProjectError(Exception):
    """Base exception for manga project operations."""


class MangaNotFoundError(MangaProjectError, LookupError):
    """A project, page or panel id did not resolve."""


class ProjectNotFoundError(MangaNotFoundError):
    pass


class PageNotFoundError(MangaNotFoundError):
    pass


class PanelNotFoundError(MangaNotFoundError):
    pass


class InvalidPageOperationError(MangaProjectError, ValueError):
    """The requested change would break the project's page structure."""


class LastPageDeletionError(InvalidPageOperationError):
    pass


class InvalidPageNumberError(InvalidPageOperationError):
    pass


def _camel_key(key: str) -> str:
    if "_" not in key:
        return key
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _to_document_value(value: Any) -> Any:
    """Dump pydantic models (by alias) anywhere inside a value tree."""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, Mapping):
        return {k: _to_document_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_document_value(v) for v in value]
    return value


def _prepare_fields(fields: Mapping[str, Any]) -> dict:
    return {_camel_key(k): _to_document_value(v) for k, v in fields.items()}


def _next_page_id(pages: Iterable[MangaPage]) -> str:
    """Next free small sequential id ("1", "2", ...)."""
    taken = {p.id for p in pages}
    numeric = [int(i) for i in taken if i.isdigit()]
    candidate = max(numeric, default=0) + 1
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


def _normalize_initial_pages(pages: Iterable[MangaPage | dict]) -> list[MangaPage]:
    """Validate caller-supplied pages and renumber them 1..N in page order."""
    validated = [MangaPage.model_validate(p) for p in pages]
    if not validated:
        raise InvalidPageOperationError("a project needs at least one page")
    ids = [p.id for p in validated]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise InvalidPageOperationError(f"duplicate page ids: {duplicates}")

    validated.sort(key=lambda p: (p.page_number, p.order))
    return [
        p.model_copy(update={"page_number": index + 1, "order": index})
        for index, p in enumerate(validated)
    ]


class MangaProjectService:
    """Stateless operations over manga project documents in one collection."""

    def __init__(self, store: DocumentStore, collection: str = PROJECTS_COLLECTION) -> None:
        self._store = store
        self._collection = collection

    # ── Projects ──────────────────────────────────────

    async def create_project(
        self,
        title: str,
        author_id: str,
        author_uid: str,
        author: str,
        pages: list[MangaPage | dict] | None = None,
        template_id: str | None = None,
        description: str | None = None,
        genre: str | None = None,
    ) -> str:
        """Create a draft project and return its store-generated id."""
        if pages is None:
            initial_pages = [default_page()]
        else:
            initial_pages = _normalize_initial_pages(pages)

        project_id = self._store.generate_id()
        project = MangaProject(
            id=project_id,
            title=title,
            author_id=author_id,
            author_uid=author_uid,
            author=author,
            status="draft",
            pages=initial_pages,
            current_page_id=initial_pages[0].id,
            template_id=template_id,
            is_published=False,
            description=description,
            genre=genre or "Manga",
            tags=[],
            total_pages=len(initial_pages),
        )
        document = project.to_document()
        document["createdAt"] = SERVER_TIMESTAMP
        document["updatedAt"] = SERVER_TIMESTAMP

        await self._store.create(self._collection, document, doc_id=project_id)
        logger.info("Created manga project %s (%d page(s))", project_id, len(initial_pages))
        return project_id

    async def get_project(self, project_id: str) -> MangaProject | None:
        """Fetch a project; None if absent or if the document is not a manga."""
        data = await self._store.get(self._collection, project_id)
        if data is None:
            return None
        if data.get("type") != MANGA_TYPE:
            logger.warning(
                "Document %s/%s is not a manga project (type=%r)",
                self._collection, project_id, data.get("type"),
            )
            return None
        data.setdefault("id", project_id)
        return MangaProject.model_validate(data)

    async def list_projects(self, author_uid: str) -> list[MangaProject]:
        """All manga projects of one author, most recently updated first."""
        documents = await self._store.query(self._collection, "authorUid", author_uid)
        projects = [
            MangaProject.model_validate(doc)
            for doc in documents
            if doc.get("type") == MANGA_TYPE
        ]
        projects.sort(key=lambda p: p.updated_at or "", reverse=True)
        return projects

    async def update_project(self, project_id: str, updates: Mapping[str, Any]) -> None:
        """Merge top-level fields into a project document.

        Keys may be snake_case or camelCase; pydantic values are dumped by
        alias. Nested plain dicts are stored as given, so they must already
        use camelCase keys. The page list and the identity fields
        (``_LOCKED_PROJECT_FIELDS``) are refused; the page operations own
        them.
        """
        fields = _prepare_fields(updates)
        locked = _LOCKED_PROJECT_FIELDS.intersection(fields)
        if locked:
            raise InvalidPageOperationError(
                f"project fields {sorted(locked)} cannot be updated directly"
            )
        await self._merge(project_id, fields)

    async def _merge(self, project_id: str, fields: Mapping[str, Any]) -> None:
        payload = clean_data(_prepare_fields(fields))
        if not payload:
            logger.debug("Nothing to update on project %s", project_id)
            return
        try:
            await self._store.update(self._collection, project_id, payload)
        except DocumentNotFoundError as e:
            raise ProjectNotFoundError(f"project {project_id} not found") from e

    async def set_current_page(self, project_id: str, page_id: str) -> None:
        await self._merge(
            project_id,
            {"currentPageId": page_id, "updatedAt": SERVER_TIMESTAMP},
        )
        logger.debug("Project %s current page -> %s", project_id, page_id)

    async def publish_project(self, project_id: str, details: Mapping[str, Any] | None = None) -> None:
        """Mark a project published, optionally updating its public details."""
        await self._require_project(project_id)
        fields = self._publish_details(details)
        fields.update(
            status="published",
            isPublished=True,
            publishedAt=SERVER_TIMESTAMP,
            updatedAt=SERVER_TIMESTAMP,
        )
        await self._merge(project_id, fields)
        logger.info("Published manga project %s", project_id)

    async def save_draft(self, project_id: str, details: Mapping[str, Any] | None = None) -> None:
        """Store publication details while keeping the project unpublished."""
        await self._require_project(project_id)
        fields = self._publish_details(details)
        fields.update(status="draft", isPublished=False, updatedAt=SERVER_TIMESTAMP)
        await self._merge(project_id, fields)

    # ── Pages ─────────────────────────────────────────

    async def add_page(
        self,
        project_id: str,
        insert_after_page_number: int | None = None,
        template_id: str | None = None,
    ) -> MangaPage:
        """Insert a new page and return it.

        Without ``insert_after_page_number`` the page is appended. Otherwise
        it takes number ``insert_after_page_number + 1`` and every page at or
        after that number moves up by one.
        """
        project = await self._require_project(project_id)
        count = len(project.pages)

        if insert_after_page_number is not None and not 0 <= insert_after_page_number <= count:
            raise InvalidPageNumberError(
                f"cannot insert after page {insert_after_page_number} in a {count}-page project"
            )

        if insert_after_page_number is None:
            new_number = count + 1
        else:
            new_number = insert_after_page_number + 1

        page_id = _next_page_id(project.pages)
        if template_id:
            new_page = build_template_page(template_id, new_number, page_id)
        else:
            new_page = default_page(new_number, page_id)

        pages = list(project.pages)
        if insert_after_page_number is not None:
            pages = [
                p.model_copy(update={"page_number": p.page_number + 1, "order": p.order + 1})
                if p.page_number >= new_number
                else p
                for p in pages
            ]
        pages.append(new_page)
        pages.sort(key=lambda p: p.page_number)

        await self._write_pages(project_id, pages)
        logger.info("Added page %s (#%d) to project %s", page_id, new_number, project_id)
        return new_page

    async def delete_page(self, project_id: str, page_id: str) -> None:
        project = await self._require_project(project_id)
        if len(project.pages) <= 1:
            raise LastPageDeletionError("cannot delete the last page of a project")
        if project.find_page(page_id) is None:
            raise PageNotFoundError(f"page {page_id} not found in project {project_id}")

        remaining = [p for p in project.pages if p.id != page_id]
        pages = [
            p.model_copy(update={"page_number": index + 1, "order": index})
            for index, p in enumerate(remaining)
        ]

        current_page_id = project.current_page_id
        if current_page_id == page_id:
            current_page_id = pages[0].id if pages else None

        await self._write_pages(project_id, pages, currentPageId=current_page_id)
        logger.info("Deleted page %s from project %s", page_id, project_id)

    async def duplicate_page(self, project_id: str, page_id: str) -> MangaPage:
        """Copy a page (panels, strokes, bubbles) to the end of the project."""
        project = await self._require_project(project_id)
        source = project.find_page(page_id)
        if source is None:
            raise PageNotFoundError(f"page {page_id} not found in project {project_id}")

        new_number = len(project.pages) + 1
        source_title = source.title or f"Page {source.page_number}"
        duplicate = source.model_copy(
            deep=True,
            update={
                "id": _next_page_id(project.pages),
                "page_number": new_number,
                "order": new_number - 1,
                "title": f"{source_title} (Copie)",
            },
        )

        await self._write_pages(project_id, [*project.pages, duplicate])
        logger.info("Duplicated page %s of project %s as %s", page_id, project_id, duplicate.id)
        return duplicate

    async def save_page(self, project_id: str, page_id: str, page_data: Mapping[str, Any]) -> MangaPage:
        """Merge fields (title, backgroundColor, panels, ...) into one page."""
        fields = _prepare_fields(page_data)
        locked = _PAGE_LAYOUT_FIELDS.intersection(fields)
        if locked:
            raise InvalidPageOperationError(
                f"page fields {sorted(locked)} are managed by page insertion and deletion"
            )

        project = await self._require_project(project_id)
        page = project.find_page(page_id)
        if page is None:
            raise PageNotFoundError(f"page {page_id} not found in project {project_id}")

        document = page.to_document()
        document.update(clean_data(fields) or {})
        updated = MangaPage.model_validate(document)

        pages = [updated if p.id == page_id else p for p in project.pages]
        await self._write_pages(project_id, pages)
        return updated

    # ── Panels ────────────────────────────────────────

    async def save_panel_drawings(
        self,
        project_id: str,
        page_id: str,
        panel_id: str,
        paths: Iterable[DrawingPath | dict],
    ) -> None:
        """Replace a panel's strokes with ``paths`` (no merge with what is stored)."""
        new_paths = [DrawingPath.model_validate(p) for p in paths]
        await self._replace_panel_content(project_id, page_id, panel_id, paths=new_paths)
        logger.debug(
            "Saved %d stroke(s) on %s/%s/%s", len(new_paths), project_id, page_id, panel_id,
        )

    async def save_panel_text_bubbles(
        self,
        project_id: str,
        page_id: str,
        panel_id: str,
        bubbles: Iterable[TextBubble | dict],
    ) -> None:
        """Replace a panel's text bubbles with ``bubbles``."""
        new_bubbles = [TextBubble.model_validate(b) for b in bubbles]
        await self._replace_panel_content(project_id, page_id, panel_id, text_bubbles=new_bubbles)

    # ── Internals ─────────────────────────────────────

    async def _require_project(self, project_id: str) -> MangaProject:
        project = await self.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(f"project {project_id} not found")
        return project

    async def _write_pages(self, project_id: str, pages: list[MangaPage], **extra: Any) -> None:
        await self._merge(
            project_id,
            {
                "pages": pages,
                "totalPages": len(pages),
                "updatedAt": SERVER_TIMESTAMP,
                **extra,
            },
        )

    async def _replace_panel_content(
        self, project_id: str, page_id: str, panel_id: str, **content: Any,
    ) -> None:
        project = await self._require_project(project_id)
        page = project.find_page(page_id)
        if page is None:
            raise PageNotFoundError(f"page {page_id} not found in project {project_id}")
        if page.find_panel(panel_id) is None:
            raise PanelNotFoundError(f"panel {panel_id} not found on page {page_id}")

        panels = [
            panel.model_copy(update=content) if panel.id == panel_id else panel
            for panel in page.panels
        ]
        updated_page = page.model_copy(update={"panels": panels})
        pages = [updated_page if p.id == page_id else p for p in project.pages]
        await self._write_pages(project_id, pages)

    @staticmethod
    def _publish_details(details: Mapping[str, Any] | None) -> dict:
        fields = _prepare_fields(details or {})
        unknown = set(fields) - _PUBLISH_DETAIL_FIELDS
        if unknown:
            raise ValueError(f"unsupported publication fields: {sorted(unknown)}")
        return fields
