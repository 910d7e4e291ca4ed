"""Tests for manga project models, templates and path descriptors."""

import pytest
from pydantic import ValidationError

from manga_studio.models.manga_project import (
    DrawingPath,
    MangaPage,
    MangaPanel,
    MangaProject,
    default_page,
    default_panel,
)
from manga_studio.services.panel_templates import (
    PANEL_TEMPLATES,
    UnknownTemplateError,
    build_template_page,
    build_template_panels,
    list_templates,
)
from manga_studio.utils.path_descriptor import format_coordinate, parse_path


def test_default_page_shape():
    page = default_page()
    assert (page.id, page.page_number, page.order, page.title) == ("1", 1, 0, "Page 1")
    assert page.panels == [default_panel()]


def test_documents_use_camel_case_and_skip_missing_fields():
    page = MangaPage(id="1", page_number=1, panels=[default_panel()])
    document = page.to_document()
    assert document["pageNumber"] == 1
    assert "title" not in document
    assert document["panels"][0]["textBubbles"] == []
    assert "backgroundImage" not in document["panels"][0]


def test_models_accept_both_spellings():
    a = MangaPage.model_validate({"id": "1", "pageNumber": 3, "order": 2})
    b = MangaPage(id="1", page_number=3, order=2)
    assert a == b


def test_panel_coordinates_are_percentages():
    with pytest.raises(ValidationError):
        MangaPanel(id="1", x=-1, y=0, width=10, height=10)
    with pytest.raises(ValidationError):
        MangaPanel(id="1", x=0, y=0, width=120, height=10)


def test_page_numbers_start_at_one():
    with pytest.raises(ValidationError):
        MangaPage(id="1", page_number=0)


def test_drawing_path_is_immutable():
    path = DrawingPath(id="1", d="M0,0 L1,1")
    with pytest.raises(ValidationError):
        path.d = "M5,5"


def test_drawing_path_rejects_unknown_tool():
    with pytest.raises(ValidationError):
        DrawingPath(id="1", d="M0,0", tool="spray")


def test_project_rejects_other_document_types():
    with pytest.raises(ValidationError):
        MangaProject.model_validate(
            {"id": "x", "title": "t", "authorId": "a", "authorUid": "u", "author": "n", "type": "book"}
        )


def test_find_helpers():
    project = MangaProject(
        id="p", title="t", author_id="a", author_uid="u", author="n",
        pages=[default_page(1), default_page(2)],
    )
    assert project.find_page("2").page_number == 2
    assert project.find_page("9") is None
    assert project.find_page("1").find_panel("1") is not None
    assert project.find_page("1").find_panel("2") is None
    assert project.page_numbers() == [1, 2]


# ─── Path descriptors ───────────────────────────────────────────


def test_format_coordinate():
    assert format_coordinate(12.0) == "12"
    assert format_coordinate(12) == "12"
    assert format_coordinate(12.5) == "12.5"


def test_parse_editor_and_canvas_forms():
    assert parse_path("M10,20 L30,40") == [("M", 10, 20), ("L", 30, 40)]
    assert parse_path("M10 20L30.5 40") == [("M", 10, 20), ("L", 30.5, 40)]
    assert parse_path("") == []


# ─── Templates ──────────────────────────────────────────────────


def test_every_template_fits_the_canvas():
    for template in PANEL_TEMPLATES.values():
        for x, y, w, h in template.rects:
            assert 0 <= x and x + w <= 100, template.id
            assert 0 <= y and y + h <= 100, template.id


def test_build_template_panels_orders_panels():
    panels = build_template_panels("classic-page")
    assert [p.id for p in panels] == ["1", "2", "3", "4", "5", "6"]
    assert [p.order for p in panels] == list(range(6))


def test_build_template_page():
    page = build_template_page("three-strip", page_number=4, page_id="9")
    assert (page.id, page.page_number, page.order, page.title) == ("9", 4, 3, "Page 4")
    assert len(page.panels) == 3


def test_list_templates_by_category():
    assert [t.id for t in list_templates("4koma")] == ["yonkoma"]
    assert len(list_templates()) == len(PANEL_TEMPLATES)


def test_unknown_template():
    with pytest.raises(UnknownTemplateError):
        build_template_panels("creative-circles")
