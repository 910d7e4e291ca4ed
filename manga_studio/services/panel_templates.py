"""Panel layout templates for new manga pages.

Each template is a list of (x, y, width, height) rectangles in percent of the
page canvas, in reading order.
"""

from dataclasses import dataclass

from manga_studio.models.manga_project import MangaPage, MangaPanel


@dataclass(frozen=True)
class PanelTemplate:
    id: str
    name: str
    category: str  # page / strip / 4koma / webtoon
    rects: tuple[tuple[float, float, float, float], ...]


PANEL_TEMPLATES: dict[str, PanelTemplate] = {
    t.id: t
    for t in (
        PanelTemplate(
            id="classic-page",
            name="Page classique",
            category="page",
            rects=(
                (5, 5, 90, 25),
                (5, 32, 43, 30),
                (52, 32, 43, 30),
                (5, 65, 28, 30),
                (36, 65, 28, 30),
                (67, 65, 28, 30),
            ),
        ),
        PanelTemplate(
            id="action-spread",
            name="Action",
            category="page",
            rects=(
                (5, 5, 25, 20),
                (70, 5, 25, 20),
                (15, 30, 70, 45),
                (5, 80, 20, 15),
                (30, 80, 40, 15),
                (75, 80, 20, 15),
            ),
        ),
        PanelTemplate(
            id="yonkoma",
            name="Yonkoma",
            category="4koma",
            rects=(
                (10, 5, 80, 20),
                (10, 27, 80, 20),
                (10, 49, 80, 20),
                (10, 71, 80, 20),
            ),
        ),
        PanelTemplate(
            id="webtoon-vertical",
            name="Webtoon",
            category="webtoon",
            rects=(
                (5, 2, 90, 15),
                (5, 19, 43, 12),
                (52, 19, 43, 12),
                (5, 33, 90, 18),
                (5, 53, 40, 15),
                (48, 53, 47, 15),
                (5, 70, 90, 25),
            ),
        ),
        PanelTemplate(
            id="minimal-3panel",
            name="Strip 3 cases",
            category="strip",
            rects=(
                (2, 20, 30, 60),
                (35, 20, 30, 60),
                (68, 20, 30, 60),
            ),
        ),
        PanelTemplate(
            id="three-strip",
            name="Trois bandes",
            category="page",
            rects=(
                (10, 10, 80, 35),
                (10, 49, 80, 20),
                (10, 71, 80, 20),
            ),
        ),
    )
}


class UnknownTemplateError(KeyError):
    """Raised for a template id that is not in PANEL_TEMPLATES."""


def get_template(template_id: str) -> PanelTemplate:
    try:
        return PANEL_TEMPLATES[template_id]
    except KeyError:
        raise UnknownTemplateError(template_id) from None


def list_templates(category: str | None = None) -> list[PanelTemplate]:
    return [t for t in PANEL_TEMPLATES.values() if category is None or t.category == category]


def build_template_panels(template_id: str) -> list[MangaPanel]:
    template = get_template(template_id)
    return [
        MangaPanel(id=str(i + 1), x=x, y=y, width=w, height=h, order=i)
        for i, (x, y, w, h) in enumerate(template.rects)
    ]


def build_template_page(template_id: str, page_number: int = 1, page_id: str | None = None) -> MangaPage:
    return MangaPage(
        id=page_id or str(page_number),
        page_number=page_number,
        order=page_number - 1,
        title=f"Page {page_number}",
        panels=build_template_panels(template_id),
    )
