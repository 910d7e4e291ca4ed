"""Freehand stroke capture for one panel.

A small state machine driven by three pointer events::

    IDLE --down--> DRAWING --move--> DRAWING --up--> IDLE (stroke committed)

The recorder keeps a working list of strokes (initially the panel's stored
paths). Nothing is persisted until ``save`` hands the complete list to
``MangaProjectService.save_panel_drawings``.
"""

from __future__ import annotations

import enum
import time
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from manga_studio.models.manga_project import DrawingPath, DrawingTool
from manga_studio.utils.path_descriptor import line_to, move_to

if TYPE_CHECKING:
    from manga_studio.services.manga_project_service import MangaProjectService

ERASER_COLOR = "#FFFFFF"
ERASER_WIDTH_FACTOR = 3


class CaptureState(enum.Enum):
    IDLE = "idle"
    DRAWING = "drawing"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class StrokeRecorder:
    def __init__(
        self,
        existing_paths: Iterable[DrawingPath | dict] = (),
        color: str = "#000000",
        brush_size: float = 4,
        tool: DrawingTool = "pen",
        clock: Callable[[], int] = _epoch_ms,
    ) -> None:
        self.color = color
        self.brush_size = brush_size
        self.tool = tool
        self._clock = clock
        self._paths: list[DrawingPath] = [DrawingPath.model_validate(p) for p in existing_paths]
        self._state = CaptureState.IDLE
        self._descriptor = ""
        self._origin: tuple[float, float] | None = None
        self._moved = False

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def paths(self) -> list[DrawingPath]:
        return list(self._paths)

    @property
    def current_descriptor(self) -> str:
        return self._descriptor

    @property
    def can_undo(self) -> bool:
        return bool(self._paths)

    def touch_down(self, x: float, y: float) -> None:
        # A second down without an up restarts the stroke
        self._state = CaptureState.DRAWING
        self._descriptor = move_to(x, y)
        self._origin = (x, y)
        self._moved = False

    def touch_move(self, x: float, y: float) -> None:
        if self._state is not CaptureState.DRAWING:
            return
        self._descriptor = f"{self._descriptor} {line_to(x, y)}"
        self._moved = True

    def touch_up(self) -> DrawingPath | None:
        """Commit the stroke in progress; returns it, or None when idle."""
        if self._state is not CaptureState.DRAWING or not self._descriptor:
            self._reset_stroke()
            return None

        descriptor = self._descriptor
        if not self._moved and self._origin is not None:
            # A tap still has to render as a visible dot
            x, y = self._origin
            descriptor = f"{move_to(x, y)} {line_to(x + 1, y + 1)}"

        path = DrawingPath(
            id=self._next_stroke_id(),
            d=descriptor,
            stroke=ERASER_COLOR if self.tool == "eraser" else self.color,
            stroke_width=self.brush_size * ERASER_WIDTH_FACTOR if self.tool == "eraser" else self.brush_size,
            tool=self.tool,
            timestamp=self._clock(),
        )
        self._paths.append(path)
        self._reset_stroke()
        return path

    def cancel(self) -> None:
        """Drop the stroke in progress (gesture interrupted)."""
        self._reset_stroke()

    def undo(self) -> DrawingPath | None:
        if not self._paths:
            return None
        return self._paths.pop()

    def clear(self) -> None:
        """Discard every working stroke; stored data is untouched until save."""
        self._paths.clear()
        self._reset_stroke()

    async def save(
        self,
        service: MangaProjectService,
        project_id: str,
        page_id: str,
        panel_id: str,
    ) -> list[DrawingPath]:
        paths = self.paths
        await service.save_panel_drawings(project_id, page_id, panel_id, paths)
        return paths

    def _reset_stroke(self) -> None:
        self._state = CaptureState.IDLE
        self._descriptor = ""
        self._origin = None
        self._moved = False

    def _next_stroke_id(self) -> str:
        taken = {p.id for p in self._paths}
        candidate = self._clock()
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)
