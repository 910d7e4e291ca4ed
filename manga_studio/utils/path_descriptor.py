"""Compact stroke descriptors: ``M x,y L x,y L x,y ...``."""

import re

_SEGMENT_RE = re.compile(
    r"([ML])\s*(-?\d+(?:\.\d+)?(?:e-?\d+)?)\s*[,\s]\s*(-?\d+(?:\.\d+)?(?:e-?\d+)?)",
    re.IGNORECASE,
)


def format_coordinate(value: float) -> str:
    """Render 12.0 as "12" and 12.5 as "12.5"."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def move_to(x: float, y: float) -> str:
    return f"M{format_coordinate(x)},{format_coordinate(y)}"


def line_to(x: float, y: float) -> str:
    return f"L{format_coordinate(x)},{format_coordinate(y)}"


def parse_path(d: str) -> list[tuple[str, float, float]]:
    """Split a descriptor into (command, x, y) triples.

    Accepts both the editor's ``M10,20 L30,40`` form and the space separated
    ``M10 20L30 40`` form produced by vector canvases. Unknown commands are
    ignored.
    """
    return [
        (command.upper(), float(x), float(y))
        for command, x, y in _SEGMENT_RE.findall(d or "")
    ]
