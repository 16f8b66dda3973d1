# Model/grid_state.py
from __future__ import annotations
import math
from dataclasses import dataclass, replace
from typing import Optional

from Model.errors import InputError


def _finite(value, name: str) -> float:
    # json.loads accepts NaN and Infinity
    v = float(value)
    if not math.isfinite(v):
        raise InputError(f"\"{name}\" must be a finite number, got {value!r}")
    return v


@dataclass(frozen=True)
class GridLine:
    position: float          # y for horizontal lines, x for vertical lines (raster pixels)
    is_horizontal: bool

    def to_dict(self) -> dict:
        return {"position": self.position, "isHorizontal": self.is_horizontal}

    @classmethod
    def from_dict(cls, d: dict) -> "GridLine":
        return cls(_finite(d["position"], "position"), bool(d["isHorizontal"]))


@dataclass(frozen=True)
class ImageBounds:
    width: int
    height: int

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise InputError(f"Image bounds must be non-negative, got {self.width}x{self.height}")

    def bound_for(self, is_horizontal: bool) -> int:
        # Horizontal lines move along y, vertical lines along x
        return self.height if is_horizontal else self.width


@dataclass(frozen=True)
class CellRectangle:
    x: float
    y: float
    width: float
    height: float

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, d: dict) -> "CellRectangle":
        return cls(*(_finite(d[k], k) for k in ("x", "y", "width", "height")))


@dataclass(frozen=True)
class InteractionState:
    active_index: Optional[int] = None    # the line being dragged
    hovered_index: Optional[int] = None   # nearest line within the hit threshold


def clamp_position(position: float, bound: float) -> float:
    return max(0.0, min(float(position), float(bound)))


def regenerate_lines(rows: int, columns: int, bounds: ImageBounds) -> list[GridLine]:
    """
    Evenly spaced default lines: rows-1 horizontal lines first, then
    columns-1 vertical lines.
    """
    lines = [GridLine((i / rows) * bounds.height, True) for i in range(1, rows)]
    lines += [GridLine((j / columns) * bounds.width, False) for j in range(1, columns)]
    return lines


class GridModel:
    """
    Canonical, stable-indexed list of movable grid lines.

    The slot of a line is its identity: the list is never re-sorted, even when
    a drag moves a line past its neighbours.
    """

    def __init__(self, rows: int = 0, columns: int = 0, bounds: ImageBounds | None = None):
        self._rows = rows
        self._columns = columns
        self._bounds = bounds
        self._lines: list[GridLine] = []
        if bounds is not None and rows > 0 and columns > 0:
            self.regenerate(rows, columns, bounds)

    # ---------- Public API ---------
    @property
    def lines(self) -> list[GridLine]:
        # Snapshot, the renderer and the backends never touch the canonical list
        return list(self._lines)

    @property
    def bounds(self) -> ImageBounds | None:
        return self._bounds

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def __getitem__(self, index: int) -> GridLine:
        return self._lines[index]

    def regenerate(self, rows: int, columns: int, bounds: ImageBounds) -> list[GridLine]:
        self._rows = rows
        self._columns = columns
        self._bounds = bounds
        self._lines = regenerate_lines(rows, columns, bounds)
        return self.lines

    def update_line(self, index: int, new_position: float) -> list[GridLine]:
        line = self._lines[index]
        bound = self._bounds.bound_for(line.is_horizontal)
        self._lines[index] = replace(line, position=clamp_position(new_position, bound))
        return self.lines

    def reset(self) -> list[GridLine]:
        # Drop every custom position, back to the even defaults
        if self._bounds is None:
            self._lines = []
            return self.lines
        return self.regenerate(self._rows, self._columns, self._bounds)

    def clear(self):
        self._bounds = None
        self._lines = []
