from __future__ import annotations

"""Row/column placement for cards, bullets and thumbnails.

The origin is the top-left corner of the first cell. Rows grow downward,
so each row sits `cell_height + spacing_y` below the previous one. Nothing
here draws; callers get boxes and decide what goes in them.
"""

from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple, TypeVar


T = TypeVar("T")


@dataclass(frozen=True)
class GridSpec:
    per_row: int
    cell_width: float
    cell_height: float
    origin_x: float
    origin_y: float
    spacing_x: float = 0.0
    spacing_y: float = 0.0

    def __post_init__(self) -> None:
        if self.per_row < 1:
            raise ValueError("per_row must be >= 1")

    @property
    def row_pitch(self) -> float:
        return self.cell_height + self.spacing_y

    @property
    def span(self) -> float:
        """Width of one full row of cells."""
        return self.per_row * self.cell_width + (self.per_row - 1) * self.spacing_x

    def moved_to(self, origin_y: float) -> "GridSpec":
        return GridSpec(
            per_row=self.per_row,
            cell_width=self.cell_width,
            cell_height=self.cell_height,
            origin_x=self.origin_x,
            origin_y=origin_y,
            spacing_x=self.spacing_x,
            spacing_y=self.spacing_y,
        )


@dataclass(frozen=True)
class GridCell:
    index: int
    row: int
    col: int
    x: float
    # Top edge of the cell.
    y: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.y - self.height

    def mirrored(self, left: float, right: float) -> "GridCell":
        """Same cell reflected inside [left, right], for right-to-left rows."""
        x = left + right - self.x - self.width
        return GridCell(self.index, self.row, self.col, x, self.y, self.width, self.height)


def cell_at(index: int, spec: GridSpec) -> GridCell:
    row, col = divmod(index, spec.per_row)
    return GridCell(
        index=index,
        row=row,
        col=col,
        x=spec.origin_x + col * (spec.cell_width + spec.spacing_x),
        y=spec.origin_y - row * spec.row_pitch,
        width=spec.cell_width,
        height=spec.cell_height,
    )


def layout_grid(count: int, spec: GridSpec) -> List[GridCell]:
    return [cell_at(i, spec) for i in range(max(0, count))]


def row_count(count: int, per_row: int) -> int:
    return -(-max(0, count) // per_row)


def grid_height(count: int, spec: GridSpec) -> float:
    """Height from the origin to the bottom of the last row (no trailing spacing)."""
    rows = row_count(count, spec.per_row)
    if not rows:
        return 0.0
    return rows * spec.row_pitch - spec.spacing_y


def rows_that_fit(top: float, floor: float, spec: GridSpec) -> int:
    """How many full rows fit between `top` and `floor`."""
    available = top - floor
    if available < spec.cell_height:
        return 0
    return 1 + int((available - spec.cell_height) // spec.row_pitch)


def chunked(items: Sequence[T], size: int) -> Iterator[Tuple[int, Sequence[T]]]:
    """Yield (offset, slice) pairs of at most `size` items, in order."""
    step = max(1, size)
    for start in range(0, len(items), step):
        yield start, items[start:start + step]
