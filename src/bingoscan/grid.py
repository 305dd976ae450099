"""
Grid location: partition fragment positions into a 5x5 lattice.

Three strategies, tried in priority order (only one runs per call):

1. HEADER      - Column pitch from B/I/N/G/O header letters (>= 3 found).
                 Fragments landing outside the lattice are dropped.
2. DENSITY     - Lattice geometry from number-bearing fragments only, when
                 there are enough of them (>= 20). Stands in for clustering.
3. BOUNDING_BOX - Lattice over the bounding box of every fragment, expanded
                 by a margin on each side. Out-of-range cells are clamped.

All strategies assume a roughly axis-aligned card with uniform cells; there
is no skew or perspective correction.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .fragments import Fragment
from .recognition import GRID_SIZE, extract_numbers, is_header_text

log = logging.getLogger(__name__)


Cells = List[List[List[Fragment]]]


class GridStrategy(Enum):
    """Which lattice strategy produced a layout."""

    HEADER = "header"
    DENSITY = "density"
    BOUNDING_BOX = "bounding_box"


def _empty_cells() -> Cells:
    return [[[] for _ in range(GRID_SIZE)] for _ in range(GRID_SIZE)]


@dataclass
class GridLayout:
    """Fragments bucketed into a 5x5 lattice."""

    strategy: GridStrategy
    origin: Tuple[float, float]  # (x, y) of the lattice's top-left corner
    cell_size: Tuple[float, float]  # (width, height)
    cells: Cells = field(default_factory=_empty_cells)  # [row][col] -> fragments

    def cell(self, row: int, col: int) -> List[Fragment]:
        return self.cells[row][col]

    @property
    def assigned_count(self) -> int:
        return sum(len(c) for row in self.cells for c in row)


# ---------------------------------------------------------------------------
# Geometry helpers
# ---------------------------------------------------------------------------


def bounding_box(fragments: Sequence[Fragment]) -> Tuple[float, float, float, float]:
    """(min_x, min_y, max_x, max_y) over all fragment polygons."""
    boxes = np.array([f.bbox for f in fragments], dtype=float)
    return (
        float(boxes[:, 0].min()),
        float(boxes[:, 1].min()),
        float(boxes[:, 2].max()),
        float(boxes[:, 3].max()),
    )


def _assign(
    fragments: Sequence[Fragment],
    origin: Tuple[float, float],
    cell_size: Tuple[float, float],
    clamp: bool,
) -> Cells:
    """Bucket fragment centers into lattice cells.

    With ``clamp`` every fragment lands in the nearest valid cell; without
    it, fragments outside the lattice are dropped.
    """
    cells = _empty_cells()
    if not fragments:
        return cells

    centers = np.array([f.center for f in fragments], dtype=float)
    cols = np.floor((centers[:, 0] - origin[0]) / cell_size[0]).astype(int)
    rows = np.floor((centers[:, 1] - origin[1]) / cell_size[1]).astype(int)

    if clamp:
        cols = np.clip(cols, 0, GRID_SIZE - 1)
        rows = np.clip(rows, 0, GRID_SIZE - 1)

    dropped = 0
    for fragment, row, col in zip(fragments, rows, cols):
        if 0 <= row < GRID_SIZE and 0 <= col < GRID_SIZE:
            cells[int(row)][int(col)].append(fragment)
        else:
            dropped += 1

    if dropped:
        log.debug("Dropped %d fragments outside the lattice", dropped)
    return cells


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def _header_layout(
    fragments: Sequence[Fragment],
    reference: Sequence[Fragment],
    min_header_count: int,
) -> Optional[GridLayout]:
    headers = sorted(
        (f for f in reference if is_header_text(f.text)),
        key=lambda f: f.center[0],
    )
    log.debug("Found %d potential column headers", len(headers))
    if len(headers) < min_header_count or not fragments:
        return None

    header_xs = [h.center[0] for h in headers]
    col_width = (header_xs[-1] - header_xs[0]) / (len(header_xs) - 1)

    _, min_y, _, max_y = bounding_box(fragments)
    row_height = (max_y - min_y) / GRID_SIZE

    if col_width <= 0 or row_height <= 0:
        log.debug("Degenerate header geometry, falling back")
        return None

    origin = (header_xs[0] - col_width / 2, min_y)
    cell_size = (col_width, row_height)
    return GridLayout(
        strategy=GridStrategy.HEADER,
        origin=origin,
        cell_size=cell_size,
        cells=_assign(fragments, origin, cell_size, clamp=False),
    )


def _box_geometry(
    fragments: Sequence[Fragment], margin: float
) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """Origin and cell size of a lattice over the expanded bounding box."""
    min_x, min_y, max_x, max_y = bounding_box(fragments)
    width = max_x - min_x
    height = max_y - min_y

    # A single row/column of text has no extent along one axis
    if width <= 0:
        min_x, width = min_x - 0.5, 1.0
    if height <= 0:
        min_y, height = min_y - 0.5, 1.0

    min_x -= width * margin
    min_y -= height * margin
    width *= 1 + 2 * margin
    height *= 1 + 2 * margin

    return (min_x, min_y), (width / GRID_SIZE, height / GRID_SIZE)


def _box_layout(
    fragments: Sequence[Fragment],
    geometry_source: Sequence[Fragment],
    margin: float,
    strategy: GridStrategy,
) -> GridLayout:
    origin, cell_size = _box_geometry(geometry_source, margin)
    return GridLayout(
        strategy=strategy,
        origin=origin,
        cell_size=cell_size,
        cells=_assign(fragments, origin, cell_size, clamp=True),
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def locate_grid(
    fragments: Sequence[Fragment],
    reference: Optional[Sequence[Fragment]] = None,
    min_header_count: int = 3,
    density_min_fragments: int = 20,
    margin: float = 0.10,
) -> GridLayout:
    """
    Partition fragments into a 5x5 lattice of cells.

    Args:
        fragments: Accepted fragments to place
        reference: Fragments searched for B/I/N/G/O headers. Headers are
            removed by the token filter, so callers pass the raw fragment
            list here. Defaults to ``fragments``.
        min_header_count: Headers needed for the header strategy
        density_min_fragments: Number-bearing fragments needed for the
            density strategy
        margin: Fractional bounding-box expansion on each side

    Returns:
        GridLayout recording the strategy used
    """
    if not fragments:
        return GridLayout(
            strategy=GridStrategy.BOUNDING_BOX, origin=(0.0, 0.0), cell_size=(0.0, 0.0)
        )

    if reference is None:
        reference = fragments

    layout = _header_layout(fragments, reference, min_header_count)

    if layout is None:
        numeric = [f for f in fragments if extract_numbers(f.text)]
        if len(numeric) >= density_min_fragments:
            layout = _box_layout(fragments, numeric, margin, GridStrategy.DENSITY)
        else:
            layout = _box_layout(fragments, fragments, margin, GridStrategy.BOUNDING_BOX)

    log.debug(
        "Grid strategy %s: origin=(%.1f, %.1f) cell=%.1f x %.1f, %d/%d fragments placed",
        layout.strategy.value,
        layout.origin[0],
        layout.origin[1],
        layout.cell_size[0],
        layout.cell_size[1],
        layout.assigned_count,
        len(fragments),
    )
    return layout
