from __future__ import annotations

import math
from dataclasses import dataclass

GRID_PADDING_PX = 8.0
MIN_LOGO_PX = 20.0


@dataclass(frozen=True)
class ClusterBox:
    width: float
    height: float
    cols: int
    rows: int
    logo_size: float
    cells: list[tuple[float, float]]  # logo centres relative to the box centre


def grid_shape(count: int, width_add: float, height_add: float) -> tuple[int, int]:
    """
    (cols, rows) for `count` logos: extra columns when width growth dominates,
    extra rows when height growth dominates, otherwise the balanced square grid.
    """
    if count <= 0:
        return 1, 1
    if width_add > height_add:
        cols = math.ceil(math.sqrt(count) * (1 + width_add / 200.0))
    elif height_add > width_add:
        rows = math.ceil(math.sqrt(count) * (1 + height_add / 200.0))
        cols = math.ceil(count / max(1, rows))
    else:
        cols = math.ceil(math.sqrt(count))
    cols = max(1, min(cols, count))
    rows = max(1, math.ceil(count / cols))
    return cols, rows


def cluster_box(
    count: int,
    *,
    size: float,
    width_add: float = 0.0,
    height_add: float = 0.0,
    padding: float = GRID_PADDING_PX,
) -> ClusterBox:
    cols, rows = grid_shape(count, width_add, height_add)
    # Never smaller than one minimum logo with padding on both sides.
    min_box = MIN_LOGO_PX + 2 * padding
    box_w = max(size * 1.5 + width_add, min_box)
    box_h = max(size * 1.2 + height_add, min_box)

    fit = min(
        (box_w - padding * (cols + 1)) / cols,
        (box_h - padding * (rows + 1)) / rows,
    )
    logo = max(max(MIN_LOGO_PX, min(box_w, box_h) * 0.2), fit)

    grid_w = logo * cols + padding * (cols - 1)
    grid_h = logo * rows + padding * (rows - 1)
    cells = [
        (
            -grid_w / 2.0 + (i % cols) * (logo + padding) + logo / 2.0,
            -grid_h / 2.0 + (i // cols) * (logo + padding) + logo / 2.0,
        )
        for i in range(count)
    ]
    return ClusterBox(
        width=box_w, height=box_h, cols=cols, rows=rows, logo_size=logo, cells=cells
    )
