from dataclasses import dataclass
from typing import Tuple

from dashboard_layout.config import DEFAULT_CONTAINER_PADDING, DEFAULT_MARGIN, DEFAULT_ROW_HEIGHT


@dataclass(frozen=True)
class GridMetrics:
    """
    Pixel geometry of the grid at one breakpoint.

    Columns share the width left after the container padding on both sides
    and the margins between columns. Rows have a fixed height.
    """
    cols: int
    width: float
    row_height: int = DEFAULT_ROW_HEIGHT
    margin: Tuple[int, int] = DEFAULT_MARGIN
    container_padding: Tuple[int, int] = DEFAULT_CONTAINER_PADDING

    def __post_init__(self):
        if self.cols < 1:
            raise ValueError(f"cols must be positive, got {self.cols}")
        if self.row_height < 1:
            raise ValueError(f"row_height must be positive, got {self.row_height}")

    @property
    def column_width(self) -> float:
        usable = self.width - self.container_padding[0] * 2 - self.margin[0] * (self.cols - 1)
        return max(usable / self.cols, 0.0)

    def cell_at(self, px: float, py: float, w: int = 1) -> Tuple[int, int]:
        """Grid cell under a pixel position, clamped so a *w*-wide item still fits."""
        step_x = self.column_width + self.margin[0]
        step_y = self.row_height + self.margin[1]
        x = round((px - self.container_padding[0]) / step_x) if step_x > 0 else 0
        y = round((py - self.container_padding[1]) / step_y)
        w = min(max(w, 1), self.cols)
        return min(max(int(x), 0), self.cols - w), max(int(y), 0)

    def cell_origin(self, x: int, y: int) -> Tuple[float, float]:
        """Top-left pixel of cell (x, y)."""
        return (
            self.container_padding[0] + x * (self.column_width + self.margin[0]),
            self.container_padding[1] + y * (self.row_height + self.margin[1]),
        )

    def pixel_size(self, item) -> Tuple[float, float]:
        """Rendered (width, height) of an item, margins between its cells included."""
        width = item.w * self.column_width + (item.w - 1) * self.margin[0]
        height = item.h * self.row_height + (item.h - 1) * self.margin[1]
        return width, height
