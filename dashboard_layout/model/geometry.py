"""Pure rectangle helpers for grid cells. No state."""
from dataclasses import dataclass, replace
from typing import Iterable, Optional


@dataclass(frozen=True)
class Rect:
    x: int = 0
    y: int = 0
    w: int = 1
    h: int = 1


@dataclass(frozen=True)
class Bounds:
    min_x: int = 0
    min_y: int = 0
    max_x: int = 0
    max_y: int = 0

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y


def intersects(a, b) -> bool:
    """True if *a* and *b* overlap with positive area. Shared edges do not count."""
    return not (
        a.x + a.w <= b.x
        or b.x + b.w <= a.x
        or a.y + a.h <= b.y
        or b.y + b.h <= a.y
    )


def overlaps_horizontally(a, b) -> bool:
    return not (a.x + a.w <= b.x or b.x + b.w <= a.x)


def effective_min_w(rect, cols: int) -> int:
    """Minimum width at a breakpoint; a minimum wider than the grid caps at cols."""
    return min(max(getattr(rect, "min_w", 1), 1), cols)


def clamp_to_bounds(rect, cols: int):
    """
    Return a copy of *rect* forced inside a grid of *cols* columns.

    ``w`` is clamped to ``[min_w, min(max_w, cols)]`` first, then ``x`` to
    ``[0, cols - w]``. ``h`` is clamped to ``[min_h, max_h]`` and ``y`` to
    ``>= 0``. Works for any dataclass with x/y/w/h fields; the optional
    min/max fields are read when present.
    """
    if cols < 1:
        raise ValueError(f"cols must be positive, got {cols}")

    max_w: Optional[int] = getattr(rect, "max_w", None)
    upper_w = cols if max_w is None else max(1, min(max_w, cols))
    w = min(max(rect.w, effective_min_w(rect, cols)), upper_w)

    min_h = max(getattr(rect, "min_h", 1), 1)
    max_h: Optional[int] = getattr(rect, "max_h", None)
    h = max(rect.h, min_h)
    if max_h is not None:
        h = min(h, max(max_h, 1))

    x = min(max(rect.x, 0), cols - w)
    y = max(rect.y, 0)
    return replace(rect, x=x, y=y, w=w, h=h)


def layout_bounds(rects: Iterable) -> Bounds:
    """Bounding box of all *rects*; all zeros when there are none."""
    rects = list(rects)
    if not rects:
        return Bounds()
    return Bounds(
        min_x=min(r.x for r in rects),
        min_y=min(r.y for r in rects),
        max_x=max(r.x + r.w for r in rects),
        max_y=max(r.y + r.h for r in rects),
    )
