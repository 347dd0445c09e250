import math
from dataclasses import replace
from typing import Iterable, List, Sequence, Tuple

from .data_model import LayoutItem
from .geometry import Rect, clamp_to_bounds, effective_min_w, intersects, overlaps_horizontally


def _round_half_up(value: float) -> int:
    # round() would use banker's rounding (2.5 -> 2)
    return int(math.floor(value + 0.5))


class GridEngine:
    """
    Collision-free placement, vertical compaction and breakpoint conversion.

    All methods are pure: they take item lists and return new ones. Items are
    never modified in place.
    """

    @staticmethod
    def find_free_position(existing: Iterable, w: int, h: int, cols: int,
                           start_y: int = 0) -> Tuple[int, int]:
        """
        Row-major scan for the first spot where a w x h rect fits.

        Rows are tried top to bottom starting at *start_y*, columns left to
        right. The row at the bottom edge of the lowest rect is always free,
        so the scan terminates.
        """
        if cols < 1:
            raise ValueError(f"cols must be positive, got {cols}")
        if w < 1 or w > cols:
            raise ValueError(f"Width {w} does not fit a {cols}-column grid")
        if h < 1:
            raise ValueError(f"Height must be positive, got {h}")

        existing = list(existing)
        start_y = max(start_y, 0)
        bottom = max((r.y + r.h for r in existing), default=0)

        for y in range(start_y, max(bottom, start_y) + 1):
            for x in range(cols - w + 1):
                candidate = Rect(x, y, w, h)
                if not any(intersects(candidate, r) for r in existing):
                    return x, y

        # Unreachable: the row at `bottom` never intersects anything
        return 0, max(bottom, start_y)

    @staticmethod
    def compact(items: Sequence[LayoutItem]) -> List[LayoutItem]:
        """
        Remove vertical gaps.

        Items are processed in ascending (y, x) order; each one settles
        directly below the lowest already-compacted item it overlaps
        horizontally, or at row 0. The result keeps the input order.
        """
        order = sorted(range(len(items)), key=lambda i: (items[i].y, items[i].x))
        result = list(items)
        placed: List[LayoutItem] = []

        for idx in order:
            item = items[idx]
            new_y = max(
                (p.y + p.h for p in placed if overlaps_horizontally(p, item)),
                default=0,
            )
            moved = item if item.y == new_y else replace(item, y=new_y)
            placed.append(moved)
            result[idx] = moved

        return result

    @staticmethod
    def convert_breakpoint(items: Sequence[LayoutItem], from_cols: int, to_cols: int) -> List[LayoutItem]:
        """
        Scale x and w from a *from_cols* grid to a *to_cols* grid.

        Halves round up. Width shrinks first to keep ``x + w <= to_cols``;
        x only moves left when the minimum width would not fit otherwise.
        Lossy: converting back does not necessarily restore the input.
        """
        if from_cols < 1 or to_cols < 1:
            raise ValueError(f"Column counts must be positive ({from_cols} -> {to_cols})")

        ratio = to_cols / from_cols
        converted = []
        for item in items:
            x = max(_round_half_up(item.x * ratio), 0)
            w = _round_half_up(item.w * ratio)

            if x + w > to_cols:
                w = to_cols - x
            w = max(w, effective_min_w(item, to_cols))
            if x + w > to_cols:
                x = to_cols - w

            converted.append(replace(item, x=x, w=w))
        return converted

    @staticmethod
    def detect_overlaps(items: Sequence[LayoutItem]) -> List[Tuple[str, str]]:
        """Pairs of ids whose rects intersect. O(n^2); for validation and import only."""
        overlaps = []
        for i in range(len(items)):
            for j in range(i + 1, len(items)):
                if intersects(items[i], items[j]):
                    overlaps.append((items[i].id, items[j].id))
        return overlaps

    @staticmethod
    def resolve_collisions(items: Sequence[LayoutItem], cols: int) -> List[LayoutItem]:
        """
        Make a layout collision-free.

        Items are visited in (y, x) order and keep their (clamped) spot when it
        is free; otherwise they take the first free position at or below their
        own row. The result keeps the input order.
        """
        return GridEngine.fit_into([], items, cols)

    @staticmethod
    def fit_into(existing: Sequence[LayoutItem], candidates: Sequence[LayoutItem],
                 cols: int) -> List[LayoutItem]:
        """
        Add *candidates* to a layout without moving the *existing* items.

        Same policy as resolve_collisions; only the candidates are returned,
        in input order.
        """
        order = sorted(range(len(candidates)), key=lambda i: (candidates[i].y, candidates[i].x))
        result = list(candidates)
        placed: List[LayoutItem] = list(existing)

        for idx in order:
            item = clamp_to_bounds(candidates[idx], cols)
            if any(intersects(item, p) for p in placed):
                x, y = GridEngine.find_free_position(placed, item.w, item.h, cols, start_y=item.y)
                item = replace(item, x=x, y=y)
            placed.append(item)
            result[idx] = item

        return result

    @staticmethod
    def move_item(items: Sequence[LayoutItem], item_id: str, x: int, y: int, cols: int) -> List[LayoutItem]:
        """
        Put *item_id* at (x, y) and push whatever it lands on downwards.

        The moved item wins its cell. Other items, in (y, x) order, are shifted
        below every already-settled item they collide with, cascading.
        """
        target_idx = next((i for i, it in enumerate(items) if it.id == item_id), None)
        if target_idx is None:
            raise ValueError(f"No layout item with id '{item_id}'")

        moved = clamp_to_bounds(replace(items[target_idx], x=x, y=y), cols)
        result = list(items)
        result[target_idx] = moved
        settled: List[LayoutItem] = [moved]

        others = sorted(
            (i for i in range(len(items)) if i != target_idx),
            key=lambda i: (items[i].y, items[i].x),
        )
        for idx in others:
            current = items[idx]
            colliders = [s for s in settled if intersects(current, s)]
            while colliders:
                current = replace(current, y=max(s.y + s.h for s in colliders))
                colliders = [s for s in settled if intersects(current, s)]
            settled.append(current)
            result[idx] = current

        return result
