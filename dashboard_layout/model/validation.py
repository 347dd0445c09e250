"""Validation rules for components and snapshots.

Every check collects all violations instead of stopping at the first one, so
callers can show the complete list.
"""
from collections import Counter
from typing import List, Mapping, Optional

from .data_model import BreakpointConfig, Component, LayoutItem, Snapshot
from .errors import ValidationError
from .geometry import effective_min_w


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_dimensions(component_id: Optional[str], w, h, field: str = "size") -> List[ValidationError]:
    errors = []
    if not _is_int(w) or w <= 0:
        errors.append(ValidationError(component_id, f"{field}.w", f"width must be a positive integer, got {w!r}"))
    if not _is_int(h) or h <= 0:
        errors.append(ValidationError(component_id, f"{field}.h", f"height must be a positive integer, got {h!r}"))
    return errors


def validate_layout_item(component_id: str, breakpoint: str, item: LayoutItem, cols: int) -> List[ValidationError]:
    field = f"layout.{breakpoint}"
    errors = []

    if not isinstance(item, LayoutItem):
        return [ValidationError(component_id, field, f"expected a layout item, got {type(item).__name__}")]

    if item.id != component_id:
        errors.append(ValidationError(component_id, f"{field}.id", f"belongs to '{item.id}'"))

    numbers = {"x": item.x, "y": item.y, "w": item.w, "h": item.h,
               "min_w": item.min_w, "min_h": item.min_h}
    if item.max_w is not None:
        numbers["max_w"] = item.max_w
    if item.max_h is not None:
        numbers["max_h"] = item.max_h
    bad = [name for name, value in numbers.items() if not _is_int(value)]
    for name in bad:
        errors.append(ValidationError(component_id, f"{field}.{name}", f"must be an integer, got {numbers[name]!r}"))
    if bad:
        return errors

    errors.extend(validate_dimensions(component_id, item.w, item.h, field))
    if item.x < 0:
        errors.append(ValidationError(component_id, f"{field}.x", f"must not be negative, got {item.x}"))
    if item.y < 0:
        errors.append(ValidationError(component_id, f"{field}.y", f"must not be negative, got {item.y}"))
    if item.x + item.w > cols:
        errors.append(ValidationError(
            component_id, field, f"x + w = {item.x + item.w} exceeds {cols} columns"))

    if item.min_w < 1 or item.min_h < 1:
        errors.append(ValidationError(component_id, field, "minimum size must be at least 1x1"))
    else:
        if 0 < item.w < effective_min_w(item, cols):
            errors.append(ValidationError(component_id, f"{field}.w", f"width {item.w} is below minimum {item.min_w}"))
        if 0 < item.h < item.min_h:
            errors.append(ValidationError(component_id, f"{field}.h", f"height {item.h} is below minimum {item.min_h}"))

    if item.max_w is not None and item.w > item.max_w:
        errors.append(ValidationError(component_id, f"{field}.w", f"width {item.w} exceeds maximum {item.max_w}"))
    if item.max_h is not None and item.h > item.max_h:
        errors.append(ValidationError(component_id, f"{field}.h", f"height {item.h} exceeds maximum {item.max_h}"))

    return errors


def validate(component: Component, breakpoints: BreakpointConfig) -> List[ValidationError]:
    """Return every violation found on *component*. Empty list means valid."""
    component_id = component.id if isinstance(component.id, str) else None
    errors = []

    if not isinstance(component.id, str) or not component.id:
        errors.append(ValidationError(component_id, "id", "must be a non-empty string"))
    if not isinstance(component.type, str) or not component.type:
        errors.append(ValidationError(component_id, "type", "must be a non-empty string"))
    if not isinstance(component.config, Mapping):
        errors.append(ValidationError(component_id, "config", "must be a mapping"))
    if not isinstance(component.style, Mapping):
        errors.append(ValidationError(component_id, "style", "must be a mapping"))

    if not isinstance(component.layout, Mapping):
        errors.append(ValidationError(component_id, "layout", "must be a mapping of breakpoint to layout item"))
        return errors

    for name in component.layout:
        if name not in breakpoints:
            errors.append(ValidationError(component_id, f"layout.{name}", "unknown breakpoint"))

    for bp in breakpoints:
        item = component.layout.get(bp.name)
        if item is None:
            errors.append(ValidationError(component_id, f"layout.{bp.name}", "missing layout entry"))
            continue
        errors.extend(validate_layout_item(component.id, bp.name, item, bp.cols))

    return errors


def validate_snapshot(snapshot: Snapshot, breakpoints: BreakpointConfig) -> List[ValidationError]:
    errors = []
    if snapshot.breakpoint not in breakpoints:
        errors.append(ValidationError(None, "breakpoint", f"unknown active breakpoint '{snapshot.breakpoint}'"))

    for component in snapshot.components:
        errors.extend(validate(component, breakpoints))

    counts = Counter(c.id for c in snapshot.components)
    duplicates = sorted(str(cid) for cid, n in counts.items() if n > 1)
    if duplicates:
        errors.append(ValidationError(None, "components", f"duplicate component ids: {', '.join(duplicates)}"))

    return errors
