"""
Upgrades for exported dashboard documents.

A document records the release that wrote it in ``file_version``. Import
runs every step in MIGRATIONS that is newer than that, oldest first; each
step takes the raw dict and returns it upgraded.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple

from dashboard_layout.model.data_model import BreakpointConfig, LayoutItem
from dashboard_layout.model.layout_engine import GridEngine
from dashboard_layout.version import APP_VERSION

LEGACY_VERSION = "0.0.0"


def _ver(s: str) -> Tuple[int, ...]:
    return tuple(int(part) for part in s.split("."))


# react-grid-layout spelling used by the browser designer
_CAMEL_KEYS = {"minW": "min_w", "minH": "min_h", "maxW": "max_w", "maxH": "max_h"}


def _legacy_item(item: Dict[str, Any]) -> Dict[str, Any]:
    converted = {_CAMEL_KEYS.get(k, k): v for k, v in item.items() if k not in ("i", "static", "moved")}
    if "i" in item:
        converted["id"] = item["i"]
    return converted


def _fill_breakpoints(components: List[Dict[str, Any]], breakpoints: BreakpointConfig) -> None:
    """Give every component an entry for each breakpoint in the table, widest first."""
    for bp in breakpoints:
        existing, pending = [], []
        sources = breakpoints.larger_than(bp.name) + breakpoints.smaller_than(bp.name)
        for component in components:
            layout = component["layout"]
            component_id = component.get("id", "")
            if bp.name in layout:
                existing.append(LayoutItem.from_dict(layout[bp.name], component_id))
                continue
            source = next((s for s in sources if s.name in layout), None)
            if source is None:
                continue
            item = LayoutItem.from_dict(layout[source.name], component_id)
            converted = GridEngine.convert_breakpoint([item], source.cols, bp.cols)[0]
            pending.append((component, converted))

        placed = GridEngine.fit_into(existing, [item for _, item in pending], bp.cols)
        for (component, _), item in zip(pending, placed):
            component["layout"][bp.name] = item.to_dict()


def _migrate_none_to_1_0_0(data: Dict[str, Any], breakpoints: BreakpointConfig) -> Dict[str, Any]:
    """
    Upgrade unversioned documents written by the browser designer.

    Those keep one ``layout`` rect per component plus a top-level
    ``layout: {breakpoint: [items]}`` map keyed by ``i``. Each component gets
    a per-breakpoint mapping; breakpoints absent from the map fall back to
    the component's own rect, and the remaining breakpoints of the table are
    converted from the nearest one present.
    """
    per_breakpoint = data.pop("layout", None) or {}
    components = data.get("components") or []
    active = data.setdefault("breakpoint", breakpoints.largest.name)

    for component in components:
        if not isinstance(component, dict):
            continue
        own = component.get("layout")
        if isinstance(own, dict) and {"x", "y", "w", "h"} <= set(own):
            fallback = _legacy_item(own)
            layout = {}
        else:
            fallback = None
            layout = dict(own or {})

        for bp, items in per_breakpoint.items():
            match = next((i for i in items or [] if isinstance(i, dict) and i.get("i") == component.get("id")), None)
            if match is not None:
                layout[bp] = _legacy_item(match)
        if fallback is not None:
            layout.setdefault(active, fallback)
        component["layout"] = layout

    _fill_breakpoints([c for c in components if isinstance(c, dict)], breakpoints)

    config = data.pop("config", None)
    if isinstance(config, dict) and "settings" not in data:
        data["settings"] = {
            "title": config.get("title", "Untitled Dashboard"),
            "theme": config.get("theme", "default"),
            "background_color": config.get("backgroundColor", "#f5f5f5"),
            "padding": config.get("padding", 16),
        }
    return data


def _migrate_1_0_0_to_1_1_0(data: Dict[str, Any], breakpoints: BreakpointConfig) -> Dict[str, Any]:
    """1.1.0 adds dashboard settings and component titles."""
    data.setdefault("settings", {})
    for component in data.get("components") or []:
        if isinstance(component, dict):
            component.setdefault("title", None)
    return data


# Upgrade steps in order, keyed by the version they produce. Documents
# without a version tag count as LEGACY_VERSION.
MIGRATIONS: List[Tuple[str, Callable[[Dict[str, Any], BreakpointConfig], Dict[str, Any]]]] = [
    ("1.0.0", _migrate_none_to_1_0_0),
    ("1.1.0", _migrate_1_0_0_to_1_1_0),
]


def migrate_document(data: Dict[str, Any], breakpoints: Optional[BreakpointConfig] = None) -> Dict[str, Any]:
    """
    Run every upgrade step newer than the document's ``file_version``.

    *data* is modified in place and returned, stamped with APP_VERSION.
    Layouts are completed for *breakpoints*, the default table when None.
    Raises ValueError for documents written by a newer release.
    """
    if breakpoints is None:
        breakpoints = BreakpointConfig.default()
    version = _ver(data.get("file_version") or LEGACY_VERSION)
    target = _ver(APP_VERSION)
    if version > target:
        raise ValueError(f"Document version {data['file_version']} is newer than supported {APP_VERSION}")

    for produces, upgrade in MIGRATIONS:
        step = _ver(produces)
        if version < step <= target:
            data = upgrade(data, breakpoints)
            version = step

    data["file_version"] = APP_VERSION
    return data
