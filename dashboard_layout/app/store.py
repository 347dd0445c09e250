"""
Layout Store
============
The single mutation surface of the designer.

Every operation validates its input, asks the GridEngine for geometry,
builds a new immutable Snapshot and records it in the undo history. An
operation either records exactly one history entry or leaves the history
untouched. Subscribers are notified synchronously after every change.

Classes:
    DesignerState: What subscribers receive.
    LayoutStore: The state container. One instance per designer session.
"""
import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from dashboard_layout.app.history import HistoryManager, HistoryState
from dashboard_layout.config import DEFAULT_COMPONENT_SIZE, DesignerConfig
from dashboard_layout.model.data_model import (
    Component, ComponentTemplate, DashboardSettings, LayoutItem, Snapshot, generate_component_id,
)
from dashboard_layout.model.errors import (
    ComponentNotFoundError, ComponentValidationError, UnknownBreakpointError, ValidationError,
)
from dashboard_layout.model.geometry import clamp_to_bounds, intersects
from dashboard_layout.model.layout_engine import GridEngine
from dashboard_layout.model.validation import validate, validate_dimensions
from dashboard_layout.utils.templates import TemplateRegistry, default_registry

logger = logging.getLogger(__name__)

Position = Union[Tuple[int, int], Mapping[str, int]]
Subscriber = Callable[['DesignerState'], None]

_PARTIAL_FIELDS = {
    "id", "type", "title", "config", "style",
    "w", "h", "default_size", "min_size", "max_size",
    "min_w", "min_h", "max_w", "max_h",
}
_UPDATABLE_FIELDS = {"type", "title", "config", "style", "layout"}
_LAYOUT_FIELDS = {f.name for f in fields(LayoutItem)} - {"id"}
_SETTINGS_FIELDS = {f.name for f in fields(DashboardSettings)}

# Sentinel: leave the selection as it is
_KEEP = object()


@dataclass(frozen=True)
class DesignerState:
    snapshot: Snapshot
    can_undo: bool
    can_redo: bool
    selected_id: Optional[str]


def _size_pair(value, component_id, name: str, errors: List[ValidationError]) -> Optional[Tuple[Any, Any]]:
    if value is None:
        return None
    if isinstance(value, Mapping):
        return value.get("w"), value.get("h")
    if isinstance(value, (list, tuple)) and len(value) == 2:
        w, h = value
        return w, h
    errors.append(ValidationError(component_id, name, f"must be a (w, h) pair, got {value!r}"))
    return None


class LayoutStore:
    def __init__(self, config: Optional[DesignerConfig] = None,
                 templates: Optional[TemplateRegistry] = None,
                 initial: Optional[Snapshot] = None):
        self.config = config or DesignerConfig()
        self.breakpoints = self.config.breakpoints
        self.templates = templates if templates is not None else default_registry()
        self._manager = HistoryManager(self.config.max_history)
        self._subscribers: List[Subscriber] = []
        self._selected_id: Optional[str] = None

        if initial is None:
            initial = Snapshot(breakpoint=self.breakpoints.largest.name)
        self._history: HistoryState = HistoryManager.initial(self._prepare_loaded(initial))

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> Snapshot:
        return self._history.present

    @property
    def history(self) -> HistoryState:
        return self._history

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def selected_component(self) -> Optional[Component]:
        if self._selected_id is None:
            return None
        return self.snapshot.get_component(self._selected_id)

    @property
    def can_undo(self) -> bool:
        return HistoryManager.can_undo(self._history)

    @property
    def can_redo(self) -> bool:
        return HistoryManager.can_redo(self._history)

    @property
    def active_cols(self) -> int:
        return self.breakpoints.cols(self.snapshot.breakpoint)

    @property
    def state(self) -> DesignerState:
        return DesignerState(
            snapshot=self.snapshot,
            can_undo=self.can_undo,
            can_redo=self.can_redo,
            selected_id=self._selected_id,
        )

    def get_component(self, component_id: str) -> Optional[Component]:
        return self.snapshot.get_component(component_id)

    def items_for(self, breakpoint: Optional[str] = None) -> List[LayoutItem]:
        return self.snapshot.items_for(breakpoint or self.snapshot.breakpoint)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback*; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self):
        state = self.state
        for callback in list(self._subscribers):
            callback(state)

    # ------------------------------------------------------------------
    # History plumbing
    # ------------------------------------------------------------------

    def _commit(self, snapshot: Snapshot, description: str, select=_KEEP) -> bool:
        if snapshot == self._history.present:
            logger.debug("%s: no change, nothing recorded", description)
            return False
        self._history = self._manager.push(self._history, snapshot)
        if select is not _KEEP:
            self._selected_id = select
        self._drop_stale_selection()
        logger.debug("%s (undo depth %d)", description, len(self._history.past))
        self._notify()
        return True

    def _drop_stale_selection(self):
        if self._selected_id is not None and not self.snapshot.has_component(self._selected_id):
            self._selected_id = None

    def _reject(self, description: str, errors: List[ValidationError]):
        logger.warning("%s rejected: %s", description, "; ".join(str(e) for e in errors))
        raise ComponentValidationError(errors)

    def _require_breakpoint(self, name: str):
        if name not in self.breakpoints:
            logger.warning("Unknown breakpoint '%s'", name)
            raise UnknownBreakpointError(name)

    # ------------------------------------------------------------------
    # Component operations
    # ------------------------------------------------------------------

    def add_component(self, source: Union[ComponentTemplate, Component, Mapping[str, Any]],
                      position: Optional[Position] = None) -> Component:
        """
        Add a component built from a template, a component or a partial mapping.

        Without *position* the component takes the first free cell of the
        active breakpoint (row-major). With *position* it is clamped to the
        grid; if that spot is taken the scan starts from the requested row.
        Every other breakpoint gets a converted placement.

        Raises ComponentValidationError; the history is untouched in that case.
        """
        snapshot = self.snapshot
        draft, errors = self._resolve_draft(source)
        if draft.get("id") and snapshot.has_component(draft["id"]):
            errors.append(ValidationError(draft["id"], "id", "already in use"))

        if position is not None:
            if isinstance(position, Mapping):
                px, py = position.get("x"), position.get("y")
            else:
                px, py = position
            if not all(isinstance(v, int) and not isinstance(v, bool) for v in (px, py)):
                errors.append(ValidationError(draft.get("id"), "position", f"expected integer cells, got {position!r}"))
            position = (px, py)
        if errors:
            self._reject("Add component", errors)

        component_id = draft["id"] or generate_component_id(draft["type"])
        base = LayoutItem(
            id=component_id, w=draft["w"], h=draft["h"],
            min_w=draft["min_w"], min_h=draft["min_h"],
            max_w=draft["max_w"], max_h=draft["max_h"],
        )

        active = snapshot.breakpoint
        active_cols = self.breakpoints.cols(active)
        placed = self._place(base, snapshot.items_for(active), active_cols, position)

        layout = {active: placed}
        for bp in self.breakpoints:
            if bp.name == active:
                continue
            converted = clamp_to_bounds(
                GridEngine.convert_breakpoint([placed], active_cols, bp.cols)[0], bp.cols)
            existing = snapshot.items_for(bp.name)
            if any(intersects(converted, e) for e in existing):
                x, y = GridEngine.find_free_position(existing, converted.w, converted.h, bp.cols)
                converted = replace(converted, x=x, y=y)
            layout[bp.name] = converted

        component = Component(
            id=component_id,
            type=draft["type"],
            title=draft["title"],
            config=draft["config"],
            style=draft["style"],
            layout=layout,
        )
        errors = validate(component, self.breakpoints)
        if errors:
            self._reject("Add component", errors)

        new_snapshot = replace(snapshot, components=snapshot.components + (component,))
        if self.config.vertical_compact:
            new_snapshot = self._compacted(new_snapshot, self.breakpoints.names)
        self._commit(new_snapshot, f"Add component '{component_id}'", select=component_id)
        return self.snapshot.get_component(component_id)

    def _resolve_draft(self, source) -> Tuple[Dict[str, Any], List[ValidationError]]:
        """Normalise the accepted inputs of add_component into one dict."""
        errors: List[ValidationError] = []

        if isinstance(source, ComponentTemplate):
            partial: Dict[str, Any] = {
                "type": source.type,
                "default_size": source.default_size,
                "min_size": source.min_size,
                "max_size": source.max_size,
                "config": source.default_config,
            }
        elif isinstance(source, Component):
            item = source.layout.get(self.snapshot.breakpoint) or next(iter(source.layout.values()), None)
            partial = {"id": source.id, "type": source.type, "title": source.title,
                       "config": source.config, "style": source.style}
            if item is not None:
                partial.update(w=item.w, h=item.h, min_w=item.min_w, min_h=item.min_h,
                               max_w=item.max_w, max_h=item.max_h)
        elif isinstance(source, Mapping):
            partial = dict(source)
            unknown = sorted(set(partial) - _PARTIAL_FIELDS)
            for key in unknown:
                errors.append(ValidationError(partial.get("id"), key, "unknown field"))
        else:
            raise TypeError(f"Cannot build a component from {type(source).__name__}")

        component_type = partial.get("type") or ""
        template = self.templates.get(component_type) if isinstance(component_type, str) else None
        component_id = partial.get("id") or None

        default_w, default_h = _size_pair(partial.get("default_size"), component_id, "default_size", errors) or (
            template.default_size if template else DEFAULT_COMPONENT_SIZE)
        min_w, min_h = _size_pair(partial.get("min_size"), component_id, "min_size", errors) or (
            template.min_size if template and template.min_size else (1, 1))
        max_w, max_h = _size_pair(partial.get("max_size"), component_id, "max_size", errors) or (
            template.max_size if template and template.max_size else (None, None))

        config = dict(template.default_config) if template else {}
        config.update(partial.get("config") or {})

        draft = {
            "id": component_id,
            "type": component_type,
            "title": partial.get("title"),
            "config": config,
            "style": dict(partial.get("style") or {}),
            "w": partial.get("w", default_w),
            "h": partial.get("h", default_h),
            "min_w": partial.get("min_w", min_w),
            "min_h": partial.get("min_h", min_h),
            "max_w": partial.get("max_w", max_w),
            "max_h": partial.get("max_h", max_h),
        }

        if not isinstance(component_type, str) or not component_type:
            errors.append(ValidationError(component_id, "type", "must be a non-empty string"))
        errors.extend(validate_dimensions(component_id, draft["w"], draft["h"]))
        errors.extend(validate_dimensions(component_id, draft["min_w"], draft["min_h"], "min_size"))
        for key in ("max_w", "max_h"):
            value = draft[key]
            if value is not None and (not isinstance(value, int) or isinstance(value, bool) or value < 1):
                errors.append(ValidationError(component_id, key, f"must be a positive integer, got {value!r}"))
        return draft, errors

    @staticmethod
    def _place(base: LayoutItem, existing: List[LayoutItem], cols: int,
               position: Optional[Tuple[int, int]]) -> LayoutItem:
        if position is None:
            sized = clamp_to_bounds(base, cols)
            x, y = GridEngine.find_free_position(existing, sized.w, sized.h, cols)
            return replace(sized, x=x, y=y)

        item = clamp_to_bounds(replace(base, x=position[0], y=position[1]), cols)
        if any(intersects(item, e) for e in existing):
            x, y = GridEngine.find_free_position(existing, item.w, item.h, cols, start_y=item.y)
            item = replace(item, x=x, y=y)
        return item

    def update_component(self, component_id: str, updates: Mapping[str, Any]) -> Component:
        """
        Merge *updates* into a component.

        Top-level fields are replaced; ``layout`` is merged per breakpoint and
        per field, so moving one breakpoint never touches the others.
        """
        snapshot = self.snapshot
        component = snapshot.get_component(component_id)
        if component is None:
            logger.warning("Update of unknown component '%s'", component_id)
            raise ComponentNotFoundError(component_id)

        errors: List[ValidationError] = []
        changes: Dict[str, Any] = {}
        for key, value in updates.items():
            if key == "id":
                if value != component_id:
                    errors.append(ValidationError(component_id, "id", "cannot be changed"))
            elif key == "layout":
                layout = self._merge_layout(component, value, errors)
                if layout is not None:
                    changes["layout"] = layout
            elif key in _UPDATABLE_FIELDS:
                changes[key] = value
            else:
                errors.append(ValidationError(component_id, key, "unknown field"))
        if errors:
            self._reject(f"Update of '{component_id}'", errors)

        updated = replace(component, **changes)
        errors = validate(updated, self.breakpoints)
        if errors:
            self._reject(f"Update of '{component_id}'", errors)

        self._commit(snapshot.replace_component(updated), f"Update component '{component_id}'")
        return updated

    def _merge_layout(self, component: Component, value, errors: List[ValidationError]):
        if not isinstance(value, Mapping):
            errors.append(ValidationError(component.id, "layout", "must be a mapping of breakpoint to changes"))
            return None

        layout = dict(component.layout)
        for bp, item_update in value.items():
            if bp not in self.breakpoints:
                errors.append(ValidationError(component.id, f"layout.{bp}", "unknown breakpoint"))
                continue
            if isinstance(item_update, LayoutItem):
                changes = item_update.to_dict()
            elif isinstance(item_update, Mapping):
                changes = dict(item_update)
            else:
                errors.append(ValidationError(component.id, f"layout.{bp}", "must be a layout item or a mapping"))
                continue
            changes.pop("id", None)
            unknown = sorted(set(changes) - _LAYOUT_FIELDS)
            if unknown:
                errors.append(ValidationError(component.id, f"layout.{bp}", f"unknown fields: {', '.join(unknown)}"))
                continue
            current = layout.get(bp) or LayoutItem(id=component.id)
            layout[bp] = replace(current, id=component.id, **changes)
        return layout

    def remove_component(self, component_id: str) -> bool:
        """Remove a component. Unknown ids are a successful no-op."""
        snapshot = self.snapshot
        if not snapshot.has_component(component_id):
            logger.debug("Remove of unknown component '%s' ignored", component_id)
            return False
        remaining = tuple(c for c in snapshot.components if c.id != component_id)
        new_snapshot = replace(snapshot, components=remaining)
        if self.config.vertical_compact:
            new_snapshot = self._compacted(new_snapshot, self.breakpoints.names)
        select = None if self._selected_id == component_id else _KEEP
        return self._commit(new_snapshot, f"Remove component '{component_id}'", select=select)

    def update_layout(self, breakpoint: str, items: Iterable[Union[LayoutItem, Mapping[str, Any]]]) -> bool:
        """
        Replace the layout entries of one breakpoint, matched by id.

        Items for unknown ids are ignored (stale drag events). Returns True
        if a history entry was recorded.
        """
        self._require_breakpoint(breakpoint)
        snapshot = self.snapshot

        updates: Dict[str, Dict[str, Any]] = {}
        for item in items:
            if isinstance(item, LayoutItem):
                changes = item.to_dict()
            else:
                changes = dict(item)
                # react-grid-layout style payloads carry the id under "i"
                if "i" in changes and "id" not in changes:
                    changes["id"] = changes.pop("i")
            item_id = changes.pop("id", None)
            updates[item_id] = {k: v for k, v in changes.items() if k in _LAYOUT_FIELDS}

        stale = [i for i in updates if not snapshot.has_component(i)]
        if stale:
            logger.debug("update_layout(%s): ignoring unknown ids %s", breakpoint, stale)

        errors: List[ValidationError] = []
        components = []
        for component in snapshot.components:
            if component.id not in updates:
                components.append(component)
                continue
            current = component.layout.get(breakpoint) or LayoutItem(id=component.id)
            updated = component.with_layout(breakpoint, replace(current, **updates[component.id]))
            errors.extend(validate(updated, self.breakpoints))
            components.append(updated)
        if errors:
            self._reject(f"Layout update for '{breakpoint}'", errors)

        new_snapshot = replace(snapshot, components=tuple(components))
        if self.config.vertical_compact:
            new_snapshot = self._compacted(new_snapshot, [breakpoint])
        return self._commit(new_snapshot, f"Update layout '{breakpoint}'")

    def compact_layout(self, breakpoint: Optional[str] = None) -> bool:
        """Run vertical compaction on one breakpoint (the active one by default)."""
        breakpoint = breakpoint or self.snapshot.breakpoint
        self._require_breakpoint(breakpoint)
        return self._commit(self._compacted(self.snapshot, [breakpoint]), f"Compact layout '{breakpoint}'")

    @staticmethod
    def _with_items(snapshot: Snapshot, breakpoint: str, items: Iterable[LayoutItem]) -> Snapshot:
        by_id = {item.id: item for item in items}
        return replace(snapshot, components=tuple(
            c.with_layout(breakpoint, by_id[c.id]) if c.id in by_id else c
            for c in snapshot.components
        ))

    def _compacted(self, snapshot: Snapshot, breakpoints: Iterable[str]) -> Snapshot:
        for bp in breakpoints:
            snapshot = self._with_items(snapshot, bp, GridEngine.compact(snapshot.items_for(bp)))
        return snapshot

    # ------------------------------------------------------------------
    # Breakpoints and settings
    # ------------------------------------------------------------------

    def set_breakpoint(self, name: str) -> bool:
        """
        Switch the active breakpoint.

        Components without an entry for *name* get one converted from the
        nearest wider breakpoint they have (nearest narrower as a fallback).
        """
        self._require_breakpoint(name)
        snapshot = self._synthesize_missing(self.snapshot, name)
        return self._commit(replace(snapshot, breakpoint=name), f"Switch breakpoint to '{name}'")

    def set_viewport_width(self, width: float) -> bool:
        return self.set_breakpoint(self.breakpoints.for_width(width).name)

    def _synthesize_missing(self, snapshot: Snapshot, target: str) -> Snapshot:
        missing = [c for c in snapshot.components if target not in c.layout]
        if not missing:
            return snapshot

        target_cols = self.breakpoints.cols(target)
        sources = self.breakpoints.larger_than(target) + self.breakpoints.smaller_than(target)
        candidates = []
        for component in missing:
            source = next((bp for bp in sources if bp.name in component.layout), None)
            if source is None:
                w, h = DEFAULT_COMPONENT_SIZE
                item = LayoutItem(id=component.id, w=min(w, target_cols), h=h)
            else:
                item = GridEngine.convert_breakpoint(
                    [component.layout[source.name]], source.cols, target_cols)[0]
            candidates.append(clamp_to_bounds(item, target_cols))

        synthesized = GridEngine.fit_into(snapshot.items_for(target), candidates, target_cols)
        logger.info("Synthesized %d layout entries for breakpoint '%s'", len(synthesized), target)
        return self._with_items(snapshot, target, synthesized)

    def update_settings(self, **changes) -> bool:
        unknown = sorted(set(changes) - _SETTINGS_FIELDS)
        if unknown:
            self._reject("Settings update", [ValidationError(None, key, "unknown setting") for key in unknown])
        snapshot = self.snapshot
        settings = replace(snapshot.settings, **changes)
        return self._commit(replace(snapshot, settings=settings), "Update dashboard settings")

    # ------------------------------------------------------------------
    # Selection and history
    # ------------------------------------------------------------------

    def select_component(self, component_id: Optional[str]) -> None:
        """Change the selection. Never recorded in the history."""
        if component_id is not None and not self.snapshot.has_component(component_id):
            raise ComponentNotFoundError(component_id)
        if component_id == self._selected_id:
            return
        self._selected_id = component_id
        self._notify()

    def undo(self) -> bool:
        previous = self._history
        self._history = self._manager.undo(previous)
        if self._history is previous:
            return False
        self._drop_stale_selection()
        logger.debug("Undo (undo depth %d, redo depth %d)", len(self._history.past), len(self._history.future))
        self._notify()
        return True

    def redo(self) -> bool:
        previous = self._history
        self._history = self._manager.redo(previous)
        if self._history is previous:
            return False
        self._drop_stale_selection()
        logger.debug("Redo (undo depth %d, redo depth %d)", len(self._history.past), len(self._history.future))
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Whole-document operations
    # ------------------------------------------------------------------

    def _prepare_loaded(self, snapshot: Snapshot) -> Snapshot:
        self._require_breakpoint(snapshot.breakpoint)
        return self._synthesize_missing(snapshot, snapshot.breakpoint)

    def load_snapshot(self, snapshot: Snapshot) -> None:
        """
        Replace the document with a trusted snapshot (e.g. from persistence).

        The history starts over. No validation is run; entries missing for
        the active breakpoint are synthesized.
        """
        self._history = HistoryManager.initial(self._prepare_loaded(snapshot))
        self._selected_id = None
        logger.info("Loaded dashboard with %d components", len(snapshot.components))
        self._notify()

    def reset(self) -> None:
        self.load_snapshot(Snapshot(breakpoint=self.breakpoints.largest.name))
