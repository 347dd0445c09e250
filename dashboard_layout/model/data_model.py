import copy
import uuid
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .enums import BreakpointPreset, ComponentCategory


def generate_component_id(component_type: str) -> str:
    return f"{component_type or 'component'}-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class LayoutItem:
    """A component's placement at one breakpoint, in grid cells."""
    id: str = ""
    x: int = 0
    y: int = 0
    w: int = 1
    h: int = 1
    min_w: int = 1
    min_h: int = 1
    max_w: Optional[int] = None
    max_h: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "w": self.w,
            "h": self.h,
            "min_w": self.min_w,
            "min_h": self.min_h,
            "max_w": self.max_w,
            "max_h": self.max_h,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], component_id: Optional[str] = None) -> 'LayoutItem':
        return cls(
            id=component_id if component_id is not None else data.get("id", ""),
            x=data.get("x", 0),
            y=data.get("y", 0),
            w=data.get("w", 1),
            h=data.get("h", 1),
            min_w=data.get("min_w", 1),
            min_h=data.get("min_h", 1),
            max_w=data.get("max_w"),
            max_h=data.get("max_h"),
        )


def _frozen(value):
    # Non-mappings are kept as given so validation can report them
    if isinstance(value, Mapping):
        return MappingProxyType(copy.deepcopy(dict(value)))
    return value


@dataclass(frozen=True)
class Component:
    id: str = ""
    type: str = ""
    title: Optional[str] = None
    # Opaque bags owned by the rendering layer
    config: Mapping[str, Any] = field(default_factory=dict)
    style: Mapping[str, Any] = field(default_factory=dict)
    # breakpoint name -> LayoutItem
    layout: Mapping[str, LayoutItem] = field(default_factory=dict)

    def __post_init__(self):
        # Components are shared between snapshots in the undo history
        object.__setattr__(self, "config", _frozen(self.config))
        object.__setattr__(self, "style", _frozen(self.style))
        if isinstance(self.layout, Mapping):
            object.__setattr__(self, "layout", MappingProxyType(dict(self.layout)))

    def with_layout(self, breakpoint: str, item: LayoutItem) -> 'Component':
        """Copy with one breakpoint entry replaced; the others are kept."""
        layout = dict(self.layout)
        layout[breakpoint] = replace(item, id=self.id)
        return replace(self, layout=layout)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "config": copy.deepcopy(dict(self.config)),
            "style": copy.deepcopy(dict(self.style)),
            "layout": {bp: item.to_dict() for bp, item in self.layout.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Component':
        component_id = data.get("id", "")
        layout = {
            bp: LayoutItem.from_dict(item, component_id)
            for bp, item in (data.get("layout") or {}).items()
        }
        return cls(
            id=component_id,
            type=data.get("type", ""),
            title=data.get("title"),
            config=data.get("config") or {},
            style=data.get("style") or {},
            layout=layout,
        )


@dataclass(frozen=True)
class ComponentTemplate:
    type: str
    default_size: Tuple[int, int] = (4, 4)
    min_size: Optional[Tuple[int, int]] = None
    max_size: Optional[Tuple[int, int]] = None
    name: str = ""
    category: str = ComponentCategory.CUSTOM.value
    default_config: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "default_size": list(self.default_size),
            "min_size": list(self.min_size) if self.min_size else None,
            "max_size": list(self.max_size) if self.max_size else None,
            "name": self.name,
            "category": self.category,
            "default_config": copy.deepcopy(self.default_config),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ComponentTemplate':
        def _size(value):
            return tuple(value) if value else None

        return cls(
            type=data["type"],
            default_size=_size(data.get("default_size")) or (4, 4),
            min_size=_size(data.get("min_size")),
            max_size=_size(data.get("max_size")),
            name=data.get("name", ""),
            category=data.get("category", ComponentCategory.CUSTOM.value),
            default_config=copy.deepcopy(data.get("default_config") or {}),
        )


@dataclass(frozen=True)
class Breakpoint:
    name: str
    min_width: int
    cols: int


class BreakpointConfig:
    """
    Ordered table of breakpoints, widest first.

    Exactly one breakpoint is active for any viewport width: the widest one
    whose lower bound is <= the width.
    """

    def __init__(self, breakpoints):
        ordered = sorted(breakpoints, key=lambda b: b.min_width, reverse=True)
        if not ordered:
            raise ValueError("At least one breakpoint is required")
        names = [b.name for b in ordered]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate breakpoint names: {names}")
        widths = [b.min_width for b in ordered]
        if len(set(widths)) != len(widths):
            raise ValueError(f"Breakpoint widths must be distinct: {widths}")
        for b in ordered:
            if not isinstance(b.cols, int) or b.cols < 1:
                raise ValueError(f"Breakpoint '{b.name}' needs a positive column count, got {b.cols!r}")
            if b.min_width < 0:
                raise ValueError(f"Breakpoint '{b.name}' has a negative width")
        self._ordered: Tuple[Breakpoint, ...] = tuple(ordered)
        self._by_name: Dict[str, Breakpoint] = {b.name: b for b in ordered}

    @classmethod
    def default(cls) -> 'BreakpointConfig':
        return cls(Breakpoint(p.label, p.min_width, p.cols) for p in BreakpointPreset)

    def __iter__(self) -> Iterator[Breakpoint]:
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def __contains__(self, name) -> bool:
        return name in self._by_name

    def __eq__(self, other) -> bool:
        if not isinstance(other, BreakpointConfig):
            return NotImplemented
        return self._ordered == other._ordered

    def __repr__(self) -> str:
        return f"BreakpointConfig({list(self._ordered)!r})"

    @property
    def names(self) -> List[str]:
        return [b.name for b in self._ordered]

    @property
    def largest(self) -> Breakpoint:
        return self._ordered[0]

    def get(self, name: str) -> Optional[Breakpoint]:
        return self._by_name.get(name)

    def cols(self, name: str) -> int:
        return self._by_name[name].cols

    def for_width(self, width: float) -> Breakpoint:
        for b in self._ordered:
            if b.min_width <= width:
                return b
        return self._ordered[-1]

    def larger_than(self, name: str) -> List[Breakpoint]:
        """Wider breakpoints, nearest first."""
        idx = self.names.index(name)
        return list(reversed(self._ordered[:idx]))

    def smaller_than(self, name: str) -> List[Breakpoint]:
        """Narrower breakpoints, nearest first."""
        idx = self.names.index(name)
        return list(self._ordered[idx + 1:])


@dataclass(frozen=True)
class DashboardSettings:
    title: str = "Untitled Dashboard"
    theme: str = "default"
    background_color: str = "#f5f5f5"
    padding: int = 16

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "theme": self.theme,
            "background_color": self.background_color,
            "padding": self.padding,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'DashboardSettings':
        return cls(
            title=data.get("title", "Untitled Dashboard"),
            theme=data.get("theme", "default"),
            background_color=data.get("background_color", "#f5f5f5"),
            padding=data.get("padding", 16),
        )


@dataclass(frozen=True)
class Snapshot:
    """One immutable, complete state of the dashboard. The unit of undo/redo."""
    components: Tuple[Component, ...] = ()
    breakpoint: str = BreakpointPreset.LG.label
    settings: DashboardSettings = field(default_factory=DashboardSettings)

    def get_component(self, component_id: str) -> Optional[Component]:
        return next((c for c in self.components if c.id == component_id), None)

    def has_component(self, component_id: str) -> bool:
        return any(c.id == component_id for c in self.components)

    @property
    def component_ids(self) -> List[str]:
        return [c.id for c in self.components]

    def items_for(self, breakpoint: str) -> List[LayoutItem]:
        return [c.layout[breakpoint] for c in self.components if breakpoint in c.layout]

    def replace_component(self, component: Component) -> 'Snapshot':
        return replace(self, components=tuple(
            component if c.id == component.id else c for c in self.components
        ))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "breakpoint": self.breakpoint,
            "settings": self.settings.to_dict(),
            "components": [c.to_dict() for c in self.components],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Snapshot':
        return cls(
            components=tuple(Component.from_dict(c) for c in data.get("components", [])),
            breakpoint=data.get("breakpoint", BreakpointPreset.LG.label),
            settings=DashboardSettings.from_dict(data.get("settings") or {}),
        )
