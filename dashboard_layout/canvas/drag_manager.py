"""
Drag and drop as an explicit state machine.

    Idle --start--> Dragging --hover--> Previewing --drop--> Idle (+ DropCommand)
                        ^                   |
                        +------leave--------+
    cancel from any state returns to Idle without a command.

``transition`` is pure. The hover preview lives only in the state value and
never reaches the store; the single side effect of a drag is ``apply_drop``,
which makes exactly one ``add_component`` or ``update_layout`` call.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from dashboard_layout.canvas.grid_metrics import GridMetrics
from dashboard_layout.config import DEFAULT_COMPONENT_SIZE
from dashboard_layout.model.data_model import ComponentTemplate, LayoutItem
from dashboard_layout.model.errors import ComponentNotFoundError
from dashboard_layout.model.layout_engine import GridEngine

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Candidates
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class NewComponent:
    """A palette item being dragged onto the canvas."""
    source: Any  # ComponentTemplate or partial mapping, as add_component accepts
    w: int = DEFAULT_COMPONENT_SIZE[0]
    h: int = DEFAULT_COMPONENT_SIZE[1]

    @classmethod
    def from_template(cls, template: ComponentTemplate) -> 'NewComponent':
        w, h = template.default_size
        return cls(source=template, w=w, h=h)


@dataclass(frozen=True)
class MoveComponent:
    """A component already on the canvas being moved."""
    component_id: str
    w: int
    h: int

    @classmethod
    def from_item(cls, item: LayoutItem) -> 'MoveComponent':
        return cls(component_id=item.id, w=item.w, h=item.h)


Candidate = Union[NewComponent, MoveComponent]


# ----------------------------------------------------------------------
# States
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    candidate: Candidate


@dataclass(frozen=True)
class Previewing:
    candidate: Candidate
    x: int
    y: int


DragState = Union[Idle, Dragging, Previewing]
IDLE = Idle()


# ----------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class Start:
    candidate: Candidate


@dataclass(frozen=True)
class Hover:
    """Pointer over the grid, already in cells."""
    x: int
    y: int

    @classmethod
    def from_pixels(cls, metrics: GridMetrics, px: float, py: float, w: int = 1) -> 'Hover':
        x, y = metrics.cell_at(px, py, w)
        return cls(x, y)


@dataclass(frozen=True)
class Leave:
    """Pointer left the canvas."""


@dataclass(frozen=True)
class Cancel:
    """Escape pressed or the drag was aborted by the platform."""


@dataclass(frozen=True)
class Drop:
    pass


DragEvent = Union[Start, Hover, Leave, Cancel, Drop]


@dataclass(frozen=True)
class DropCommand:
    candidate: Candidate
    x: int
    y: int


def transition(state: DragState, event: DragEvent) -> Tuple[DragState, Optional[DropCommand]]:
    """Next state for *event*. Only a drop while previewing yields a command."""
    if isinstance(event, Cancel):
        return IDLE, None

    if isinstance(state, Idle):
        if isinstance(event, Start):
            return Dragging(event.candidate), None
        return state, None

    if isinstance(event, Start):
        # One drag at a time
        return state, None

    if isinstance(event, Hover):
        if isinstance(state, Previewing) and (state.x, state.y) == (event.x, event.y):
            return state, None
        return Previewing(state.candidate, event.x, event.y), None

    if isinstance(event, Leave):
        if isinstance(state, Previewing):
            return Dragging(state.candidate), None
        return state, None

    if isinstance(event, Drop):
        if isinstance(state, Previewing):
            return IDLE, DropCommand(state.candidate, state.x, state.y)
        # Released outside the grid
        return IDLE, None

    raise TypeError(f"Unknown drag event {event!r}")


def preview_items(store, state: DragState):
    """
    Layout of the active breakpoint as it would look after dropping here.

    Advisory only; nothing is written to the store. Returns None when there
    is nothing to preview.
    """
    if not isinstance(state, Previewing):
        return None
    items = store.items_for()
    cols = store.active_cols
    candidate = state.candidate
    if isinstance(candidate, MoveComponent):
        if not any(i.id == candidate.component_id for i in items):
            return None
        return GridEngine.move_item(items, candidate.component_id, state.x, state.y, cols)

    w = min(max(candidate.w, 1), cols)
    x = min(max(state.x, 0), cols - w)
    ghost = LayoutItem(id="__preview__", x=x, y=max(state.y, 0), w=w, h=max(candidate.h, 1))
    return GridEngine.move_item(items + [ghost], ghost.id, ghost.x, ghost.y, cols)


def apply_drop(store, command: DropCommand):
    """
    Commit a drop to the store.

    New components go through add_component (a taken cell falls back to the
    next free one); moves push colliding components down and go through
    update_layout. Returns the new Component or the update_layout result.
    """
    candidate = command.candidate
    if isinstance(candidate, NewComponent):
        component = store.add_component(candidate.source, position=(command.x, command.y))
        logger.debug("Dropped new '%s' at (%d, %d)", component.type, command.x, command.y)
        return component

    breakpoint = store.snapshot.breakpoint
    items = store.items_for(breakpoint)
    if not any(i.id == candidate.component_id for i in items):
        logger.debug("Drop of vanished component '%s' ignored", candidate.component_id)
        return False
    moved = GridEngine.move_item(items, candidate.component_id, command.x, command.y, store.active_cols)
    return store.update_layout(breakpoint, moved)


class DragSession:
    """Holds the current drag state for one canvas and commits drops."""

    def __init__(self, store):
        self.store = store
        self.state: DragState = IDLE

    @property
    def is_active(self) -> bool:
        return not isinstance(self.state, Idle)

    def start_new(self, source) -> None:
        if isinstance(source, ComponentTemplate):
            candidate = NewComponent.from_template(source)
        else:
            template = self.store.templates.get(source.get("type", ""))
            default = template.default_size if template else DEFAULT_COMPONENT_SIZE
            candidate = NewComponent(source, w=source.get("w", default[0]), h=source.get("h", default[1]))
        self.handle(Start(candidate))

    def start_move(self, component_id: str) -> None:
        item = next((i for i in self.store.items_for() if i.id == component_id), None)
        if item is None:
            raise ComponentNotFoundError(component_id)
        self.handle(Start(MoveComponent.from_item(item)))

    def handle(self, event: DragEvent):
        """Feed *event*; returns the result of apply_drop when it produced a drop."""
        self.state, command = transition(self.state, event)
        if command is None:
            return None
        return apply_drop(self.store, command)

    def preview(self):
        return preview_items(self.store, self.state)
