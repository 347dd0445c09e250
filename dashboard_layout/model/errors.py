from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class ValidationError:
    """One schema or invariant violation. Collected in lists, never raised."""
    component_id: Optional[str]
    field: str
    message: str

    def __str__(self) -> str:
        if self.component_id:
            return f"{self.component_id}.{self.field}: {self.message}"
        return f"{self.field}: {self.message}"


class LayoutError(Exception):
    """Base class for errors raised by the layout engine."""


class ComponentValidationError(LayoutError):
    def __init__(self, errors: List[ValidationError]):
        self.errors = list(errors)
        summary = "; ".join(str(e) for e in self.errors[:3])
        if len(self.errors) > 3:
            summary += f" (+{len(self.errors) - 3} more)"
        super().__init__(f"Validation failed: {summary}")


class ComponentNotFoundError(LayoutError):
    def __init__(self, component_id: str):
        self.component_id = component_id
        super().__init__(f"Component not found: {component_id}")


class UnknownBreakpointError(LayoutError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown breakpoint: {name}")


class SerializationError(LayoutError):
    """Malformed import document. The whole import is rejected."""


class PersistenceError(LayoutError):
    """Raised by persistence collaborators."""


class DashboardNotFoundError(PersistenceError):
    pass


class ConflictError(PersistenceError):
    pass


class NetworkError(PersistenceError):
    pass
