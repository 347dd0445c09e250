"""
Designer Configuration
======================
Defaults shared by the store, the autosave controller and the canvas helpers.

Values mirror the grid the dashboard designer ships with: five breakpoints,
a 60px row height and 10px margins.
"""
from dataclasses import dataclass, field
from typing import Tuple

from dashboard_layout.model.data_model import BreakpointConfig

DEFAULT_MAX_HISTORY: int = 50
DEFAULT_AUTOSAVE_DELAY_MS: int = 30000

DEFAULT_ROW_HEIGHT: int = 60
DEFAULT_MARGIN: Tuple[int, int] = (10, 10)
DEFAULT_CONTAINER_PADDING: Tuple[int, int] = (10, 10)

# Fallback size for components created without a size or a known template
DEFAULT_COMPONENT_SIZE: Tuple[int, int] = (4, 4)


@dataclass
class DesignerConfig:
    breakpoints: BreakpointConfig = field(default_factory=BreakpointConfig.default)
    max_history: int = DEFAULT_MAX_HISTORY
    # Re-run vertical compaction after add/update_layout
    vertical_compact: bool = False
    autosave_enabled: bool = True
    autosave_delay_ms: int = DEFAULT_AUTOSAVE_DELAY_MS

    def __post_init__(self):
        if self.max_history < 1:
            raise ValueError(f"max_history must be positive, got {self.max_history}")
        if self.autosave_delay_ms < 0:
            raise ValueError(f"autosave_delay_ms must not be negative, got {self.autosave_delay_ms}")
