from enum import Enum

class BreakpointPreset(Enum):
    LG = ("lg", 1200, 12)
    MD = ("md", 996, 10)
    SM = ("sm", 768, 6)
    XS = ("xs", 480, 4)
    XXS = ("xxs", 0, 2)

    def __init__(self, label, min_width, cols):
        self.label = label
        self.min_width = min_width
        self.cols = cols

class ComponentCategory(Enum):
    CHART = "chart"
    TEXT = "text"
    MEDIA = "media"
    CONTAINER = "container"
    CUSTOM = "custom"

class DesignerAction(Enum):
    SAVE = "save"
    UNDO = "undo"
    REDO = "redo"
    DELETE = "delete"
    COPY = "copy"
    PASTE = "paste"
