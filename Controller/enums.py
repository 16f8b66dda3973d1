from enum import Enum, auto

# Status of the pointer on the grid canvas
class DragStatus(Enum):
    IDLE = auto()
    HOVERING = auto()
    DRAGGING = auto()
