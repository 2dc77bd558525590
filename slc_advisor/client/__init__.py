"""Client-side helpers: undo/redo history and the broadcast mirror."""

from .history import CanvasDiff, CanvasSnapshot, ClientHistory
from .mirror import CanvasMirror

__all__ = ["CanvasDiff", "CanvasMirror", "CanvasSnapshot", "ClientHistory"]
