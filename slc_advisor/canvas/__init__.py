"""Canvas state: sections, impact chain, venture profile and their rules."""

from .aggregate import CanvasAggregate
from .managers import CustomerModelManager, EconomicModelManager, ImpactModelManager, ModelManager
from .models import (
    CanvasSection,
    CanvasState,
    ImpactChain,
    ModelCompletion,
    UpdateResult,
    ValidationResult,
    VentureProfile,
)
from .repository import CanvasRepository

__all__ = [
    "CanvasAggregate",
    "CanvasRepository",
    # Managers
    "ModelManager",
    "CustomerModelManager",
    "EconomicModelManager",
    "ImpactModelManager",
    # Models
    "CanvasSection",
    "CanvasState",
    "ImpactChain",
    "ModelCompletion",
    "UpdateResult",
    "ValidationResult",
    "VentureProfile",
]
