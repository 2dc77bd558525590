"""Base exporter class for canvas exporters."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime

from slc_advisor.canvas.models import CanvasState, VentureProfile
from slc_advisor.config import DEFAULT_CANVAS_NAME


@dataclass
class ExportOptions:
    """Options shared by all exporters.

    Attributes:
        include_impact_details: Add the impact chain fields before ``impact``
        include_venture_profile: Add the venture profile (JSON only)
        exported_at: Timestamp to stamp into the export; defaults to now
    """

    include_impact_details: bool = True
    include_venture_profile: bool = True
    exported_at: datetime | None = None

    def timestamp(self) -> datetime:
        return self.exported_at or datetime.now(UTC)


class BaseExporter(ABC):
    """Base class for all canvas exporters."""

    format_name: str = "Unknown"
    file_extension: str = "txt"
    mime_type: str = "text/plain"

    def __init__(self, options: ExportOptions | None = None):
        self.options = options or ExportOptions()

    @abstractmethod
    def export(self, canvas: CanvasState, profile: VentureProfile | None = None) -> str:
        """Render a canvas snapshot to this format."""
        pass

    def export_bytes(self, canvas: CanvasState, profile: VentureProfile | None = None) -> bytes:
        return self.export(canvas, profile).encode("utf-8")

    def get_filename(self, venture_name: str | None = None) -> str:
        """Export filename: ``{venture-slug}-{YYYY-MM-DD}.{ext}``."""
        return export_filename(venture_name, self.file_extension, self.options.timestamp())


def venture_name(canvas: CanvasState) -> str | None:
    """The canvas name, unless it is still the placeholder."""
    name = canvas.name.strip()
    if not name or name == DEFAULT_CANVAS_NAME:
        return None
    return name


def export_filename(name: str | None, extension: str, when: datetime | None = None) -> str:
    """Build an export filename from a venture name and a date.

    Falls back to ``social-lean-canvas`` when the name has no usable
    characters.
    """
    when = when or datetime.now(UTC)
    slug = re.sub(r"[^a-z0-9]+", "-", (name or "").lower()).strip("-")
    return f"{slug or 'social-lean-canvas'}-{when.strftime('%Y-%m-%d')}.{extension}"


def has_impact_details(canvas: CanvasState) -> bool:
    """True when any impact chain field other than ``impact`` has content."""
    fields = canvas.impact_model.as_field_map()
    return any(value for key, value in fields.items() if key != "impact")
