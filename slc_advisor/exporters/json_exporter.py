"""Export a canvas to structured JSON."""

import json

from slc_advisor.canvas.models import CanvasState, VentureProfile
from slc_advisor.canvas.sections import CANVAS_SECTIONS
from slc_advisor.config import EXPORT_FORMAT_NAME, EXPORT_FORMAT_VERSION

from .base import BaseExporter, venture_name


class JSONExporter(BaseExporter):
    """Export a canvas with metadata, section content and the impact chain."""

    format_name = "JSON"
    file_extension = "json"
    mime_type = "application/json"

    def export(self, canvas: CanvasState, profile: VentureProfile | None = None) -> str:
        data = {
            "meta": {
                "exportedAt": self.options.timestamp().isoformat().replace("+00:00", "Z"),
                "version": EXPORT_FORMAT_VERSION,
                "format": EXPORT_FORMAT_NAME,
                "ventureName": venture_name(canvas),
            },
            "canvas": {key: canvas.section_content(key) for key in CANVAS_SECTIONS},
            "impactModel": canvas.impact_model.as_field_map(),
        }
        if profile is not None and self.options.include_venture_profile:
            data["ventureProfile"] = {
                "dimensions": profile.dimensions.to_wire(),
                "confidence": profile.confidence,
                "confirmed": profile.confirmed,
            }
        return json.dumps(data, indent=2)
