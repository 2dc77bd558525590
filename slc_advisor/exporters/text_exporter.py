"""Export a canvas to plain text for the clipboard."""

from slc_advisor.canvas.models import CanvasState, VentureProfile
from slc_advisor.canvas.sections import CANVAS_SECTIONS, IMPACT_FIELD_LABELS, SECTION_LABELS, SECTION_NUMBERS

from .base import BaseExporter, has_impact_details, venture_name

_DIVIDER = "=" * 39
_SUB_DIVIDER = "-" * 39


class TextExporter(BaseExporter):
    """Export a canvas as numbered plain-text sections."""

    format_name = "Plain Text"
    file_extension = "txt"
    mime_type = "text/plain"

    def export(self, canvas: CanvasState, profile: VentureProfile | None = None) -> str:
        name = venture_name(canvas)
        lines = [_DIVIDER]
        if name:
            lines.append(f"         {name.upper()}")
        lines.append("         SOCIAL LEAN CANVAS")
        lines.append(_DIVIDER)
        lines.append("")

        for key in CANVAS_SECTIONS:
            lines.append(f"{SECTION_NUMBERS[key]}. {SECTION_LABELS[key].upper()}")
            lines.append(_SUB_DIVIDER)
            lines.append(canvas.section_content(key) or "(empty)")
            lines.append("")

        if self.options.include_impact_details and has_impact_details(canvas):
            lines.append("IMPACT MODEL DETAILS")
            lines.append(_DIVIDER)
            for key, value in canvas.impact_model.as_field_map().items():
                if key == "impact" or not value:
                    continue
                lines.append(f"{IMPACT_FIELD_LABELS[key]}:")
                lines.append(value)
                lines.append("")

        lines.append(_SUB_DIVIDER)
        lines.append(f"Exported: {self.options.timestamp().strftime('%Y-%m-%d %H:%M')}")
        return "\n".join(lines)
