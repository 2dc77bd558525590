"""Export a canvas to Markdown format."""

from slc_advisor.canvas.models import CanvasState, VentureProfile
from slc_advisor.canvas.sections import CANVAS_SECTIONS, IMPACT_FIELD_LABELS, SECTION_LABELS, SECTION_NUMBERS

from .base import BaseExporter, has_impact_details, venture_name

_OVERVIEW_CHARS = 100


class MarkdownExporter(BaseExporter):
    """Export a canvas as a human-readable Markdown document.

    Produces an overview table, numbered detailed sections and, when the
    impact chain has content, a Theory of Change section.
    """

    format_name = "Markdown"
    file_extension = "md"
    mime_type = "text/markdown"

    def export(self, canvas: CanvasState, profile: VentureProfile | None = None) -> str:
        name = venture_name(canvas)
        lines = []

        if name:
            lines.append(f"# {name}")
            lines.append("## Social Lean Canvas")
        else:
            lines.append("# Social Lean Canvas")
        lines.append("")
        lines.append(f"*Exported: {self.options.timestamp().strftime('%Y-%m-%d')}*")
        lines.append("")
        lines.append("---")
        lines.append("")

        # Overview table
        lines.append("## Canvas Overview")
        lines.append("")
        lines.append("| Section | Content |")
        lines.append("|---------|---------|")
        for key in CANVAS_SECTIONS:
            lines.append(f"| **{SECTION_LABELS[key]}** | {_table_cell(canvas.section_content(key))} |")
        lines.append("")
        lines.append("---")
        lines.append("")

        lines.append("## Detailed Sections")
        lines.append("")
        for key in CANVAS_SECTIONS:
            lines.append(f"### {SECTION_NUMBERS[key]}. {SECTION_LABELS[key]}")
            lines.append("")
            lines.append(canvas.section_content(key) or "*Not yet defined*")
            lines.append("")

        if self.options.include_impact_details and has_impact_details(canvas):
            lines.extend(self._format_impact_model(canvas))

        return "\n".join(lines)

    def _format_impact_model(self, canvas: CanvasState) -> list[str]:
        lines = [
            "---",
            "",
            "## Impact Model (Theory of Change)",
            "",
            "The Impact Model describes the causal chain from issue to ultimate impact:",
            "",
        ]
        for key, value in canvas.impact_model.as_field_map().items():
            if key == "impact":
                continue
            lines.append(f"#### {IMPACT_FIELD_LABELS[key]}")
            lines.append("")
            lines.append(value or "*Not yet defined*")
            lines.append("")
        return lines


def _table_cell(content: str) -> str:
    """Single-line, pipe-escaped, truncated cell text."""
    if not content:
        return "-"
    cell = content[:_OVERVIEW_CHARS].replace("|", "\\|").replace("\n", " ")
    return cell + ("..." if len(content) > _OVERVIEW_CHARS else "")
