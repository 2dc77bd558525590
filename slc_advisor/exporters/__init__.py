"""Canvas exporters for JSON, Markdown and plain text."""

from .base import BaseExporter, ExportOptions, export_filename
from .json_exporter import JSONExporter
from .markdown_exporter import MarkdownExporter
from .text_exporter import TextExporter

__all__ = [
    "ExportOptions",
    "BaseExporter",
    "JSONExporter",
    "MarkdownExporter",
    "TextExporter",
    "export_filename",
    "get_exporter",
]

# Registry of available exporters, keyed by ExportFormat value
EXPORTERS = {
    "json": JSONExporter,
    "md": MarkdownExporter,
    "txt": TextExporter,
}


def get_exporter(format_name: str, options: ExportOptions | None = None) -> BaseExporter:
    """Get an exporter instance by format name.

    Raises:
        ValueError: If format_name is not recognized
    """
    format_lower = format_name.lower()
    if format_lower == "markdown":
        format_lower = "md"
    if format_lower not in EXPORTERS:
        available = ", ".join(EXPORTERS.keys())
        raise ValueError(f"Unknown export format: {format_name}. Available: {available}")

    return EXPORTERS[format_lower](options)
