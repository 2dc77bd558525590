"""Tests for canvas and model exports."""

import json
from datetime import UTC, datetime

import pytest
from conftest import IMPACT_TEXT, SECTION_TEXT, fill_canvas, fill_customer_model

from slc_advisor.exporters import ExportOptions, get_exporter
from slc_advisor.exporters.base import export_filename, venture_name
from slc_advisor.exporters.json_exporter import JSONExporter
from slc_advisor.exporters.markdown_exporter import MarkdownExporter
from slc_advisor.exporters.text_exporter import TextExporter

FIXED_TIME = datetime(2024, 3, 5, 14, 30, tzinfo=UTC)


@pytest.fixture
def options():
    return ExportOptions(exported_at=FIXED_TIME)


class TestExportFilename:
    def test_slug_and_date(self):
        assert export_filename("Food Rescue Collective!", "md", FIXED_TIME) == "food-rescue-collective-2024-03-05.md"

    def test_fallback_name(self):
        assert export_filename(None, "json", FIXED_TIME) == "social-lean-canvas-2024-03-05.json"
        assert export_filename("!!!", "txt", FIXED_TIME) == "social-lean-canvas-2024-03-05.txt"

    def test_exporter_filename_uses_extension(self, options):
        assert MarkdownExporter(options).get_filename("Fridges") == "fridges-2024-03-05.md"

    def test_placeholder_name_is_not_a_venture_name(self, repo):
        assert venture_name(repo.create().get_full_canvas()) is None


class TestGetExporter:
    @pytest.mark.parametrize(
        "name,cls",
        [("json", JSONExporter), ("md", MarkdownExporter), ("markdown", MarkdownExporter), ("TXT", TextExporter)],
    )
    def test_lookup(self, name, cls):
        assert isinstance(get_exporter(name), cls)

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unknown export format: pdf"):
            get_exporter("pdf")


class TestJSONExport:
    def test_structure(self, canvas, options):
        canvas.update_section("purpose", SECTION_TEXT["purpose"])
        data = json.loads(JSONExporter(options).export(canvas.get_full_canvas()))

        assert data["meta"] == {
            "exportedAt": "2024-03-05T14:30:00Z",
            "version": "1.0",
            "format": "social-lean-canvas",
            "ventureName": "Food Rescue Collective",
        }
        assert len(data["canvas"]) == 11
        assert data["canvas"]["purpose"] == SECTION_TEXT["purpose"]
        assert list(data["impactModel"]) == list(IMPACT_TEXT)

    def test_venture_profile_included(self, canvas):
        canvas.update_venture_dimension("ventureStage", "growth", confidence=0.9)
        data = json.loads(canvas.export_canvas("json"))
        assert data["ventureProfile"]["dimensions"]["ventureStage"] == "growth"
        assert data["ventureProfile"]["confidence"]["ventureStage"] == 0.9

    def test_venture_profile_can_be_left_out(self, canvas):
        exporter = JSONExporter(ExportOptions(include_venture_profile=False))
        data = json.loads(exporter.export(canvas.get_full_canvas(), canvas.get_venture_profile()))
        assert "ventureProfile" not in data


class TestMarkdownExport:
    def test_headings_and_sections(self, canvas, options):
        fill_canvas(canvas)
        text = MarkdownExporter(options).export(canvas.get_full_canvas())

        assert text.startswith("# Food Rescue Collective\n## Social Lean Canvas")
        assert "*Exported: 2024-03-05*" in text
        assert "### 1. Purpose" in text
        assert "### 11. Impact" in text
        assert "## Impact Model (Theory of Change)" in text
        assert "#### Short-term Outcomes" in text

    def test_empty_canvas(self, canvas, options):
        text = MarkdownExporter(options).export(canvas.get_full_canvas())
        assert "*Not yet defined*" in text
        assert "Theory of Change" not in text

    def test_table_cells_escape_pipes(self, canvas, options):
        canvas.update_section("purpose", "Food | shelter | dignity for everyone")
        text = MarkdownExporter(options).export(canvas.get_full_canvas())
        assert "| **Purpose** | Food \\| shelter \\| dignity for everyone |" in text


class TestTextExport:
    def test_numbered_sections(self, canvas, options):
        canvas.update_section("purpose", SECTION_TEXT["purpose"])
        text = TextExporter(options).export(canvas.get_full_canvas())

        assert "FOOD RESCUE COLLECTIVE" in text
        assert "1. PURPOSE" in text
        assert "(empty)" in text
        assert text.endswith("Exported: 2024-03-05 14:30")

    def test_impact_details(self, canvas, options):
        canvas.update_impact_field("issue", IMPACT_TEXT["issue"])
        text = TextExporter(options).export(canvas.get_full_canvas())
        assert "IMPACT MODEL DETAILS" in text
        assert f"Issue:\n{IMPACT_TEXT['issue']}" in text


class TestModelExport:
    def test_markdown(self, canvas):
        fill_customer_model(canvas)
        text = canvas.customer_manager.export("md")
        assert text.startswith("# Customer Model")
        assert f"## Customers\n{SECTION_TEXT['customers']}" in text

    def test_json(self, canvas):
        canvas.update_impact_field("issue", IMPACT_TEXT["issue"])
        data = json.loads(canvas.impact_manager.export("json"))
        assert data["issue"] == IMPACT_TEXT["issue"]
        assert data["participants"] == ""

    def test_unknown_format(self, canvas):
        with pytest.raises(ValueError):
            canvas.economic_manager.export("xml")
