"""Shared test fixtures and helpers.

Canvases are created under ``tmp_path``; the sample content below is long
enough to count as complete for sections (20 chars) and impact fields
(10 chars).
"""

from unittest.mock import MagicMock

import pytest

from slc_advisor.canvas.repository import CanvasRepository
from slc_advisor.config import AgentStatus
from slc_advisor.knowledge.search import KnowledgeSearch, RetrievedDocument, SearchResponse
from slc_advisor.tools.types import ToolContext

SECTION_TEXT = {
    "purpose": "Cut food waste in our city by redistributing surplus groceries",
    "customers": "Local supermarkets with daily unsold fresh produce",
    "jobsToBeDone": "Dispose of surplus stock without paying landfill fees",
    "valueProposition": "Free pickup within two hours and a tax receipt for donations",
    "solution": "A volunteer courier network booked through a simple web app",
    "channels": "Direct outreach to store managers and council referrals",
    "revenue": "Monthly service fee paid by larger supermarket chains",
    "costs": "Van leases, fuel, insurance and one part-time coordinator",
    "keyMetrics": "Kilograms redistributed per week and stores retained",
    "advantage": "Exclusive partnership with the city food bank network",
}

IMPACT_TEXT = {
    "issue": "Edible food is thrown away while families go hungry",
    "participants": "Supermarkets, volunteers and food bank clients",
    "activities": "Daily collection routes and same-day delivery",
    "outputs": "Meals delivered and kilograms of food rescued",
    "shortTermOutcomes": "Families get fresh produce every week",
    "mediumTermOutcomes": "Households spend less of their budget on food",
    "longTermOutcomes": "Lower food insecurity across the district",
    "impact": "No edible food goes to waste in our city",
}

SHORT_TEXT = "too short"


@pytest.fixture
def repo(tmp_path):
    """Canvas repository rooted in a temporary directory."""
    return CanvasRepository(tmp_path / "data")


@pytest.fixture
def canvas(repo):
    """A freshly created, empty canvas."""
    return repo.create("Food Rescue Collective")


def fill_customer_model(canvas) -> None:
    for key in ("customers", "jobsToBeDone", "valueProposition", "solution"):
        assert canvas.update_section(key, SECTION_TEXT[key]).success


def fill_impact_chain(canvas, upto: str = "impact") -> None:
    """Fill the impact chain in order, stopping after ``upto``."""
    for key, text in IMPACT_TEXT.items():
        assert canvas.update_impact_field(key, text).success
        if key == upto:
            break


def fill_canvas(canvas) -> None:
    """Fill every section and the whole impact chain."""
    assert canvas.update_section("purpose", SECTION_TEXT["purpose"]).success
    fill_customer_model(canvas)
    for key in ("channels", "revenue", "costs", "advantage"):
        assert canvas.update_section(key, SECTION_TEXT[key]).success
    fill_impact_chain(canvas)
    assert canvas.update_section("keyMetrics", SECTION_TEXT["keyMetrics"]).success


@pytest.fixture
def statuses():
    """Records every (status, message) pair a tool reports."""
    return []


@pytest.fixture
def tool_context(canvas, statuses):
    """Tool context over the canvas with no knowledge base or threads."""

    def set_status(status: AgentStatus, message: str = "") -> None:
        statuses.append((status, message))

    return ToolContext(canvas=canvas, set_status=set_status)


def make_document(doc_id: str = "doc-1", content: str = "Start with the problem.", **metadata) -> RetrievedDocument:
    return RetrievedDocument(id=doc_id, score=0.9, content=content, metadata=metadata)


@pytest.fixture
def knowledge():
    """Mock knowledge search returning one methodology document."""
    search = MagicMock(spec=KnowledgeSearch)
    search.search.return_value = SearchResponse(
        results=[make_document(title="Writing a Purpose", content_type="methodology", canvas_section="purpose")],
        total_found=1,
    )
    return search
