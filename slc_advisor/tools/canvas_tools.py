"""Canvas read and write tools."""

from typing import Any, Literal

from pydantic import Field

from slc_advisor.config import AgentStatus

from .types import ToolContext, ToolDefinition, ToolInput

CustomerSection = Literal["customers", "jobsToBeDone", "valueProposition", "solution"]
EconomicSection = Literal["channels", "revenue", "costs", "advantage"]
ImpactField = Literal[
    "issue",
    "participants",
    "activities",
    "outputs",
    "shortTermOutcomes",
    "mediumTermOutcomes",
    "longTermOutcomes",
    "impact",
]


class ContentInput(ToolInput):
    content: str = Field(..., min_length=1, description="New content for the section")


class CustomerSectionInput(ContentInput):
    section: CustomerSection = Field(..., description="Which customer model section to update")


class EconomicSectionInput(ContentInput):
    section: EconomicSection = Field(..., description="Which economic model section to update")


class ImpactFieldInput(ContentInput):
    field: ImpactField = Field(..., description="Which impact model field to update")


class EmptyInput(ToolInput):
    pass


# -----------------------------------------------------------------------------
# Handlers
# -----------------------------------------------------------------------------


def _update_purpose(ctx: ToolContext, data: ContentInput) -> dict[str, Any]:
    ctx.set_status(AgentStatus.UPDATING, "Updating purpose...")
    return ctx.canvas.update_section("purpose", data.content).to_wire()


def _update_customer_section(ctx: ToolContext, data: CustomerSectionInput) -> dict[str, Any]:
    ctx.set_status(AgentStatus.UPDATING, f"Updating {data.section}...")
    return ctx.canvas.update_section(data.section, data.content).to_wire()


def _update_economic_section(ctx: ToolContext, data: EconomicSectionInput) -> dict[str, Any]:
    ctx.set_status(AgentStatus.UPDATING, f"Updating {data.section}...")
    return ctx.canvas.update_section(data.section, data.content).to_wire()


def _update_impact_field(ctx: ToolContext, data: ImpactFieldInput) -> dict[str, Any]:
    ctx.set_status(AgentStatus.UPDATING, f"Updating impact {data.field}...")
    return ctx.canvas.update_impact_field(data.field, data.content).to_wire()


def _update_key_metrics(ctx: ToolContext, data: ContentInput) -> dict[str, Any]:
    ctx.set_status(AgentStatus.UPDATING, "Updating key metrics...")
    return ctx.canvas.update_section("keyMetrics", data.content).to_wire()


def _get_canvas(ctx: ToolContext, data: EmptyInput) -> dict[str, Any]:
    ctx.set_status(AgentStatus.SEARCHING, "Loading canvas...")
    return ctx.canvas.get_full_canvas().to_wire()


# -----------------------------------------------------------------------------
# Definitions
# -----------------------------------------------------------------------------

UPDATE_PURPOSE = ToolDefinition(
    name="update_purpose",
    description=(
        "Update the Purpose section of the canvas. Purpose should explain why the venture exists "
        "and what problem it solves."
    ),
    input_model=ContentInput,
    handler=_update_purpose,
    modifies_canvas=True,
)

UPDATE_CUSTOMER_SECTION = ToolDefinition(
    name="update_customer_section",
    description=(
        "Update a Customer Model section: customers (who you serve), jobsToBeDone (their problems), "
        "valueProposition (your unique solution), or solution (your product/service)."
    ),
    input_model=CustomerSectionInput,
    handler=_update_customer_section,
    modifies_canvas=True,
)

UPDATE_ECONOMIC_SECTION = ToolDefinition(
    name="update_economic_section",
    description=(
        "Update an Economic Model section: channels (how you reach customers), revenue (how you make "
        "money), costs (major expenses), or advantage (competitive moat)."
    ),
    input_model=EconomicSectionInput,
    handler=_update_economic_section,
    modifies_canvas=True,
)

UPDATE_IMPACT_FIELD = ToolDefinition(
    name="update_impact_field",
    description=(
        "Update an Impact Model field in the causality chain. The chain flows: issue -> participants "
        "-> activities -> outputs -> shortTermOutcomes -> mediumTermOutcomes -> longTermOutcomes -> impact."
    ),
    input_model=ImpactFieldInput,
    handler=_update_impact_field,
    modifies_canvas=True,
)

UPDATE_KEY_METRICS = ToolDefinition(
    name="update_key_metrics",
    description="Update the Key Metrics section. This should be completed last, after other sections are filled in.",
    input_model=ContentInput,
    handler=_update_key_metrics,
    modifies_canvas=True,
)

GET_CANVAS = ToolDefinition(
    name="get_canvas",
    description="Get the current canvas state to understand what has been filled in and what is missing.",
    input_model=EmptyInput,
    handler=_get_canvas,
)

CANVAS_TOOLS = (
    UPDATE_PURPOSE,
    UPDATE_CUSTOMER_SECTION,
    UPDATE_ECONOMIC_SECTION,
    UPDATE_IMPACT_FIELD,
    UPDATE_KEY_METRICS,
    GET_CANVAS,
)
