"""Canvas data models.

Pydantic models for the canvas read model and for the results returned by
the model managers. Attribute names are snake_case; every model serializes
with camelCase aliases, which is the shape tools and clients receive.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel, to_snake

from slc_advisor.canvas.sections import IMPACT_FIELDS
from slc_advisor.config import CONFIDENCE_THRESHOLD, DEFAULT_CANVAS_NAME, IMPACT_FIELD_MIN_LENGTH


class CamelModel(BaseModel):
    """Base model that dumps with camelCase keys and accepts either style."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Canvas read model
# =============================================================================


class CanvasSection(CamelModel):
    """One canvas section as presented to readers."""

    section_key: str = Field(..., description="Canvas section identifier")
    content: str = Field(default="", description="Free text written by the user or agent")
    is_complete: bool = Field(default=False, description="Content meets the minimum length")
    updated_at: str | None = Field(default=None, description="ISO timestamp of the last write")


class ImpactChain(CamelModel):
    """The eight-field impact causality chain.

    The ``impact`` field is also the content of the canvas ``impact`` section.
    """

    issue: str = ""
    participants: str = ""
    activities: str = ""
    outputs: str = ""
    short_term_outcomes: str = ""
    medium_term_outcomes: str = ""
    long_term_outcomes: str = ""
    impact: str = ""
    updated_at: str | None = None

    @computed_field
    @property
    def is_complete(self) -> bool:
        return all(len(self.get_field(key)) >= IMPACT_FIELD_MIN_LENGTH for key in IMPACT_FIELDS)

    def get_field(self, key: str) -> str:
        """Return a field's content by its camelCase chain key."""
        return getattr(self, to_snake(key))

    def as_field_map(self) -> dict[str, str]:
        return {key: self.get_field(key) for key in IMPACT_FIELDS}


class CanvasState(CamelModel):
    """Full canvas snapshot, assembled fresh on every read."""

    id: str
    name: str = DEFAULT_CANVAS_NAME
    sections: list[CanvasSection] = Field(default_factory=list)
    impact_model: ImpactChain = Field(default_factory=ImpactChain)
    current_section: str | None = None
    completion_percentage: int = 0
    created_at: str | None = None
    updated_at: str | None = None

    def section(self, key: str) -> CanvasSection | None:
        for section in self.sections:
            if section.section_key == key:
                return section
        return None

    def section_content(self, key: str) -> str:
        section = self.section(key)
        return section.content if section else ""

    @property
    def is_empty(self) -> bool:
        """True when nothing has been written anywhere on the canvas."""
        if any(section.content for section in self.sections):
            return False
        return not any(self.impact_model.as_field_map().values())


# =============================================================================
# Manager results
# =============================================================================


class ModelCompletion(CamelModel):
    """Completion summary for a sub-model or the whole canvas."""

    percentage: int = 0
    completed_sections: list[str] = Field(default_factory=list)
    missing_sections: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class ValidationIssue(CamelModel):
    """A single validation error or warning tied to a field."""

    section: str
    message: str


class ValidationResult(CamelModel):
    valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)


class UpdateResult(CamelModel):
    """Outcome of a write. Rule violations are reported here, not raised."""

    success: bool
    updated_section: str | None = None
    errors: list[str] = Field(default_factory=list)
    error_code: str | None = Field(default=None, description="IssueCode value on failure")
    affected_fields: list[str] = Field(default_factory=list)
    completion: ModelCompletion | None = None


class ModelView(CamelModel):
    """Read view of one sub-model: its fields plus completion and validation."""

    model: str
    fields: dict[str, str]
    completion: ModelCompletion
    validation: ValidationResult


# =============================================================================
# Venture profile
# =============================================================================

VENTURE_DIMENSIONS: tuple[str, ...] = (
    "ventureStage",
    "impactAreas",
    "impactMechanisms",
    "legalStructure",
    "revenueSources",
    "fundingSources",
    "industries",
)

SINGLE_VALUE_DIMENSIONS = frozenset({"ventureStage", "legalStructure"})


class VentureDimensions(CamelModel):
    venture_stage: str | None = None
    impact_areas: list[str] = Field(default_factory=list)
    impact_mechanisms: list[str] = Field(default_factory=list)
    legal_structure: str | None = None
    revenue_sources: list[str] = Field(default_factory=list)
    funding_sources: list[str] = Field(default_factory=list)
    industries: list[str] = Field(default_factory=list)

    def get(self, dimension: str) -> str | list[str] | None:
        return getattr(self, to_snake(dimension))


def _zero_confidence() -> dict[str, float]:
    return {dimension: 0.0 for dimension in VENTURE_DIMENSIONS}


def _unconfirmed() -> dict[str, bool]:
    return {dimension: False for dimension in VENTURE_DIMENSIONS}


class VentureProfile(CamelModel):
    """Classification of the venture used to filter knowledge search."""

    dimensions: VentureDimensions = Field(default_factory=VentureDimensions)
    confidence: dict[str, float] = Field(default_factory=_zero_confidence)
    confirmed: dict[str, bool] = Field(default_factory=_unconfirmed)
    created_at: str | None = None
    updated_at: str | None = None

    def is_eligible(self, dimension: str) -> bool:
        """Whether a dimension is trusted enough to filter search results."""
        if self.confirmed.get(dimension, False):
            return True
        return self.confidence.get(dimension, 0.0) >= CONFIDENCE_THRESHOLD

    def filtering_dimensions(self) -> dict[str, str | list[str]]:
        """Eligible dimensions that also carry a non-empty value."""
        result: dict[str, str | list[str]] = {}
        for dimension in VENTURE_DIMENSIONS:
            value = self.dimensions.get(dimension)
            if value and self.is_eligible(dimension):
                result[dimension] = value
        return result
