"""Canvas section catalogue.

Identifiers, display labels and numbering for the eleven canvas sections and
the eight impact-chain fields, plus the static routing of each section to the
sub-model that owns it.
"""

from slc_advisor.config import ModelName

# Display order of the canvas; the 1-based position is the section number.
CANVAS_SECTIONS: tuple[str, ...] = (
    "purpose",
    "customers",
    "jobsToBeDone",
    "valueProposition",
    "solution",
    "channels",
    "revenue",
    "costs",
    "keyMetrics",
    "advantage",
    "impact",
)

# Sections stored as plain rows; ``impact`` lives on the impact chain.
STORED_SECTIONS: tuple[str, ...] = tuple(s for s in CANVAS_SECTIONS if s != "impact")

STANDALONE_SECTIONS: tuple[str, ...] = ("purpose", "keyMetrics")

SECTION_LABELS: dict[str, str] = {
    "purpose": "Purpose",
    "customers": "Customers",
    "jobsToBeDone": "Jobs To Be Done",
    "valueProposition": "Value Proposition",
    "solution": "Solution",
    "channels": "Channels",
    "revenue": "Revenue",
    "costs": "Costs",
    "keyMetrics": "Key Metrics",
    "advantage": "Advantage",
    "impact": "Impact",
}

SECTION_NUMBERS: dict[str, int] = {key: index for index, key in enumerate(CANVAS_SECTIONS, 1)}

# None marks sections that belong to no sub-model.
SECTION_TO_MODEL: dict[str, ModelName | None] = {
    "purpose": None,
    "customers": ModelName.CUSTOMER,
    "jobsToBeDone": ModelName.CUSTOMER,
    "valueProposition": ModelName.CUSTOMER,
    "solution": ModelName.CUSTOMER,
    "channels": ModelName.ECONOMIC,
    "revenue": ModelName.ECONOMIC,
    "costs": ModelName.ECONOMIC,
    "keyMetrics": None,
    "advantage": ModelName.ECONOMIC,
    "impact": ModelName.IMPACT,
}

CUSTOMER_SECTIONS: tuple[str, ...] = ("customers", "jobsToBeDone", "valueProposition", "solution")
ECONOMIC_SECTIONS: tuple[str, ...] = ("channels", "revenue", "costs", "advantage")

# Causality order of the impact chain.
IMPACT_FIELDS: tuple[str, ...] = (
    "issue",
    "participants",
    "activities",
    "outputs",
    "shortTermOutcomes",
    "mediumTermOutcomes",
    "longTermOutcomes",
    "impact",
)

IMPACT_FIELD_LABELS: dict[str, str] = {
    "issue": "Issue",
    "participants": "Participants",
    "activities": "Activities",
    "outputs": "Outputs",
    "shortTermOutcomes": "Short-term Outcomes",
    "mediumTermOutcomes": "Medium-term Outcomes",
    "longTermOutcomes": "Long-term Outcomes",
    "impact": "Impact",
}
