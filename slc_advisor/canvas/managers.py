"""Business-rule layer over the canvas stores.

One ``ModelManager`` per sub-model. Each subclass declares its field rules as
class attributes; dependency gating, length checks, completion and guided
prompts all come from ``ChainedFieldValidator``. Subclasses only add the
whole-model warnings that are specific to them.

Customer and Impact enforce ordered dependencies. Economic sections may be
written in any order.
"""

import json
import logging
from typing import ClassVar, Protocol

from slc_advisor.canvas.models import ModelCompletion, UpdateResult, ValidationIssue, ValidationResult
from slc_advisor.canvas.rules import ChainedFieldValidator, FieldRule, chain_rules
from slc_advisor.canvas.sections import IMPACT_FIELD_LABELS, IMPACT_FIELDS, SECTION_LABELS
from slc_advisor.config import IMPACT_FIELD_MIN_LENGTH, SECTION_MIN_LENGTH, ModelName

logger = logging.getLogger(__name__)


class FieldStore(Protocol):
    """Storage a manager reads from and writes to."""

    def contents(self) -> dict[str, str]: ...

    def write(self, key: str, content: str) -> str: ...


class ModelManager:
    """Validation, completion and export for one sub-model.

    Subclasses set ``model_name``, ``title``, ``rules`` and
    ``complete_message``.
    """

    model_name: ClassVar[ModelName]
    title: ClassVar[str] = ""
    rules: ClassVar[tuple[FieldRule, ...]] = ()
    complete_message: ClassVar[str] = ""
    dependency_note: ClassVar[str] = ""

    def __init__(self, store: FieldStore) -> None:
        self.store = store
        self.validator = ChainedFieldValidator(self.rules, self.dependency_note)

    @property
    def fields(self) -> tuple[str, ...]:
        return self.validator.order

    def get_model(self) -> dict[str, str]:
        """Current content of every field in this model, in declared order."""
        contents = self.store.contents()
        return {key: contents.get(key, "") for key in self.fields}

    def update_section(self, key: str, content: str) -> UpdateResult:
        """Write one field if every rule allows it.

        Rule violations come back as a failed ``UpdateResult``; nothing is
        written in that case.
        """
        values = self.get_model()
        violation = self.validator.check_write(key, content, values)
        if violation is not None:
            logger.info(f"{self.title}: rejected write to '{key}' ({violation.code.value})")
            return UpdateResult(
                success=False,
                errors=[violation.message],
                error_code=violation.code.value,
                completion=self.get_completion(),
            )

        self.store.write(key, content)
        logger.info(f"{self.title}: updated '{key}'")
        return UpdateResult(
            success=True,
            updated_section=key,
            affected_fields=self._affected_fields(key),
            completion=self.get_completion(),
        )

    def validate(self) -> ValidationResult:
        values = self.get_model()
        errors, warnings = self._check_fields(values)
        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)

    def get_completion(self) -> ModelCompletion:
        values = self.get_model()
        completed = self.validator.completed(values)
        missing = self.validator.missing(values)

        suggestions: list[str] = []
        next_field = self.validator.next_field(values)
        if next_field is not None:
            suggestions.extend(self.validator.rules[next_field].prompts)
        elif not missing:
            suggestions.append(self.complete_message)

        return ModelCompletion(
            percentage=round(100 * len(completed) / len(self.fields)),
            completed_sections=completed,
            missing_sections=missing,
            suggestions=suggestions,
        )

    def is_complete(self) -> bool:
        return not self.validator.missing(self.get_model())

    def export(self, fmt: str) -> str:
        """Export this model as ``json`` or ``md``."""
        values = self.get_model()
        if fmt == "json":
            return json.dumps(values, indent=2)
        if fmt != "md":
            raise ValueError(f"Unknown export format: {fmt}. Available: json, md")

        lines = [f"# {self.title}", ""]
        for key in self.fields:
            lines.append(f"## {self.validator.rules[key].label}")
            lines.append(values[key] or "_Not yet defined_")
            lines.append("")
        return "\n".join(lines)

    # -------------------------------------------------------------------------
    # Hooks for subclasses
    # -------------------------------------------------------------------------

    def _check_fields(self, values: dict[str, str]) -> tuple[list[ValidationIssue], list[ValidationIssue]]:
        """Missing fields are errors; fields filled ahead of a dependency are warnings."""
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []
        for key in self.fields:
            rule = self.validator.rules[key]
            if not self.validator.is_filled(key, values):
                errors.append(
                    ValidationIssue(
                        section=key,
                        message=f'"{rule.label}" is required (minimum {rule.min_length} characters)',
                    )
                )
                continue
            for dep in self.validator.unmet_dependencies(key, values):
                warnings.append(
                    ValidationIssue(
                        section=key,
                        message=f'"{rule.label}" was completed before "{self.validator.rules[dep].label}"',
                    )
                )
        return errors, warnings

    def _affected_fields(self, key: str) -> list[str]:
        return []


# =============================================================================
# Customer Model
# =============================================================================


class CustomerModelManager(ModelManager):
    """Customers, jobs to be done, value proposition and solution."""

    model_name = ModelName.CUSTOMER
    title = "Customer Model"
    complete_message = "Customer Model complete! Review your work or move to the next model."
    rules = (
        FieldRule(
            key="customers",
            label=SECTION_LABELS["customers"],
            min_length=SECTION_MIN_LENGTH,
            prompts=(
                "Who are your primary customers?",
                "What customer segments exist?",
                "Who are your early adopters?",
            ),
        ),
        FieldRule(
            key="jobsToBeDone",
            label=SECTION_LABELS["jobsToBeDone"],
            min_length=SECTION_MIN_LENGTH,
            depends_on=("customers",),
            prompts=(
                "What task are they trying to accomplish?",
                "What problem are they trying to solve?",
                "What do they currently use to get this job done?",
            ),
        ),
        FieldRule(
            key="valueProposition",
            label=SECTION_LABELS["valueProposition"],
            min_length=SECTION_MIN_LENGTH,
            depends_on=("customers", "jobsToBeDone"),
            prompts=(
                "Why would they choose your solution over alternatives?",
                "What unique value do you provide?",
                "How do you help them get the job done better?",
            ),
        ),
        FieldRule(
            key="solution",
            label=SECTION_LABELS["solution"],
            min_length=SECTION_MIN_LENGTH,
            depends_on=("valueProposition",),
            prompts=(
                "What do you provide to deliver that value?",
                "What is your product or service?",
                "How does it work?",
            ),
        ),
    )


# =============================================================================
# Economic Model
# =============================================================================


class EconomicModelManager(ModelManager):
    """Channels, revenue, costs and advantage, in any order."""

    model_name = ModelName.ECONOMIC
    title = "Economic Model"
    complete_message = "Economic Model complete! Review your work or move to the Impact Model."
    rules = (
        FieldRule(
            key="channels",
            label=SECTION_LABELS["channels"],
            min_length=SECTION_MIN_LENGTH,
            prompts=(
                "How do you reach your customers?",
                "What marketing and sales channels will you use?",
                "How will customers discover you?",
            ),
        ),
        FieldRule(
            key="revenue",
            label=SECTION_LABELS["revenue"],
            min_length=SECTION_MIN_LENGTH,
            prompts=(
                "How do you generate income?",
                "What is your pricing model?",
                "What are your revenue streams?",
            ),
        ),
        FieldRule(
            key="costs",
            label=SECTION_LABELS["costs"],
            min_length=SECTION_MIN_LENGTH,
            prompts=(
                "What are your major ongoing expenses?",
                "What does it cost to deliver your solution?",
                "What are your fixed vs variable costs?",
            ),
        ),
        FieldRule(
            key="advantage",
            label=SECTION_LABELS["advantage"],
            min_length=SECTION_MIN_LENGTH,
            prompts=(
                "What can't be easily copied or bought?",
                "What is your unfair advantage?",
                "What moats protect your business?",
            ),
        ),
    )

    def _check_fields(self, values: dict[str, str]) -> tuple[list[ValidationIssue], list[ValidationIssue]]:
        errors, warnings = super()._check_fields(values)
        if self.validator.is_filled("advantage", values) and not self.validator.is_filled("revenue", values):
            warnings.append(
                ValidationIssue(
                    section="advantage",
                    message="Consider defining your revenue model before finalizing your advantage",
                )
            )
        return errors, warnings


# =============================================================================
# Impact Model
# =============================================================================

IMPACT_PROMPTS: dict[str, tuple[str, ...]] = {
    "issue": (
        "What specific social or environmental problem are you addressing?",
        "What is the current situation that needs to change?",
        "Who is affected and how?",
    ),
    "participants": (
        "Who are the key stakeholders affected by this issue?",
        "Who will participate in or benefit from your activities?",
        "What communities or groups are involved?",
    ),
    "activities": (
        "What specific actions or interventions will you implement?",
        "What programs or services will you deliver?",
        "How will you engage participants?",
    ),
    "outputs": (
        "What direct, countable products will your activities deliver?",
        "How many people will you reach, and with what?",
        "What will you measure to show the activities happened?",
    ),
    "shortTermOutcomes": (
        "What immediate changes will occur (0-1 year)?",
        "What awareness, knowledge, or skills will participants gain?",
        "What access or resources will improve?",
    ),
    "mediumTermOutcomes": (
        "What changes will emerge over 1-3 years?",
        "What behavior or practice changes do you expect?",
        "What decisions or actions will participants take differently?",
    ),
    "longTermOutcomes": (
        "What sustained changes happen over 3+ years?",
        "What systemic or structural shifts do you aim for?",
        "What lasting improvements will result?",
    ),
    "impact": (
        "What is the ultimate state of change you seek?",
        "How will the world be different because of your work?",
        "What is your vision of success?",
    ),
}


class ImpactModelManager(ModelManager):
    """The impact causality chain, issue through impact.

    Each field depends on every field before it, so the chain can only be
    filled front to back.
    """

    model_name = ModelName.IMPACT
    title = "Impact Model (Theory of Change)"
    complete_message = "Impact Model complete! Your theory of change is documented."
    dependency_note = " (chain of causality)"
    rules = chain_rules(IMPACT_FIELDS, IMPACT_FIELD_LABELS, IMPACT_FIELD_MIN_LENGTH, IMPACT_PROMPTS)

    def _check_fields(self, values: dict[str, str]) -> tuple[list[ValidationIssue], list[ValidationIssue]]:
        """Classify fields by their position relative to the first gap in the chain."""
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []
        chain_broken = False
        for key in self.fields:
            label = self.validator.rules[key].label
            if not self.validator.is_filled(key, values):
                if not chain_broken:
                    errors.append(
                        ValidationIssue(
                            section=key,
                            message=f'"{label}" is required to complete the causality chain',
                        )
                    )
                    chain_broken = True
                else:
                    warnings.append(ValidationIssue(section=key, message=f'"{label}" will need to be completed'))
            elif chain_broken:
                warnings.append(ValidationIssue(section=key, message=f'"{label}" was completed out of order'))
        return errors, warnings

    def _affected_fields(self, key: str) -> list[str]:
        return ["canvas.impact"] if key == "impact" else []
