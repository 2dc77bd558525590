"""Chained-field validation rules.

Every sub-model is a set of text fields with a minimum length and an explicit
list of fields each one depends on. ``ChainedFieldValidator`` interprets those
tables; the Customer, Economic and Impact managers differ only in the tables
they pass in and in their whole-model warnings.
"""

from dataclasses import dataclass

from slc_advisor.errors import IssueCode


@dataclass(frozen=True)
class FieldRule:
    """Validation rule for one field.

    Attributes:
        key: Field identifier
        label: Display label used in messages
        min_length: Characters required for the field to count as filled
        depends_on: Fields that must be filled before this one may be written
        prompts: Guiding questions offered when this field is next
    """

    key: str
    label: str
    min_length: int
    depends_on: tuple[str, ...] = ()
    prompts: tuple[str, ...] = ()


@dataclass(frozen=True)
class RuleViolation:
    """Why a write was refused."""

    code: IssueCode
    message: str


class ChainedFieldValidator:
    """Applies dependency gating and length rules to a table of fields.

    Args:
        rules: Field rules in declared order
        dependency_note: Suffix appended to dependency messages
    """

    def __init__(self, rules: tuple[FieldRule, ...], dependency_note: str = "") -> None:
        self.rules = {rule.key: rule for rule in rules}
        self.order = tuple(rule.key for rule in rules)
        self.dependency_note = dependency_note

        for rule in rules:
            unknown = [dep for dep in rule.depends_on if dep not in self.rules]
            if unknown:
                raise ValueError(f"Rule '{rule.key}' depends on unknown fields: {unknown}")

    def is_filled(self, key: str, values: dict[str, str]) -> bool:
        return len(values.get(key) or "") >= self.rules[key].min_length

    def check_write(self, key: str, content: str, values: dict[str, str]) -> RuleViolation | None:
        """Return the first rule a write of ``content`` to ``key`` would break.

        Checks, in order: the key is known, each dependency is filled to its
        own minimum length, and the new content meets this field's minimum.
        """
        rule = self.rules.get(key)
        if rule is None:
            return RuleViolation(
                IssueCode.VALIDATION,
                f"Invalid section: {key}. Valid sections: {', '.join(self.order)}",
            )

        for dep in rule.depends_on:
            if not self.is_filled(dep, values):
                return RuleViolation(
                    IssueCode.DEPENDENCY,
                    f'Complete "{self.rules[dep].label}" before "{rule.label}"{self.dependency_note}',
                )

        if len(content) < rule.min_length:
            return RuleViolation(
                IssueCode.CONTENT_TOO_SHORT,
                f'"{rule.label}" needs more detail (minimum {rule.min_length} characters)',
            )
        return None

    def completed(self, values: dict[str, str]) -> list[str]:
        return [key for key in self.order if self.is_filled(key, values)]

    def missing(self, values: dict[str, str]) -> list[str]:
        return [key for key in self.order if not self.is_filled(key, values)]

    def next_field(self, values: dict[str, str]) -> str | None:
        """First unfilled field, in declared order, whose dependencies are filled."""
        for key in self.missing(values):
            if all(self.is_filled(dep, values) for dep in self.rules[key].depends_on):
                return key
        return None

    def unmet_dependencies(self, key: str, values: dict[str, str]) -> list[str]:
        return [dep for dep in self.rules[key].depends_on if not self.is_filled(dep, values)]


def chain_rules(
    keys: tuple[str, ...],
    labels: dict[str, str],
    min_length: int,
    prompts: dict[str, tuple[str, ...]],
) -> tuple[FieldRule, ...]:
    """Build rules where every field depends on all the fields before it."""
    return tuple(
        FieldRule(
            key=key,
            label=labels[key],
            min_length=min_length,
            depends_on=keys[:index],
            prompts=prompts.get(key, ()),
        )
        for index, key in enumerate(keys)
    )
