"""Canvas aggregate: one canvas, its three model managers and its stores.

The aggregate is the single owner of a canvas directory. Reads assemble a
fresh ``CanvasState`` every time; writes are routed by section id to the
standalone rule or to the manager that owns the section.
"""

import logging
from pathlib import Path

from slc_advisor import exporters
from slc_advisor.canvas.managers import (
    CustomerModelManager,
    EconomicModelManager,
    ImpactModelManager,
    ModelManager,
)
from slc_advisor.canvas.models import (
    SINGLE_VALUE_DIMENSIONS,
    VENTURE_DIMENSIONS,
    CanvasSection,
    CanvasState,
    ModelCompletion,
    ModelView,
    UpdateResult,
    VentureProfile,
)
from slc_advisor.canvas.rules import ChainedFieldValidator, FieldRule
from slc_advisor.canvas.sections import (
    CANVAS_SECTIONS,
    SECTION_LABELS,
    SECTION_TO_MODEL,
    STANDALONE_SECTIONS,
)
from slc_advisor.canvas.store import (
    CanvasMeta,
    CanvasMetaStore,
    ImpactChainStore,
    SectionStore,
    VentureProfileStore,
)
from slc_advisor.config import SECTION_MIN_LENGTH, ModelName
from slc_advisor.errors import IssueCode

logger = logging.getLogger(__name__)

_STANDALONE_RULES = tuple(
    FieldRule(key=key, label=SECTION_LABELS[key], min_length=SECTION_MIN_LENGTH) for key in STANDALONE_SECTIONS
)


class CanvasAggregate:
    """All reads and writes for a single canvas.

    Args:
        canvas_dir: Directory holding the canvas files. Created by
            ``CanvasRepository.create``; the aggregate never creates it.
    """

    def __init__(self, canvas_dir: Path) -> None:
        self.canvas_dir = canvas_dir
        self.meta = CanvasMetaStore(canvas_dir)
        self.sections = SectionStore(canvas_dir)
        self.impact_chain = ImpactChainStore(canvas_dir)
        self.venture = VentureProfileStore(canvas_dir)

        self.customer_manager = CustomerModelManager(self.sections)
        self.economic_manager = EconomicModelManager(self.sections)
        self.impact_manager = ImpactModelManager(self.impact_chain)
        self._standalone = ChainedFieldValidator(_STANDALONE_RULES)

        self._managers: dict[ModelName, ModelManager] = {
            ModelName.CUSTOMER: self.customer_manager,
            ModelName.ECONOMIC: self.economic_manager,
            ModelName.IMPACT: self.impact_manager,
        }

    def initialize(self, canvas_id: str, name: str) -> CanvasMeta:
        """Create empty rows for a brand-new canvas."""
        meta = self.meta.create(canvas_id, name)
        self.sections.initialize()
        self.impact_chain.initialize()
        self.venture.initialize()
        logger.info(f"Initialized canvas {canvas_id} ('{name}')")
        return meta

    @property
    def canvas_id(self) -> str:
        return self.canvas_dir.name

    # =========================================================================
    # Reads
    # =========================================================================

    def get_full_canvas(self) -> CanvasState:
        """Assemble the full canvas from the stores."""
        meta = self.meta.load()
        rows = self.sections.rows()
        chain = self.impact_chain.load()

        sections: list[CanvasSection] = []
        for key in CANVAS_SECTIONS:
            if key == "impact":
                sections.append(
                    CanvasSection(
                        section_key=key,
                        content=chain.impact,
                        is_complete=chain.is_complete,
                        updated_at=chain.updated_at,
                    )
                )
                continue
            content = rows[key].get("content", "")
            sections.append(
                CanvasSection(
                    section_key=key,
                    content=content,
                    is_complete=len(content) >= SECTION_MIN_LENGTH,
                    updated_at=rows[key].get("updatedAt"),
                )
            )

        completed = sum(1 for section in sections if section.is_complete)
        return CanvasState(
            id=meta.id,
            name=meta.name,
            sections=sections,
            impact_model=chain,
            current_section=meta.current_section,
            completion_percentage=round(100 * completed / len(CANVAS_SECTIONS)),
            created_at=meta.created_at,
            updated_at=meta.updated_at,
        )

    def get_model_view(self, model: ModelName) -> ModelView:
        manager = self._managers[model]
        return ModelView(
            model=model.value,
            fields=manager.get_model(),
            completion=manager.get_completion(),
            validation=manager.validate(),
        )

    def get_customer_model(self) -> ModelView:
        return self.get_model_view(ModelName.CUSTOMER)

    def get_economic_model(self) -> ModelView:
        return self.get_model_view(ModelName.ECONOMIC)

    def get_impact_model(self) -> ModelView:
        return self.get_model_view(ModelName.IMPACT)

    def get_overall_completion(self) -> ModelCompletion:
        canvas = self.get_full_canvas()
        completed = [s.section_key for s in canvas.sections if s.is_complete]
        missing = [s.section_key for s in canvas.sections if not s.is_complete]

        if missing:
            suggestions = [f'Continue working on "{SECTION_LABELS[missing[0]]}"']
        else:
            suggestions = ["Canvas complete! Review your work."]

        return ModelCompletion(
            percentage=canvas.completion_percentage,
            completed_sections=completed,
            missing_sections=missing,
            suggestions=suggestions,
        )

    # =========================================================================
    # Writes
    # =========================================================================

    def update_section(self, key: str, content: str) -> UpdateResult:
        """Write a canvas section, routing it to the rule that owns it.

        ``impact`` writes the last field of the impact chain and therefore
        requires the whole chain before it.
        """
        if key not in SECTION_TO_MODEL:
            return UpdateResult(
                success=False,
                errors=[f"Invalid section: {key}. Valid sections: {', '.join(CANVAS_SECTIONS)}"],
                error_code=IssueCode.VALIDATION.value,
                completion=self.get_overall_completion(),
            )

        model = SECTION_TO_MODEL[key]
        if model is None:
            result = self._update_standalone(key, content)
        else:
            result = self._managers[model].update_section(key, content)

        if result.success:
            self.meta.touch()
        return result

    def update_impact_field(self, field: str, content: str) -> UpdateResult:
        """Write one field of the impact chain."""
        result = self.impact_manager.update_section(field, content)
        if result.success:
            self.meta.touch()
        return result

    def _update_standalone(self, key: str, content: str) -> UpdateResult:
        violation = self._standalone.check_write(key, content, {})
        if violation is not None:
            logger.info(f"Rejected write to standalone section '{key}' ({violation.code.value})")
            return UpdateResult(
                success=False,
                errors=[violation.message],
                error_code=violation.code.value,
                completion=self.get_overall_completion(),
            )

        self.sections.write(key, content)
        logger.info(f"Updated standalone section '{key}'")
        return UpdateResult(success=True, updated_section=key, completion=self.get_overall_completion())

    def set_current_section(self, key: str | None) -> None:
        """Record which section the user is working through."""
        if key is not None and key not in SECTION_TO_MODEL:
            raise ValueError(f"Invalid section: {key}")
        self.meta.update(current_section=key)

    # =========================================================================
    # Venture profile
    # =========================================================================

    def get_venture_profile(self) -> VentureProfile:
        return self.venture.load()

    def update_venture_dimension(
        self,
        dimension: str,
        value: str | list[str] | None,
        confidence: float | None = None,
        confirmed: bool | None = None,
    ) -> VentureProfile:
        """Set one venture dimension.

        Raises:
            ValueError: If the dimension is unknown, the value has the wrong
                shape, or confidence is outside [0, 1].
        """
        if dimension not in VENTURE_DIMENSIONS:
            raise ValueError(f"Unknown venture dimension: {dimension}. Valid: {', '.join(VENTURE_DIMENSIONS)}")
        if dimension in SINGLE_VALUE_DIMENSIONS:
            if value is not None and not isinstance(value, str):
                raise ValueError(f"{dimension} takes a single value")
        elif not isinstance(value, list):
            raise ValueError(f"{dimension} takes a list of values")
        if confidence is not None and not 0.0 <= confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0 and 1, got {confidence}")

        profile = self.venture.update_dimension(dimension, value, confidence, confirmed)
        self.meta.touch()
        return profile

    def get_dimensions_for_filtering(self) -> dict[str, str | list[str]]:
        """Dimensions trusted enough to filter knowledge search."""
        return self.get_venture_profile().filtering_dimensions()

    # =========================================================================
    # Export
    # =========================================================================

    def export_canvas(self, fmt: str) -> str:
        """Export the full canvas as ``json``, ``md`` or ``txt``."""
        exporter = exporters.get_exporter(fmt)
        return exporter.export(self.get_full_canvas(), self.get_venture_profile())

