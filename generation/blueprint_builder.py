"""
Step 1 — Blueprint Builder

Converts a stored PaperTemplate row into a TemplateBlueprint and owns the
fixed section_type → allowed question type table (deterministic, no LLM).
"""

import logging
from types import MappingProxyType
from typing import List, Mapping, Tuple

from pydantic import ValidationError

from database.models import PaperTemplate
from generation.errors import InvalidTemplateError
from generation.schemas import SectionSpec, TemplateBlueprint

log = logging.getLogger("generation.pipeline")


# ─── Section type → question types (deterministic) ────────────────────────────
# An empty tuple means the section accepts any question type.

SECTION_TYPE_MAPPING: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "multiple_choice":  ("Multiple Choice",),
    "true_false":       ("True/False",),
    "structured":       ("Structured", "Short Answer"),
    "essay":            ("Essay",),
    "matching":         ("Matching",),
    "fill_blanks":      ("Fill in the Blanks",),
    "calculation":      ("Numeric", "Calculation"),
    "diagram_labeling": ("Diagram Labeling",),
    "comprehension":    ("Comprehension",),
    "practical":        ("Practical",),
    "general":          (),
})

SECTION_TYPE_LABELS: Mapping[str, str] = MappingProxyType({
    "multiple_choice":  "Multiple Choice",
    "true_false":       "True / False",
    "structured":       "Structured / Short Answer",
    "essay":            "Essay",
    "matching":         "Matching",
    "fill_blanks":      "Fill in the Blanks",
    "calculation":      "Calculation",
    "diagram_labeling": "Diagram Labeling",
    "comprehension":    "Comprehension",
    "practical":        "Practical",
    "general":          "General (any type)",
})


def allowed_types(section_type: str) -> List[str]:
    """Question types a section may draw from. [] = unrestricted (also for unknown keys)."""
    return list(SECTION_TYPE_MAPPING.get(section_type, ()))


def types_label(section_type: str) -> str:
    """Human-readable type list for warnings: 'Structured/Short Answer' or 'any type'."""
    types = allowed_types(section_type)
    return "/".join(types) if types else "any type"


def parse_sections(raw_sections) -> List[SectionSpec]:
    """Validate the JSON section list stored on a template."""
    if not isinstance(raw_sections, list):
        raise InvalidTemplateError("Template sections must be a list")
    if not raw_sections:
        raise InvalidTemplateError("Template has no sections")
    try:
        return [SectionSpec.model_validate(s) for s in raw_sections]
    except ValidationError as e:
        raise InvalidTemplateError(f"Invalid section in template: {e}") from e


def build_blueprint(template: PaperTemplate) -> TemplateBlueprint:
    """
    Step 1: Convert a PaperTemplate row → TemplateBlueprint.

    - Validates the stored sections JSON (declared order is preserved)
    - Carries subject / grade scope plus their display names
    - Carries the shuffle flags

    Args:
        template: PaperTemplate with subject and grade relationships loadable

    Returns:
        TemplateBlueprint ready for section resolution
    """
    sections = parse_sections(template.sections or [])

    unknown = [s.section_type for s in sections if s.section_type not in SECTION_TYPE_MAPPING]
    if unknown:
        log.warning(f"[STEP 1] Template {template.id}: unknown section types {unknown}, treated as 'general'")

    return TemplateBlueprint(
        template_id=template.id,
        name=template.name,
        subject_id=template.subject_id,
        grade_id=template.grade_id,
        subject_name=template.subject.name if template.subject else None,
        grade_name=template.grade.name if template.grade else None,
        total_marks=template.total_marks,
        time_limit=template.time_limit,
        shuffle_within_sections=bool(template.shuffle_within_sections),
        shuffle_sections=bool(template.shuffle_sections),
        sections=sections,
    )
