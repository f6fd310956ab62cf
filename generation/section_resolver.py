"""
Step 3 — Section Resolver

Selects the questions for one template section:
pool query → drop used ids → optional shuffle → take question_count.

Never relaxes a filter to make up a shortfall; the caller reports it.
"""

from typing import FrozenSet, List, Optional, Tuple

from generation.blueprint_builder import allowed_types
from generation.retrieval_engine import QueryFn
from generation.schemas import QuestionFilters, SectionSpec, TemplateBlueprint
from generation.shuffle import Permutation, fisher_yates_shuffle


def build_filters(
    section: SectionSpec,
    blueprint: TemplateBlueprint,
    prefer_topics: Optional[List[str]] = None,
) -> QuestionFilters:
    """Pool filters for a section within the template's subject / grade scope."""
    return QuestionFilters(
        marks=section.marks_per_question,
        subject_id=blueprint.subject_id,
        grade_id=blueprint.grade_id,
        types=allowed_types(section.section_type),
        topics=section.topics,
        prefer_topics=prefer_topics or [],
    )


def resolve_section(
    section: SectionSpec,
    blueprint: TemplateBlueprint,
    used_ids: FrozenSet[int],
    query_fn: QueryFn,
    prefer_topics: Optional[List[str]] = None,
    permute: Permutation = fisher_yates_shuffle,
) -> Tuple[List[dict], FrozenSet[int]]:
    """
    Step 3: Pick up to section.question_count questions.

    Args:
        section:       Section to fill
        blueprint:     Template scope (subject / grade) and shuffle flag
        used_ids:      Question ids already claimed by earlier sections in this run
        query_fn:      Question pool, filters → questions in retrieval order
        prefer_topics: Caller-level topic preference, applied on top of section topics
        permute:       Ordering used when the template shuffles within sections

    Returns:
        (selected questions, used_ids extended with the selected ids)

    Raises:
        QuestionQueryError: propagated from query_fn
    """
    candidates = query_fn(build_filters(section, blueprint, prefer_topics))
    available = [q for q in candidates if q["id"] not in used_ids]

    if blueprint.shuffle_within_sections:
        available = permute(available)

    selected = available[:section.question_count]
    return selected, used_ids | {q["id"] for q in selected}
