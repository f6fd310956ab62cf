"""
Step 4 — Paper Assembly Engine

Runs the Section Resolver for each template section in declared order,
threading the used-id set from one section to the next, then totals the
paper and decides whether it is complete.

Earlier sections claim questions first. There is no backtracking: a section
that comes up short stays short and is reported in the warnings.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from database import crud
from generation.blueprint_builder import build_blueprint, types_label
from generation.errors import QuestionQueryError, TemplateNotFoundError
from generation.retrieval_engine import QueryFn, make_question_pool
from generation.schemas import (
    GeneratedSection, GeneratePaperResponse, PaperOutput, PaperSummary,
    SectionSpec, TemplateBlueprint,
)
from generation.section_resolver import resolve_section
from generation.shuffle import Permutation, fisher_yates_shuffle

log = logging.getLogger("generation.pipeline")


def shortfall_warning(section: SectionSpec, actual: int) -> str:
    """'Section B (Structured): Only 3 of 5 required 4-mark questions available'."""
    return (
        f"Section {section.section_label} ({section.name or types_label(section.section_type)}): "
        f"Only {actual} of {section.question_count} required "
        f"{section.marks_per_question}-mark questions available"
    )


def assemble_paper(
    blueprint: TemplateBlueprint,
    query_fn: QueryFn,
    prefer_topics: Optional[List[str]] = None,
    permute: Permutation = fisher_yates_shuffle,
) -> GeneratePaperResponse:
    """
    Step 4: Build the paper for a blueprint.

    Args:
        blueprint:     Template with its ordered sections
        query_fn:      Question pool, filters → questions
        prefer_topics: Optional global topic preference
        permute:       Ordering used for section and within-section shuffles

    Returns:
        GeneratePaperResponse with per-section results, totals, warnings
    """
    sections = list(blueprint.sections)
    if blueprint.shuffle_sections:
        sections = permute(sections)

    generated: List[GeneratedSection] = []
    warnings: List[str] = []
    used_ids = frozenset()

    for section in sections:
        try:
            selected, used_ids = resolve_section(
                section, blueprint, used_ids, query_fn,
                prefer_topics=prefer_topics, permute=permute,
            )
        except QuestionQueryError as e:
            log.error(f"[SECTION {section.section_label}] Question query failed: {e}")
            warnings.append(f"Error fetching questions for Section {section.section_label}")
            continue

        actual = len(selected)
        log.info(f"[SECTION {section.section_label}] {actual}/{section.question_count} selected")
        if actual < section.question_count:
            warning = shortfall_warning(section, actual)
            log.warning(f"[SECTION {section.section_label}] {warning}")
            warnings.append(warning)

        generated.append(GeneratedSection(
            label=section.section_label,
            name=section.name or f"Section {section.section_label}",
            section_type=section.section_type,
            questions=selected,
            required_count=section.question_count,
            actual_count=actual,
            marks_per_question=section.marks_per_question,
            total_marks=actual * section.marks_per_question,
            instructions=section.instructions,
        ))

    achieved_marks = sum(s.total_marks for s in generated)
    achieved_questions = sum(s.actual_count for s in generated)
    # Required count comes from the template, including sections whose query failed
    required_questions = sum(s.question_count for s in blueprint.sections)

    is_complete = (
        achieved_marks == blueprint.total_marks
        and achieved_questions == required_questions
    )

    return GeneratePaperResponse(
        success=True,
        paper=PaperOutput(
            template_id=blueprint.template_id,
            template_name=blueprint.name,
            subject_name=blueprint.subject_name,
            grade_name=blueprint.grade_name,
            time_limit=blueprint.time_limit,
            target_total_marks=blueprint.total_marks,
            achieved_total_marks=achieved_marks,
            sections=generated,
        ),
        is_complete=is_complete,
        warnings=warnings,
        summary=PaperSummary(
            total_questions=achieved_questions,
            required_questions=required_questions,
            total_marks=achieved_marks,
            required_marks=blueprint.total_marks,
        ),
    )


def generate_paper(
    db: Session,
    template_id: int,
    prefer_topics: Optional[List[str]] = None,
    permute: Permutation = fisher_yates_shuffle,
) -> GeneratePaperResponse:
    """
    Load a template and assemble a paper from the question bank.

    Raises:
        TemplateNotFoundError: no template with that id
        InvalidTemplateError:  stored sections are malformed
    """
    template = crud.get_template(db, template_id)
    if template is None:
        raise TemplateNotFoundError(template_id)

    blueprint = build_blueprint(template)
    log.info(
        f"[GENERATE] template={template_id} '{blueprint.name}', "
        f"{len(blueprint.sections)} sections, target={blueprint.total_marks}M"
    )

    result = assemble_paper(
        blueprint, make_question_pool(db),
        prefer_topics=prefer_topics, permute=permute,
    )
    log.info(
        f"[GENERATE] template={template_id}: {result.summary.total_marks}/{result.summary.required_marks}M, "
        f"{result.summary.total_questions}/{result.summary.required_questions}Q, "
        f"complete={result.is_complete}, warnings={len(result.warnings)}"
    )
    return result
