"""
Paper Template router.
Templates describe a paper as ordered sections (type, marks per question,
question count, optional topics). /paper/generate turns one into a paper.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database.database import get_db
from database import crud, schemas
from database.models import PaperTemplate
from generation.blueprint_builder import allowed_types, parse_sections
from generation.errors import InvalidTemplateError

router = APIRouter(prefix="/templates", tags=["templates"])


def _template_dict(t: PaperTemplate) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "description": t.description,
        "subject_id": t.subject_id,
        "grade_id": t.grade_id,
        "subject_name": t.subject.name if t.subject else None,
        "grade_name": t.grade.name if t.grade else None,
        "total_marks": t.total_marks,
        "time_limit": t.time_limit,
        "sections": t.sections or [],
        "shuffle_within_sections": t.shuffle_within_sections,
        "shuffle_sections": t.shuffle_sections,
        "is_default": t.is_default,
        "created_by": t.created_by,
        "created_at": t.created_at.isoformat() if t.created_at else None,
        "updated_at": t.updated_at.isoformat() if t.updated_at else None,
    }


# ─── Routes ────────────────────────────────────────────────────────────────────

@router.get("")
def list_templates(
    subject_id: Optional[int] = None,
    grade_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    templates = crud.list_templates(db, subject_id=subject_id, grade_id=grade_id)
    return {"templates": [_template_dict(t) for t in templates]}


@router.post("")
def create_template(template: schemas.TemplateCreate, db: Session = Depends(get_db)):
    if not template.name or not template.name.strip():
        raise HTTPException(status_code=400, detail="Template name is required")
    if not template.sections:
        raise HTTPException(status_code=400, detail="At least one section is required")

    db_template = crud.create_template(db, template)
    return {"success": True, "template": _template_dict(db_template)}


@router.get("/{template_id}")
def get_template(template_id: int, db: Session = Depends(get_db)):
    t = crud.get_template(db, template_id)
    if not t:
        raise HTTPException(status_code=404, detail="Template not found")
    return _template_dict(t)


@router.put("/{template_id}")
def update_template(
    template_id: int,
    update: schemas.TemplateUpdate,
    db: Session = Depends(get_db),
):
    """Update whitelisted fields only; unknown keys in the body are ignored."""
    t = crud.update_template(db, template_id, update)
    if not t:
        raise HTTPException(status_code=404, detail="Template not found")
    return {"success": True, "template": _template_dict(t)}


@router.delete("/{template_id}")
def delete_template(template_id: int, db: Session = Depends(get_db)):
    if not crud.delete_template(db, template_id):
        raise HTTPException(status_code=404, detail="Template not found")
    return {"success": True}


@router.get("/{template_id}/preview")
def preview_template(template_id: int, db: Session = Depends(get_db)):
    """
    Sections with the question types each will draw from, and whether the
    sections add up to the template's declared total marks.
    """
    t = crud.get_template(db, template_id)
    if not t:
        raise HTTPException(status_code=404, detail="Template not found")
    try:
        sections = parse_sections(t.sections or [])
    except InvalidTemplateError as e:
        raise HTTPException(status_code=422, detail=str(e))

    computed_marks = sum(s.question_count * s.marks_per_question for s in sections)
    return {
        "template_id": t.id,
        "name": t.name,
        "sections": [
            {
                "section_label": s.section_label,
                "name": s.name,
                "section_type": s.section_type,
                "allowed_types": allowed_types(s.section_type),
                "question_count": s.question_count,
                "marks_per_question": s.marks_per_question,
                "section_marks": s.question_count * s.marks_per_question,
                "topics": s.topics,
            }
            for s in sections
        ],
        "declared_total_marks": t.total_marks,
        "computed_total_marks": computed_marks,
        "marks_mismatch": computed_marks != t.total_marks,
        "total_questions": sum(s.question_count for s in sections),
    }
