"""
Lookup router — dropdown data for the editors.

GET /lookup?type=curriculums|grades|subjects|topics|section_types
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database.database import get_db
from database import crud
from generation.blueprint_builder import SECTION_TYPE_LABELS, allowed_types

router = APIRouter(prefix="/lookup", tags=["lookup"])

LOOKUP_TYPES = ("curriculums", "grades", "subjects", "topics", "section_types")


@router.get("")
def lookup(
    type: Optional[str] = None,
    curriculum_id: Optional[int] = None,
    grade_id: Optional[int] = None,
    subject_id: Optional[int] = None,
    level: Optional[str] = None,
    db: Session = Depends(get_db),
):
    if type == "curriculums":
        return {"curriculums": [
            {"id": c.id, "name": c.name} for c in crud.get_curriculums(db)
        ]}

    if type == "grades":
        return {"grades": [
            {
                "id": g.id,
                "curriculum_id": g.curriculum_id,
                "name": g.name,
                "level": g.level,
                "band": g.band,
                "level_order": g.level_order,
            }
            for g in crud.get_grades(db, curriculum_id=curriculum_id, level=level)
        ]}

    if type == "subjects":
        return {"subjects": [
            {"id": s.id, "name": s.name}
            for s in crud.get_subjects(db, grade_id=grade_id, level=level)
        ]}

    if type == "topics":
        return {"topics": [
            {
                "id": t.id,
                "subject_id": t.subject_id,
                "grade_id": t.grade_id,
                "topic_number": t.topic_number,
                "name": t.name,
                "description": t.description,
                "sort_order": t.sort_order,
            }
            for t in crud.get_topics(db, subject_id=subject_id, grade_id=grade_id)
        ]}

    if type == "section_types":
        return {"section_types": [
            {"value": key, "label": label, "question_types": allowed_types(key)}
            for key, label in SECTION_TYPE_LABELS.items()
        ]}

    raise HTTPException(
        status_code=400,
        detail=f"Invalid type. Use: {', '.join(LOOKUP_TYPES)}",
    )
