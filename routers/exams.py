"""
Exams router.
A stored exam is a finished paper: cover metadata plus the ordered question ids.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from auth.security import get_optional_user_id
from database.database import get_db
from database import crud, schemas
from database.crud import question_to_dict
from database.models import Exam
from generation.usage_tracker import increment_usage

router = APIRouter(prefix="/exams", tags=["exams"])

log = logging.getLogger(__name__)


def _exam_dict(e: Exam) -> dict:
    return {
        "id": e.id,
        "title": e.title,
        "subject": e.subject,
        "code": e.code,
        "curriculum_id": e.curriculum_id,
        "grade_id": e.grade_id,
        "subject_id": e.subject_id,
        "curriculum_name": e.curriculum.name if e.curriculum else None,
        "grade_name": e.grade.name if e.grade else None,
        "subject_name": e.subject_ref.name if e.subject_ref else None,
        "term": e.term,
        "total_marks": e.total_marks,
        "time_limit": e.time_limit,
        "institution": e.institution,
        "exam_board": e.exam_board,
        "pdf_url": e.pdf_url,
        "question_ids": e.question_ids or [],
        "question_count": e.question_count,
        "is_public": e.is_public,
        "created_by": e.created_by,
        "created_at": e.created_at.isoformat() if e.created_at else None,
    }


@router.get("")
def list_exams(
    curriculum_id: Optional[int] = None,
    grade_id: Optional[int] = None,
    subject_id: Optional[int] = None,
    term: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    exams = crud.list_exams(
        db,
        curriculum_id=curriculum_id,
        grade_id=grade_id,
        subject_id=subject_id,
        term=term,
        search=search,
        limit=limit,
        offset=offset,
    )
    return {"exams": [_exam_dict(e) for e in exams], "count": len(exams)}


@router.post("")
def create_exam(
    exam: schemas.ExamCreate,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """Store an exam and count one more use for each of its questions."""
    db_exam = crud.create_exam(db, exam, created_by=user_id)
    increment_usage(db, exam.question_ids)
    log.info(f"[EXAMS] Created exam {db_exam.id} '{db_exam.title}' with {db_exam.question_count} questions")

    db_exam = crud.get_exam(db, db_exam.id)
    return {"success": True, "exam": _exam_dict(db_exam), "pdf_url": db_exam.pdf_url}


@router.get("/{exam_id}")
def get_exam(exam_id: int, db: Session = Depends(get_db)):
    """Exam with its questions in paper order."""
    e = crud.get_exam(db, exam_id)
    if not e:
        raise HTTPException(status_code=404, detail="Exam not found")

    by_id = {q.id: q for q in crud.get_questions_by_ids(db, e.question_ids or [])}
    questions = [question_to_dict(by_id[qid]) for qid in e.question_ids or [] if qid in by_id]
    return {**_exam_dict(e), "questions": questions}
