"""
Question Bank router.
Manual entry, bulk import and AI-assisted extraction of questions, plus the
filters the paper builder uses to browse the bank.
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, File, Form, UploadFile, Query
from sqlalchemy.orm import Session

from database.database import get_db
from database import crud, schemas
from database.crud import question_to_dict
from generation.errors import ExtractionInputError, ExtractionParseError
from generation.question_extractor import prepare_content, extract_questions
from generation.question_variants import generate_variants

router = APIRouter(prefix="/questions", tags=["questions"])

log = logging.getLogger(__name__)


# ─── Routes ────────────────────────────────────────────────────────────────────

@router.get("")
def list_questions(
    curriculum_id: Optional[int] = None,
    grade_id: Optional[int] = None,
    subject_id: Optional[int] = None,
    topic: Optional[str] = None,
    subtopic: Optional[str] = None,
    term: Optional[str] = None,
    difficulty: Optional[str] = None,
    type: Optional[str] = None,
    blooms_level: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """List questions, newest first. `count` is the total matching, not the page size."""
    rows, total = crud.list_questions(
        db,
        curriculum_id=curriculum_id,
        grade_id=grade_id,
        subject_id=subject_id,
        topic=topic,
        subtopic=subtopic,
        term=term,
        difficulty=difficulty,
        question_type=type,
        blooms_level=blooms_level,
        search=search,
        limit=limit,
        offset=offset,
    )
    return {"questions": [question_to_dict(q) for q in rows], "count": total}


@router.post("")
def create_questions(
    body: Union[schemas.QuestionBulkCreate, schemas.QuestionCreate],
    db: Session = Depends(get_db),
):
    """Create one question, or several with `{"questions": [...]}`."""
    items = body.questions if isinstance(body, schemas.QuestionBulkCreate) else [body]
    created = crud.create_questions(db, items)
    log.info(f"[QUESTIONS] Created {len(created)} question(s)")
    return {
        "success": True,
        "questions": [question_to_dict(q) for q in created],
        "count": len(created),
    }


@router.get("/search/topics")
def list_question_topics(
    subject_id: Optional[int] = None,
    grade_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """Distinct topics present in the bank, for the topic-preference picker."""
    topics = crud.get_question_topics(db, subject_id=subject_id, grade_id=grade_id)
    return {"topics": [{"topic": t, "count": c} for t, c in topics]}


@router.post("/extract")
async def extract_from_document(
    file: Optional[UploadFile] = File(None),
    text: Optional[str] = Form(None),
):
    """
    Draft questions from a PDF, Word document, text file, image or pasted text.
    Nothing is saved; the editor reviews the drafts and posts them to /questions.
    """
    data = await file.read() if file is not None else None
    mime_type = file.content_type if file is not None else None

    try:
        content, is_image = prepare_content(data=data, mime_type=mime_type, text=text)
    except ExtractionInputError as e:
        raise HTTPException(status_code=400, detail={"error": str(e), "suggestion": e.suggestion})

    log.info(f"[EXTRACT] source={'image' if is_image else 'text'}, {len(content)} chars")

    try:
        result = await extract_questions(content, is_image=is_image)
    except ExtractionParseError as e:
        raise HTTPException(status_code=500, detail={"error": str(e), "raw": e.raw})
    except RuntimeError as e:
        log.error(f"[EXTRACT] AI client unavailable: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    return {"success": True, **result}


@router.post("/variants")
def create_variants(body: schemas.QuestionVariantRequest, db: Session = Depends(get_db)):
    """
    Draft variants of a stored question (difficulty, type conversion, Bloom's
    level, shuffled options). Nothing is saved.
    """
    if not body.question_id:
        raise HTTPException(status_code=400, detail="question_id is required")

    q = crud.get_question(db, body.question_id)
    if not q:
        raise HTTPException(status_code=404, detail="Question not found")

    variants = generate_variants(question_to_dict(q), body.variant_type)
    log.info(f"[VARIANTS] question={q.id} type={body.variant_type}: {len(variants)} variants")
    return {"variants": variants, "original_id": q.id}


@router.get("/{question_id}")
def get_question(question_id: int, db: Session = Depends(get_db)):
    q = crud.get_question(db, question_id)
    if not q:
        raise HTTPException(status_code=404, detail="Question not found")
    return question_to_dict(q)


@router.patch("/{question_id}")
def update_question(
    question_id: int,
    update: schemas.QuestionUpdate,
    db: Session = Depends(get_db),
):
    q = crud.update_question(db, question_id, update)
    if not q:
        raise HTTPException(status_code=404, detail="Question not found")
    return {"success": True, "question": question_to_dict(q)}


@router.delete("/{question_id}")
def delete_question(question_id: int, db: Session = Depends(get_db)):
    if not crud.delete_question(db, question_id):
        raise HTTPException(status_code=404, detail="Question not found")
    return {"success": True}
