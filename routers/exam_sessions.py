"""
Exam Sessions router.
A session is one user's attempt at a stored exam: start (or resume), save
answers as they go, then submit or time out.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from auth.security import get_current_user_id
from database.database import get_db
from database.crud import get_questions_by_ids, question_to_dict
from database.models import Exam, ExamSession, ExamResponse, SessionStatus
from database.schemas import SessionStartRequest, SessionUpdateRequest, ResponseSaveRequest

router = APIRouter(prefix="/exam-sessions", tags=["exam-sessions"])

log = logging.getLogger(__name__)

_TIME_LIMIT_RE = re.compile(r"(\d+)\s*(hours?|minutes?)", re.IGNORECASE)


# ─── Helpers ───────────────────────────────────────────────────────────────────

def _now():
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def parse_time_limit(text: Optional[str]) -> Optional[int]:
    """'2 hours' → 7200, '45 minutes' → 2700. Unrecognised text → None."""
    if not text:
        return None
    match = _TIME_LIMIT_RE.search(text)
    if not match:
        return None
    value = int(match.group(1))
    return value * 3600 if match.group(2).lower().startswith("hour") else value * 60


def _client_ip(request: Request) -> Optional[str]:
    return (
        request.headers.get("x-forwarded-for")
        or request.headers.get("x-real-ip")
        or (request.client.host if request.client else None)
    )


def _session_dict(s: ExamSession) -> dict:
    return {
        "id": s.id,
        "exam_id": s.exam_id,
        "user_id": s.user_id,
        "status": s.status,
        "time_limit_seconds": s.time_limit_seconds,
        "time_remaining": s.time_remaining,
        "score": s.score,
        "max_score": s.max_score,
        "percentage": s.percentage,
        "user_agent": s.user_agent,
        "ip_address": s.ip_address,
        "started_at": _iso(s.started_at),
        "submitted_at": _iso(s.submitted_at),
        "created_at": _iso(s.created_at),
    }


def _response_dict(r: ExamResponse) -> dict:
    return {
        "id": r.id,
        "session_id": r.session_id,
        "question_id": r.question_id,
        "response": r.response or {},
        "marks_awarded": r.marks_awarded,
        "marks_possible": r.marks_possible,
        "time_spent_seconds": r.time_spent_seconds,
        "is_flagged": r.is_flagged,
        "first_answered_at": _iso(r.first_answered_at),
        "last_updated_at": _iso(r.last_updated_at),
        "created_at": _iso(r.created_at),
    }


def _get_own_session(db: Session, session_id: int, user_id: str) -> ExamSession:
    session = (
        db.query(ExamSession)
        .filter(ExamSession.id == session_id, ExamSession.user_id == user_id)
        .first()
    )
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _ordered_responses(db: Session, session_id: int):
    return (
        db.query(ExamResponse)
        .filter(ExamResponse.session_id == session_id)
        .order_by(ExamResponse.created_at, ExamResponse.id)
        .all()
    )


# ─── Routes ────────────────────────────────────────────────────────────────────

@router.post("")
def start_session(
    body: SessionStartRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Start an attempt, or return the caller's attempt already in progress."""
    if not body.exam_id:
        raise HTTPException(status_code=400, detail="exam_id is required")

    existing = (
        db.query(ExamSession)
        .filter(
            ExamSession.exam_id == body.exam_id,
            ExamSession.user_id == user_id,
            ExamSession.status == SessionStatus.IN_PROGRESS.value,
        )
        .first()
    )
    if existing:
        return _session_dict(existing)

    exam = db.query(Exam).filter(Exam.id == body.exam_id).first()
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")

    time_limit = body.time_limit_seconds or parse_time_limit(exam.time_limit)

    session = ExamSession(
        exam_id=exam.id,
        user_id=user_id,
        status=SessionStatus.IN_PROGRESS.value,
        time_limit_seconds=time_limit,
        time_remaining=time_limit,
        max_score=exam.total_marks or 0,
        user_agent=request.headers.get("user-agent"),
        ip_address=_client_ip(request),
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    log.info(f"[SESSION] user={user_id} started exam {exam.id} (session {session.id})")
    return _session_dict(session)


@router.get("")
def list_sessions(
    status: Optional[str] = None,
    limit: int = Query(20, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    q = db.query(ExamSession).filter(ExamSession.user_id == user_id)
    if status:
        q = q.filter(ExamSession.status == status)
    sessions = q.order_by(ExamSession.created_at.desc(), ExamSession.id.desc()).limit(limit).all()

    return [
        {
            **_session_dict(s),
            "exam": {
                "title": s.exam.title,
                "subject": s.exam.subject,
                "question_count": s.exam.question_count,
            } if s.exam else None,
        }
        for s in sessions
    ]


@router.get("/{session_id}")
def get_session(
    session_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Session with its exam's questions and the answers saved so far."""
    session = _get_own_session(db, session_id, user_id)
    exam = session.exam

    questions = []
    if exam and exam.question_ids:
        questions = [question_to_dict(q) for q in get_questions_by_ids(db, exam.question_ids)]

    return {
        "session": {
            **_session_dict(session),
            "exam": {
                "id": exam.id,
                "title": exam.title,
                "subject": exam.subject,
                "question_count": exam.question_count,
                "question_ids": exam.question_ids or [],
                "total_marks": exam.total_marks,
                "time_limit": exam.time_limit,
            } if exam else None,
        },
        "questions": questions,
        "responses": [_response_dict(r) for r in _ordered_responses(db, session.id)],
    }


@router.patch("/{session_id}")
def update_session(
    session_id: int,
    body: SessionUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """`action: submit | timeout` scores and closes the attempt; otherwise updates time_remaining."""
    session = _get_own_session(db, session_id, user_id)

    if body.action in ("submit", "timeout"):
        responses = _ordered_responses(db, session.id)
        total_score = sum(r.marks_awarded or 0 for r in responses)
        max_score = sum(r.marks_possible or 0 for r in responses)

        session.status = (
            SessionStatus.TIMED_OUT.value if body.action == "timeout"
            else SessionStatus.SUBMITTED.value
        )
        session.submitted_at = _now()
        session.score = total_score
        session.max_score = max_score or session.max_score
        session.percentage = (total_score / max_score) * 100 if max_score > 0 else 0
        db.commit()
        db.refresh(session)
        log.info(f"[SESSION] {session.id} {session.status}: {total_score}/{session.max_score}")
        return _session_dict(session)

    if body.time_remaining is not None:
        session.time_remaining = body.time_remaining
        db.commit()
        db.refresh(session)
        return _session_dict(session)

    raise HTTPException(status_code=400, detail="Invalid action")


@router.post("/{session_id}/responses")
def save_response(
    session_id: int,
    body: ResponseSaveRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create or update the answer to one question. Time spent accumulates across saves."""
    session = _get_own_session(db, session_id, user_id)
    if session.status != SessionStatus.IN_PROGRESS.value:
        raise HTTPException(status_code=400, detail="Session is not in progress")
    if not body.question_id:
        raise HTTPException(status_code=400, detail="question_id is required")

    now = _now()
    existing = (
        db.query(ExamResponse)
        .filter(ExamResponse.session_id == session.id, ExamResponse.question_id == body.question_id)
        .first()
    )

    if existing:
        existing.last_updated_at = now
        if body.response is not None:
            existing.response = body.response
        if body.time_spent is not None:
            existing.time_spent_seconds = (existing.time_spent_seconds or 0) + body.time_spent
        if body.is_flagged is not None:
            existing.is_flagged = body.is_flagged
        db.commit()
        db.refresh(existing)
        return _response_dict(existing)

    created = ExamResponse(
        session_id=session.id,
        question_id=body.question_id,
        response=body.response or {},
        marks_possible=body.marks_possible or 0,
        time_spent_seconds=body.time_spent or 0,
        is_flagged=body.is_flagged or False,
        first_answered_at=now,
        last_updated_at=now,
    )
    db.add(created)
    db.commit()
    db.refresh(created)
    return _response_dict(created)


@router.get("/{session_id}/responses")
def list_responses(
    session_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    session = _get_own_session(db, session_id, user_id)
    return [_response_dict(r) for r in _ordered_responses(db, session.id)]
