"""
Step 2 — Retrieval Engine

Equality-filtered question pool for one section:
- marks == marks_per_question (exact)
- subject_id / grade_id when the template is scoped
- type IN allowed types, topic IN section topics, topic IN preferred topics
- Ordered newest first (created_at DESC, id DESC)

Used-id exclusion and shuffling happen in the Section Resolver, not here.
"""

from typing import Callable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from database.crud import question_to_dict
from database.models import Question
from generation.errors import QuestionQueryError
from generation.schemas import QuestionFilters

QueryFn = Callable[[QuestionFilters], List[dict]]


def query_questions(db: Session, filters: QuestionFilters) -> List[dict]:
    """
    Step 2: Fetch every question matching the filters.

    Raises:
        QuestionQueryError: the database query failed
    """
    try:
        q = (
            db.query(Question)
            .options(
                joinedload(Question.curriculum),
                joinedload(Question.grade),
                joinedload(Question.subject),
            )
            .filter(Question.marks == filters.marks)
        )
        if filters.subject_id:
            q = q.filter(Question.subject_id == filters.subject_id)
        if filters.grade_id:
            q = q.filter(Question.grade_id == filters.grade_id)
        if filters.types:
            q = q.filter(Question.type.in_(filters.types))
        if filters.topics:
            q = q.filter(Question.topic.in_(filters.topics))
        # Applied on top of the section's own topic list, not instead of it
        if filters.prefer_topics:
            q = q.filter(Question.topic.in_(filters.prefer_topics))

        rows = q.order_by(Question.created_at.desc(), Question.id.desc()).all()
    except SQLAlchemyError as e:
        db.rollback()
        raise QuestionQueryError(str(e)) from e

    return [question_to_dict(r) for r in rows]


def make_question_pool(db: Session) -> QueryFn:
    """Bind a session so the assembler only sees filters → questions."""
    def _pool(filters: QuestionFilters) -> List[dict]:
        return query_questions(db, filters)
    return _pool
