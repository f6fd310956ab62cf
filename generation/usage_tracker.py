"""
Step 5 — Usage Tracker

Increments usage_count on Question rows saved into an exam.
Lets question authors see how often a question has been set.
"""

import logging
from typing import List

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database.models import Question

log = logging.getLogger("generation.pipeline")


def increment_usage(db: Session, question_ids: List[int]) -> None:
    """
    Step 5: Increment usage_count for each question id in an exam.

    Failures are logged and rolled back; saving the exam itself is not undone.

    Args:
        db: Database session
        question_ids: Question ids the exam contains
    """
    ids = list(dict.fromkeys(question_ids))
    if not ids:
        return
    try:
        db.execute(
            update(Question)
            .where(Question.id.in_(ids))
            .values(usage_count=Question.usage_count + 1)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.error(f"[UsageTracker] Failed to update usage_count: {e}")
