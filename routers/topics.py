"""
Subject Topics router.
Numbered syllabus topics per subject, single and bulk entry.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database.database import get_db
from database import crud, schemas

router = APIRouter(prefix="/topics", tags=["topics"])

log = logging.getLogger(__name__)


def _topic_dict(t) -> dict:
    return schemas.TopicResponse.model_validate(t).model_dump(mode="json")


@router.get("")
def list_topics(
    subject_id: Optional[int] = None,
    grade_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """Topics ordered by sort_order, then number. A grade filter keeps grade-less topics."""
    topics = crud.get_topics(db, subject_id=subject_id, grade_id=grade_id)
    return {"topics": [
        {**_topic_dict(t), "subject_name": t.subject.name if t.subject else None}
        for t in topics
    ]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_topic(topic: schemas.TopicCreate, db: Session = Depends(get_db)):
    if not topic.subject_id or not topic.name:
        raise HTTPException(status_code=400, detail="subject_id and name are required")
    db_topic = crud.create_topic(db, topic)
    return {"topic": _topic_dict(db_topic)}


@router.post("/bulk", status_code=status.HTTP_201_CREATED)
def bulk_create_topics(body: schemas.TopicBulkCreate, db: Session = Depends(get_db)):
    """
    Append topics to a subject.
    Topics without a topic_number are numbered after the subject's current highest.
    """
    if not body.subject_id or not body.topics:
        raise HTTPException(status_code=400, detail="subject_id and topics array are required")

    created = crud.bulk_create_topics(db, body.subject_id, body.topics)
    log.info(f"[TOPICS] subject={body.subject_id}: added {len(created)} topics")
    return {
        "message": f"Successfully added {len(created)} topics",
        "topics": [_topic_dict(t) for t in created],
    }


@router.put("/{topic_id}")
def update_topic(
    topic_id: int,
    update: schemas.TopicUpdate,
    db: Session = Depends(get_db),
):
    db_topic = crud.update_topic(db, topic_id, update)
    if not db_topic:
        raise HTTPException(status_code=404, detail="Topic not found")
    return {"topic": _topic_dict(db_topic)}


@router.delete("/{topic_id}")
def delete_topic(topic_id: int, db: Session = Depends(get_db)):
    if not crud.delete_topic(db, topic_id):
        raise HTTPException(status_code=404, detail="Topic not found")
    return {"success": True}
