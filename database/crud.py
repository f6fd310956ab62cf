"""
CRUD operations for the exam bank
Routers go through these functions for lookup data, questions, templates, topics and exams
"""

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional, Tuple
from database import models, schemas


# ==========================================
# LOOKUP: CURRICULUM / GRADE / SUBJECT
# ==========================================

def get_curriculums(db: Session) -> List[models.Curriculum]:
    return db.query(models.Curriculum).order_by(models.Curriculum.name).all()


def get_grades(db: Session, curriculum_id: Optional[int] = None, level: Optional[str] = None) -> List[models.Grade]:
    """Grades ordered by level_order, optionally scoped to a curriculum or level band."""
    q = db.query(models.Grade)
    if curriculum_id:
        q = q.filter(models.Grade.curriculum_id == curriculum_id)
    if level:
        q = q.filter(models.Grade.level == level)
    return q.order_by(models.Grade.level_order).all()


def get_subjects(
    db: Session,
    grade_id: Optional[int] = None,
    level: Optional[str] = None,
) -> List[models.Subject]:
    """
    Subjects ordered by name.
    grade_id narrows to subjects taught in that grade; level narrows to
    subjects taught in any grade of that level band.
    """
    q = db.query(models.Subject)
    if grade_id:
        q = q.join(models.Subject.grades).filter(models.Grade.id == grade_id)
    elif level:
        grade_ids = [g.id for g in db.query(models.Grade.id).filter(models.Grade.level == level).all()]
        if not grade_ids:
            return []
        q = q.join(models.Subject.grades).filter(models.Grade.id.in_(grade_ids))
    # A subject linked to several matching grades comes back once
    return q.distinct().order_by(models.Subject.name).all()


# ==========================================
# QUESTION CRUD
# ==========================================

def question_to_dict(q: models.Question) -> dict:
    """JSON-ready question, with lookup names flattened in."""
    return {
        "id": q.id,
        "text": q.text,
        "marks": q.marks,
        "difficulty": q.difficulty,
        "type": q.type,
        "topic": q.topic,
        "subtopic": q.subtopic,
        "term": q.term,
        "curriculum_id": q.curriculum_id,
        "grade_id": q.grade_id,
        "subject_id": q.subject_id,
        "curriculum_name": q.curriculum.name if q.curriculum else None,
        "grade_name": q.grade.name if q.grade else None,
        "subject_name": q.subject.name if q.subject else None,
        "options": q.options or [],
        "matching_pairs": q.matching_pairs or [],
        "sub_parts": q.sub_parts or [],
        "unit": q.unit,
        "expected_length": q.expected_length,
        "marking_scheme": q.marking_scheme,
        "blooms_level": q.blooms_level,
        "image_path": q.image_path,
        "image_caption": q.image_caption,
        "has_latex": q.has_latex,
        "is_ai_generated": q.is_ai_generated,
        "answer_lines": q.answer_lines,
        "usage_count": q.usage_count,
        "created_at": q.created_at.isoformat() if q.created_at else None,
        "updated_at": q.updated_at.isoformat() if q.updated_at else None,
    }


def _question_query(db: Session):
    return db.query(models.Question).options(
        joinedload(models.Question.curriculum),
        joinedload(models.Question.grade),
        joinedload(models.Question.subject),
    )


def create_questions(db: Session, items: List[schemas.QuestionCreate]) -> List[models.Question]:
    """Insert one or more questions in a single transaction."""
    created = []
    for item in items:
        data = item.model_dump()
        db_question = models.Question(**data)
        db.add(db_question)
        created.append(db_question)
    db.commit()
    for q in created:
        db.refresh(q)
    return created


def get_question(db: Session, question_id: int) -> Optional[models.Question]:
    return _question_query(db).filter(models.Question.id == question_id).first()


def list_questions(
    db: Session,
    curriculum_id: Optional[int] = None,
    grade_id: Optional[int] = None,
    subject_id: Optional[int] = None,
    topic: Optional[str] = None,
    subtopic: Optional[str] = None,
    term: Optional[str] = None,
    difficulty: Optional[str] = None,
    question_type: Optional[str] = None,
    blooms_level: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[models.Question], int]:
    """Filtered page of questions, newest first, plus the total matching count."""
    q = db.query(models.Question)
    if curriculum_id:
        q = q.filter(models.Question.curriculum_id == curriculum_id)
    if grade_id:
        q = q.filter(models.Question.grade_id == grade_id)
    if subject_id:
        q = q.filter(models.Question.subject_id == subject_id)
    if topic:
        q = q.filter(models.Question.topic == topic)
    if subtopic:
        q = q.filter(models.Question.subtopic == subtopic)
    if term:
        q = q.filter(models.Question.term == term)
    if difficulty:
        q = q.filter(models.Question.difficulty == difficulty)
    if question_type:
        q = q.filter(models.Question.type == question_type)
    if blooms_level:
        q = q.filter(models.Question.blooms_level == blooms_level)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(
            models.Question.text.ilike(pattern),
            models.Question.topic.ilike(pattern),
            models.Question.subtopic.ilike(pattern),
        ))

    total = q.count()
    rows = (
        q.options(
            joinedload(models.Question.curriculum),
            joinedload(models.Question.grade),
            joinedload(models.Question.subject),
        )
        .order_by(models.Question.created_at.desc(), models.Question.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return rows, total


def update_question(db: Session, question_id: int, update: schemas.QuestionUpdate) -> Optional[models.Question]:
    db_question = get_question(db, question_id)
    if not db_question:
        return None

    update_data = update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_question, field, value)

    db.commit()
    db.refresh(db_question)
    return db_question


def delete_question(db: Session, question_id: int) -> bool:
    db_question = db.query(models.Question).filter(models.Question.id == question_id).first()
    if not db_question:
        return False
    db.delete(db_question)
    db.commit()
    return True


def get_question_topics(
    db: Session,
    subject_id: Optional[int] = None,
    grade_id: Optional[int] = None,
) -> List[Tuple[str, int]]:
    """Distinct (topic, question count) pairs in the bank, alphabetical."""
    q = db.query(models.Question.topic, func.count(models.Question.id))
    if subject_id:
        q = q.filter(models.Question.subject_id == subject_id)
    if grade_id:
        q = q.filter(models.Question.grade_id == grade_id)
    return [(topic, count) for topic, count in q.group_by(models.Question.topic).order_by(models.Question.topic).all()]


# ==========================================
# TEMPLATE CRUD
# ==========================================

TEMPLATE_DEFAULTS = {
    "total_marks": 40,
    "time_limit": "1 hour",
    "shuffle_within_sections": True,
    "shuffle_sections": False,
    "is_default": False,
}


def _template_query(db: Session):
    return db.query(models.PaperTemplate).options(
        joinedload(models.PaperTemplate.subject),
        joinedload(models.PaperTemplate.grade),
    )


def create_template(db: Session, template: schemas.TemplateCreate) -> models.PaperTemplate:
    """Create a template, filling unset fields from TEMPLATE_DEFAULTS."""
    data = template.model_dump()
    for field, default in TEMPLATE_DEFAULTS.items():
        if data.get(field) is None:
            data[field] = default
    db_template = models.PaperTemplate(**data)
    db.add(db_template)
    db.commit()
    db.refresh(db_template)
    return db_template


def get_template(db: Session, template_id: int) -> Optional[models.PaperTemplate]:
    """Template with subject and grade loaded (for display names)."""
    return _template_query(db).filter(models.PaperTemplate.id == template_id).first()


def list_templates(
    db: Session,
    subject_id: Optional[int] = None,
    grade_id: Optional[int] = None,
) -> List[models.PaperTemplate]:
    q = _template_query(db)
    if subject_id:
        q = q.filter(models.PaperTemplate.subject_id == subject_id)
    if grade_id:
        q = q.filter(models.PaperTemplate.grade_id == grade_id)
    return q.order_by(models.PaperTemplate.created_at.desc(), models.PaperTemplate.id.desc()).all()


def update_template(db: Session, template_id: int, update: schemas.TemplateUpdate) -> Optional[models.PaperTemplate]:
    db_template = get_template(db, template_id)
    if not db_template:
        return None

    update_data = update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_template, field, value)

    db.commit()
    db.refresh(db_template)
    return db_template


def delete_template(db: Session, template_id: int) -> bool:
    db_template = db.query(models.PaperTemplate).filter(models.PaperTemplate.id == template_id).first()
    if not db_template:
        return False
    db.delete(db_template)
    db.commit()
    return True


# ==========================================
# TOPIC CRUD
# ==========================================

def get_topics(
    db: Session,
    subject_id: Optional[int] = None,
    grade_id: Optional[int] = None,
) -> List[models.SubjectTopic]:
    """
    Topics ordered by sort_order then topic_number.
    Filtering by grade keeps grade-less topics, which apply to every grade.
    """
    q = db.query(models.SubjectTopic).options(joinedload(models.SubjectTopic.subject))
    if subject_id:
        q = q.filter(models.SubjectTopic.subject_id == subject_id)
    if grade_id:
        q = q.filter(or_(models.SubjectTopic.grade_id == grade_id, models.SubjectTopic.grade_id.is_(None)))
    return q.order_by(models.SubjectTopic.sort_order, models.SubjectTopic.topic_number).all()


def get_topic(db: Session, topic_id: int) -> Optional[models.SubjectTopic]:
    return db.query(models.SubjectTopic).filter(models.SubjectTopic.id == topic_id).first()


def get_max_topic_number(db: Session, subject_id: int) -> int:
    """Highest topic_number used for the subject, 0 when it has none."""
    value = (
        db.query(func.max(models.SubjectTopic.topic_number))
        .filter(models.SubjectTopic.subject_id == subject_id)
        .scalar()
    )
    return value or 0


def create_topic(db: Session, topic: schemas.TopicCreate) -> models.SubjectTopic:
    """Create a topic; without a topic_number it is numbered max + 1."""
    topic_number = topic.topic_number or get_max_topic_number(db, topic.subject_id) + 1
    db_topic = models.SubjectTopic(
        subject_id=topic.subject_id,
        grade_id=topic.grade_id,
        topic_number=topic_number,
        name=topic.name,
        description=topic.description or None,
        sort_order=topic.sort_order,
    )
    db.add(db_topic)
    db.commit()
    db.refresh(db_topic)
    return db_topic


def bulk_create_topics(
    db: Session,
    subject_id: int,
    items: List[schemas.TopicBulkItem],
) -> List[models.SubjectTopic]:
    """
    Append a batch of topics.

    The counter starts at the subject's current max topic_number. A topic
    without a number bumps the counter and takes it; a topic with a number
    keeps it and leaves the counter alone.
    """
    current_max = get_max_topic_number(db, subject_id)
    created = []
    for item in items:
        if not item.topic_number:
            current_max += 1
        db_topic = models.SubjectTopic(
            subject_id=subject_id,
            topic_number=item.topic_number or current_max,
            name=item.name,
            description=item.description or None,
        )
        db.add(db_topic)
        created.append(db_topic)
    db.commit()
    for t in created:
        db.refresh(t)
    return created


def update_topic(db: Session, topic_id: int, update: schemas.TopicUpdate) -> Optional[models.SubjectTopic]:
    db_topic = get_topic(db, topic_id)
    if not db_topic:
        return None
    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(db_topic, field, value)
    db.commit()
    db.refresh(db_topic)
    return db_topic


def delete_topic(db: Session, topic_id: int) -> bool:
    db_topic = get_topic(db, topic_id)
    if not db_topic:
        return False
    db.delete(db_topic)
    db.commit()
    return True


# ==========================================
# EXAM CRUD
# ==========================================

def create_exam(db: Session, exam: schemas.ExamCreate, created_by: Optional[str] = None) -> models.Exam:
    data = exam.model_dump()
    db_exam = models.Exam(
        **data,
        question_count=len(exam.question_ids),
        is_public=True,
        created_by=created_by,
    )
    db.add(db_exam)
    db.commit()
    db.refresh(db_exam)
    return db_exam


def get_exam(db: Session, exam_id: int) -> Optional[models.Exam]:
    return db.query(models.Exam).options(
        joinedload(models.Exam.curriculum),
        joinedload(models.Exam.grade),
        joinedload(models.Exam.subject_ref),
    ).filter(models.Exam.id == exam_id).first()


def list_exams(
    db: Session,
    curriculum_id: Optional[int] = None,
    grade_id: Optional[int] = None,
    subject_id: Optional[int] = None,
    term: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> List[models.Exam]:
    q = db.query(models.Exam).options(
        joinedload(models.Exam.curriculum),
        joinedload(models.Exam.grade),
        joinedload(models.Exam.subject_ref),
    )
    if curriculum_id:
        q = q.filter(models.Exam.curriculum_id == curriculum_id)
    if grade_id:
        q = q.filter(models.Exam.grade_id == grade_id)
    if subject_id:
        q = q.filter(models.Exam.subject_id == subject_id)
    if term:
        q = q.filter(models.Exam.term == term)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(
            models.Exam.title.ilike(pattern),
            models.Exam.subject.ilike(pattern),
            models.Exam.code.ilike(pattern),
        ))
    return (
        q.order_by(models.Exam.created_at.desc(), models.Exam.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def get_questions_by_ids(db: Session, question_ids: List[int]) -> List[models.Question]:
    if not question_ids:
        return []
    return db.query(models.Question).filter(models.Question.id.in_(question_ids)).all()
