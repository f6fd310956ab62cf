"""
SQLAlchemy models for the exam bank
Curriculum → Grade → Subject → Topic lookup tables, the question bank,
paper templates, stored exams and exam-taking sessions.
"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Text, Float, JSON, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from database.database import Base


class Difficulty(str, enum.Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    DIFFICULT = "Difficult"


class QuestionType(str, enum.Enum):
    """Question kinds stored in questions.type. Section types map onto these."""
    MULTIPLE_CHOICE = "Multiple Choice"
    TRUE_FALSE = "True/False"
    MATCHING = "Matching"
    FILL_IN_THE_BLANK = "Fill-in-the-blank"
    FILL_IN_THE_BLANKS = "Fill in the Blanks"
    NUMERIC = "Numeric"
    CALCULATION = "Calculation"
    STRUCTURED = "Structured"
    SHORT_ANSWER = "Short Answer"
    ESSAY = "Essay"
    PRACTICAL = "Practical"
    ORAL = "Oral"
    DIAGRAM_LABELING = "Diagram Labeling"
    COMPREHENSION = "Comprehension"


class SessionStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    TIMED_OUT = "timed_out"


# ==========================================
# LOOKUP TABLES: CURRICULUM, GRADE, SUBJECT, TOPIC
# ==========================================

grade_subjects = Table(
    "grade_subjects",
    Base.metadata,
    Column("grade_id", Integer, ForeignKey("grades.id", ondelete="CASCADE"), primary_key=True),
    Column("subject_id", Integer, ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True),
)


class Curriculum(Base):
    """Curriculum / examination system (e.g. 'CBC', 'IGCSE')."""
    __tablename__ = "curriculums"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    country = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    grades = relationship("Grade", back_populates="curriculum", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Curriculum(id={self.id}, name='{self.name}')>"


class Grade(Base):
    """
    Grade within a curriculum (e.g. 'Grade 7').
    level groups grades into bands such as primary / junior / senior.
    """
    __tablename__ = "grades"

    id = Column(Integer, primary_key=True, index=True)
    curriculum_id = Column(Integer, ForeignKey("curriculums.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    level = Column(String(50), nullable=True, index=True)
    band = Column(String(50), nullable=True)
    level_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    curriculum = relationship("Curriculum", back_populates="grades")
    subjects = relationship("Subject", secondary=grade_subjects, back_populates="grades")

    def __repr__(self):
        return f"<Grade(id={self.id}, name='{self.name}', curriculum_id={self.curriculum_id})>"


class Subject(Base):
    """Teaching subject (e.g. 'Mathematics'). Linked to grades many-to-many."""
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    grades = relationship("Grade", secondary=grade_subjects, back_populates="subjects")
    topics = relationship("SubjectTopic", back_populates="subject", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Subject(id={self.id}, name='{self.name}')>"


class SubjectTopic(Base):
    """
    Numbered topic of a subject's syllabus.
    grade_id is optional: a topic without a grade applies to every grade.
    """
    __tablename__ = "subject_topics"

    id = Column(Integer, primary_key=True, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)
    grade_id = Column(Integer, ForeignKey("grades.id", ondelete="SET NULL"), nullable=True, index=True)
    topic_number = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    subject = relationship("Subject", back_populates="topics")
    grade = relationship("Grade")

    def __repr__(self):
        return f"<SubjectTopic(id={self.id}, subject_id={self.subject_id}, no={self.topic_number})>"


# ==========================================
# QUESTION BANK
# ==========================================

class Question(Base):
    """
    Question in the bank. marks is the scored total used when allocating
    questions to template sections; sub_parts marks are informational.
    """
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    text = Column(Text, nullable=False)
    marks = Column(Integer, default=1, nullable=False, index=True)
    difficulty = Column(String(20), default=Difficulty.MEDIUM.value, nullable=False)
    type = Column(String(50), default=QuestionType.STRUCTURED.value, nullable=False, index=True)
    topic = Column(String(255), default="General", nullable=False, index=True)
    subtopic = Column(String(255), nullable=True)
    term = Column(String(20), nullable=True)

    curriculum_id = Column(Integer, ForeignKey("curriculums.id", ondelete="SET NULL"), nullable=True, index=True)
    grade_id = Column(Integer, ForeignKey("grades.id", ondelete="SET NULL"), nullable=True, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="SET NULL"), nullable=True, index=True)

    options = Column(JSON, default=list, nullable=True)  # ["...", "...", ...] for choice questions
    matching_pairs = Column(JSON, default=list, nullable=True)  # [{"left": "...", "right": "..."}]
    sub_parts = Column(JSON, default=list, nullable=True)  # [{"label": "a", "text": "...", "marks": 2}]
    unit = Column(String(50), nullable=True)
    expected_length = Column(String(20), nullable=True)  # lines | words | pages
    marking_scheme = Column(Text, nullable=True)
    blooms_level = Column(String(50), nullable=True)
    image_path = Column(String(500), nullable=True)
    image_caption = Column(String(500), nullable=True)
    has_latex = Column(Boolean, default=False, nullable=False)
    is_ai_generated = Column(Boolean, default=False, nullable=False)
    answer_lines = Column(Integer, nullable=True)
    usage_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    curriculum = relationship("Curriculum")
    grade = relationship("Grade")
    subject = relationship("Subject")

    def __repr__(self):
        return f"<Question(id={self.id}, type='{self.type}', marks={self.marks})>"


# ==========================================
# PAPER TEMPLATES
# ==========================================

class PaperTemplate(Base):
    """
    Reusable paper blueprint. sections is an ordered JSON list of:
    {section_label, name, section_type, question_count, marks_per_question,
     topics?, instructions?}
    """
    __tablename__ = "paper_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="SET NULL"), nullable=True, index=True)
    grade_id = Column(Integer, ForeignKey("grades.id", ondelete="SET NULL"), nullable=True, index=True)
    total_marks = Column(Integer, default=40, nullable=False)
    time_limit = Column(String(50), default="1 hour", nullable=True)
    sections = Column(JSON, default=list, nullable=False)
    shuffle_within_sections = Column(Boolean, default=True, nullable=False)
    shuffle_sections = Column(Boolean, default=False, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    subject = relationship("Subject")
    grade = relationship("Grade")

    def __repr__(self):
        return f"<PaperTemplate(id={self.id}, name='{self.name}', marks={self.total_marks})>"


# ==========================================
# STORED EXAMS
# ==========================================

class Exam(Base):
    """A finished paper: metadata plus the ordered question ids it contains."""
    __tablename__ = "exams"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=True)  # free-text subject shown on the cover
    code = Column(String(50), nullable=True)
    curriculum_id = Column(Integer, ForeignKey("curriculums.id", ondelete="SET NULL"), nullable=True, index=True)
    grade_id = Column(Integer, ForeignKey("grades.id", ondelete="SET NULL"), nullable=True, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="SET NULL"), nullable=True, index=True)
    term = Column(String(20), nullable=True)
    total_marks = Column(Integer, default=0, nullable=False)
    time_limit = Column(String(50), nullable=True)
    institution = Column(String(255), nullable=True)
    exam_board = Column(String(50), nullable=True)
    pdf_url = Column(String(1000), nullable=True)
    question_ids = Column(JSON, default=list, nullable=False)
    question_count = Column(Integer, default=0, nullable=False)
    is_public = Column(Boolean, default=True, nullable=False)
    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    curriculum = relationship("Curriculum")
    grade = relationship("Grade")
    subject_ref = relationship("Subject")
    sessions = relationship("ExamSession", back_populates="exam", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Exam(id={self.id}, title='{self.title}', questions={self.question_count})>"


# ==========================================
# EXAM-TAKING SESSIONS
# ==========================================

class ExamSession(Base):
    """One user's attempt at an exam."""
    __tablename__ = "exam_sessions"

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    status = Column(String(20), default=SessionStatus.IN_PROGRESS.value, nullable=False, index=True)
    time_limit_seconds = Column(Integer, nullable=True)
    time_remaining = Column(Integer, nullable=True)
    score = Column(Float, nullable=True)
    max_score = Column(Float, default=0, nullable=False)
    percentage = Column(Float, nullable=True)
    user_agent = Column(String(500), nullable=True)
    ip_address = Column(String(100), nullable=True)
    started_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    exam = relationship("Exam", back_populates="sessions")
    responses = relationship("ExamResponse", back_populates="session", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<ExamSession(id={self.id}, exam_id={self.exam_id}, status='{self.status}')>"


class ExamResponse(Base):
    """Answer to one question within a session. One row per (session, question)."""
    __tablename__ = "exam_responses"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("exam_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    response = Column(JSON, default=dict, nullable=False)
    marks_awarded = Column(Float, nullable=True)
    marks_possible = Column(Float, default=0, nullable=False)
    time_spent_seconds = Column(Integer, default=0, nullable=False)
    is_flagged = Column(Boolean, default=False, nullable=False)
    first_answered_at = Column(DateTime(timezone=True), nullable=True)
    last_updated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    session = relationship("ExamSession", back_populates="responses")
    question = relationship("Question")

    def __repr__(self):
        return f"<ExamResponse(session_id={self.session_id}, q_id={self.question_id})>"
