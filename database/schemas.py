"""
Pydantic schemas for request/response validation
Separate from SQLAlchemy models for clean API contracts
"""

from pydantic import BaseModel, Field, ConfigDict, AliasChoices, field_validator
from typing import Optional, List, Any, Dict, Literal
from datetime import datetime


def _blank_to_none(value):
    """Form clients send '' for an unselected dropdown."""
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


# ==========================================
# QUESTION SCHEMAS
# ==========================================

class SubPart(BaseModel):
    """Labelled part (a), (b), ... of a question. Marks are informational."""
    id: Optional[str] = None
    label: str
    text: str
    marks: int = Field(0, ge=0)


class MatchingPair(BaseModel):
    left: str
    right: str


class QuestionCreate(BaseModel):
    """
    Schema for creating a question.
    Accepts both snake_case and the camelCase names the editor sends.
    """
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., min_length=1)
    marks: int = Field(1, ge=1)
    difficulty: str = "Medium"
    topic: str = "General"
    subtopic: Optional[str] = None
    curriculum_id: Optional[int] = None
    grade_id: Optional[int] = None
    subject_id: Optional[int] = None
    term: Optional[str] = None
    type: str = "Structured"
    options: List[str] = Field(default_factory=list)
    matching_pairs: List[MatchingPair] = Field(
        default_factory=list, validation_alias=AliasChoices("matching_pairs", "matchingPairs")
    )
    sub_parts: List[SubPart] = Field(
        default_factory=list, validation_alias=AliasChoices("sub_parts", "subParts")
    )
    unit: Optional[str] = None
    expected_length: Optional[str] = Field(
        None, validation_alias=AliasChoices("expected_length", "expectedLength")
    )
    marking_scheme: Optional[str] = Field(
        None, validation_alias=AliasChoices("marking_scheme", "markingScheme")
    )
    blooms_level: str = Field(
        "Knowledge", validation_alias=AliasChoices("blooms_level", "bloomsLevel")
    )
    image_path: Optional[str] = Field(None, validation_alias=AliasChoices("image_path", "imagePath"))
    image_caption: Optional[str] = Field(None, validation_alias=AliasChoices("image_caption", "imageCaption"))
    has_latex: bool = Field(False, validation_alias=AliasChoices("has_latex", "hasLatex"))
    is_ai_generated: bool = Field(False, validation_alias=AliasChoices("is_ai_generated", "isAiGenerated"))
    answer_lines: Optional[int] = Field(None, validation_alias=AliasChoices("answer_lines", "answerLines"))

    @field_validator("curriculum_id", "grade_id", "subject_id", "answer_lines", mode="before")
    @classmethod
    def _empty_ids(cls, v):
        return _blank_to_none(v)

    @field_validator("marks", mode="before")
    @classmethod
    def _default_marks(cls, v):
        # 0 / null from the editor means "not set"
        return v or 1


class QuestionBulkCreate(BaseModel):
    questions: List[QuestionCreate] = Field(..., min_length=1)


class QuestionUpdate(BaseModel):
    """Field-level update - only the fields sent are written."""
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = Field(None, min_length=1)
    marks: Optional[int] = Field(None, ge=1)
    difficulty: Optional[str] = None
    topic: Optional[str] = None
    subtopic: Optional[str] = None
    curriculum_id: Optional[int] = None
    grade_id: Optional[int] = None
    subject_id: Optional[int] = None
    term: Optional[str] = None
    type: Optional[str] = None
    options: Optional[List[str]] = None
    matching_pairs: Optional[List[MatchingPair]] = Field(
        None, validation_alias=AliasChoices("matching_pairs", "matchingPairs")
    )
    sub_parts: Optional[List[SubPart]] = Field(
        None, validation_alias=AliasChoices("sub_parts", "subParts")
    )
    unit: Optional[str] = None
    expected_length: Optional[str] = Field(
        None, validation_alias=AliasChoices("expected_length", "expectedLength")
    )
    marking_scheme: Optional[str] = Field(
        None, validation_alias=AliasChoices("marking_scheme", "markingScheme")
    )
    blooms_level: Optional[str] = Field(
        None, validation_alias=AliasChoices("blooms_level", "bloomsLevel")
    )
    image_path: Optional[str] = Field(None, validation_alias=AliasChoices("image_path", "imagePath"))
    image_caption: Optional[str] = Field(None, validation_alias=AliasChoices("image_caption", "imageCaption"))
    has_latex: Optional[bool] = Field(None, validation_alias=AliasChoices("has_latex", "hasLatex"))
    is_ai_generated: Optional[bool] = Field(None, validation_alias=AliasChoices("is_ai_generated", "isAiGenerated"))
    answer_lines: Optional[int] = Field(None, validation_alias=AliasChoices("answer_lines", "answerLines"))

    @field_validator("curriculum_id", "grade_id", "subject_id", mode="before")
    @classmethod
    def _empty_ids(cls, v):
        return _blank_to_none(v)


class QuestionVariantRequest(BaseModel):
    """question_id is optional here so the router can answer 400 instead of 422."""
    question_id: Optional[int] = None
    variant_type: Literal["all", "difficulty", "type", "blooms", "shuffle"] = "all"

    @field_validator("variant_type", mode="before")
    @classmethod
    def _default_all(cls, v):
        return v or "all"


# ==========================================
# TEMPLATE SCHEMAS
# ==========================================

class TemplateSection(BaseModel):
    """One ordered section of a paper template."""
    section_label: str = Field(..., min_length=1, description="Label printed on the paper, e.g. 'A'")
    name: Optional[str] = Field(None, description="Display name, e.g. 'Multiple Choice'")
    section_type: str = Field("general", description="Key into the section-type → question-type table")
    question_count: int = Field(..., ge=0)
    marks_per_question: int = Field(..., ge=1)
    topics: List[str] = Field(default_factory=list, description="Topic allow-list; empty = any topic")
    instructions: Optional[str] = None


class TemplateCreate(BaseModel):
    """Schema for creating a template. name and sections are checked by the router (400)."""
    name: Optional[str] = None
    description: Optional[str] = None
    subject_id: Optional[int] = None
    grade_id: Optional[int] = None
    total_marks: Optional[int] = Field(None, ge=1)
    time_limit: Optional[str] = None
    sections: Optional[List[TemplateSection]] = None
    shuffle_within_sections: Optional[bool] = None
    shuffle_sections: Optional[bool] = None
    is_default: Optional[bool] = None

    @field_validator("subject_id", "grade_id", mode="before")
    @classmethod
    def _empty_ids(cls, v):
        return _blank_to_none(v)


class TemplateUpdate(BaseModel):
    """Whitelisted template fields - anything else in the body is ignored."""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    subject_id: Optional[int] = None
    grade_id: Optional[int] = None
    total_marks: Optional[int] = Field(None, ge=1)
    time_limit: Optional[str] = None
    sections: Optional[List[TemplateSection]] = Field(None, min_length=1)
    shuffle_within_sections: Optional[bool] = None
    shuffle_sections: Optional[bool] = None
    is_default: Optional[bool] = None

    @field_validator("subject_id", "grade_id", mode="before")
    @classmethod
    def _empty_ids(cls, v):
        return _blank_to_none(v)

    @field_validator(
        "name", "total_marks", "sections",
        "shuffle_within_sections", "shuffle_sections", "is_default",
        mode="before",
    )
    @classmethod
    def _not_null(cls, v):
        # Keys may be omitted, but the columns behind them are NOT NULL
        if v is None:
            raise ValueError("may be omitted but cannot be null")
        return v


# ==========================================
# TOPIC SCHEMAS
# ==========================================

class TopicCreate(BaseModel):
    subject_id: Optional[int] = None
    grade_id: Optional[int] = None
    topic_number: Optional[int] = Field(None, ge=1)
    name: Optional[str] = None
    description: Optional[str] = None
    sort_order: int = 0


class TopicUpdate(BaseModel):
    grade_id: Optional[int] = None
    topic_number: Optional[int] = Field(None, ge=1)
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    sort_order: Optional[int] = None


class TopicBulkItem(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    topic_number: Optional[int] = None


class TopicBulkCreate(BaseModel):
    subject_id: Optional[int] = None
    topics: Optional[List[TopicBulkItem]] = None


class TopicResponse(BaseModel):
    id: int
    subject_id: int
    grade_id: Optional[int] = None
    topic_number: int
    name: str
    description: Optional[str] = None
    sort_order: int = 0
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ==========================================
# EXAM SCHEMAS
# ==========================================

class ExamCreate(BaseModel):
    title: str = Field(..., min_length=1)
    subject: Optional[str] = None
    code: Optional[str] = None
    curriculum_id: Optional[int] = None
    grade_id: Optional[int] = None
    subject_id: Optional[int] = None
    term: Optional[str] = None
    total_marks: int = Field(0, ge=0)
    time_limit: Optional[str] = None
    institution: Optional[str] = None
    exam_board: Optional[str] = None
    pdf_url: Optional[str] = None
    question_ids: List[int] = Field(default_factory=list)

    @field_validator("curriculum_id", "grade_id", "subject_id", mode="before")
    @classmethod
    def _empty_ids(cls, v):
        return _blank_to_none(v)


# ==========================================
# EXAM SESSION SCHEMAS
# ==========================================

class SessionStartRequest(BaseModel):
    exam_id: Optional[int] = None
    time_limit_seconds: Optional[int] = Field(None, ge=1)


class SessionUpdateRequest(BaseModel):
    action: Optional[str] = Field(None, description="submit | timeout")
    time_remaining: Optional[int] = Field(None, ge=0)


class ResponseSaveRequest(BaseModel):
    question_id: Optional[int] = None
    response: Optional[Dict[str, Any]] = None
    marks_possible: Optional[float] = Field(None, ge=0)
    time_spent: Optional[int] = Field(None, ge=0)
    is_flagged: Optional[bool] = None
