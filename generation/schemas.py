"""
Pydantic schemas for the paper generation pipeline.

Internal:  TemplateBlueprint / SectionSpec / QuestionFilters
API:       GeneratePaperRequest → GeneratePaperResponse (camelCase on the wire)
"""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, ConfigDict, AliasChoices
from pydantic.alias_generators import to_camel


# ─── Internal pipeline types ───────────────────────────────────────────────────

class SectionSpec(BaseModel):
    """One ordered section of a template, as stored in paper_templates.sections."""
    section_label: str
    name: Optional[str] = None
    section_type: str = "general"
    question_count: int = Field(0, ge=0)
    marks_per_question: int = Field(..., ge=1)
    topics: List[str] = Field(default_factory=list)
    instructions: Optional[str] = None


class TemplateBlueprint(BaseModel):
    """Output of Step 1: a template with its scope and display names resolved."""
    template_id: int
    name: str
    subject_id: Optional[int] = None
    grade_id: Optional[int] = None
    subject_name: Optional[str] = None
    grade_name: Optional[str] = None
    total_marks: int
    time_limit: Optional[str] = None
    shuffle_within_sections: bool = True
    shuffle_sections: bool = False
    sections: List[SectionSpec]


class QuestionFilters(BaseModel):
    """Equality filters handed to the question pool. None / empty = unconstrained."""
    marks: int
    subject_id: Optional[int] = None
    grade_id: Optional[int] = None
    types: List[str] = Field(default_factory=list)
    topics: List[str] = Field(default_factory=list)
    prefer_topics: List[str] = Field(default_factory=list)


# ─── API: request ─────────────────────────────────────────────────────────────

class GenerationOptions(BaseModel):
    prefer_topics: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("preferTopics", "prefer_topics"),
    )


class GeneratePaperRequest(BaseModel):
    """templateId is optional here so the router can answer 400 instead of 422."""
    template_id: Optional[int] = Field(
        None, validation_alias=AliasChoices("templateId", "template_id")
    )
    options: GenerationOptions = Field(default_factory=GenerationOptions)


# ─── API: response ────────────────────────────────────────────────────────────

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GeneratedSection(_CamelModel):
    label: str
    name: str
    section_type: str
    questions: List[Dict[str, Any]] = Field(default_factory=list)
    required_count: int
    actual_count: int
    marks_per_question: int
    total_marks: int
    instructions: Optional[str] = None


class PaperOutput(_CamelModel):
    template_id: int
    template_name: str
    subject_name: Optional[str] = None
    grade_name: Optional[str] = None
    time_limit: Optional[str] = None
    target_total_marks: int
    achieved_total_marks: int
    sections: List[GeneratedSection]


class PaperSummary(_CamelModel):
    total_questions: int
    required_questions: int
    total_marks: int
    required_marks: int


class GeneratePaperResponse(_CamelModel):
    success: bool = True
    paper: PaperOutput
    is_complete: bool
    warnings: List[str] = Field(default_factory=list)
    summary: PaperSummary
