# tests/fakes.py
"""In-memory question pool and blueprint helpers for engine unit tests."""

from typing import List, Optional

from generation.errors import QuestionQueryError
from generation.schemas import QuestionFilters, SectionSpec, TemplateBlueprint


def q(id, marks=2, type="Multiple Choice", topic="General", subject_id=None, grade_id=None):
    return {
        "id": id,
        "text": f"Question {id}",
        "marks": marks,
        "type": type,
        "topic": topic,
        "subject_id": subject_id,
        "grade_id": grade_id,
    }


class FakePool:
    """Applies QuestionFilters the way the SQL pool does, preserving list order."""

    def __init__(self, questions: List[dict], fail_on_marks: Optional[int] = None):
        self.questions = questions
        self.fail_on_marks = fail_on_marks
        self.calls: List[QuestionFilters] = []

    def __call__(self, filters: QuestionFilters) -> List[dict]:
        self.calls.append(filters)
        if self.fail_on_marks is not None and filters.marks == self.fail_on_marks:
            raise QuestionQueryError("connection reset")
        result = []
        for item in self.questions:
            if item["marks"] != filters.marks:
                continue
            if filters.subject_id and item["subject_id"] != filters.subject_id:
                continue
            if filters.grade_id and item["grade_id"] != filters.grade_id:
                continue
            if filters.types and item["type"] not in filters.types:
                continue
            if filters.topics and item["topic"] not in filters.topics:
                continue
            if filters.prefer_topics and item["topic"] not in filters.prefer_topics:
                continue
            result.append(item)
        return result


def section(label, count, marks, section_type="multiple_choice", name=None, topics=None, instructions=None):
    return SectionSpec(
        section_label=label,
        name=name,
        section_type=section_type,
        question_count=count,
        marks_per_question=marks,
        topics=topics or [],
        instructions=instructions,
    )


def blueprint(sections, total_marks=10, shuffle=False, shuffle_sections=False, subject_id=None, grade_id=None):
    return TemplateBlueprint(
        template_id=1,
        name="Unit Test Paper",
        subject_id=subject_id,
        grade_id=grade_id,
        subject_name="Mathematics" if subject_id else None,
        grade_name="Grade 7" if grade_id else None,
        total_marks=total_marks,
        time_limit="1 hour",
        shuffle_within_sections=shuffle,
        shuffle_sections=shuffle_sections,
        sections=sections,
    )


def reverse(items):
    return list(reversed(items))
