"""
Question Variants

Derives draft variants of a stored question without any model call:
- difficulty:  the same question re-pitched at each other difficulty
- type:        MCQ → True/False or Short Answer, Short Answer → Essay,
               True/False → Short Answer with reasoning
- blooms:      one step up the Bloom's ladder with a matching stem
- shuffle:     MCQ options reordered

Variants are returned unsaved (id None); the editor posts the kept ones to
/questions.
"""

import re
from typing import Dict, List, Tuple

from database.models import Difficulty, QuestionType
from generation.shuffle import Permutation, fisher_yates_shuffle

VARIANT_TYPES = ("all", "difficulty", "type", "blooms", "shuffle")

# current level → (next level, stem prefix)
BLOOMS_PROGRESSION: Dict[str, Tuple[str, str]] = {
    "Knowledge": ("Understanding", "Explain why"),
    "Understanding": ("Application", "Apply the concept of"),
    "Application": ("Analysis", "Analyze"),
    "Analysis": ("Evaluation", "Evaluate"),
    "Evaluation": ("Creation", "Design"),
}

_TAG_RE = re.compile(r"<[^>]*>")


def strip_html(html: str) -> str:
    if not html:
        return ""
    return _TAG_RE.sub("", html).replace("&nbsp;", " ").strip()


def _variant(question: dict, variant_type: str, label: str, **changes) -> dict:
    v = dict(question)
    v.update(id=None, created_at=None, updated_at=None, usage_count=0)
    v.update(changes)
    v["variant_type"] = variant_type
    v["variant_label"] = label
    return v


def _difficulty_variants(question: dict) -> List[dict]:
    marks = question["marks"]
    variants = []
    for level in Difficulty:
        if level.value == question["difficulty"]:
            continue
        if level is Difficulty.EASY:
            new_marks = max(1, marks - 1)
        elif level is Difficulty.DIFFICULT:
            new_marks = marks + 1
        else:
            new_marks = marks
        variants.append(_variant(
            question, "difficulty", f"{level.value} difficulty variant",
            difficulty=level.value, marks=new_marks,
        ))
    return variants


def _type_variants(question: dict) -> List[dict]:
    qtype, text, marks = question["type"], question["text"], question["marks"]
    variants = []

    if qtype == QuestionType.MULTIPLE_CHOICE.value and question.get("options"):
        variants.append(_variant(
            question, "type", "True/False conversion",
            type=QuestionType.TRUE_FALSE.value, options=[],
            text=f"True or False: {strip_html(text)}",
        ))
        variants.append(_variant(
            question, "type", "Short Answer conversion",
            type=QuestionType.SHORT_ANSWER.value, options=[],
        ))
    elif qtype == QuestionType.SHORT_ANSWER.value:
        variants.append(_variant(
            question, "type", "Essay expansion",
            type=QuestionType.ESSAY.value, marks=max(marks, 5),
            text=f"Explain in detail: {strip_html(text)}",
        ))
    elif qtype == QuestionType.TRUE_FALSE.value:
        variants.append(_variant(
            question, "type", "Short Answer with reasoning",
            type=QuestionType.SHORT_ANSWER.value, marks=marks + 2,
            text=f"{strip_html(text)} Explain your reasoning.",
        ))
    return variants


def _blooms_variants(question: dict) -> List[dict]:
    step = BLOOMS_PROGRESSION.get(question.get("blooms_level") or "")
    if step is None:
        return []
    level, prefix = step
    return [_variant(
        question, "blooms", f"{level} level variant",
        blooms_level=level, marks=question["marks"] + 1,
        text=f"{prefix}: {strip_html(question['text'])}",
    )]


def generate_variants(
    question: dict,
    variant_type: str = "all",
    permute: Permutation = fisher_yates_shuffle,
) -> List[dict]:
    """
    Variants of a serialised question (see crud.question_to_dict), grouped in
    the order difficulty, type, blooms, shuffle.

    Args:
        question:     Question dict to derive from
        variant_type: One of VARIANT_TYPES
        permute:      Ordering used for the shuffled-options variant
    """
    kinds = set(VARIANT_TYPES) if variant_type == "all" else {variant_type}
    variants: List[dict] = []

    if "difficulty" in kinds:
        variants.extend(_difficulty_variants(question))
    if "type" in kinds:
        variants.extend(_type_variants(question))
    if "blooms" in kinds:
        variants.extend(_blooms_variants(question))

    options = question.get("options") or []
    if "shuffle" in kinds and len(options) > 1:
        variants.append(_variant(
            question, "shuffle", "Shuffled options", options=permute(options),
        ))
    return variants
