"""
Question Extractor

Turns an uploaded document (PDF, Word, plain text or image) or pasted text into
draft questions using the GPT client. Drafts are returned to the caller,
never saved here; the editor posts the accepted ones to /questions.
"""

import base64
import io
import json
import logging
import os
import re
from typing import Optional, Tuple

from docx import Document
from pypdf import PdfReader

from database.models import Difficulty, QuestionType
from generation.errors import ExtractionInputError, ExtractionParseError

log = logging.getLogger(__name__)

EXTRACTION_MAX_CHARS = int(os.getenv("EXTRACTION_MAX_CHARS", "25000"))
TRUNCATION_MARKER = "...[truncated]"

PASTE_SUGGESTION = "Open your document, select all text (Ctrl+A), copy (Ctrl+C), and paste it in the text box."

VALID_TYPES = {t.value for t in QuestionType}
VALID_DIFFICULTIES = {d.value for d in Difficulty}


SYSTEM_PROMPT = """You are an expert at extracting exam questions from educational content.

TASK: Carefully analyze the provided content and extract ALL exam/test questions you can find.

IMPORTANT:
- Look for numbered questions (1., 2., etc.), lettered questions (a., b., c.), or questions marked with Q1, Q2, etc.
- Identify multiple choice questions by looking for options A, B, C, D
- Look for point/mark allocations like [2 marks], (3 pts), etc.
- Extract the COMPLETE question text, not just partial text

For each question, provide:
- text: The full question text
- marks: Number of marks/points (default to 1 if not specified)
- difficulty: Easy, Medium, or Difficult (estimate based on complexity)
- topic: Main topic/subject area
- subtopic: More specific topic if identifiable
- type: One of: Multiple Choice, True/False, Matching, Fill-in-the-blank, Numeric, Structured, Short Answer, Essay
- options: For MCQ, list all options as array
- markingScheme: Expected answer or marking criteria if visible

OUTPUT FORMAT (strict JSON):
{
    "questions": [
        {
            "text": "What is the capital of France?",
            "marks": 1,
            "difficulty": "Easy",
            "topic": "Geography",
            "subtopic": "European Capitals",
            "type": "Short Answer",
            "markingScheme": "Paris"
        }
    ],
    "metadata": {
        "documentTitle": "Inferred title or 'Unknown'",
        "estimatedSubject": "Main subject area",
        "totalQuestionsFound": 1
    }
}"""

IMAGE_PROMPT = "Extract all exam questions from this image. Look carefully at all text visible in the image."


# ─── Input handling ───────────────────────────────────────────────────────────

def extract_pdf_text(pdf_bytes: bytes) -> str:
    """Extract plain text from a PDF byte stream using pypdf."""
    try:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        texts = []
        for page in reader.pages:
            t = page.extract_text()
            if t:
                texts.append(t.strip())
        return "\n".join(texts)
    except Exception as e:
        raise ExtractionInputError(
            "Failed to parse PDF. Please copy and paste the text instead.",
            suggestion=PASTE_SUGGESTION,
        ) from e


WORD_MIME_TYPES = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
)


def extract_word_text(docx_bytes: bytes) -> str:
    """Paragraph and table-cell text of a Word document, via python-docx."""
    try:
        document = Document(io.BytesIO(docx_bytes))
        parts = [p.text.strip() for p in document.paragraphs if p.text.strip()]
        for table in document.tables:
            for row in table.rows:
                for cell in row.cells:
                    if cell.text.strip():
                        parts.append(cell.text.strip())
        return "\n".join(parts)
    except Exception as e:
        raise ExtractionInputError(
            "Failed to parse Word document. Please copy and paste the text instead.",
            suggestion=PASTE_SUGGESTION,
        ) from e


def truncate(text: str, limit: int = EXTRACTION_MAX_CHARS) -> str:
    if len(text) > limit:
        return text[:limit] + TRUNCATION_MARKER
    return text


def prepare_content(
    data: Optional[bytes] = None,
    mime_type: Optional[str] = None,
    text: Optional[str] = None,
) -> Tuple[str, bool]:
    """
    Resolve the upload into model input.

    Returns:
        (content, is_image) where content is text, or a data: URL for images

    Raises:
        ExtractionInputError: nothing supplied, unsupported type, or no text found
    """
    if data is None and not text:
        raise ExtractionInputError("No file or text provided")

    content = text or ""
    is_image = False

    if data is not None:
        mime_type = (mime_type or "").lower()
        if mime_type.startswith("image/"):
            content = f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
            is_image = True
        elif mime_type == "application/pdf":
            content = extract_pdf_text(data)
        elif mime_type in WORD_MIME_TYPES:
            content = extract_word_text(data)
        elif mime_type == "text/plain":
            content = data.decode("utf-8", errors="replace")
        else:
            raise ExtractionInputError(
                f"Unsupported file type: {mime_type or 'unknown'}",
                suggestion="Please upload a PDF, Word, image or text file, or paste text directly.",
            )

        if not is_image:
            content = truncate(content)

    if not content.strip():
        raise ExtractionInputError(
            "Could not extract any text from the file. Please paste text directly.",
            suggestion=PASTE_SUGGESTION,
        )
    return content, is_image


# ─── Output handling ──────────────────────────────────────────────────────────

def extract_json_obj(raw: str) -> dict:
    """Outermost JSON object in a model reply, ignoring code fences and chatter."""
    cleaned = raw.strip()
    cleaned = re.sub(r"^```(?:json)?\s*", "", cleaned, flags=re.MULTILINE)
    cleaned = re.sub(r"\s*```$", "", cleaned, flags=re.MULTILINE)
    start = cleaned.find("{")
    end = cleaned.rfind("}") + 1
    if start == -1 or end <= start:
        raise ValueError(f"No JSON object found: {cleaned[:200]}")
    return json.loads(cleaned[start:end])


def normalise_question(item: dict) -> dict:
    """Coerce one model-drafted question onto values the question bank accepts."""
    try:
        marks = int(item.get("marks") or 1)
    except (TypeError, ValueError):
        marks = 1

    qtype = str(item.get("type") or "").strip()
    if qtype not in VALID_TYPES:
        qtype = QuestionType.STRUCTURED.value

    difficulty = str(item.get("difficulty") or "").strip().title()
    if difficulty not in VALID_DIFFICULTIES:
        difficulty = Difficulty.MEDIUM.value

    options = item.get("options") or []
    if not isinstance(options, list):
        options = []

    return {
        "text": str(item.get("text") or "").strip(),
        "marks": max(marks, 1),
        "difficulty": difficulty,
        "topic": str(item.get("topic") or "General").strip() or "General",
        "subtopic": item.get("subtopic") or None,
        "type": qtype,
        "options": [str(o) for o in options],
        "marking_scheme": item.get("markingScheme") or item.get("marking_scheme") or None,
        "is_ai_generated": True,
    }


# ─── LLM call ─────────────────────────────────────────────────────────────────

async def extract_questions(content: str, is_image: bool = False) -> dict:
    """
    Ask the model for every question in the content.

    Returns:
        {"questions": [...normalised...], "metadata": {...}}

    Raises:
        ExtractionParseError: reply had no parseable JSON object
        RuntimeError: OPENAI_API_KEY missing
    """
    from generation.gpt_client import call_gpt

    if is_image:
        raw = await call_gpt(IMAGE_PROMPT, system=SYSTEM_PROMPT, temperature=0.1,
                             max_tokens=4096, image_url=content)
    else:
        prompt = f"Extract all exam questions from the following content:\n\n{content}"
        raw = await call_gpt(prompt, system=SYSTEM_PROMPT, temperature=0.1, max_tokens=4096,
                             json_mode=True)

    try:
        data = extract_json_obj(raw)
    except ValueError as e:
        # json.JSONDecodeError is a ValueError
        log.error(f"[EXTRACT] Failed to parse AI response: {e}")
        raise ExtractionParseError(raw[:1000]) from e

    questions = [
        normalise_question(q) for q in data.get("questions") or []
        if isinstance(q, dict) and str(q.get("text") or "").strip()
    ]
    metadata = data.get("metadata") if isinstance(data.get("metadata"), dict) else {}
    log.info(f"[EXTRACT] {len(questions)} questions extracted")
    return {"questions": questions, "metadata": metadata}
