# tests/test_extract_api.py
import io

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from docx import Document

from generation.errors import ExtractionInputError
from generation.question_extractor import (
    TRUNCATION_MARKER, extract_json_obj, normalise_question, prepare_content,
)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _docx_bytes() -> bytes:
    document = Document()
    document.add_paragraph("1. Name the largest planet. (1 mark)")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Answer"
    table.rows[0].cells[1].text = "Jupiter"
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


MODEL_REPLY = """Here you go:
```json
{
  "questions": [
    {"text": "What is 2 + 2?", "marks": 1, "difficulty": "easy", "topic": "Arithmetic",
     "type": "Multiple Choice", "options": ["3", "4", "5"], "markingScheme": "4"},
    {"text": "Explain photosynthesis.", "marks": "5", "type": "Long Answer"}
  ],
  "metadata": {"documentTitle": "Mock Paper", "totalQuestionsFound": 2}
}
```"""


class TestPrepareContent:
    def test_requires_input(self):
        with pytest.raises(ExtractionInputError):
            prepare_content()

    def test_pasted_text_is_used_as_is(self):
        assert prepare_content(text="Q1. Define force.") == ("Q1. Define force.", False)

    def test_long_text_file_is_truncated(self):
        content, is_image = prepare_content(data=b"x" * 30000, mime_type="text/plain")
        assert is_image is False
        assert content.endswith(TRUNCATION_MARKER)
        assert len(content) == 25000 + len(TRUNCATION_MARKER)

    def test_image_becomes_data_url(self):
        content, is_image = prepare_content(data=b"\x89PNG", mime_type="image/png")
        assert is_image is True
        assert content.startswith("data:image/png;base64,")

    def test_unsupported_type(self):
        with pytest.raises(ExtractionInputError, match="Unsupported file type"):
            prepare_content(data=b"PK", mime_type="application/zip")

    def test_blank_text_file(self):
        with pytest.raises(ExtractionInputError, match="Could not extract any text"):
            prepare_content(data=b"   \n", mime_type="text/plain")

    def test_broken_pdf(self):
        with pytest.raises(ExtractionInputError, match="Failed to parse PDF"):
            prepare_content(data=b"this is not a pdf", mime_type="application/pdf")

    def test_word_document(self):
        content, is_image = prepare_content(data=_docx_bytes(), mime_type=DOCX_MIME)
        assert is_image is False
        assert "1. Name the largest planet. (1 mark)" in content
        assert "Jupiter" in content

    def test_broken_word_document(self):
        with pytest.raises(ExtractionInputError, match="Failed to parse Word document"):
            prepare_content(data=b"not a zip archive", mime_type=DOCX_MIME)
        with pytest.raises(ExtractionInputError, match="Failed to parse Word document"):
            prepare_content(data=b"\xd0\xcf\x11\xe0legacy", mime_type="application/msword")


class TestReplyParsing:
    def test_outermost_object_inside_fences(self):
        assert extract_json_obj(MODEL_REPLY)["metadata"]["documentTitle"] == "Mock Paper"

    def test_no_object(self):
        with pytest.raises(ValueError):
            extract_json_obj("I could not find any questions.")

    def test_normalise_question(self):
        q = normalise_question({"text": " Explain. ", "marks": "abc", "type": "Long Answer", "difficulty": "hard"})
        assert q["text"] == "Explain."
        assert q["marks"] == 1
        assert q["type"] == "Structured"
        assert q["difficulty"] == "Medium"
        assert q["topic"] == "General"
        assert q["is_ai_generated"] is True


class TestExtractAPI:
    def test_text_extraction(self, client: TestClient):
        with patch("generation.gpt_client.call_gpt", new=AsyncMock(return_value=MODEL_REPLY)) as mock_gpt:
            response = client.post("/questions/extract", data={"text": "1. What is 2 + 2? (1 mark)"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["metadata"]["documentTitle"] == "Mock Paper"
        first, second = data["questions"]
        assert first["difficulty"] == "Easy"
        assert first["options"] == ["3", "4", "5"]
        assert first["marking_scheme"] == "4"
        assert second["marks"] == 5
        assert second["type"] == "Structured"
        prompt = mock_gpt.await_args.args[0]
        assert "What is 2 + 2?" in prompt

    def test_text_file_upload(self, client: TestClient):
        with patch("generation.gpt_client.call_gpt", new=AsyncMock(return_value=MODEL_REPLY)):
            response = client.post(
                "/questions/extract",
                files={"file": ("paper.txt", b"1. What is 2 + 2?", "text/plain")},
            )
        assert response.status_code == 200
        assert len(response.json()["questions"]) == 2

    def test_word_upload(self, client: TestClient):
        with patch("generation.gpt_client.call_gpt", new=AsyncMock(return_value=MODEL_REPLY)) as mock_gpt:
            response = client.post(
                "/questions/extract",
                files={"file": ("paper.docx", _docx_bytes(), DOCX_MIME)},
            )
        assert response.status_code == 200
        assert "largest planet" in mock_gpt.await_args.args[0]

    def test_broken_word_upload(self, client: TestClient):
        response = client.post(
            "/questions/extract",
            files={"file": ("paper.docx", b"garbage", DOCX_MIME)},
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error"].startswith("Failed to parse Word document")

    def test_image_goes_to_vision_input(self, client: TestClient):
        with patch("generation.gpt_client.call_gpt", new=AsyncMock(return_value=MODEL_REPLY)) as mock_gpt:
            response = client.post(
                "/questions/extract",
                files={"file": ("scan.png", b"\x89PNG\r\n", "image/png")},
            )
        assert response.status_code == 200
        assert mock_gpt.await_args.kwargs["image_url"].startswith("data:image/png;base64,")

    def test_nothing_provided(self, client: TestClient):
        response = client.post("/questions/extract", data={})
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "No file or text provided"

    def test_unsupported_upload(self, client: TestClient):
        response = client.post(
            "/questions/extract",
            files={"file": ("archive.zip", b"PK\x03\x04", "application/zip")},
        )
        assert response.status_code == 400
        assert "Unsupported file type" in response.json()["detail"]["error"]

    def test_unparseable_reply(self, client: TestClient):
        raw = "Sorry, " + "no questions here. " * 100
        with patch("generation.gpt_client.call_gpt", new=AsyncMock(return_value=raw)):
            response = client.post("/questions/extract", data={"text": "hello"})
        assert response.status_code == 500
        detail = response.json()["detail"]
        assert detail["error"] == "Failed to parse AI response"
        assert detail["raw"] == raw[:1000]

    def test_missing_api_key(self, client: TestClient):
        failing = AsyncMock(side_effect=RuntimeError("OPENAI_API_KEY is not set. Add it to your .env file."))
        with patch("generation.gpt_client.call_gpt", new=failing):
            response = client.post("/questions/extract", data={"text": "hello"})
        assert response.status_code == 503
