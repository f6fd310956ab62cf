# tests/test_templates_api.py
from fastapi.testclient import TestClient

SECTIONS = [
    {"section_label": "A", "name": "MCQ", "section_type": "multiple_choice",
     "question_count": 10, "marks_per_question": 1},
    {"section_label": "B", "section_type": "structured",
     "question_count": 5, "marks_per_question": 6},
]


class TestTemplatesAPI:
    def test_create_requires_name(self, client: TestClient):
        response = client.post("/templates", json={"sections": SECTIONS})
        assert response.status_code == 400
        assert response.json()["detail"] == "Template name is required"

    def test_create_requires_sections(self, client: TestClient):
        response = client.post("/templates", json={"name": "Term 1", "sections": []})
        assert response.status_code == 400
        assert response.json()["detail"] == "At least one section is required"

    def test_create_applies_defaults(self, client: TestClient, lookups):
        response = client.post("/templates", json={
            "name": "Term 1 Maths",
            "subject_id": lookups["subject"].id,
            "sections": SECTIONS,
        })
        assert response.status_code == 200
        template = response.json()["template"]
        assert template["total_marks"] == 40
        assert template["time_limit"] == "1 hour"
        assert template["shuffle_within_sections"] is True
        assert template["shuffle_sections"] is False
        assert template["is_default"] is False
        assert template["subject_name"] == "Mathematics"
        assert template["sections"][1]["section_type"] == "structured"
        assert template["sections"][1]["topics"] == []

    def test_get_and_list(self, client: TestClient, lookups):
        created = client.post("/templates", json={"name": "One", "sections": SECTIONS}).json()["template"]
        client.post("/templates", json={
            "name": "Two", "sections": SECTIONS, "grade_id": lookups["grade"].id,
        })

        assert client.get(f"/templates/{created['id']}").json()["name"] == "One"
        assert client.get("/templates/999").status_code == 404

        all_names = [t["name"] for t in client.get("/templates").json()["templates"]]
        assert set(all_names) == {"One", "Two"}
        graded = client.get("/templates", params={"grade_id": lookups["grade"].id}).json()["templates"]
        assert [t["name"] for t in graded] == ["Two"]

    def test_update_whitelisted_fields_only(self, client: TestClient):
        created = client.post("/templates", json={"name": "Draft", "sections": SECTIONS}).json()["template"]

        response = client.put(f"/templates/{created['id']}", json={
            "name": "Final",
            "total_marks": 40,
            "created_by": "someone-else",
            "id": 12345,
        })
        assert response.status_code == 200
        template = response.json()["template"]
        assert template["id"] == created["id"]
        assert template["name"] == "Final"
        assert template["created_by"] is None
        # Fields not sent are untouched
        assert len(template["sections"]) == 2

    def test_update_rejects_null_required_fields(self, client: TestClient):
        created = client.post("/templates", json={"name": "Draft", "sections": SECTIONS}).json()["template"]
        url = f"/templates/{created['id']}"

        for field in ("name", "total_marks", "sections", "shuffle_within_sections", "shuffle_sections", "is_default"):
            response = client.put(url, json={field: None})
            assert response.status_code == 422, field

        assert client.put(url, json={"sections": []}).status_code == 422

        template = client.get(url).json()
        assert template["name"] == "Draft"
        assert template["total_marks"] == 40
        assert len(template["sections"]) == 2

    def test_update_allows_clearing_optional_fields(self, client: TestClient, lookups):
        created = client.post("/templates", json={
            "name": "Draft", "sections": SECTIONS, "subject_id": lookups["subject"].id, "description": "old",
        }).json()["template"]

        response = client.put(f"/templates/{created['id']}", json={"subject_id": None, "description": None})
        assert response.status_code == 200
        assert response.json()["template"]["subject_id"] is None
        assert response.json()["template"]["description"] is None

    def test_update_missing(self, client: TestClient):
        assert client.put("/templates/999", json={"name": "x"}).status_code == 404

    def test_delete(self, client: TestClient):
        created = client.post("/templates", json={"name": "Temp", "sections": SECTIONS}).json()["template"]
        assert client.delete(f"/templates/{created['id']}").json() == {"success": True}
        assert client.get(f"/templates/{created['id']}").status_code == 404
        assert client.delete(f"/templates/{created['id']}").status_code == 404

    def test_preview(self, client: TestClient):
        created = client.post("/templates", json={
            "name": "Preview", "sections": SECTIONS, "total_marks": 50,
        }).json()["template"]

        preview = client.get(f"/templates/{created['id']}/preview").json()
        assert preview["computed_total_marks"] == 40
        assert preview["declared_total_marks"] == 50
        assert preview["marks_mismatch"] is True
        assert preview["total_questions"] == 15
        assert preview["sections"][0]["allowed_types"] == ["Multiple Choice"]
        assert preview["sections"][1]["allowed_types"] == ["Structured", "Short Answer"]
        assert preview["sections"][1]["section_marks"] == 30

    def test_preview_consistent_template(self, client: TestClient):
        created = client.post("/templates", json={"name": "OK", "sections": SECTIONS}).json()["template"]
        assert client.get(f"/templates/{created['id']}/preview").json()["marks_mismatch"] is False
