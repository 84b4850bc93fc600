"""
Tests for the HTTP surface: status mapping and response envelopes.
"""

import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.form_schema_pipeline import (
    FormExtractionPipeline,
    UpstreamQuotaError,
)
from app.services.training_store import TrainingStore

from conftest import FakeModelClient, png_bytes

ANSWER = json.dumps({
    "formTitle": "Visitor Log",
    "sections": [{"title": "Visitor", "fields": [
        {"component": "text", "label": "Name", "required": True},
        {"component": "dropdown", "label": "Purpose", "options": ["Delivery", "Meeting"]},
    ]}],
})


@pytest.fixture
def client():
    return TestClient(app, raise_server_exceptions=False)


def _pipeline(*answers):
    return FormExtractionPipeline(FakeModelClient(list(answers)))


class TestExtractForm:
    """Tests for POST /api/extract-form."""

    def test_extracts_uploaded_image(self, client):
        with patch("app.routes.form_extractor.get_pipeline", return_value=_pipeline(ANSWER)):
            response = client.post("/api/extract-form", files={"document": ("log.png", png_bytes(), "image/png")})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["formTitle"] == "Visitor Log"
        fields = body["data"]["sections"][0]["fields"]
        assert fields[0]["component"] == "Short Input"
        assert "options" not in fields[0]
        assert fields[1]["options"] == ["Delivery", "Meeting"]
        meta = body["meta"]
        assert meta["originalFilename"] == "log.png"
        assert meta["pagesProcessed"] == 1
        assert meta["fileSize"] > 0
        assert isinstance(meta["processingTimeMs"], int)

    def test_no_file(self, client):
        response = client.post("/api/extract-form", data={"note": "nothing"})
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "No file uploaded"}

    def test_unsupported_type(self, client):
        response = client.post("/api/extract-form", files={"file": ("notes.txt", b"hello", "text/plain")})
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_empty_file(self, client):
        response = client.post("/api/extract-form", files={"file": ("blank.png", b"", "image/png")})
        assert response.status_code == 400

    def test_oversized_file(self, client):
        with patch("app.config.Config.MAX_FILE_SIZE", 10):
            response = client.post("/api/extract-form", files={"file": ("big.png", png_bytes(), "image/png")})
        assert response.status_code == 413

    def test_missing_credential_is_500(self, client):
        pipeline = FormExtractionPipeline(FakeModelClient([], configured=False))
        with patch("app.routes.form_extractor.get_pipeline", return_value=pipeline):
            response = client.post("/api/extract-form", files={"file": ("a.png", png_bytes(), "image/png")})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "OPENAI_API_KEY is not configured"}

    def test_empty_conversion_is_400(self, client):
        with patch("app.routes.form_extractor.get_pipeline", return_value=_pipeline()), \
                patch("app.routes.form_extractor.DocumentConverter.convert", return_value=[]):
            response = client.post("/api/extract-form", files={"file": ("a.pdf", b"%PDF-1.4", "application/pdf")})

        assert response.status_code == 400
        assert response.json()["error"] == "No images provided for analysis"

    def test_upstream_error_message(self, client):
        with patch("app.routes.form_extractor.get_pipeline", return_value=_pipeline(UpstreamQuotaError("429"))):
            response = client.post("/api/extract-form", files={"file": ("a.png", png_bytes(), "image/png")})

        assert response.status_code == 500
        assert response.json()["error"] == "OpenAI API quota exceeded. Please check your billing."

    def test_raw_model_text_not_returned(self, client):
        raw = "garbage {not: json} with secrets"
        with patch("app.routes.form_extractor.get_pipeline", return_value=_pipeline(raw)):
            response = client.post("/api/extract-form", files={"file": ("a.png", png_bytes(), "image/png")})

        assert response.status_code == 500
        assert raw not in response.text
        assert response.json()["error"] == "Invalid JSON response from AI. Please try again."

    def test_unexpected_error_is_generic_500(self, client):
        with patch("app.routes.form_extractor.get_pipeline", side_effect=RuntimeError("boom")):
            response = client.post("/api/extract-form", files={"file": ("a.png", png_bytes(), "image/png")})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}


class TestInfoEndpoints:
    """Tests for the informational endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "timestamp" in response.json()

    def test_supported_types(self, client):
        data = client.get("/api/supported-types").json()["data"]
        assert data["supportedTypes"] == ["pdf", "docx", "doc", "jpg", "jpeg", "png"]
        assert len(data["components"]) == 10

    def test_components(self, client):
        body = client.get("/api/components").json()
        by_name = {c["name"]: c for c in body["data"]}

        assert body["success"] is True
        assert len(by_name) == 10
        assert by_name["Dropdown"]["hasOptions"] is True
        assert by_name["Table"]["hasColumns"] is True
        assert by_name["Table"]["hasRowCount"] is True
        assert "hasOptions" not in by_name["Signature"]

    def test_unknown_route(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Endpoint not found"}


class TestTrainingRoutes:
    """Tests for /api/training."""

    @pytest.fixture
    def store(self, tmp_path):
        store = TrainingStore(tmp_path / "training.db")
        with patch("app.routes.training.get_store", return_value=store):
            yield store

    def _upload(self, client):
        with patch("app.routes.training.get_pipeline", return_value=_pipeline(ANSWER)):
            return client.post("/api/training/upload", files={"file": ("log.png", png_bytes(), "image/png")})

    def test_upload_then_list_and_get(self, client, store):
        upload = self._upload(client)
        assert upload.status_code == 200
        form_id = upload.json()["data"]["id"]
        assert upload.json()["data"]["aiExtraction"]["formTitle"] == "Visitor Log"

        forms = client.get("/api/training/forms").json()["data"]
        assert [f["id"] for f in forms] == [form_id]
        assert forms[0]["page_count"] == 1

        detail = client.get(f"/api/training/forms/{form_id}").json()["data"]
        assert detail["aiExtraction"]["formTitle"] == "Visitor Log"
        assert len(detail["images"]) == 1

    def test_get_unknown_form(self, client, store):
        response = client.get("/api/training/forms/form_unknown")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Form not found"}

    def test_update_normalizes_correction(self, client, store):
        form_id = self._upload(client).json()["data"]["id"]

        response = client.put(f"/api/training/forms/{form_id}", json={
            "correctedExtraction": {"formTitle": "Fixed", "sections": [{"fields": [{"component": "checkbox"}]}]},
            "isVerified": True,
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "verified"
        field = data["correctedExtraction"]["sections"][0]["fields"][0]
        assert field["component"] == "Multi-Select"
        assert field["options"] == []
        assert store.get_form(form_id).corrected_extraction.form_title == "Fixed"

    def test_update_unknown_form(self, client, store):
        response = client.put("/api/training/forms/form_unknown", json={"correctedExtraction": {}})
        assert response.status_code == 404

    def test_delete(self, client, store):
        form_id = self._upload(client).json()["data"]["id"]
        assert client.delete(f"/api/training/forms/{form_id}").status_code == 200
        assert client.delete(f"/api/training/forms/{form_id}").status_code == 404

    def test_stats(self, client, store):
        self._upload(client)
        data = client.get("/api/training/stats").json()["data"]
        assert data["total"] == 1
        assert data["pending"] == 1
        assert data["readyForFineTune"] is False

    def test_export_requires_system_prompt(self, client, store):
        response = client.post("/api/training/export", json={})
        assert response.status_code == 400

    def test_export_requires_verified_forms(self, client, store):
        self._upload(client)
        response = client.post("/api/training/export", json={"systemPrompt": "S"})
        assert response.status_code == 400
        assert response.json()["error"] == "No verified forms to export"

    def test_export_and_preview(self, client, store):
        form_id = self._upload(client).json()["data"]["id"]
        client.put(f"/api/training/forms/{form_id}", json={
            "correctedExtraction": {"formTitle": "Fixed", "sections": [{"title": "A", "fields": [{}]}]},
            "isVerified": True,
        })

        preview = client.get("/api/training/export/preview").json()["data"]
        assert preview["verifiedCount"] == 1
        assert preview["forms"][0]["fieldCount"] == 1

        response = client.post("/api/training/export", json={"systemPrompt": "S"})
        assert response.status_code == 200
        assert "attachment" in response.headers["content-disposition"]
        example = json.loads(response.text.splitlines()[0])
        assert example["messages"][0]["content"] == "S"
