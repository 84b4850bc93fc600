"""
Tests for the SQLite training store.
"""

import json
import re

import pytest

from app.services.form_schema_pipeline import (
    ComponentKind,
    FormField,
    FormStructure,
    PageImage,
    Section,
)
from app.services.training_store import TrainingStore


@pytest.fixture
def store(tmp_path):
    return TrainingStore(tmp_path / "nested" / "training.db")


@pytest.fixture
def structure():
    return FormStructure(
        form_title="Rental Application",
        sections=[Section(id="section_1", title="Applicant", order=1, fields=[
            FormField(id="field_1", component=ComponentKind.SHORT_INPUT, label="Name", required=True, order=1,
                      placeholder="Full legal name"),
            FormField(id="field_2", component=ComponentKind.RADIO_SELECT, label="Pets?", order=2,
                      options=["Yes", "No"], component_id="uuid-radio"),
            FormField(id="field_3", component=ComponentKind.TABLE, label="Occupants", order=3,
                      columns=["Name", "Age"], row_count=0),
        ])],
    )


def _images(count=2):
    return [PageImage(page=n, data=bytes([n]) * 8) for n in range(1, count + 1)]


class TestTrainingStore:
    """Tests for TrainingStore."""

    def test_create_and_get_round_trip(self, store, structure):
        """Stored structure comes back identical, optional fields included."""
        form_id = store.create_form("lease.pdf", _images(2), structure)

        assert re.fullmatch(r"form_[0-9a-f]{8}", form_id)

        form = store.get_form(form_id)
        assert form.filename == "lease.pdf"
        assert form.status == "pending"
        assert form.ai_extraction == structure
        assert form.corrected_extraction is None
        assert form.is_verified is False
        assert [img.page for img in form.images] == [1, 2]
        assert form.images[1].data == bytes([2]) * 8

    def test_get_missing_form(self, store):
        assert store.get_form("form_missing") is None

    def test_list_forms_newest_first(self, store, structure):
        first = store.create_form("a.pdf", _images(1), structure)
        second = store.create_form("b.pdf", _images(3), structure)

        forms = store.list_forms()

        assert [f["id"] for f in forms] == [second, first]
        assert forms[0]["page_count"] == 3
        assert forms[0]["is_verified"] is False

    def test_update_extraction_in_progress_then_verified(self, store, structure):
        form_id = store.create_form("a.pdf", _images(1), structure)
        corrected = FormStructure(form_title="Corrected", sections=[])

        assert store.update_extraction(form_id, corrected, is_verified=False)
        assert store.get_form(form_id).status == "in_progress"

        assert store.update_extraction(form_id, corrected, is_verified=True)
        form = store.get_form(form_id)
        assert form.status == "verified"
        assert form.is_verified is True
        assert form.corrected_extraction == corrected

    def test_update_missing_form(self, store, structure):
        assert store.update_extraction("form_missing", structure) is False

    def test_delete_cascades(self, store, structure):
        form_id = store.create_form("a.pdf", _images(2), structure)

        assert store.delete_form(form_id) is True
        assert store.get_form(form_id) is None
        assert store.delete_form(form_id) is False

        with store._get_connection() as conn:
            assert conn.execute("SELECT COUNT(*) FROM training_images").fetchone()[0] == 0
            assert conn.execute("SELECT COUNT(*) FROM training_extractions").fetchone()[0] == 0

    def test_stats(self, store, structure):
        pending = store.create_form("a.pdf", _images(1), structure)
        working = store.create_form("b.pdf", _images(1), structure)
        done = store.create_form("c.pdf", _images(1), structure)
        store.update_extraction(working, structure, is_verified=False)
        store.update_extraction(done, structure, is_verified=True)

        assert store.get_stats() == {"total": 3, "pending": 1, "in_progress": 1, "verified": 1}
        assert pending

    def test_stats_on_empty_store(self, store):
        assert store.get_stats() == {"total": 0, "pending": 0, "in_progress": 0, "verified": 0}

    def test_get_verified_forms(self, store, structure):
        store.create_form("draft.pdf", _images(1), structure)
        done = store.create_form("done.pdf", _images(1), structure)
        store.update_extraction(done, structure, is_verified=True)

        verified = store.get_verified_forms()

        assert [f["id"] for f in verified] == [done]
        assert verified[0]["corrected_extraction"] == structure

    def test_export_jsonl(self, store, structure):
        """One chat example per verified form, answer is the corrected JSON."""
        done = store.create_form("done.pdf", _images(2), structure)
        store.create_form("draft.pdf", _images(1), structure)
        store.update_extraction(done, structure, is_verified=True)

        lines = store.export_jsonl("You are a form analyzer.").splitlines()

        assert len(lines) == 1
        messages = json.loads(lines[0])["messages"]
        assert [m["role"] for m in messages] == ["system", "user", "assistant"]
        assert messages[0]["content"] == "You are a form analyzer."

        user_parts = messages[1]["content"]
        assert user_parts[0]["type"] == "text"
        image_urls = [p["image_url"]["url"] for p in user_parts[1:]]
        assert len(image_urls) == 2
        assert all(url.startswith("data:image/png;base64,") for url in image_urls)

        assert FormStructure.from_dict(json.loads(messages[2]["content"])) == structure

    def test_export_with_no_verified_forms_is_empty(self, store, structure):
        store.create_form("draft.pdf", _images(1), structure)
        assert store.export_jsonl("S") == ""
