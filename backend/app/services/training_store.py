"""
Training dataset store.

Keeps every ingested document (page images + the AI extraction) so a human
can correct it in the labeling UI, and exports verified corrections as
chat fine-tuning examples (JSONL).

FormStructure values are stored as JSON produced by to_dict() and read back
with from_dict(), so optional options/columns/rowCount survive unchanged.
"""
import base64
import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from app.services.form_schema_pipeline.model_client import image_part, text_part
from app.services.form_schema_pipeline.prompts import WHOLE_DOCUMENT_INSTRUCTION
from app.services.form_schema_pipeline.schema import FormStructure, PageImage

logger = logging.getLogger(__name__)

STATUS_PENDING = 'pending'
STATUS_IN_PROGRESS = 'in_progress'
STATUS_VERIFIED = 'verified'


def generate_id(prefix: str = '') -> str:
    """Short random id, e.g. form_1a2b3c4d."""
    short_id = uuid.uuid4().hex[:8]
    return f"{prefix}_{short_id}" if prefix else short_id


@dataclass
class TrainingForm:
    """One stored document with its images and extractions."""
    id: str
    filename: str
    status: str
    created_at: str
    updated_at: str
    images: List[PageImage] = field(default_factory=list)
    ai_extraction: Optional[FormStructure] = None
    corrected_extraction: Optional[FormStructure] = None
    is_verified: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            'id': self.id,
            'filename': self.filename,
            'status': self.status,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'images': [
                {'page': img.page, 'base64': img.to_base64(), 'mimeType': img.mime_type}
                for img in self.images
            ],
            'aiExtraction': self.ai_extraction.to_dict() if self.ai_extraction else None,
            'correctedExtraction': self.corrected_extraction.to_dict() if self.corrected_extraction else None,
            'isVerified': self.is_verified,
        }


class TrainingStore:
    """SQLite-backed store for training forms."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self):
        """Initialize the database with required tables."""
        with self._get_connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS training_forms (
                    id TEXT PRIMARY KEY,
                    filename TEXT NOT NULL,
                    status TEXT DEFAULT 'pending',
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS training_images (
                    id TEXT PRIMARY KEY,
                    form_id TEXT NOT NULL,
                    page_number INTEGER NOT NULL,
                    image_data TEXT NOT NULL,
                    mime_type TEXT DEFAULT 'image/png',
                    FOREIGN KEY (form_id) REFERENCES training_forms(id) ON DELETE CASCADE
                );

                CREATE TABLE IF NOT EXISTS training_extractions (
                    id TEXT PRIMARY KEY,
                    form_id TEXT NOT NULL UNIQUE,
                    ai_extraction TEXT,
                    corrected_extraction TEXT,
                    is_verified INTEGER DEFAULT 0,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    FOREIGN KEY (form_id) REFERENCES training_forms(id) ON DELETE CASCADE
                );

                CREATE INDEX IF NOT EXISTS idx_forms_status ON training_forms(status);
                CREATE INDEX IF NOT EXISTS idx_images_form ON training_images(form_id);
            """)
            conn.commit()

    @contextmanager
    def _get_connection(self):
        """Get database connection with foreign keys enforced."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    def create_form(self, filename: str, images: List[PageImage], ai_extraction: FormStructure) -> str:
        """
        Store a document, its page images and the AI extraction.

        Returns:
            The new form id
        """
        form_id = generate_id('form')

        with self._get_connection() as conn:
            with conn:
                conn.execute(
                    "INSERT INTO training_forms (id, filename, status) VALUES (?, ?, ?)",
                    (form_id, filename, STATUS_PENDING)
                )
                conn.executemany(
                    """
                    INSERT INTO training_images (id, form_id, page_number, image_data, mime_type)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    [
                        (generate_id('img'), form_id, img.page or index, img.to_base64(), img.mime_type or 'image/png')
                        for index, img in enumerate(images, 1)
                    ]
                )
                conn.execute(
                    "INSERT INTO training_extractions (id, form_id, ai_extraction) VALUES (?, ?, ?)",
                    (generate_id('ext'), form_id, json.dumps(ai_extraction.to_dict()))
                )

        logger.info(f"Stored training form {form_id} ({filename}, {len(images)} pages)")
        return form_id

    def list_forms(self) -> List[Dict[str, Any]]:
        """Get all training forms with their status, newest first."""
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT
                    f.id,
                    f.filename,
                    f.status,
                    f.created_at,
                    f.updated_at,
                    e.is_verified,
                    (SELECT COUNT(*) FROM training_images WHERE form_id = f.id) AS page_count
                FROM training_forms f
                LEFT JOIN training_extractions e ON e.form_id = f.id
                ORDER BY f.created_at DESC, f.rowid DESC
            """).fetchall()

        return [
            {
                'id': row['id'],
                'filename': row['filename'],
                'status': row['status'],
                'created_at': row['created_at'],
                'updated_at': row['updated_at'],
                'is_verified': bool(row['is_verified']),
                'page_count': row['page_count'],
            }
            for row in rows
        ]

    def get_form(self, form_id: str) -> Optional[TrainingForm]:
        """Get a single form with images and extractions."""
        with self._get_connection() as conn:
            form = conn.execute("SELECT * FROM training_forms WHERE id = ?", (form_id,)).fetchone()
            if not form:
                return None

            images = conn.execute(
                "SELECT * FROM training_images WHERE form_id = ? ORDER BY page_number",
                (form_id,)
            ).fetchall()
            extraction = conn.execute(
                "SELECT * FROM training_extractions WHERE form_id = ?",
                (form_id,)
            ).fetchone()

        return TrainingForm(
            id=form['id'],
            filename=form['filename'],
            status=form['status'],
            created_at=form['created_at'],
            updated_at=form['updated_at'],
            images=[
                PageImage(
                    page=img['page_number'],
                    data=base64.b64decode(img['image_data']),
                    mime_type=img['mime_type']
                )
                for img in images
            ],
            ai_extraction=self._load_structure(extraction['ai_extraction'] if extraction else None),
            corrected_extraction=self._load_structure(extraction['corrected_extraction'] if extraction else None),
            is_verified=bool(extraction and extraction['is_verified'] == 1),
        )

    def update_extraction(self, form_id: str, corrected: FormStructure, is_verified: bool = False) -> bool:
        """
        Save a corrected extraction and move the form to in_progress/verified.

        Returns:
            False when the form does not exist
        """
        status = STATUS_VERIFIED if is_verified else STATUS_IN_PROGRESS
        with self._get_connection() as conn:
            with conn:
                cursor = conn.execute(
                    """
                    UPDATE training_extractions
                    SET corrected_extraction = ?, is_verified = ?, updated_at = CURRENT_TIMESTAMP
                    WHERE form_id = ?
                    """,
                    (json.dumps(corrected.to_dict()), 1 if is_verified else 0, form_id)
                )
                if cursor.rowcount == 0:
                    return False
                conn.execute(
                    "UPDATE training_forms SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (status, form_id)
                )

        logger.info(f"Updated training form {form_id} -> {status}")
        return True

    def delete_form(self, form_id: str) -> bool:
        """Delete a form; images and extraction cascade."""
        with self._get_connection() as conn:
            with conn:
                cursor = conn.execute("DELETE FROM training_forms WHERE id = ?", (form_id,))
        return cursor.rowcount > 0

    def get_verified_forms(self) -> List[Dict[str, Any]]:
        """Get all verified forms that carry a corrected extraction."""
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT f.id, f.filename, e.corrected_extraction
                FROM training_forms f
                JOIN training_extractions e ON e.form_id = f.id
                WHERE e.is_verified = 1 AND e.corrected_extraction IS NOT NULL
                ORDER BY f.created_at, f.rowid
            """).fetchall()

        return [
            {
                'id': row['id'],
                'filename': row['filename'],
                'corrected_extraction': self._load_structure(row['corrected_extraction']),
            }
            for row in rows
        ]

    def export_jsonl(self, system_prompt: str) -> str:
        """
        Export verified forms as chat fine-tuning examples, one JSON per line.

        Each example: system prompt, user instruction + page images,
        assistant answer = corrected FormStructure JSON.
        """
        lines = []
        with self._get_connection() as conn:
            for form in self.get_verified_forms():
                images = conn.execute(
                    "SELECT page_number, image_data, mime_type FROM training_images "
                    "WHERE form_id = ? ORDER BY page_number",
                    (form['id'],)
                ).fetchall()

                user_content = [text_part(WHOLE_DOCUMENT_INSTRUCTION)]
                for img in images:
                    part = image_part(PageImage(
                        page=img['page_number'],
                        data=base64.b64decode(img['image_data']),
                        mime_type=img['mime_type']
                    ))
                    # fine-tuning examples carry no detail hint
                    part['image_url'].pop('detail', None)
                    user_content.append(part)

                example = {
                    'messages': [
                        {'role': 'system', 'content': system_prompt},
                        {'role': 'user', 'content': user_content},
                        {'role': 'assistant', 'content': json.dumps(form['corrected_extraction'].to_dict())},
                    ]
                }
                lines.append(json.dumps(example))

        logger.info(f"Exported {len(lines)} training examples")
        return '\n'.join(lines)

    def get_stats(self) -> Dict[str, int]:
        """Get counts of forms by status."""
        with self._get_connection() as conn:
            row = conn.execute("""
                SELECT
                    COUNT(*) AS total,
                    SUM(CASE WHEN status = 'pending' THEN 1 ELSE 0 END) AS pending,
                    SUM(CASE WHEN status = 'in_progress' THEN 1 ELSE 0 END) AS in_progress,
                    SUM(CASE WHEN status = 'verified' THEN 1 ELSE 0 END) AS verified
                FROM training_forms
            """).fetchone()

        return {
            'total': row['total'] or 0,
            'pending': row['pending'] or 0,
            'in_progress': row['in_progress'] or 0,
            'verified': row['verified'] or 0,
        }

    @staticmethod
    def _load_structure(raw: Optional[str]) -> Optional[FormStructure]:
        if not raw:
            return None
        return FormStructure.from_dict(json.loads(raw))
