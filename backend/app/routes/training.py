"""
Training Dataset API Routes
===========================

Endpoints backing the labeling UI: store AI extractions, accept human
corrections and export verified forms as fine-tuning JSONL.

Endpoints:
- GET /api/training/stats - Counts by status
- GET /api/training/forms - List stored forms
- GET /api/training/forms/{form_id} - One form with images and extractions
- POST /api/training/upload - Convert, extract and store a document
- PUT /api/training/forms/{form_id} - Save a corrected extraction
- DELETE /api/training/forms/{form_id} - Delete a form
- POST /api/training/export - Download verified forms as JSONL
- GET /api/training/export/preview - What an export would contain
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from app.config import Config
from app.models import (
    ExportPreview, ExportPreviewForm, ExportPreviewResponse, ExportRequest,
    FormStructureOutput, MessageResponse, TrainingFormListResponse,
    TrainingFormSummary, TrainingStats, TrainingStatsResponse,
    TrainingUploadResponse, TrainingUploadResult, UpdateExtractionRequest,
    UpdateExtractionResponse, UpdateExtractionResult
)
from app.routes.form_extractor import get_pipeline, read_upload
from app.services.form_schema_pipeline import normalize_form_structure
from app.services.training_store import STATUS_IN_PROGRESS, STATUS_VERIFIED, TrainingStore
from app.utils.document_converter import DocumentConverter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/training", tags=["Training"])

_store_instance = None


def get_store() -> TrainingStore:
    """Get or create the training store instance."""
    global _store_instance

    if _store_instance is None:
        _store_instance = TrainingStore(Config.TRAINING_DB_PATH)
        logger.info(f"Opened training store at {Config.TRAINING_DB_PATH}")

    return _store_instance


@router.get("/stats", response_model=TrainingStatsResponse)
async def get_stats() -> TrainingStatsResponse:
    """Counts of stored forms by status."""
    stats = get_store().get_stats()
    return TrainingStatsResponse(
        success=True,
        data=TrainingStats(
            **stats,
            minExamples=Config.FINE_TUNE_MIN_EXAMPLES,
            readyForFineTune=stats['verified'] >= Config.FINE_TUNE_MIN_EXAMPLES
        )
    )


@router.get("/forms", response_model=TrainingFormListResponse)
async def list_forms() -> TrainingFormListResponse:
    """List all stored forms, newest first."""
    forms = get_store().list_forms()
    return TrainingFormListResponse(
        success=True,
        data=[TrainingFormSummary(**form) for form in forms]
    )


@router.get("/forms/{form_id}")
async def get_form(form_id: str) -> Dict[str, Any]:
    """Get one form with its page images and extractions."""
    form = get_store().get_form(form_id)
    if form is None:
        raise HTTPException(status_code=404, detail="Form not found")
    return {'success': True, 'data': form.to_dict()}


@router.post("/upload", response_model=TrainingUploadResponse, response_model_exclude_none=True)
async def upload_form(request: Request) -> TrainingUploadResponse:
    """Convert, extract and store an uploaded document for labeling."""
    filename, data = await read_upload(request)

    images = await run_in_threadpool(DocumentConverter.convert, filename, data)
    structure = await run_in_threadpool(get_pipeline().extract_form_structure, images)

    form_id = get_store().create_form(filename, images, structure)

    return TrainingUploadResponse(
        success=True,
        data=TrainingUploadResult(
            id=form_id,
            filename=filename,
            pageCount=len(images),
            aiExtraction=FormStructureOutput(**structure.to_dict())
        )
    )


@router.put("/forms/{form_id}", response_model=UpdateExtractionResponse, response_model_exclude_none=True)
async def update_form(form_id: str, body: UpdateExtractionRequest) -> UpdateExtractionResponse:
    """
    Save a human-corrected extraction.

    The correction goes through the same normalization as model output, so
    stored examples always use canonical component names.
    """
    corrected = normalize_form_structure(body.correctedExtraction, Config.get_component_ids())

    if not get_store().update_extraction(form_id, corrected, is_verified=body.isVerified):
        raise HTTPException(status_code=404, detail="Form not found")

    return UpdateExtractionResponse(
        success=True,
        data=UpdateExtractionResult(
            id=form_id,
            status=STATUS_VERIFIED if body.isVerified else STATUS_IN_PROGRESS,
            isVerified=body.isVerified,
            correctedExtraction=FormStructureOutput(**corrected.to_dict())
        )
    )


@router.delete("/forms/{form_id}", response_model=MessageResponse)
async def delete_form(form_id: str) -> MessageResponse:
    """Delete a form with its images and extractions."""
    if not get_store().delete_form(form_id):
        raise HTTPException(status_code=404, detail="Form not found")
    return MessageResponse(success=True, message="Form deleted")


@router.post("/export")
async def export_training_data(body: ExportRequest) -> Response:
    """Download verified forms as a fine-tuning JSONL file."""
    if not body.systemPrompt:
        raise HTTPException(status_code=400, detail="systemPrompt is required")

    store = get_store()
    if not store.get_verified_forms():
        raise HTTPException(status_code=400, detail="No verified forms to export")

    jsonl = store.export_jsonl(body.systemPrompt)
    return Response(
        content=jsonl,
        media_type="application/jsonl",
        headers={"Content-Disposition": 'attachment; filename="training_data.jsonl"'}
    )


@router.get("/export/preview", response_model=ExportPreviewResponse)
async def preview_export() -> ExportPreviewResponse:
    """Summarize the verified forms an export would contain."""
    verified = get_store().get_verified_forms()
    return ExportPreviewResponse(
        success=True,
        data=ExportPreview(
            verifiedCount=len(verified),
            minExamples=Config.FINE_TUNE_MIN_EXAMPLES,
            readyForFineTune=len(verified) >= Config.FINE_TUNE_MIN_EXAMPLES,
            forms=[
                ExportPreviewForm(
                    id=form['id'],
                    filename=form['filename'],
                    sectionCount=len(form['corrected_extraction'].sections),
                    fieldCount=form['corrected_extraction'].field_count
                )
                for form in verified
            ]
        )
    )
