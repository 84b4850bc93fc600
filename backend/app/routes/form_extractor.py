"""
Form Extractor API Routes
=========================

REST API endpoints for turning an uploaded document into a FormStructure.

Endpoints:
- POST /api/extract-form - Extract the form structure of an uploaded document
- GET /api/supported-types - Accepted upload types, size limit and components
- GET /api/components - The component vocabulary
"""

import logging
import time
from typing import Tuple

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from app.config import Config
from app.models import (
    ComponentInfo, ComponentsResponse, ExtractFormResponse, ExtractionMeta,
    FormStructureOutput, SupportedTypes, SupportedTypesResponse
)
from app.services.form_schema_pipeline import FormExtractionPipeline, ONTOLOGY
from app.utils.document_converter import DocumentConverter, SUPPORTED_TYPES, is_supported_file_type

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Form Extractor"])

# Singleton pipeline (built from Config on first use)
_pipeline_instance = None


def get_pipeline() -> FormExtractionPipeline:
    """Get or create the pipeline instance."""
    global _pipeline_instance

    if _pipeline_instance is None:
        _pipeline_instance = FormExtractionPipeline.from_config()
        logger.info("Initialized FormExtractionPipeline singleton")

    return _pipeline_instance


async def read_upload(request: Request) -> Tuple[str, bytes]:
    """
    Read the first uploaded file of a multipart request, under any field name.

    Raises:
        HTTPException: 400 when missing, empty or of an unsupported type,
            413 when larger than Config.MAX_FILE_SIZE
    """
    form = await request.form()
    upload = next((value for _, value in form.multi_items() if isinstance(value, UploadFile)), None)

    if upload is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    filename = upload.filename or ''
    if not is_supported_file_type(filename):
        raise HTTPException(status_code=400, detail="Invalid file type. Allowed types: PDF, DOCX, JPG, PNG")

    data = await upload.read()

    if len(data) > Config.MAX_FILE_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {Config.MAX_FILE_SIZE // (1024 * 1024)}MB"
        )

    if len(data) == 0:
        raise HTTPException(status_code=400, detail="Empty file uploaded")

    return filename, data


# ============================================================================
# API Endpoints
# ============================================================================

@router.post("/extract-form", response_model=ExtractFormResponse, response_model_exclude_none=True)
async def extract_form(request: Request) -> ExtractFormResponse:
    """
    Extract the structure of an uploaded form.

    1. Convert the upload (PDF, DOCX, image) to page images
    2. Run the batched extraction and merge pipeline
    3. Return the merged FormStructure with request metadata

    Extraction failures propagate to the application error handlers.
    """
    start_time = time.time()
    filename, data = await read_upload(request)

    logger.info(f"Processing file: {filename} ({len(data)} bytes)")

    images = await run_in_threadpool(DocumentConverter.convert, filename, data)
    logger.info(f"Converted to {len(images)} image(s)")

    pipeline = get_pipeline()
    structure = await run_in_threadpool(pipeline.extract_form_structure, images)

    processing_time_ms = int((time.time() - start_time) * 1000)
    logger.info(f"Form extraction completed in {processing_time_ms}ms")

    return ExtractFormResponse(
        success=True,
        data=FormStructureOutput(**structure.to_dict()),
        meta=ExtractionMeta(
            originalFilename=filename,
            fileSize=len(data),
            pagesProcessed=len(images),
            processingTimeMs=processing_time_ms
        )
    )


@router.get("/supported-types", response_model=SupportedTypesResponse)
async def get_supported_types() -> SupportedTypesResponse:
    """Accepted upload extensions, upload size limit and component names."""
    return SupportedTypesResponse(
        success=True,
        data=SupportedTypes(
            supportedTypes=SUPPORTED_TYPES,
            maxFileSize=Config.MAX_FILE_SIZE,
            components=ONTOLOGY.kind_names
        )
    )


@router.get("/components", response_model=ComponentsResponse, response_model_exclude_none=True)
async def get_components() -> ComponentsResponse:
    """
    Get the component vocabulary with descriptions.

    Option-bearing kinds are flagged hasOptions; Table is flagged
    hasColumns and hasRowCount.
    """
    components = []
    for kind in ONTOLOGY.all_kinds:
        metadata = ONTOLOGY.get_metadata(kind)
        components.append(ComponentInfo(
            name=kind.value,
            description=metadata.description if metadata else '',
            hasOptions=True if ONTOLOGY.takes_options(kind) else None,
            hasColumns=True if ONTOLOGY.takes_columns(kind) else None,
            hasRowCount=True if ONTOLOGY.takes_columns(kind) else None
        ))

    return ComponentsResponse(success=True, data=components)
