"""
Pydantic models for API request/response schemas.

Field names are camelCase to match the FormStructure JSON the model emits
and the labeling UI consumes.
"""
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from datetime import datetime


class FieldOutput(BaseModel):
    """Single normalized form field."""
    id: str
    component: str = Field(..., description="Canonical component name, e.g. 'Short Input'")
    label: str
    required: bool = False
    order: int
    options: Optional[List[str]] = Field(None, description="Choices for Multi-Select, Dropdown and Radio Select")
    columns: Optional[List[str]] = Field(None, description="Column headers for Table")
    rowCount: Optional[int] = Field(None, description="Row count for Table")
    placeholder: Optional[str] = None
    componentId: Optional[str] = Field(None, description="Configured external id of the component")


class SectionOutput(BaseModel):
    """Section of fields."""
    id: str
    title: str
    order: int
    fields: List[FieldOutput] = []


class FormStructureOutput(BaseModel):
    """Document-level form structure."""
    formTitle: str
    sections: List[SectionOutput] = []


class ExtractionMeta(BaseModel):
    """Metadata about one extraction request."""
    originalFilename: str
    fileSize: int
    pagesProcessed: int
    processingTimeMs: int


class ExtractFormResponse(BaseModel):
    """Response for the extract-form endpoint."""
    success: bool
    data: Optional[FormStructureOutput] = None
    meta: Optional[ExtractionMeta] = None
    error: Optional[str] = None


class ComponentInfo(BaseModel):
    """One entry of the component vocabulary."""
    name: str
    description: str
    hasOptions: Optional[bool] = None
    hasColumns: Optional[bool] = None
    hasRowCount: Optional[bool] = None


class ComponentsResponse(BaseModel):
    success: bool
    data: List[ComponentInfo]


class SupportedTypes(BaseModel):
    supportedTypes: List[str]
    maxFileSize: int
    components: List[str]


class SupportedTypesResponse(BaseModel):
    success: bool
    data: SupportedTypes


class ErrorResponse(BaseModel):
    """Body of every failed request."""
    success: bool = False
    error: str


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime


# ============================================================================
# Training dataset
# ============================================================================

class TrainingStats(BaseModel):
    """Counts of stored forms by status."""
    total: int
    pending: int
    in_progress: int
    verified: int
    minExamples: int = Field(..., description="Verified forms needed before a fine-tune is worthwhile")
    readyForFineTune: bool


class TrainingStatsResponse(BaseModel):
    success: bool
    data: TrainingStats


class TrainingFormSummary(BaseModel):
    """Training form list entry."""
    id: str
    filename: str
    status: str = Field(..., description="Status: pending, in_progress, verified")
    created_at: str
    updated_at: str
    is_verified: bool
    page_count: int


class TrainingFormListResponse(BaseModel):
    success: bool
    data: List[TrainingFormSummary]


class TrainingUploadResult(BaseModel):
    id: str
    filename: str
    pageCount: int
    aiExtraction: FormStructureOutput


class TrainingUploadResponse(BaseModel):
    success: bool
    data: TrainingUploadResult


class UpdateExtractionRequest(BaseModel):
    """Corrected extraction submitted from the labeling UI."""
    correctedExtraction: Dict[str, Any] = Field(..., description="FormStructure JSON; normalized before saving")
    isVerified: bool = False


class UpdateExtractionResult(BaseModel):
    id: str
    status: str
    isVerified: bool
    correctedExtraction: FormStructureOutput


class UpdateExtractionResponse(BaseModel):
    success: bool
    data: UpdateExtractionResult


class ExportRequest(BaseModel):
    """Request for a JSONL fine-tuning export."""
    systemPrompt: Optional[str] = Field(None, description="System message written into every example")


class ExportPreviewForm(BaseModel):
    id: str
    filename: str
    sectionCount: int
    fieldCount: int


class ExportPreview(BaseModel):
    verifiedCount: int
    minExamples: int
    readyForFineTune: bool
    forms: List[ExportPreviewForm]


class ExportPreviewResponse(BaseModel):
    success: bool
    data: ExportPreview


class MessageResponse(BaseModel):
    success: bool
    message: str
