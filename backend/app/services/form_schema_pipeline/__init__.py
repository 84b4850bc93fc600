"""
Form Schema Pipeline
====================

Converts rendered document pages into a canonical form schema (sections of
typed fields) by delegating visual understanding to a vision model, then
validating, normalizing and merging the model's per-batch answers.

Pipeline Stages:
1. PLAN: split page images into model-sized batches
2. EXTRACT: one model call per batch under a fixed extraction contract
3. PARSE: refusal detection, payload extraction, strict JSON parsing
4. NORMALIZE: closed component vocabulary, positional defaults
5. MERGE: renumber sections/fields into globally unique ids

Design Principles:
- Closed vocabulary (every component maps to one of ten kinds)
- Malformed structure degrades to defaults, never to an error
- Only unparseable text, refusals and upstream failures are errors
- Batch results are merged strictly in document order
"""

from .ontology import ComponentKind, ComponentOntology, ONTOLOGY, normalize_component
from .schema import PageImage, FormField, Section, FormStructure
from .normalizer import normalize_field, normalize_section, normalize_form_structure
from .response_parser import ParseResult, extract_structure_payload, parse_structure, is_refusal
from .batching import PageBatch, plan_batches
from .model_client import VisionModelClient
from .batch_extractor import BatchExtractor
from .merger import has_unique_ids, merge_results, renumber_structure
from .pipeline import FormExtractionPipeline
from .errors import (
    FormExtractionError,
    ConfigurationError,
    EmptyInputError,
    RefusalError,
    EmptyResponseError,
    MalformedOutputError,
    UpstreamError,
    UpstreamQuotaError,
    UpstreamAuthError,
    UpstreamTimeoutError,
)

__all__ = [
    'FormExtractionPipeline',
    'BatchExtractor',
    'VisionModelClient',
    # Data model
    'PageImage',
    'FormField',
    'Section',
    'FormStructure',
    # Vocabulary
    'ComponentKind',
    'ComponentOntology',
    'ONTOLOGY',
    'normalize_component',
    # Stages
    'normalize_field',
    'normalize_section',
    'normalize_form_structure',
    'ParseResult',
    'extract_structure_payload',
    'parse_structure',
    'is_refusal',
    'PageBatch',
    'plan_batches',
    'merge_results',
    'renumber_structure',
    'has_unique_ids',
    # Errors
    'FormExtractionError',
    'ConfigurationError',
    'EmptyInputError',
    'RefusalError',
    'EmptyResponseError',
    'MalformedOutputError',
    'UpstreamError',
    'UpstreamQuotaError',
    'UpstreamAuthError',
    'UpstreamTimeoutError',
]
