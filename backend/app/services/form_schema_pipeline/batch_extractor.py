"""
Page-Batch Extractor
====================

Runs one model call for one batch of page images and turns the answer into
a normalized, batch-scoped FormStructure.

Per batch:
----------
1. Build the request: batch instruction, then page images in order,
   under the fixed SYSTEM_PROMPT contract
2. Call the model once (no internal retry)
3. Empty answer        -> EmptyResponseError
4. Refusal phrasing    -> RefusalError (checked before any parsing)
5. Extract + parse     -> MalformedOutputError on unparseable text
6. Normalize           -> always a well-formed FormStructure

Raw model text is logged on failure and carried on the exception, but is
never part of an error's user_message.
"""

import logging
from typing import Dict, Optional, Sequence

from .errors import EmptyInputError, EmptyResponseError, MalformedOutputError, RefusalError
from .model_client import VisionModelClient, image_part, text_part
from .normalizer import normalize_form_structure
from .prompts import SYSTEM_PROMPT, build_batch_instruction
from .response_parser import extract_structure_payload, is_refusal, parse_structure
from .schema import FormStructure, PageImage

logger = logging.getLogger(__name__)


class BatchExtractor:
    """Extracts a partial form structure from one batch of pages."""

    def __init__(
        self,
        model_client: VisionModelClient,
        component_ids: Optional[Dict[str, str]] = None,
        system_prompt: str = SYSTEM_PROMPT
    ):
        """
        Args:
            model_client: Caller for the vision model
            component_ids: Optional canonical-name -> external id map
            system_prompt: Extraction contract (defaults to SYSTEM_PROMPT)
        """
        self.model_client = model_client
        self.component_ids = component_ids or {}
        self.system_prompt = system_prompt

    def build_parts(self, images: Sequence[PageImage], start_page: int, total_pages: int):
        """Build the ordered user content parts for one batch."""
        detail = getattr(self.model_client, 'image_detail', 'high')
        parts = [text_part(build_batch_instruction(start_page, len(images), total_pages))]
        parts.extend(image_part(image, detail) for image in images)
        return parts

    def extract_batch(
        self,
        images: Sequence[PageImage],
        start_page: int,
        total_pages: int
    ) -> FormStructure:
        """
        Extract the structure visible on one batch of pages.

        Args:
            images: Non-empty, page-ordered batch
            start_page: 1-based document position of the first image
            total_pages: Page count of the whole document

        Returns:
            Normalized FormStructure (possibly with zero sections)
        """
        if not images:
            raise EmptyInputError()

        end_page = start_page + len(images) - 1
        raw_text = self.model_client.complete(
            self.system_prompt,
            self.build_parts(images, start_page, total_pages)
        )

        if not raw_text or not raw_text.strip():
            logger.error(f"Empty model response for pages {start_page}-{end_page}")
            raise EmptyResponseError()

        if is_refusal(raw_text):
            logger.error(f"Model refused pages {start_page}-{end_page}: {raw_text}")
            raise RefusalError(raw_text=raw_text)

        parse_result = parse_structure(extract_structure_payload(raw_text), raw_text=raw_text)
        if not parse_result.success:
            logger.error(
                f"Failed to parse model response for pages {start_page}-{end_page} "
                f"({parse_result.error}): {raw_text}"
            )
            raise MalformedOutputError(raw_text=raw_text)

        structure = normalize_form_structure(parse_result.data, self.component_ids)
        logger.info(
            f"Pages {start_page}-{end_page}: {len(structure.sections)} sections, "
            f"{structure.field_count} fields"
        )
        return structure
