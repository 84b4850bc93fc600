"""
Form Extraction Pipeline
========================

Entry point of the core: page images in, one document-level FormStructure
out.

Pipeline Stages:
----------------
1. VALIDATE: model credential present, at least one page image
2. PLAN: split pages into batches of MAX_PAGES_PER_BATCH
3. EXTRACT: one model call per batch (BatchExtractor)
4. MERGE: fold batch results into one structure (merge_results); a single
   batch is renumbered the same way only when its ids collide

Ordering:
---------
Merge correctness depends on batch results arriving in document order.
With max_concurrent_batches == 1 batches run strictly one after another.
With a larger value batch calls run on a bounded thread pool and results
are collected by batch index, so the merge input is always in document
order regardless of completion order.

Failure Policy:
---------------
No retries and no partial results. The first failing batch aborts the
whole document; batches not yet started are cancelled and nothing is
merged. Callers may retry the whole document.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

from .batch_extractor import BatchExtractor
from .batching import PageBatch, plan_batches
from .errors import ConfigurationError, EmptyInputError
from .merger import has_unique_ids, merge_results, renumber_structure
from .model_client import VisionModelClient
from .schema import FormStructure, PageImage

logger = logging.getLogger(__name__)


class FormExtractionPipeline:
    """
    Batched extraction and merge pipeline.

    Example usage:

        pipeline = FormExtractionPipeline.from_config()

        images = DocumentConverter.convert('form.pdf', pdf_bytes)
        structure = pipeline.extract_form_structure(images)

        output = structure.to_dict()
    """

    DEFAULT_MAX_PAGES_PER_BATCH = 3

    def __init__(
        self,
        model_client: VisionModelClient,
        max_pages_per_batch: int = DEFAULT_MAX_PAGES_PER_BATCH,
        max_concurrent_batches: int = 1,
        component_ids: Optional[Dict[str, str]] = None
    ):
        """
        Initialize the pipeline.

        Args:
            model_client: Caller for the vision model
            max_pages_per_batch: Pages sent together in one model call
            max_concurrent_batches: Bound on in-flight batch calls (1 = sequential)
            component_ids: Optional canonical-name -> external id map
        """
        if max_pages_per_batch < 1:
            raise ConfigurationError("max_pages_per_batch must be a positive integer")
        if max_concurrent_batches < 1:
            raise ConfigurationError("max_concurrent_batches must be a positive integer")

        self.model_client = model_client
        self.max_pages_per_batch = max_pages_per_batch
        self.max_concurrent_batches = max_concurrent_batches
        self.extractor = BatchExtractor(model_client, component_ids=component_ids)

        logger.info(
            f"Initialized FormExtractionPipeline - model: {getattr(model_client, 'model', 'unknown')}, "
            f"batch size: {max_pages_per_batch}, concurrency: {max_concurrent_batches}"
        )

    @classmethod
    def from_config(cls) -> 'FormExtractionPipeline':
        """Build a pipeline from app.config.Config."""
        from app.config import Config

        return cls(
            model_client=VisionModelClient(**Config.get_model_settings()),
            max_pages_per_batch=Config.MAX_PAGES_PER_BATCH,
            max_concurrent_batches=Config.MAX_CONCURRENT_BATCHES,
            component_ids=Config.get_component_ids()
        )

    def extract_form_structure(self, images: Sequence[PageImage]) -> FormStructure:
        """
        Extract the form structure of a whole document.

        Args:
            images: Page-ordered, non-empty sequence of page images

        Returns:
            Merged FormStructure with globally unique ids
        """
        if not self.model_client.is_configured:
            raise ConfigurationError()

        if not images:
            raise EmptyInputError()

        start_time = time.time()
        total_pages = len(images)
        batches = plan_batches(images, self.max_pages_per_batch)

        if len(batches) == 1:
            structure = self.extractor.extract_batch(batches[0].images, 1, total_pages)
            if not has_unique_ids(structure):
                logger.info("Duplicate ids in single-batch result; renumbering")
                structure = renumber_structure(structure)
        else:
            logger.info(f"Processing {total_pages} pages in batches of {self.max_pages_per_batch}...")
            structure = merge_results(self._run_batches(batches, total_pages))

        logger.info(
            f"Form extraction complete: {total_pages} pages, {len(batches)} batches, "
            f"{len(structure.sections)} sections, {structure.field_count} fields, "
            f"{int((time.time() - start_time) * 1000)}ms"
        )
        return structure

    def _extract(self, batch: PageBatch, total_pages: int) -> FormStructure:
        logger.info(f"Processing pages {batch.start_page}-{batch.end_page}...")
        return self.extractor.extract_batch(batch.images, batch.start_page, total_pages)

    def _run_batches(self, batches: List[PageBatch], total_pages: int) -> List[FormStructure]:
        """Run every batch and return results in batch order."""
        if self.max_concurrent_batches == 1:
            return [self._extract(batch, total_pages) for batch in batches]

        workers = min(self.max_concurrent_batches, len(batches))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="form-batch") as executor:
            futures = [executor.submit(self._extract, batch, total_pages) for batch in batches]
            results: List[FormStructure] = []
            try:
                # futures list is in batch order; completion order is irrelevant
                for future in futures:
                    results.append(future.result())
            except Exception:
                for future in futures:
                    future.cancel()
                raise
        return results
