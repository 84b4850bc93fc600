"""
Batch planning: split an ordered page sequence into model-sized windows.
"""

from dataclasses import dataclass
from typing import List, Sequence

from .schema import PageImage


@dataclass
class PageBatch:
    """A contiguous group of page images sent together in one model call."""
    index: int  # 0-based position among all batches
    start_page: int  # 1-based position of the first image in the document
    images: List[PageImage]

    @property
    def page_count(self) -> int:
        return len(self.images)

    @property
    def end_page(self) -> int:
        return self.start_page + self.page_count - 1


def plan_batches(images: Sequence[PageImage], max_per_batch: int) -> List[PageBatch]:
    """
    Partition `images` into contiguous, non-overlapping windows of
    `max_per_batch` in original order; the last window may be shorter.

    Empty input yields no batches. `start_page` counts positions in the
    input sequence, not PageImage.page values.
    """
    if max_per_batch < 1:
        raise ValueError(f"max_per_batch must be positive, got {max_per_batch}")

    return [
        PageBatch(
            index=batch_index,
            start_page=offset + 1,
            images=list(images[offset:offset + max_per_batch]),
        )
        for batch_index, offset in enumerate(range(0, len(images), max_per_batch))
    ]
