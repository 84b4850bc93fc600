"""
Tests for batch planning.
"""

import math

import pytest

from app.services.form_schema_pipeline import plan_batches

from conftest import make_pages


class TestPlanBatches:
    """Tests for plan_batches."""

    @pytest.mark.parametrize("length,size", [
        (1, 1), (1, 3), (3, 3), (4, 3), (7, 3), (9, 3), (10, 4), (5, 1),
    ])
    def test_batch_count_and_sizes(self, length, size):
        """ceil(L/B) batches, all of size B except possibly the last."""
        batches = plan_batches(make_pages(length), size)

        assert len(batches) == math.ceil(length / size)
        assert all(b.page_count == size for b in batches[:-1])
        assert 1 <= batches[-1].page_count <= size

    def test_windows_are_contiguous_and_ordered(self):
        """Concatenating the windows gives back the input."""
        images = make_pages(7)
        batches = plan_batches(images, 3)

        assert [img for b in batches for img in b.images] == images
        assert [b.index for b in batches] == [0, 1, 2]
        assert [(b.start_page, b.end_page) for b in batches] == [(1, 3), (4, 6), (7, 7)]

    def test_empty_input_yields_no_batches(self):
        assert plan_batches([], 3) == []

    def test_non_positive_size_rejected(self):
        with pytest.raises(ValueError):
            plan_batches(make_pages(2), 0)
