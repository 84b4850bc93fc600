"""
Result merging: fold ordered batch structures into one document structure.

Sections are concatenated in batch order and renumbered with a running
1-based index k across all batches: section id `section_<k>`, order k.
Fields are re-identified as `field_<k>_<j>` where j is the field's 1-based
position in its section. Field `order` is left as extracted.

Uniqueness follows from (k, j) being unique per field, so no global id
registry is needed. Inputs are never mutated.
"""

import logging
from dataclasses import replace
from typing import Sequence, Tuple

from .schema import DEFAULT_FORM_TITLE, FormStructure, Section

logger = logging.getLogger(__name__)


def _renumber_section(section: Section, section_index: int) -> Section:
    return replace(
        section,
        id=f"section_{section_index}",
        order=section_index,
        fields=[
            replace(field, id=f"field_{section_index}_{field_index}")
            for field_index, field in enumerate(section.fields, 1)
        ],
    )


def _append_batch(
    sections: Tuple[Section, ...],
    batch: FormStructure
) -> Tuple[Section, ...]:
    # next k continues from the sections already folded in
    start = len(sections) + 1
    return sections + tuple(
        _renumber_section(section, start + offset)
        for offset, section in enumerate(batch.sections)
    )


def has_unique_ids(structure: FormStructure) -> bool:
    """True when section ids and field ids are each pairwise distinct."""
    section_ids = [s.id for s in structure.sections]
    field_ids = [f.id for s in structure.sections for f in s.fields]
    return len(section_ids) == len(set(section_ids)) and len(field_ids) == len(set(field_ids))


def renumber_structure(structure: FormStructure) -> FormStructure:
    """Apply the merge id scheme (section_k / field_k_j) to one structure."""
    return replace(structure, sections=list(_append_batch((), structure)))


def merge_results(results: Sequence[FormStructure]) -> FormStructure:
    """
    Combine per-batch structures, in batch order, into one FormStructure.

    - No results: empty "Untitled Form"
    - One result: returned unchanged
    - Many: title from the first result, sections renumbered globally
    """
    if not results:
        return FormStructure(form_title=DEFAULT_FORM_TITLE, sections=[])

    if len(results) == 1:
        return results[0]

    sections: Tuple[Section, ...] = ()
    for batch in results:
        sections = _append_batch(sections, batch)

    merged = FormStructure(
        form_title=results[0].form_title or DEFAULT_FORM_TITLE,
        sections=list(sections),
    )
    logger.info(
        f"Merged {len(results)} batches into {len(merged.sections)} sections, "
        f"{merged.field_count} fields"
    )
    return merged
