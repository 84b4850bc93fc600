"""
Structure normalization: turns whatever JSON the model produced into a
well-formed FormStructure.

Every missing or mistyped value is replaced by a positional default, so a
parsed payload can always be normalized. Nothing here raises.
"""

import logging
from typing import Any, Dict, List, Optional

from .ontology import ONTOLOGY
from .schema import DEFAULT_FORM_TITLE, FormField, FormStructure, Section

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"true", "yes", "y", "1", "required"}


def _coerce_positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer() and value > 0:
        return int(value)
    if isinstance(value, str) and value.strip().isdecimal():
        number = int(value.strip())
        return number if number > 0 else None
    return None


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


_ITEM_TEXT_KEYS = ('label', 'text', 'value')


def _coerce_list_item(item: Any) -> Optional[str]:
    if isinstance(item, dict):
        for key in _ITEM_TEXT_KEYS:
            text = _coerce_text(item.get(key))
            if text:
                return text
        return None
    return _coerce_text(item)


def _coerce_string_list(value: Any) -> List[str]:
    """Options/columns as strings; objects yield their label/text/value, others are dropped."""
    if not isinstance(value, list):
        return []
    items = (_coerce_list_item(item) for item in value)
    return [item for item in items if item is not None]


def _coerce_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = value if isinstance(value, str) else str(value)
    return text if text.strip() else None


def _row_count(raw: Dict[str, Any]) -> int:
    row_count = _coerce_positive_int(raw.get('rowCount'))
    if row_count is not None:
        return row_count
    rows = raw.get('rows')
    if isinstance(rows, list):
        return len(rows)
    return 0


def normalize_field(
    raw: Any,
    index: int,
    component_ids: Optional[Dict[str, str]] = None
) -> FormField:
    """
    Normalize one field dict at 0-based position `index` in its section.

    Args:
        raw: Field as produced by the model (any type)
        index: Position within the section's field list
        component_ids: Optional canonical-name -> external id map

    Returns:
        FormField with a canonical component and all defaults filled
    """
    if not isinstance(raw, dict):
        raw = {}

    position = index + 1
    component = ONTOLOGY.normalize(raw.get('component') or raw.get('type'))

    normalized = FormField(
        id=_coerce_text(raw.get('id')) or f"field_{position}",
        component=component,
        label=_coerce_text(raw.get('label')) or f"Field {position}",
        required=_coerce_bool(raw.get('required')),
        order=_coerce_positive_int(raw.get('order')) or position,
    )

    if component_ids:
        normalized.component_id = component_ids.get(component.value)

    if ONTOLOGY.takes_options(component):
        normalized.options = _coerce_string_list(raw.get('options'))

    if ONTOLOGY.takes_columns(component):
        normalized.columns = _coerce_string_list(raw.get('columns'))
        normalized.row_count = _row_count(raw)

    placeholder = _coerce_text(raw.get('placeholder'))
    if placeholder:
        normalized.placeholder = placeholder

    return normalized


def normalize_section(
    raw: Dict[str, Any],
    index: int,
    component_ids: Optional[Dict[str, str]] = None
) -> Section:
    """Normalize one section dict at 0-based position `index`."""
    position = index + 1
    fields = raw.get('fields')
    if not isinstance(fields, list):
        fields = []

    return Section(
        id=_coerce_text(raw.get('id')) or f"section_{position}",
        title=_coerce_text(raw.get('title')) or f"Section {position}",
        order=_coerce_positive_int(raw.get('order')) or position,
        fields=[
            normalize_field(field, field_index, component_ids)
            for field_index, field in enumerate(fields)
        ],
    )


def normalize_form_structure(
    data: Any,
    component_ids: Optional[Dict[str, str]] = None
) -> FormStructure:
    """
    Normalize a parsed model payload into a FormStructure.

    Non-dict section entries are dropped before positions are assigned.
    A payload that is not a dict at all yields an empty, titled structure.
    """
    if not isinstance(data, dict):
        logger.warning(f"Expected a JSON object, got {type(data).__name__}; using empty structure")
        data = {}

    sections = data.get('sections')
    if not isinstance(sections, list):
        sections = []

    section_dicts = [s for s in sections if isinstance(s, dict)]
    if len(section_dicts) != len(sections):
        logger.warning(f"Dropped {len(sections) - len(section_dicts)} non-object section entries")

    return FormStructure(
        form_title=_coerce_text(data.get('formTitle')) or DEFAULT_FORM_TITLE,
        sections=[
            normalize_section(section, section_index, component_ids)
            for section_index, section in enumerate(section_dicts)
        ],
    )
