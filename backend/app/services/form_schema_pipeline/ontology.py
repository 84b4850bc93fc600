"""
Form Component Ontology
=======================

Defines the canonical set of component kinds a form field can take.
This ontology is CLOSED - no kinds outside this set are permitted.

Design Rationale:
-----------------
The model is asked to answer with one of ten component names, but in
practice it also answers with HTML-ish vocabulary ("checkbox", "textarea",
"select") or with lower-cased variants of the canonical names. Every such
answer is mapped back into the closed set through a synonym table.

Lookup is TOTAL: empty input and unrecognized input both fall back to
SHORT_INPUT. Normalization never raises.
"""

from enum import Enum
from typing import Dict, List, Optional
from dataclasses import dataclass, field


class ComponentKind(str, Enum):
    """
    Canonical component kinds for extracted form fields.

    Categories:
    - Text entry: SHORT_INPUT, LONG_INPUT
    - Choice: MULTI_SELECT, RADIO_SELECT, DROPDOWN
    - Structured: TABLE
    - Attestation/attachment: SIGNATURE, FILE_UPLOAD
    - Layout: SECTIONS, TITLE
    """

    SIGNATURE = "Signature"
    MULTI_SELECT = "Multi-Select"
    FILE_UPLOAD = "File Upload"
    SHORT_INPUT = "Short Input"
    SECTIONS = "Sections"
    DROPDOWN = "Dropdown"
    RADIO_SELECT = "Radio Select"
    TABLE = "Table"
    TITLE = "Title"
    LONG_INPUT = "Long Input"


@dataclass
class ComponentMetadata:
    """Metadata for a component kind including lookup synonyms."""
    kind: ComponentKind
    description: str
    synonyms: List[str] = field(default_factory=list)  # Lower-case strings that map to this kind
    has_options: bool = False  # Field carries an "options" list
    has_columns: bool = False  # Field carries "columns" and "rowCount"


class ComponentOntology:
    """
    Manages the component ontology with lookup utilities.

    Thread-safe: all data is immutable after initialization.
    """

    DEFAULT_KIND = ComponentKind.SHORT_INPUT

    _COMPONENT_METADATA: Dict[ComponentKind, ComponentMetadata] = {
        ComponentKind.SIGNATURE: ComponentMetadata(
            kind=ComponentKind.SIGNATURE,
            description="Signature lines, boxes, or areas for signatures",
            synonyms=["signature"],
        ),
        ComponentKind.MULTI_SELECT: ComponentMetadata(
            kind=ComponentKind.MULTI_SELECT,
            description="Checkboxes allowing multiple selections",
            synonyms=["multi-select", "multiselect", "checkbox", "checkboxes"],
            has_options=True,
        ),
        ComponentKind.FILE_UPLOAD: ComponentMetadata(
            kind=ComponentKind.FILE_UPLOAD,
            description="Areas for file attachments or document uploads",
            synonyms=["file upload", "fileupload", "file", "attachment"],
        ),
        ComponentKind.SHORT_INPUT: ComponentMetadata(
            kind=ComponentKind.SHORT_INPUT,
            description="Single-line text input fields",
            synonyms=["short input", "shortinput", "text", "textfield", "input"],
        ),
        ComponentKind.SECTIONS: ComponentMetadata(
            kind=ComponentKind.SECTIONS,
            description="Section dividers and headers",
            synonyms=["sections", "section"],
        ),
        ComponentKind.DROPDOWN: ComponentMetadata(
            kind=ComponentKind.DROPDOWN,
            description="Select/dropdown fields",
            synonyms=["dropdown", "select"],
            has_options=True,
        ),
        ComponentKind.RADIO_SELECT: ComponentMetadata(
            kind=ComponentKind.RADIO_SELECT,
            description="Radio buttons for single selection",
            synonyms=["radio select", "radioselect", "radio"],
            has_options=True,
        ),
        ComponentKind.TABLE: ComponentMetadata(
            kind=ComponentKind.TABLE,
            description="Tabular structures with columns and row count",
            synonyms=["table", "grid"],
            has_columns=True,
        ),
        ComponentKind.TITLE: ComponentMetadata(
            kind=ComponentKind.TITLE,
            description="Form titles and major headings",
            synonyms=[
                "title", "heading", "header",
                "instruction", "instructions", "guidance", "note", "info",
            ],
        ),
        ComponentKind.LONG_INPUT: ComponentMetadata(
            kind=ComponentKind.LONG_INPUT,
            description="Multi-line text areas and comment boxes",
            synonyms=["long input", "longinput", "textarea", "multiline", "paragraph"],
        ),
    }

    def __init__(self):
        """Initialize ontology and build the reverse synonym lookup."""
        self._synonym_to_kind: Dict[str, ComponentKind] = {}
        for kind, metadata in self._COMPONENT_METADATA.items():
            for synonym in metadata.synonyms:
                self._synonym_to_kind[synonym.lower()] = kind

    @property
    def all_kinds(self) -> List[ComponentKind]:
        """Return all valid component kinds."""
        return list(ComponentKind)

    @property
    def kind_names(self) -> List[str]:
        """Return all component names as strings."""
        return [kind.value for kind in ComponentKind]

    @property
    def option_kinds(self) -> List[ComponentKind]:
        """Return kinds that carry an options list."""
        return [kind for kind, meta in self._COMPONENT_METADATA.items() if meta.has_options]

    def get_metadata(self, kind: ComponentKind) -> Optional[ComponentMetadata]:
        """Get metadata for a component kind."""
        return self._COMPONENT_METADATA.get(kind)

    def lookup_by_synonym(self, text: str) -> Optional[ComponentKind]:
        """
        Look up a kind by synonym text.

        Args:
            text: The text to look up (case-insensitive)

        Returns:
            The matching ComponentKind or None
        """
        return self._synonym_to_kind.get(text.strip().lower())

    def is_valid_kind(self, name: str) -> bool:
        """Check if a string is exactly a canonical component name."""
        try:
            ComponentKind(name)
            return True
        except ValueError:
            return False

    def takes_options(self, kind: ComponentKind) -> bool:
        meta = self._COMPONENT_METADATA.get(kind)
        return bool(meta and meta.has_options)

    def takes_columns(self, kind: ComponentKind) -> bool:
        meta = self._COMPONENT_METADATA.get(kind)
        return bool(meta and meta.has_columns)

    def normalize(self, raw: Optional[str]) -> ComponentKind:
        """
        Map a free-form component string onto the closed ComponentKind set.

        Order of resolution:
        1. Empty / missing -> SHORT_INPUT
        2. Lower-cased synonym table
        3. Exact canonical name
        4. SHORT_INPUT fallback

        Never raises.
        """
        if not raw or not isinstance(raw, str):
            return self.DEFAULT_KIND

        kind = self.lookup_by_synonym(raw)
        if kind is not None:
            return kind

        if self.is_valid_kind(raw):
            return ComponentKind(raw)

        return self.DEFAULT_KIND

    @property
    def num_kinds(self) -> int:
        """Return total number of component kinds in ontology."""
        return len(ComponentKind)


# Global singleton instance
ONTOLOGY = ComponentOntology()


def normalize_component(raw: Optional[str]) -> ComponentKind:
    """Module-level shortcut for ONTOLOGY.normalize()."""
    return ONTOLOGY.normalize(raw)
