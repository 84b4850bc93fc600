"""
Form Schema Data Model
======================

The canonical output of the pipeline and the page images it consumes.

Output Schema (JSON wire format):
---------------------------------
{
  "formTitle": string,
  "sections": [
    {
      "id": string,
      "title": string,
      "order": number,
      "fields": [
        {
          "id": string,
          "component": ComponentKind,
          "label": string,
          "required": boolean,
          "order": number,
          "options": [string],      // Multi-Select, Radio Select, Dropdown only
          "columns": [string],      // Table only
          "rowCount": number,       // Table only
          "placeholder": string,    // when visible on the form
          "componentId": string     // when COMPONENT_ID_<KIND> is configured
        }
      ]
    }
  ]
}

to_dict() / from_dict() round-trip losslessly so structures can be stored
as JSON (training store) and served back through the same shape.
"""

import base64
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

from .ontology import ComponentKind

DEFAULT_FORM_TITLE = "Untitled Form"


@dataclass
class PageImage:
    """One rendered page handed to the pipeline by the document converter."""
    page: int  # 1-based
    data: bytes
    mime_type: str = "image/png"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode('utf-8')

    def to_data_url(self) -> str:
        """Encode as a data: URL for the model request."""
        return f"data:{self.mime_type};base64,{self.to_base64()}"


@dataclass
class FormField:
    """A single input element within a section."""
    id: str
    component: ComponentKind
    label: str
    required: bool = False
    order: int = 1

    options: Optional[List[str]] = None
    columns: Optional[List[str]] = None
    row_count: Optional[int] = None
    placeholder: Optional[str] = None
    component_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: Dict[str, Any] = {
            'id': self.id,
            'component': self.component.value,
            'label': self.label,
            'required': self.required,
            'order': self.order,
        }
        if self.component_id is not None:
            data['componentId'] = self.component_id
        if self.options is not None:
            data['options'] = list(self.options)
        if self.columns is not None:
            data['columns'] = list(self.columns)
        if self.row_count is not None:
            data['rowCount'] = self.row_count
        if self.placeholder:
            data['placeholder'] = self.placeholder
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FormField':
        """Rebuild from the output of to_dict()."""
        return cls(
            id=data['id'],
            component=ComponentKind(data['component']),
            label=data['label'],
            required=data.get('required', False),
            order=data.get('order', 1),
            options=data.get('options'),
            columns=data.get('columns'),
            row_count=data.get('rowCount'),
            placeholder=data.get('placeholder'),
            component_id=data.get('componentId'),
        )


@dataclass
class Section:
    """A visually grouped region of the document and its fields."""
    id: str
    title: str
    order: int
    fields: List[FormField] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'order': self.order,
            'fields': [f.to_dict() for f in self.fields],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Section':
        return cls(
            id=data['id'],
            title=data['title'],
            order=data['order'],
            fields=[FormField.from_dict(f) for f in data.get('fields', [])],
        )


@dataclass
class FormStructure:
    """
    Complete extracted schema for one document (or one batch of it).

    A batch-scoped instance (before merging) is what the glossary calls a
    RawStructure; the type is the same.
    """
    form_title: str = DEFAULT_FORM_TITLE
    sections: List[Section] = field(default_factory=list)

    @property
    def field_count(self) -> int:
        return sum(len(s.fields) for s in self.sections)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'formTitle': self.form_title,
            'sections': [s.to_dict() for s in self.sections],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FormStructure':
        return cls(
            form_title=data.get('formTitle', DEFAULT_FORM_TITLE),
            sections=[Section.from_dict(s) for s in data.get('sections', [])],
        )
