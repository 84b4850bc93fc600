#!/usr/bin/env python3
"""
Form Schema Extractor - Example Usage
=====================================

Extracts the structure of a form document (PDF, DOCX, JPG, PNG) from the
command line and prints the sections and fields found.

Usage:
    python examples/extract_form_example.py path/to/form.pdf

Requirements:
    - OPENAI_API_KEY environment variable (or .env file)
    - poppler for PDFs, LibreOffice for Word documents
"""

import sys
import json
import argparse
import logging
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.services.form_schema_pipeline import (
    FormExtractionPipeline,
    FormExtractionError,
    ONTOLOGY
)
from app.utils.document_converter import DocumentConverter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def extract_document(document_path: str, output_path: str = None):
    """
    Extract the form structure of one document.

    Args:
        document_path: Path to the document
        output_path: Optional path to save JSON output
    """
    document_path = Path(document_path)
    if not document_path.exists():
        logger.error(f"File not found: {document_path}")
        return None

    data = document_path.read_bytes()
    logger.info(f"Processing: {document_path.name} ({len(data):,} bytes)")

    try:
        images = DocumentConverter.convert(document_path.name, data)
        pipeline = FormExtractionPipeline.from_config()
        structure = pipeline.extract_form_structure(images)
    except FormExtractionError as e:
        logger.error(f"Extraction failed: {e}")
        print(f"\nError: {e.user_message}")
        return None

    print("\n" + "=" * 60)
    print("FORM STRUCTURE")
    print("=" * 60)
    print(f"\nTitle: {structure.form_title}")
    print(f"Pages: {len(images)}")
    print(f"Sections: {len(structure.sections)}")
    print(f"Fields: {structure.field_count}")

    for section in structure.sections:
        print(f"\n[{section.id}] {section.title}")
        for field in section.fields:
            required = " *" if field.required else ""
            print(f"  {field.id:14} [{field.component.value:13}] {field.label}{required}")
            if field.options:
                print(f"    options: {', '.join(field.options)}")
            if field.columns:
                print(f"    columns: {', '.join(field.columns)} ({field.row_count} rows)")

    if output_path:
        with open(output_path, 'w') as f:
            json.dump(structure.to_dict(), f, indent=2)
        logger.info(f"Output saved to: {output_path}")

    return structure


def show_components():
    """Print the component vocabulary."""
    print("\n" + "=" * 60)
    print("COMPONENTS")
    print("=" * 60)
    for kind in ONTOLOGY.all_kinds:
        meta = ONTOLOGY.get_metadata(kind)
        print(f"  {kind.value:14} {meta.description}")
        print(f"    synonyms: {', '.join(meta.synonyms)}")


def main():
    parser = argparse.ArgumentParser(
        description='Form Schema Extractor',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Extract a PDF and print the structure
    python extract_form_example.py form.pdf

    # Extract and save the FormStructure JSON
    python extract_form_example.py form.pdf -o structure.json

    # Show the component vocabulary
    python extract_form_example.py --components
        """
    )

    parser.add_argument(
        'document_path',
        nargs='?',
        help='Path to the document to extract'
    )

    parser.add_argument(
        '-o', '--output',
        help='Path to save JSON output'
    )

    parser.add_argument(
        '--components',
        action='store_true',
        help='Show the component vocabulary and exit'
    )

    args = parser.parse_args()

    if args.components:
        show_components()
        return

    if not args.document_path:
        parser.print_help()
        print("\nError: Please provide a document path or use --components")
        sys.exit(1)

    if extract_document(args.document_path, args.output) is None:
        sys.exit(1)


if __name__ == '__main__':
    main()
