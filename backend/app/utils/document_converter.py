"""
Document conversion utilities for in-memory processing.
Converts uploaded PDFs, Word documents and images into page images.
"""
import logging
import os
import shutil
import subprocess
import tempfile
from typing import List, Optional
from io import BytesIO
from pdf2image import convert_from_bytes
from PIL import Image

from app.config import Config
from app.services.form_schema_pipeline.errors import FormExtractionError
from app.services.form_schema_pipeline.schema import PageImage

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = ['pdf', 'docx', 'doc', 'jpg', 'jpeg', 'png']

MIME_TYPES = {
    'pdf': 'application/pdf',
    'docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'doc': 'application/msword',
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
}


class UnsupportedFileTypeError(FormExtractionError, ValueError):
    """The upload's extension is not one of SUPPORTED_TYPES."""

    user_message = "Invalid file type. Allowed types: PDF, DOCX, JPG, PNG"


class DocumentConversionError(FormExtractionError):
    """The upload could not be rendered into page images."""

    user_message = "Failed to convert the uploaded document to images"


def get_file_extension(filename: str) -> str:
    """Lower-cased extension without the dot ('' when there is none)."""
    return os.path.splitext(filename or '')[1].lower().lstrip('.')


def is_supported_file_type(filename: str) -> bool:
    return get_file_extension(filename) in SUPPORTED_TYPES


def get_mime_type(extension: str) -> str:
    return MIME_TYPES.get(extension.lower(), 'application/octet-stream')


class DocumentConverter:
    """Converter from uploaded documents to page-ordered PageImage lists."""

    @staticmethod
    def convert(filename: str, data: bytes) -> List[PageImage]:
        """
        Convert an uploaded document to page images.

        Args:
            filename: Original filename (extension selects the converter)
            data: File content

        Returns:
            PageImage list ordered by 1-based page number
        """
        extension = get_file_extension(filename)

        if extension == 'pdf':
            return DocumentConverter.pdf_to_page_images(data)
        if extension in ('docx', 'doc'):
            return DocumentConverter.word_to_page_images(data, extension)
        if extension in ('jpg', 'jpeg', 'png'):
            return [DocumentConverter.image_to_page_image(data)]

        raise UnsupportedFileTypeError(f"Unsupported file type: {extension or filename}")

    @staticmethod
    def pdf_to_page_images(pdf_bytes: bytes, dpi: Optional[int] = None) -> List[PageImage]:
        """
        Render every PDF page to a PNG page image.

        Args:
            pdf_bytes: PDF file as bytes
            dpi: Render resolution (defaults to Config.PDF_DPI)

        Returns:
            List of PageImage objects
        """
        try:
            images = convert_from_bytes(pdf_bytes, dpi=dpi or Config.PDF_DPI)
        except Exception as e:
            logger.error(f"Error converting PDF to images: {e}")
            raise DocumentConversionError(f"Failed to convert PDF: {e}") from e

        logger.info(f"Converted PDF to {len(images)} image(s)")
        return [
            PageImage(page=page, data=DocumentConverter.image_to_bytes(image), mime_type='image/png')
            for page, image in enumerate(images, 1)
        ]

    @staticmethod
    def word_to_page_images(doc_bytes: bytes, extension: str = 'docx') -> List[PageImage]:
        """
        Render a Word document by converting it to PDF with headless LibreOffice.

        Requires the `soffice` binary on PATH.
        """
        soffice = shutil.which('soffice') or shutil.which('libreoffice')
        if not soffice:
            raise DocumentConversionError("LibreOffice (soffice) is required to convert Word documents")

        with tempfile.TemporaryDirectory(prefix='form-doc-') as temp_dir:
            source_path = os.path.join(temp_dir, f'document.{extension}')
            with open(source_path, 'wb') as f:
                f.write(doc_bytes)

            cmd = [soffice, '--headless', '--convert-to', 'pdf', '--outdir', temp_dir, source_path]
            try:
                subprocess.run(cmd, check=True, capture_output=True, timeout=120)
            except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
                logger.error(f"LibreOffice conversion failed: {e}")
                raise DocumentConversionError(f"Failed to convert Word document: {e}") from e

            pdf_path = os.path.join(temp_dir, 'document.pdf')
            if not os.path.exists(pdf_path):
                raise DocumentConversionError("LibreOffice produced no PDF output")

            with open(pdf_path, 'rb') as f:
                pdf_bytes = f.read()

        logger.info(f"Converted Word document to PDF: {len(pdf_bytes)} bytes")
        return DocumentConverter.pdf_to_page_images(pdf_bytes)

    @staticmethod
    def image_to_page_image(image_bytes: bytes, max_dimension: Optional[int] = None) -> PageImage:
        """
        Re-encode an uploaded image as PNG, shrunk to fit max_dimension.

        Images smaller than the limit are never enlarged.
        """
        max_dimension = max_dimension or Config.MAX_IMAGE_DIMENSION
        try:
            image = Image.open(BytesIO(image_bytes))
            image.load()
        except Exception as e:
            logger.error(f"Error opening uploaded image: {e}")
            raise DocumentConversionError(f"Failed to read image: {e}") from e

        if image.mode not in ('RGB', 'RGBA', 'L'):
            image = image.convert('RGB')

        original_size = image.size
        image.thumbnail((max_dimension, max_dimension))
        if image.size != original_size:
            logger.info(f"Resized image from {original_size} to {image.size}")

        return PageImage(page=1, data=DocumentConverter.image_to_bytes(image), mime_type='image/png')

    @staticmethod
    def image_to_bytes(image: Image.Image, format: str = 'PNG') -> bytes:
        """
        Convert PIL Image to bytes.

        Args:
            image: PIL Image object
            format: Image format (PNG, JPEG, etc.)

        Returns:
            Image as bytes
        """
        buffer = BytesIO()
        image.save(buffer, format=format)
        return buffer.getvalue()
