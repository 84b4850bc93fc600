"""
Shared pytest fixtures for the form schema extractor tests.

Adds backend/ to sys.path so `app` imports work without installation.
"""

import io
import json
import sys
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

import pytest
from PIL import Image

backend_path = Path(__file__).parent.parent
if str(backend_path) not in sys.path:
    sys.path.insert(0, str(backend_path))

from app.services.form_schema_pipeline import PageImage  # noqa: E402


def png_bytes(width: int = 20, height: int = 10, color: str = "white") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_pages(count: int) -> List[PageImage]:
    return [PageImage(page=n, data=f"page-{n}".encode()) for n in range(1, count + 1)]


class FakeModelClient:
    """
    Stand-in for VisionModelClient.

    `responses` is either a list consumed in call order (str answers or
    exceptions to raise) or a callable(parts) -> str.
    """

    model = "fake-model"
    image_detail = "high"

    def __init__(self, responses: Union[List[Any], Callable[[List[Dict[str, Any]]], str]], configured: bool = True):
        self._responses = responses
        self._configured = configured
        self._lock = threading.Lock()
        self.calls: List[Dict[str, Any]] = []

    @property
    def is_configured(self) -> bool:
        return self._configured

    def complete(self, system_prompt: str, parts: List[Dict[str, Any]]) -> str:
        with self._lock:
            self.calls.append({"system_prompt": system_prompt, "parts": parts})
            if not callable(self._responses):
                answer = self._responses.pop(0)

        if callable(self._responses):
            # called outside the lock so concurrent batches can overlap
            answer = self._responses(parts)
        if isinstance(answer, Exception):
            raise answer
        return answer


def structure_json(**kwargs) -> str:
    return json.dumps(kwargs)


@pytest.fixture
def pages():
    return make_pages


@pytest.fixture
def fake_client():
    return FakeModelClient
