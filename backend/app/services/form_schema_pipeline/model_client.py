"""
Vision Model Client
===================

Thin caller for an OpenAI-compatible chat-completions endpoint with image
input. Accepts a system instruction plus an ordered list of text/image
content parts and returns the model's raw text answer.

The client makes exactly one HTTP request per call. Retries are left to
the caller; a failed call is translated into the error hierarchy:

- requests.Timeout               -> UpstreamTimeoutError
- HTTP 401 / "invalid_api_key"   -> UpstreamAuthError
- "insufficient_quota"           -> UpstreamQuotaError
- any other failure              -> UpstreamError
"""

import logging
from typing import List, Dict, Any, Optional

import requests

from .errors import (
    ConfigurationError,
    UpstreamError,
    UpstreamQuotaError,
    UpstreamAuthError,
    UpstreamTimeoutError,
)
from .schema import PageImage

logger = logging.getLogger(__name__)


def text_part(text: str) -> Dict[str, Any]:
    """Build a text content part."""
    return {"type": "text", "text": text}


def image_part(image: PageImage, detail: str = "high") -> Dict[str, Any]:
    """Build an image content part carrying the page as a data URL."""
    return {
        "type": "image_url",
        "image_url": {"url": image.to_data_url(), "detail": detail},
    }


class VisionModelClient:
    """
    Caller for multimodal chat completions.

    API Support:
    - OpenAI API (default base URL)
    - Any OpenAI-compatible server (e.g. vllm, ollama) via base_url
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o",
        max_tokens: int = 4096,
        temperature: float = 0.1,
        timeout: int = 120,
        image_detail: str = "high"
    ):
        """
        Initialize the model client.

        Args:
            api_key: Bearer credential for the endpoint
            base_url: Base URL of the chat-completions API
            model: Model name to use
            max_tokens: Completion token budget
            temperature: Sampling temperature (low for stable structure)
            timeout: Request timeout in seconds
            image_detail: Detail hint attached to each image part
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.image_detail = image_detail

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def complete(self, system_prompt: str, parts: List[Dict[str, Any]]) -> str:
        """
        Send one chat-completions request and return the answer text.

        Args:
            system_prompt: Fixed system-level instruction
            parts: Ordered user content parts (see text_part / image_part)

        Returns:
            The first choice's message content, or "" when absent
        """
        if not self.api_key:
            raise ConfigurationError()

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": parts}
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature
        }

        try:
            response = requests.post(
                f"{self.base_url}/chat/completions",
                headers=headers,
                json=payload,
                timeout=self.timeout
            )
        except requests.Timeout as e:
            raise UpstreamTimeoutError(f"Model request timed out after {self.timeout}s: {e}") from e
        except requests.RequestException as e:
            raise UpstreamError(f"Model request failed: {e}") from e

        if not response.ok:
            raise self._translate_http_error(response)

        try:
            result_data = response.json()
        except ValueError as e:
            raise UpstreamError(
                f"Model endpoint returned non-JSON body: {e}",
                status_code=response.status_code
            ) from e

        if not isinstance(result_data, dict):
            raise UpstreamError("Model endpoint returned an unexpected body", status_code=response.status_code)

        usage = result_data.get('usage') or {}
        logger.debug(
            f"Model call complete: model={self.model}, "
            f"tokens={usage.get('total_tokens', 0)}"
        )

        choices = result_data.get('choices') or []
        if not choices:
            return ""
        if not isinstance(choices[0], dict):
            raise UpstreamError("Model endpoint returned a malformed choice", status_code=response.status_code)

        message = choices[0].get('message') or {}
        if not isinstance(message, dict):
            raise UpstreamError("Model endpoint returned a malformed message", status_code=response.status_code)
        return self._content_text(message.get('content'), response.status_code)

    @staticmethod
    def _content_text(content: Any, status_code: int) -> str:
        """Message content as text; some servers send a list of text parts."""
        if not content:
            return ""
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return "".join(
                part.get('text') or ""
                for part in content
                if isinstance(part, dict) and isinstance(part.get('text'), str)
            )
        raise UpstreamError(
            f"Model endpoint returned {type(content).__name__} message content",
            status_code=status_code
        )

    def _translate_http_error(self, response: requests.Response) -> UpstreamError:
        """Map a non-2xx response onto the upstream error hierarchy."""
        error_code = ""
        error_message = response.text[:500]
        try:
            body = response.json()
            error = body.get('error') if isinstance(body, dict) else None
            if isinstance(error, dict):
                error_code = error.get('code') or error.get('type') or ""
                error_message = error.get('message') or error_message
        except ValueError:
            pass

        status = response.status_code
        logger.error(f"Model endpoint error {status} ({error_code or 'no code'}): {error_message}")

        if error_code == 'insufficient_quota':
            return UpstreamQuotaError(error_message, status_code=status)
        if status == 401 or error_code == 'invalid_api_key':
            return UpstreamAuthError(error_message, status_code=status)
        return UpstreamError(f"Model endpoint returned {status}: {error_message}", status_code=status)
