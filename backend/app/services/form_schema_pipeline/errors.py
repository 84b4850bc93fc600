"""
Form Extraction Errors
======================

Every failure the extraction pipeline can surface to its caller.

Only malformed *syntax* (text that cannot be parsed), explicit refusals,
and upstream failures reach the caller. Malformed *structure* never does:
the normalizer absorbs it into defaulted values.

Each error carries a short ``user_message`` that is safe to return over
HTTP. Raw model text is kept on the exception for logging only.
"""

from typing import Optional


class FormExtractionError(Exception):
    """Base class for all form extraction failures."""

    user_message = "Form extraction failed. Please try again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)


class ConfigurationError(FormExtractionError, ValueError):
    """No model credential (or an invalid setting) is configured."""

    user_message = "OPENAI_API_KEY is not configured"


class EmptyInputError(FormExtractionError, ValueError):
    """Zero page images were supplied."""

    user_message = "No images provided for analysis"


class RefusalError(FormExtractionError):
    """The model declined to analyze a batch."""

    user_message = (
        "The AI could not process this document. The content may be unclear "
        "or restricted. Please try with a clearer image."
    )

    def __init__(self, raw_text: str = "", message: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text


class EmptyResponseError(FormExtractionError):
    """The model returned no text content."""

    user_message = "Empty response from the AI model"


class MalformedOutputError(FormExtractionError):
    """Text was extracted from the response but failed strict parsing."""

    user_message = "Invalid JSON response from AI. Please try again."

    def __init__(self, raw_text: str = "", message: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text


class UpstreamError(FormExtractionError):
    """The model endpoint failed (HTTP error, connection failure)."""

    user_message = "The AI service request failed. Please try again."

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamQuotaError(UpstreamError):
    """The account behind the credential has no remaining quota."""

    user_message = "OpenAI API quota exceeded. Please check your billing."


class UpstreamAuthError(UpstreamError):
    """The credential was rejected."""

    user_message = "Invalid OpenAI API key"


class UpstreamTimeoutError(UpstreamError):
    """The model call did not complete within the configured timeout."""

    user_message = "The AI service timed out. Please try again."
