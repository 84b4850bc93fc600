"""
Tests for VisionModelClient request building and error translation.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from app.services.form_schema_pipeline import (
    ConfigurationError,
    PageImage,
    UpstreamAuthError,
    UpstreamError,
    UpstreamQuotaError,
    UpstreamTimeoutError,
    VisionModelClient,
)
from app.services.form_schema_pipeline.model_client import image_part, text_part

POST = "app.services.form_schema_pipeline.model_client.requests.post"


def _response(status_code=200, body=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


def _client(**kwargs):
    return VisionModelClient(api_key="sk-test", base_url="https://llm.example.com/v1/", **kwargs)


class TestContentParts:
    """Tests for text_part / image_part."""

    def test_text_part(self):
        assert text_part("hello") == {"type": "text", "text": "hello"}

    def test_image_part_is_data_url(self):
        part = image_part(PageImage(page=1, data=b"\x89PNG", mime_type="image/png"), detail="low")
        assert part == {
            "type": "image_url",
            "image_url": {"url": "data:image/png;base64,iVBORw==", "detail": "low"},
        }


class TestVisionModelClient:
    """Tests for VisionModelClient.complete."""

    @patch(POST)
    def test_successful_call(self, mock_post):
        """Posts the chat payload and returns the first choice text."""
        mock_post.return_value = _response(body={
            "choices": [{"message": {"content": '{"formTitle": "X"}'}}],
            "usage": {"total_tokens": 42},
        })
        parts = [text_part("Analyze")]

        answer = _client(model="gpt-4o", max_tokens=100, temperature=0.2, timeout=30).complete("SYSTEM", parts)

        assert answer == '{"formTitle": "X"}'
        args, kwargs = mock_post.call_args
        assert args[0] == "https://llm.example.com/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
        assert kwargs["timeout"] == 30
        assert kwargs["json"] == {
            "model": "gpt-4o",
            "messages": [
                {"role": "system", "content": "SYSTEM"},
                {"role": "user", "content": parts},
            ],
            "max_tokens": 100,
            "temperature": 0.2,
        }

    @patch(POST)
    def test_missing_content_returns_empty_string(self, mock_post):
        mock_post.return_value = _response(body={"choices": [{"message": {"content": None}}]})
        assert _client().complete("S", []) == ""

    @patch(POST)
    def test_no_choices_returns_empty_string(self, mock_post):
        mock_post.return_value = _response(body={"choices": []})
        assert _client().complete("S", []) == ""

    @patch(POST)
    def test_list_content_joined(self, mock_post):
        """Content sent as text parts is joined into one answer."""
        mock_post.return_value = _response(body={"choices": [{"message": {"content": [
            {"type": "text", "text": '{"formTitle": '},
            {"type": "image_url", "image_url": {"url": "ignored"}},
            {"type": "text", "text": '"X"}'},
        ]}}]})
        assert _client().complete("S", []) == '{"formTitle": "X"}'

    @pytest.mark.parametrize("content", [42, {"text": "x"}, True])
    @patch(POST)
    def test_unexpected_content_type(self, mock_post, content):
        mock_post.return_value = _response(body={"choices": [{"message": {"content": content}}]})
        with pytest.raises(UpstreamError):
            _client().complete("S", [])

    @pytest.mark.parametrize("choices", [[None], ["text"], [{"message": "text"}]])
    @patch(POST)
    def test_malformed_choice(self, mock_post, choices):
        """A non-object choice or message is an upstream failure, not a crash."""
        mock_post.return_value = _response(body={"choices": choices})
        with pytest.raises(UpstreamError):
            _client().complete("S", [])

    @patch(POST)
    def test_missing_key_raises_before_request(self, mock_post):
        with pytest.raises(ConfigurationError):
            VisionModelClient(api_key=None).complete("S", [])
        mock_post.assert_not_called()

    @patch(POST)
    def test_timeout(self, mock_post):
        """Timeouts surface as their own error kind."""
        mock_post.side_effect = requests.Timeout("read timed out")
        with pytest.raises(UpstreamTimeoutError):
            _client().complete("S", [])

    @patch(POST)
    def test_connection_error(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(UpstreamError) as exc_info:
            _client().complete("S", [])
        assert not isinstance(exc_info.value, UpstreamTimeoutError)

    @patch(POST)
    def test_quota_error(self, mock_post):
        mock_post.return_value = _response(429, {
            "error": {"code": "insufficient_quota", "message": "You exceeded your current quota"}
        })
        with pytest.raises(UpstreamQuotaError) as exc_info:
            _client().complete("S", [])
        assert exc_info.value.user_message == "OpenAI API quota exceeded. Please check your billing."
        assert exc_info.value.status_code == 429

    @patch(POST)
    def test_auth_error_by_status(self, mock_post):
        mock_post.return_value = _response(401, {"error": {"message": "Incorrect API key"}})
        with pytest.raises(UpstreamAuthError) as exc_info:
            _client().complete("S", [])
        assert exc_info.value.user_message == "Invalid OpenAI API key"

    @patch(POST)
    def test_auth_error_by_code(self, mock_post):
        mock_post.return_value = _response(400, {"error": {"code": "invalid_api_key"}})
        with pytest.raises(UpstreamAuthError):
            _client().complete("S", [])

    @patch(POST)
    def test_other_http_error(self, mock_post):
        mock_post.return_value = _response(500, ValueError("no json"), text="Internal Server Error")
        with pytest.raises(UpstreamError) as exc_info:
            _client().complete("S", [])
        assert type(exc_info.value) is UpstreamError
        assert exc_info.value.status_code == 500

    @patch(POST)
    def test_non_json_success_body(self, mock_post):
        mock_post.return_value = _response(200, ValueError("bad json"), text="<html>")
        with pytest.raises(UpstreamError):
            _client().complete("S", [])

    def test_is_configured(self):
        assert _client().is_configured
        assert not VisionModelClient(api_key="").is_configured
