"""Tests for atsmatch.llm — extract_json(), call_gemini(), complete_json() and create_client()."""

from unittest.mock import MagicMock, patch

import httpx
import pytest
from google.genai.errors import ClientError, ServerError

from atsmatch.llm import Extracted, NeedsFallback, call_gemini, complete_json, create_client, extract_json


class TestExtractJson:
    def test_raw_object(self):
        result = extract_json('{"key": "value"}')
        assert result == Extracted(data={"key": "value"})

    def test_markdown_fenced(self):
        text = '```json\n{"name": "Alice", "skills": [{"name": "Go"}]}\n```'
        result = extract_json(text)
        assert isinstance(result, Extracted)
        assert result.data == {"name": "Alice", "skills": [{"name": "Go"}]}

    def test_markdown_fenced_no_lang(self):
        result = extract_json('```\n{"score": 7}\n```')
        assert result == Extracted(data={"score": 7})

    def test_surrounding_whitespace(self):
        result = extract_json('  \n ```json\n{"a": 1}\n```  \n')
        assert result == Extracted(data={"a": 1})

    def test_json_embedded_in_text(self):
        text = 'Here is the result: {"overallScore": 85, "matchSummary": "Good"} hope that helps.'
        result = extract_json(text)
        assert isinstance(result, Extracted)
        assert result.data["overallScore"] == 85

    def test_nested_object_spans_first_to_last_brace(self):
        text = 'x {"outer": {"inner": 42}} y'
        result = extract_json(text)
        assert result == Extracted(data={"outer": {"inner": 42}})

    def test_no_brace_is_failure(self):
        result = extract_json("this is not json at all")
        assert isinstance(result, NeedsFallback)
        assert "no JSON object" in result.reason

    def test_no_closing_brace_is_failure(self):
        result = extract_json('{"a": 1')
        assert isinstance(result, NeedsFallback)

    def test_closing_before_opening_is_failure(self):
        assert isinstance(extract_json("} nothing here {"), NeedsFallback)

    @pytest.mark.parametrize(
        "text",
        [
            '{"a": 1,}',
            '```json\n{"name": "Alice", "skills": [}\n```',
            '{"first": 1} and then {"second": 2}',
        ],
    )
    def test_invalid_json_between_braces_is_failure(self, text: str):
        result = extract_json(text)
        assert isinstance(result, NeedsFallback)
        assert "invalid JSON" in result.reason

    def test_empty_is_failure(self):
        assert isinstance(extract_json(""), NeedsFallback)


class TestCallGemini:
    """Tests for call_gemini() — one request, errors propagate."""

    def _make_response(self, text: str | None) -> MagicMock:
        resp = MagicMock()
        resp.text = text
        return resp

    def test_returns_text(self):
        client = MagicMock()
        client.models.generate_content.return_value = self._make_response("hello")

        assert call_gemini(client, "prompt") == "hello"
        client.models.generate_content.assert_called_once()

    def test_none_text_is_empty_string(self):
        client = MagicMock()
        client.models.generate_content.return_value = self._make_response(None)

        assert call_gemini(client, "prompt") == ""

    def test_server_error_is_not_retried(self):
        client = MagicMock()
        client.models.generate_content.side_effect = [
            ServerError(503, {"error": {"code": 503, "message": "Unavailable", "status": "UNAVAILABLE"}}),
            self._make_response("recovered"),
        ]

        with pytest.raises(ServerError):
            call_gemini(client, "prompt")

        assert client.models.generate_content.call_count == 1

    def test_model_override_from_env(self, monkeypatch):
        monkeypatch.setenv("ATSMATCH_MODEL", "gemini-test")
        client = MagicMock()
        client.models.generate_content.return_value = self._make_response("ok")

        call_gemini(client, "prompt")

        assert client.models.generate_content.call_args.kwargs["model"] == "gemini-test"


class TestCompleteJson:
    def test_no_client_short_circuits(self):
        result = complete_json(None, "prompt")
        assert isinstance(result, NeedsFallback)
        assert "not configured" in result.reason

    def test_success(self, make_client):
        client = make_client('```json\n{"ok": true}\n```')
        assert complete_json(client, "prompt") == Extracted(data={"ok": True})

    @pytest.mark.parametrize(
        "error",
        [
            ServerError(503, {"error": {"code": 503, "message": "Unavailable", "status": "UNAVAILABLE"}}),
            ClientError(429, {"error": {"code": 429, "message": "Quota", "status": "RESOURCE_EXHAUSTED"}}),
            httpx.ReadTimeout("timed out"),
        ],
    )
    def test_service_failure_needs_fallback(self, mock_client: MagicMock, error: Exception):
        mock_client.models.generate_content.side_effect = error

        result = complete_json(mock_client, "prompt")

        assert isinstance(result, NeedsFallback)
        assert "API error" in result.reason
        assert mock_client.models.generate_content.call_count == 1

    def test_undecodable_response_body_needs_fallback(self, proxy_error_client):
        result = complete_json(proxy_error_client, "prompt")

        assert isinstance(result, NeedsFallback)
        assert "API error" in result.reason

    def test_unparseable_response_needs_fallback(self, make_client):
        result = complete_json(make_client("Sorry, I cannot help with that."), "prompt")
        assert isinstance(result, NeedsFallback)


class TestCreateClient:
    def test_missing_key_returns_none(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

        assert create_client() is None

    @patch("atsmatch.llm.genai.Client")
    def test_uses_gemini_key_and_timeout(self, mock_client_cls: MagicMock, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "secret")
        monkeypatch.setenv("ATSMATCH_TIMEOUT", "12")

        client = create_client()

        assert client is mock_client_cls.return_value
        kwargs = mock_client_cls.call_args.kwargs
        assert kwargs["api_key"] == "secret"
        assert kwargs["http_options"].timeout == 12000

    @patch("atsmatch.llm.genai.Client")
    def test_falls_back_to_google_api_key(self, mock_client_cls: MagicMock, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.setenv("GOOGLE_API_KEY", "other")

        create_client()

        assert mock_client_cls.call_args.kwargs["api_key"] == "other"
