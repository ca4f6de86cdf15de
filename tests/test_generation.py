from unittest.mock import MagicMock

import pytest
import requests

from quickblog.core.errors import ServerError, ValidationError
from quickblog.services import generation
from quickblog.services.generation import ContentGenerator


def gemini_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.ok = True
    response.status_code = 200
    return response


@pytest.fixture
def post(monkeypatch):
    mock = MagicMock()
    monkeypatch.setattr(generation.requests, "post", mock)
    return mock


def test_generate_joins_text_parts(post):
    post.return_value = gemini_response(
        {"candidates": [{"content": {"parts": [{"text": "Intro. "}, {"text": "Body."}]}}]}
    )

    content = ContentGenerator(api_key="k", model="gemini-test", timeout=5).generate("  Rust for Pythonistas ")

    assert content == "Intro. Body."
    url = post.call_args.args[0]
    assert url.endswith("/models/gemini-test:generateContent")
    assert post.call_args.kwargs["headers"] == {"x-goog-api-key": "k"}
    assert "params" not in post.call_args.kwargs
    assert post.call_args.kwargs["timeout"] == 5
    sent = post.call_args.kwargs["json"]["contents"][0]["parts"][0]["text"]
    assert sent.startswith("Rust for Pythonistas Generate a blog content")


def test_blank_prompt_is_rejected_before_any_request(post):
    with pytest.raises(ValidationError):
        ContentGenerator(api_key="k").generate("   ")
    post.assert_not_called()


def test_missing_api_key(post):
    generator = ContentGenerator(api_key="")
    assert generator.configured is False
    with pytest.raises(ServerError, match="not configured"):
        generator.generate("anything")
    post.assert_not_called()


def test_upstream_failure_is_server_error(post):
    post.side_effect = requests.ConnectionError("boom")
    with pytest.raises(ServerError, match="Content generation failed"):
        ContentGenerator(api_key="k").generate("topic")


def test_unexpected_payload_is_server_error(post):
    post.return_value = gemini_response({"promptFeedback": {"blockReason": "SAFETY"}})
    with pytest.raises(ServerError, match="no content"):
        ContentGenerator(api_key="k").generate("topic")


def test_api_key_never_logged(post, caplog):
    rejected = MagicMock(ok=False, status_code=403)
    rejected.raise_for_status.side_effect = requests.HTTPError(
        "403 Client Error: Forbidden for url: https://gemini.test/m:generateContent?key=SECRET-KEY-123"
    )
    post.return_value = rejected
    generator = ContentGenerator(api_key="SECRET-KEY-123")

    with caplog.at_level("DEBUG", logger="quickblog.services.generation"):
        with pytest.raises(ServerError):
            generator.generate("topic")
        post.side_effect = requests.ConnectionError("failed for url ...?key=SECRET-KEY-123")
        with pytest.raises(ServerError):
            generator.generate("topic")

    assert "403" in caplog.text
    assert "SECRET-KEY-123" not in caplog.text
