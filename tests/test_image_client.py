import base64
import json

import pytest
import requests

from paintvisualizer.core.errors import (
    AuthenticationError,
    ContentRejectedError,
    EmptyResponseError,
    GenerationError,
    ProviderConnectionError,
    QuotaExceededError,
)
from paintvisualizer.image.client import send_gemini_edit_request
from paintvisualizer.image.openai_client import send_openai_edit_request

RESULT = base64.b64encode(b"painted-room").decode()


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else json.dumps(body)

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class FakePost:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture(autouse=True)
def api_keys(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GEMINI_API_KEY", "gemini-test-key")
    monkeypatch.setenv("OPENAI_API_KEY", "openai-test-key")


def install_post(monkeypatch, **kwargs):
    fake = FakePost(**kwargs)
    monkeypatch.setattr(requests, "post", fake)
    return fake


def gemini_body(parts=None, finish_reason="STOP", **extra):
    body = {"candidates": [{"content": {"parts": parts or []}, "finishReason": finish_reason}]}
    body.update(extra)
    return body


# ============================================================
# Gemini
# ============================================================

def test_gemini_request_carries_image_and_prompt(monkeypatch):
    fake = install_post(
        monkeypatch,
        response=FakeResponse(body=gemini_body([
            {"text": "Here is your room"},
            {"inlineData": {"mimeType": "image/png", "data": RESULT}},
        ])),
    )

    mime_type, data = send_gemini_edit_request(b"source", "image/jpeg", "paint it sage", model="test-model")

    assert (mime_type, data) == ("image/png", b"painted-room")
    url, kwargs = fake.calls[0]
    assert url.endswith("/models/test-model:generateContent")
    assert kwargs["headers"]["x-goog-api-key"] == "gemini-test-key"
    assert "timeout" not in kwargs
    parts = kwargs["json"]["contents"][0]["parts"]
    assert parts[0]["inlineData"] == {
        "mimeType": "image/jpeg",
        "data": base64.b64encode(b"source").decode(),
    }
    assert parts[1] == {"text": "paint it sage"}
    assert kwargs["json"]["generationConfig"]["responseModalities"] == ["TEXT", "IMAGE"]


def test_gemini_accepts_snake_case_inline_data(monkeypatch):
    install_post(
        monkeypatch,
        response=FakeResponse(body=gemini_body([{"inline_data": {"mime_type": "image/jpeg", "data": RESULT}}])),
    )

    assert send_gemini_edit_request(b"src", "image/png", "p") == ("image/jpeg", b"painted-room")


def test_gemini_missing_key_fails_before_request(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY")
    fake = install_post(monkeypatch, response=FakeResponse(body={}))

    with pytest.raises(AuthenticationError):
        send_gemini_edit_request(b"src", "image/png", "p")
    assert fake.calls == []


def test_gemini_connection_error(monkeypatch):
    install_post(monkeypatch, error=requests.exceptions.ConnectionError("dns"))

    with pytest.raises(ProviderConnectionError) as exc:
        send_gemini_edit_request(b"src", "image/png", "p")

    assert exc.value.provider == "gemini"


@pytest.mark.parametrize(
    ("status_code", "body", "expected"),
    [
        (403, {"error": {"code": 403, "message": "denied", "status": "PERMISSION_DENIED"}}, AuthenticationError),
        (400, {"error": {"code": 400, "message": "API key not valid. Please pass a valid API key.",
                         "status": "INVALID_ARGUMENT"}}, AuthenticationError),
        (429, {"error": {"code": 429, "message": "Resource has been exhausted",
                         "status": "RESOURCE_EXHAUSTED"}}, QuotaExceededError),
        (500, {"error": {"code": 500, "message": "internal", "status": "INTERNAL"}}, GenerationError),
    ],
)
def test_gemini_http_errors_are_mapped(monkeypatch, status_code, body, expected):
    install_post(monkeypatch, response=FakeResponse(status_code, body))

    with pytest.raises(expected) as exc:
        send_gemini_edit_request(b"src", "image/png", "p")

    assert type(exc.value) is expected
    assert exc.value.status_code == status_code
    assert str(exc.value)


def test_gemini_blocked_prompt_is_content_rejection(monkeypatch):
    install_post(
        monkeypatch,
        response=FakeResponse(body={"promptFeedback": {"blockReason": "SAFETY"}}),
    )

    with pytest.raises(ContentRejectedError):
        send_gemini_edit_request(b"src", "image/png", "p")


def test_gemini_safety_finish_reason_is_content_rejection(monkeypatch):
    install_post(monkeypatch, response=FakeResponse(body=gemini_body([], finish_reason="IMAGE_SAFETY")))

    with pytest.raises(ContentRejectedError):
        send_gemini_edit_request(b"src", "image/png", "p")


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(body=None, text="<html>oops</html>"),
        FakeResponse(body={"candidates": []}),
        FakeResponse(body=gemini_body([{"text": "I can only describe it"}])),
        FakeResponse(body=gemini_body([{"inlineData": {"mimeType": "image/png", "data": "@@@"}}])),
        FakeResponse(body={"candidates": ["not-a-candidate"]}),
        FakeResponse(body={"candidates": [{"content": "text only"}]}),
        FakeResponse(body=gemini_body(["stray string", None, {"inlineData": "not-a-dict"}])),
        FakeResponse(body={"promptFeedback": "none", "candidates": {"unexpected": "mapping"}}),
        FakeResponse(body=["not", "an", "object"]),
    ],
)
def test_gemini_malformed_or_empty_responses(monkeypatch, response):
    install_post(monkeypatch, response=response)

    with pytest.raises(EmptyResponseError):
        send_gemini_edit_request(b"src", "image/png", "p")


def test_distinct_failures_have_distinct_messages():
    messages = {
        cls.default_message
        for cls in (
            AuthenticationError,
            ContentRejectedError,
            EmptyResponseError,
            ProviderConnectionError,
            QuotaExceededError,
        )
    }
    assert len(messages) == 5


# ============================================================
# OpenAI
# ============================================================

def test_openai_edit_request_is_multipart(monkeypatch):
    fake = install_post(monkeypatch, response=FakeResponse(body={"data": [{"b64_json": RESULT}]}))

    mime_type, data = send_openai_edit_request(b"source", "image/png", "paint it cream", model="gpt-image-1")

    assert (mime_type, data) == ("image/png", b"painted-room")
    url, kwargs = fake.calls[0]
    assert url == "https://api.openai.com/v1/images/edits"
    assert kwargs["headers"]["Authorization"] == "Bearer openai-test-key"
    assert kwargs["data"] == {"model": "gpt-image-1", "prompt": "paint it cream"}
    filename, content, content_type = kwargs["files"]["image"]
    assert filename.startswith("room.")
    assert (content, content_type) == (b"source", "image/png")


def test_openai_output_format_sets_mime(monkeypatch):
    install_post(
        monkeypatch,
        response=FakeResponse(body={"data": [{"b64_json": RESULT}], "output_format": "webp"}),
    )

    assert send_openai_edit_request(b"src", "image/png", "p")[0] == "image/webp"


@pytest.mark.parametrize(
    ("status_code", "error", "expected"),
    [
        (401, {"message": "Incorrect API key provided", "code": "invalid_api_key"}, AuthenticationError),
        (429, {"message": "You exceeded your current quota", "code": "insufficient_quota"}, QuotaExceededError),
        (400, {"message": "Your request was rejected by the safety system", "code": "moderation_blocked"},
         ContentRejectedError),
    ],
)
def test_openai_http_errors_are_mapped(monkeypatch, status_code, error, expected):
    install_post(monkeypatch, response=FakeResponse(status_code, {"error": error}))

    with pytest.raises(expected):
        send_openai_edit_request(b"src", "image/png", "p")


def test_openai_response_without_image(monkeypatch):
    install_post(monkeypatch, response=FakeResponse(body={"data": []}))

    with pytest.raises(EmptyResponseError):
        send_openai_edit_request(b"src", "image/png", "p")
