"""Gemini image-edit HTTP client plus shared provider error mapping.

Processing flow:
    1. Resolve Gemini endpoint/model from `paintvisualizer.image.provider_config`.
    2. Load the API key from env or key file.
    3. Submit one `generateContent` request carrying the source image as an
       `inlineData` part and the paint instruction as a `text` part.
    4. Return the first image part of the first candidate.

Retry behavior:
    No retry loop and no timeout. Each request is attempted once and waits
    until the provider answers or the connection fails.

Error handling strategy:
    Transport failures, HTTP errors and unusable payloads are raised as
    `GenerationError` subclasses so the controller can show their message.

Security considerations:
    Provider error bodies are only logged when `DEBUG == "true"`.
"""

import base64
import binascii
import logging

import requests

from paintvisualizer.core.errors import (
    AuthenticationError,
    ContentRejectedError,
    EmptyResponseError,
    GenerationError,
    ProviderConnectionError,
    QuotaExceededError,
)
from paintvisualizer.image.provider_config import DEBUG, IMAGE_MODEL, IMAGE_PROVIDERS, load_key

logger = logging.getLogger(__name__)

# Candidate finish reasons that mean the provider refused to draw.
SAFETY_FINISH_REASONS = {
    "SAFETY",
    "IMAGE_SAFETY",
    "PROHIBITED_CONTENT",
    "BLOCKLIST",
    "SPII",
    "RECITATION",
}
QUOTA_MARKERS = ("quota", "rate limit", "resource_exhausted", "billing")
AUTH_MARKERS = ("api key not valid", "api_key_invalid", "invalid_api_key", "permission_denied")


# ============================================================
# Shared error mapping
# ============================================================

def _error_details(response: requests.Response) -> tuple[str, str]:
    """Return `(message, code)` from a JSON error body, best effort."""
    try:
        body = response.json()
    except ValueError:
        return response.text or "", ""

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        code = error.get("status") or error.get("code") or error.get("type") or ""
        return str(error.get("message") or ""), str(code)
    if isinstance(error, str):
        return error, ""
    return "", ""


def raise_for_provider_status(provider: str, response: requests.Response) -> None:
    """Translate a non-2xx provider response into a `GenerationError` subclass.

    Mapping:
        - 401/403 or an invalid-key message -> `AuthenticationError`
        - 429 or quota/billing markers -> `QuotaExceededError`
        - moderation/content-policy codes -> `ContentRejectedError`
        - anything else -> `GenerationError` with the status code
    """
    status_code = response.status_code
    if 200 <= status_code < 300:
        return

    message, code = _error_details(response)
    if DEBUG:
        logger.debug("%s error body (%s): %s", provider, status_code, response.text)

    haystack = f"{message} {code}".lower()

    if status_code in (401, 403) or any(m in haystack for m in AUTH_MARKERS):
        raise AuthenticationError(provider=provider, status_code=status_code)

    if status_code == 429 or any(m in haystack for m in QUOTA_MARKERS):
        raise QuotaExceededError(provider=provider, status_code=status_code)

    if any(m in haystack for m in ("content_policy", "moderation", "safety")):
        raise ContentRejectedError(provider=provider, status_code=status_code)

    raise GenerationError(
        f"Dịch vụ tạo ảnh trả về lỗi HTTP {status_code}.",
        provider=provider,
        status_code=status_code,
    )


def post_to_provider(provider: str, url: str, **kwargs) -> requests.Response:
    """POST once to a provider endpoint, mapping transport failures."""
    try:
        return requests.post(url, **kwargs)
    except requests.exceptions.RequestException as err:
        logger.warning("%s request failed: %s", provider, err.__class__.__name__)
        raise ProviderConnectionError(provider=provider) from err


def decode_image_payload(provider: str, encoded: str) -> bytes:
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError, TypeError) as err:
        raise EmptyResponseError(provider=provider) from err
    if not data:
        raise EmptyResponseError(provider=provider)
    return data


# ============================================================
# Gemini
# ============================================================

def _extract_inline_image(data: dict) -> tuple[str, str] | None:
    """Return `(mime_type, base64)` of the first image part, if any."""
    candidates = data.get("candidates") or []
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return None

    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts")
    if not isinstance(parts, list):
        return None

    for part in parts:
        if not isinstance(part, dict):
            continue
        inline = part.get("inlineData") or part.get("inline_data")
        if isinstance(inline, dict) and inline.get("data"):
            mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"
            return mime_type, inline["data"]
    return None


def send_gemini_edit_request(
    image_bytes: bytes,
    mime_type: str,
    prompt: str,
    model: str | None = None,
) -> tuple[str, bytes]:
    """Ask Gemini to repaint `image_bytes` according to `prompt`.

    Args:
        image_bytes: Raw source photo.
        mime_type: MIME type of the source photo.
        prompt: Fully built instruction from `prompting.prompt_builder`.
        model: Model override; defaults to `IMAGE_MODEL`.

    Returns:
        `(result_mime_type, result_bytes)`.

    Error handling:
        - Missing API key -> `AuthenticationError`
        - Transport failure -> `ProviderConnectionError`
        - Non-2xx status -> see `raise_for_provider_status`
        - Blocked prompt or safety finish reason -> `ContentRejectedError`
        - Invalid JSON / no candidates / no image part -> `EmptyResponseError`
    """
    provider_config = IMAGE_PROVIDERS["gemini"]
    api_key = load_key(provider_config.get("key_file"))
    if not api_key:
        raise AuthenticationError(provider="gemini")

    model = model or IMAGE_MODEL or provider_config["default_model"]
    url = provider_config["url"].format(model=model)

    headers = {
        "x-goog-api-key": api_key,
        "Content-Type": "application/json",
    }

    payload = {
        "contents": [
            {
                "role": "user",
                "parts": [
                    {
                        "inlineData": {
                            "mimeType": mime_type,
                            "data": base64.b64encode(image_bytes).decode("ascii"),
                        }
                    },
                    {"text": prompt},
                ],
            }
        ],
        "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
    }

    logger.info("Sending Gemini image edit request model=%s source_bytes=%d", model, len(image_bytes))
    response = post_to_provider("gemini", url, json=payload, headers=headers)
    raise_for_provider_status("gemini", response)

    try:
        data = response.json()
    except ValueError as err:
        raise EmptyResponseError(provider="gemini") from err
    if not isinstance(data, dict):
        raise EmptyResponseError(provider="gemini")

    feedback = data.get("promptFeedback")
    block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
    if block_reason:
        logger.warning("Gemini blocked prompt: %s", block_reason)
        raise ContentRejectedError(provider="gemini")

    image = _extract_inline_image(data)
    if image is None:
        candidates = data.get("candidates")
        first = candidates[0] if isinstance(candidates, list) and candidates else None
        finish_reason = first.get("finishReason") if isinstance(first, dict) else None
        if finish_reason in SAFETY_FINISH_REASONS:
            logger.warning("Gemini stopped generation: %s", finish_reason)
            raise ContentRejectedError(provider="gemini")
        raise EmptyResponseError(provider="gemini")

    result_mime, encoded = image
    return result_mime, decode_image_payload("gemini", encoded)
