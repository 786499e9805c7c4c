"""Generation Client entrypoint used by `paintvisualizer.core.controller`.

Role in pipeline:
    - Receives the source data URL, its MIME type and the colour description.
    - Builds the provider instruction.
    - Selects the provider client (`gemini` vs `openai`).
    - Returns the generated image as a data URL.

Error handling strategy:
    - Exceptions from provider clients are propagated unchanged.
    - Unknown providers raise `ProviderConfigError`.
    - An undecodable source data URL raises `ValidationError`.

Determinism:
    - Provider branch selection is deterministic for fixed env/config/inputs.
    - Output content remains externally non-deterministic.
"""

import logging

from paintvisualizer.api.multimodal.file_input_manager import decode_data_url, encode_data_url
from paintvisualizer.core.errors import ProviderConfigError
from paintvisualizer.image.client import send_gemini_edit_request
from paintvisualizer.image.openai_client import send_openai_edit_request
from paintvisualizer.image.provider_config import IMAGE_PROVIDER
from paintvisualizer.prompting.prompt_builder import build_paint_prompt

logger = logging.getLogger(__name__)

PROVIDER_CLIENTS = {
    "gemini": send_gemini_edit_request,
    "openai": send_openai_edit_request,
}


def generate(image_data_url: str, mime_type: str, prompt: str) -> str:
    """Repaint the uploaded photo and return the result as a data URL.

    Args:
        image_data_url: Source photo as `data:<mime>;base64,...`.
        mime_type: MIME type recorded at upload time; falls back to the one
            embedded in the data URL when empty.
        prompt: User colour description.

    Returns:
        Result image data URL.
    """
    send_request = PROVIDER_CLIENTS.get(IMAGE_PROVIDER)
    if send_request is None:
        raise ProviderConfigError(
            f"Nhà cung cấp tạo ảnh không hợp lệ: {IMAGE_PROVIDER}",
            provider=IMAGE_PROVIDER,
        )

    embedded_mime, image_bytes = decode_data_url(image_data_url)
    source_mime = mime_type or embedded_mime

    result_mime, result_bytes = send_request(
        image_bytes,
        source_mime,
        build_paint_prompt(prompt),
    )

    logger.info(
        "Generated image provider=%s mime=%s bytes=%d",
        IMAGE_PROVIDER,
        result_mime,
        len(result_bytes),
    )
    return encode_data_url(result_bytes, result_mime)
