"""Provider/runtime configuration for the image layer.

Architectural role:
    Centralizes image provider selection, model names, endpoints and credential
    lookup for `paintvisualizer.image.service` and the transport clients.

Model call flow integration:
    - `service.generate` dispatches on `IMAGE_PROVIDER`.
    - `client.send_gemini_edit_request` and
      `openai_client.send_openai_edit_request` read endpoint maps and keys.

Determinism:
    Deterministic for a fixed process environment and key files. Values are resolved
    at import time (plus runtime key-file reads in `load_key`).

Failure behavior:
    Missing key material is represented as `None`; clients raise
    `AuthenticationError` for it.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Sensitive request/response debug logging is opt-in.
DEBUG = os.getenv("DEBUG") == "true"

# Primary provider routing controls.
IMAGE_PROVIDER = os.getenv("IMAGE_PROVIDER", "gemini")

IMAGE_PROVIDERS = {

    "gemini": {
        "url": "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent",
        "key_file": "config/gemini.key",
        "default_model": "gemini-2.5-flash-image",
    },

    "openai": {
        "url": "https://api.openai.com/v1/images/edits",
        "key_file": "config/openai.key",
        "default_model": "gpt-image-1",
    },

}


def _default_model(provider):
    config = IMAGE_PROVIDERS.get(provider) or {}
    return config.get("default_model")


IMAGE_MODEL = os.getenv("IMAGE_MODEL") or _default_model(IMAGE_PROVIDER)


def load_key(path):
    """Load API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/gemini.key` -> `GEMINI_API_KEY`).
        2. Raw file contents at `path`.

    Args:
        path: Configured key file path or `None`.

    Returns:
        Key string or `None` when not available.

    Edge cases:
        - `None` path returns `None`.
        - Missing file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name)
    if env_value:
        return env_value
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip() or None
