"""
HTTP adapter for the PaintVisualizer controller.

Architectural role:
- Serve the single page (`GET /`) and its form routes (`/ui/*`).
- Expose the same operations as a JSON API (`/api/*`).
- Delegate every state change to one process-wide `PaintController`.

Endpoint responsibilities:
- `GET /`: render the page for the current session state.
- `POST /ui/upload|remove-image|preset|submit|reset`: run one controller
  operation, then redirect back to `/` (303).
- `GET /results/{id}/download`: return a generated image as an attachment
  named `paint-result-<id>.<ext>`.
- `GET /api/state`, `GET /api/presets`, `POST /api/image`,
  `DELETE /api/image`, `PUT /api/prompt`, `POST /api/preset`,
  `POST /api/submit`, `POST /api/reset`: JSON equivalents.

Submit status mapping (`POST /api/submit`):
- 409 when a generation request is already in flight.
- 400 when the image or the prompt is missing.
- 502 when the generation client failed.
- 200 with the new result otherwise.

Error handling strategy:
- Validation failures return structured HTTP 400 JSON responses.
- Generation failures are recorded in session state by the controller and
  surfaced as 502 on the JSON API.
- Unexpected exceptions follow FastAPI default exception handling.

Side effects:
- Holds session state in process memory only.
- Loads environment variables at import time via `load_dotenv()`.
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from pydantic import BaseModel

from paintvisualizer.api.page import render_page
from paintvisualizer.core.controller import PaintController
from paintvisualizer.core.errors import ValidationError
from paintvisualizer.core.history import result_file
from paintvisualizer.core.state import PaintResult, SessionState
from paintvisualizer.prompting.prompt_builder import PRESET_PROMPTS

logger = logging.getLogger(__name__)

# Sensitive request/response debug logging is opt-in.
DEBUG = os.getenv("DEBUG") == "true"

BUSY_MESSAGE = "Đang xử lý một yêu cầu khác. Vui lòng đợi."


# ============================================================
# Request Schema
# ============================================================

class PromptRequest(BaseModel):
    prompt: str


class PresetRequest(BaseModel):
    name: str


# ============================================================
# Response Formatting
# ============================================================

def result_payload(result: PaintResult) -> dict:
    return {
        "id": result.id,
        "original_url": result.original_url,
        "result_url": result.result_url,
        "color_prompt": result.color_prompt,
        "timestamp": result.timestamp,
        "download_url": f"/results/{result.id}/download",
    }


def state_payload(state: SessionState) -> dict:
    """Serialize session state for JSON clients."""
    image = None
    if state.image is not None:
        image = {
            "data_url": state.image.data_url,
            "mime_type": state.image.mime_type,
            "filename": state.image.filename,
        }

    return {
        "status": state.status.value,
        "image": image,
        "prompt": state.prompt,
        "error_msg": state.error_msg,
        "can_submit": state.can_submit,
        "results": [result_payload(r) for r in state.results],
    }


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _back_to_page() -> RedirectResponse:
    return RedirectResponse("/", status_code=303)


# ============================================================
# Application Factory
# ============================================================

def create_app(controller: PaintController | None = None) -> FastAPI:
    """Build the FastAPI app around one controller (a fresh one by default)."""
    controller = controller or PaintController()
    app = FastAPI(title="PaintVisualizer AI")
    app.state.controller = controller

    # ------------------------------------------------------------
    # Page + form routes
    # ------------------------------------------------------------

    @app.get("/", response_class=HTMLResponse)
    async def index():
        return HTMLResponse(render_page(controller.state, PRESET_PROMPTS))

    @app.post("/ui/upload")
    async def ui_upload(file: UploadFile = File(...)):
        data = await file.read()
        controller.upload_image(data, file.content_type, file.filename)
        return _back_to_page()

    @app.post("/ui/remove-image")
    async def ui_remove_image():
        controller.remove_image()
        return _back_to_page()

    @app.post("/ui/preset")
    async def ui_preset(name: str = Form(...)):
        try:
            controller.apply_preset(name)
        except ValidationError as err:
            return _error(400, str(err))
        return _back_to_page()

    @app.post("/ui/submit")
    async def ui_submit(prompt: str = Form("")):
        # Leave the in-flight prompt untouched; the repeated click is a no-op.
        if controller.is_busy:
            return _back_to_page()
        controller.set_prompt(prompt)
        await controller.submit()
        return _back_to_page()

    @app.post("/ui/reset")
    async def ui_reset():
        controller.reset()
        return _back_to_page()

    @app.get("/results/{result_id}/download")
    async def download_result(result_id: str):
        try:
            result = controller.get_result(result_id)
        except KeyError:
            return _error(404, "Result not found")

        try:
            filename, mime_type, data = result_file(result)
        except ValidationError as err:
            logger.error("Stored result id=%s is not a decodable data URL", result_id)
            return _error(500, str(err))

        return Response(
            content=data,
            media_type=mime_type,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    # ------------------------------------------------------------
    # JSON API
    # ------------------------------------------------------------

    @app.get("/api/state")
    async def get_state():
        return state_payload(controller.state)

    @app.get("/api/presets")
    async def get_presets():
        return {"presets": list(PRESET_PROMPTS)}

    @app.post("/api/image")
    async def upload_image(file: UploadFile = File(...)):
        data = await file.read()
        if DEBUG:
            logger.debug("Upload filename=%r content_type=%r bytes=%d", file.filename, file.content_type, len(data))
        if not controller.upload_image(data, file.content_type, file.filename):
            return _error(400, controller.state.error_msg)
        return state_payload(controller.state)

    @app.delete("/api/image")
    async def delete_image():
        controller.remove_image()
        return state_payload(controller.state)

    @app.put("/api/prompt")
    async def put_prompt(body: PromptRequest):
        controller.set_prompt(body.prompt)
        return state_payload(controller.state)

    @app.post("/api/preset")
    async def post_preset(body: PresetRequest):
        try:
            controller.apply_preset(body.name)
        except ValidationError as err:
            return _error(400, str(err))
        return state_payload(controller.state)

    @app.post("/api/submit")
    async def submit():
        if controller.is_busy:
            return _error(409, BUSY_MESSAGE)

        state = controller.state
        missing_input = state.image is None or not state.prompt.strip()

        result = await controller.submit()
        if result is None:
            return _error(400 if missing_input else 502, state.error_msg)

        return {"result": result_payload(result), "state": state_payload(state)}

    @app.post("/api/reset")
    async def reset():
        controller.reset()
        return state_payload(controller.state)

    return app


app = create_app()
