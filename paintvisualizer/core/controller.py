"""Session controller: the only writer of PaintVisualizer session state.

Architectural role:
    Owns one `SessionState` and sequences the supported operations (upload,
    prompt edits, submit, reset). API adapters call these methods and render
    `state`; nothing else mutates it.

Control-flow model (`submit`):
    1. Reject when a generation request is already in flight.
    2. Validate that an image and a non-empty prompt are present.
    3. Set PROCESSING, clear the previous error, call the generator.
    4. Prepend a `PaintResult` and return to IDLE, or set ERROR plus a message.

Concurrency:
    A single in-flight slot (`_in_flight`) is claimed before the first
    suspension point, so at most one generator call exists per controller no
    matter how often `submit` is triggered. There is no queue, timeout or
    cancellation; a started request runs until it resolves or fails.

Error handling strategy:
    Validation problems never reach the generator and are surfaced as fixed
    messages. Any generator failure is logged and surfaced verbatim, or as a
    generic message when it carries none.
"""

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Union

from paintvisualizer.api.multimodal.file_input_manager import (
    encode_data_url,
    read_upload,
    resolve_mime_type,
    validate_upload,
)
from paintvisualizer.core.errors import ValidationError
from paintvisualizer.core.state import AppStatus, PaintResult, SessionState, UploadedImage
from paintvisualizer.prompting.prompt_builder import PRESET_PROMPTS


logger = logging.getLogger(__name__)

MISSING_INPUT_MESSAGE = "Vui lòng tải ảnh và nhập mô tả màu sắc."
GENERIC_ERROR_MESSAGE = "Đã có lỗi xảy ra trong quá trình xử lý. Vui lòng thử lại."
UNKNOWN_PRESET_MESSAGE = "Gợi ý màu không hợp lệ."

Generator = Callable[[str, str, str], Union[str, Awaitable[str]]]


def _default_generator(image_data_url: str, mime_type: str, prompt: str) -> str:
    # Provider config is only imported once a real request is made.
    from paintvisualizer.image.service import generate

    return generate(image_data_url, mime_type, prompt)


class PaintController:
    """Holds session state and runs the one asynchronous operation.

    Args:
        generator: Callable `(image_data_url, mime_type, prompt) -> data_url`.
            Plain functions run in a worker thread via `asyncio.to_thread`;
            coroutine functions are awaited directly.
        clock: Returns the current time in epoch milliseconds.
    """

    def __init__(
        self,
        generator: Optional[Generator] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._generator = generator or _default_generator
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._state = SessionState()
        self._in_flight = False
        self._last_id = 0

    # ---------------------------------------------------------
    # Read access
    # ---------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def results(self) -> list[PaintResult]:
        return list(self._state.results)

    @property
    def is_busy(self) -> bool:
        return self._in_flight

    def get_result(self, result_id: str) -> PaintResult:
        """Return the history entry with `result_id` or raise `KeyError`."""
        for result in self._state.results:
            if result.id == result_id:
                return result
        raise KeyError(result_id)

    # ---------------------------------------------------------
    # Operations
    # ---------------------------------------------------------

    def upload_image(
        self,
        file: Any,
        mime_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> bool:
        """Read, validate and store a source photo.

        Returns:
            `True` when the image was stored, `False` when it was rejected (the
            previous image is kept and `error_msg` explains why).
        """
        state = self._state
        previous_status = AppStatus.IDLE if state.status == AppStatus.ERROR else state.status
        state.status = AppStatus.UPLOADING

        try:
            data, detected_name = read_upload(file)
            filename = filename or detected_name
            resolved_mime = resolve_mime_type(data, mime_type, filename)
            validate_upload(data, resolved_mime)
        except ValidationError as err:
            logger.info("Upload rejected filename=%r: %s", filename, err)
            state.error_msg = str(err)
            return False
        finally:
            state.status = previous_status

        state.image = UploadedImage(
            data_url=encode_data_url(data, resolved_mime),
            mime_type=resolved_mime,
            filename=filename,
        )
        state.error_msg = None
        logger.info("Image uploaded filename=%r mime=%s bytes=%d", filename, resolved_mime, len(data))
        return True

    def remove_image(self) -> None:
        """Drop the uploaded photo only; prompt, status and history stay."""
        self._state.image = None

    def set_prompt(self, text: Optional[str]) -> None:
        self._state.prompt = text or ""

    def apply_preset(self, name: str) -> None:
        """Replace the prompt with one of the quick-pick colour descriptions."""
        if name not in PRESET_PROMPTS:
            raise ValidationError(UNKNOWN_PRESET_MESSAGE)
        self._state.prompt = name

    async def submit(self) -> Optional[PaintResult]:
        """Run one generation for the current image and prompt.

        Returns:
            The new `PaintResult`, or `None` when the submission was rejected
            (already in flight or missing input) or the generator failed.
        """
        if self._in_flight:
            logger.warning("Submit ignored: a generation request is already in flight")
            return None

        state = self._state
        image = state.image
        prompt = state.prompt

        if image is None or not prompt.strip():
            state.error_msg = MISSING_INPUT_MESSAGE
            return None

        self._in_flight = True
        state.status = AppStatus.PROCESSING
        state.error_msg = None

        try:
            result_url = await self._call_generator(image.data_url, image.mime_type, prompt)
        except Exception as err:
            logger.exception("Image generation failed")
            state.error_msg = str(err) or GENERIC_ERROR_MESSAGE
            state.status = AppStatus.ERROR
            return None
        finally:
            self._in_flight = False

        result = PaintResult(
            id=self._next_id(),
            original_url=image.data_url,
            result_url=result_url,
            color_prompt=prompt,
            timestamp=self._clock(),
        )
        state.results.insert(0, result)
        state.status = AppStatus.IDLE
        logger.info("Generation finished id=%s history_size=%d", result.id, len(state.results))
        return result

    def reset(self) -> None:
        """Clear image, prompt, status and error. History is kept.

        A request already in flight keeps status PROCESSING until it resolves,
        so the cleared session cannot start a second one meanwhile.
        """
        state = self._state
        state.image = None
        state.prompt = ""
        state.status = AppStatus.PROCESSING if self._in_flight else AppStatus.IDLE
        state.error_msg = None

    # ---------------------------------------------------------
    # Internals
    # ---------------------------------------------------------

    async def _call_generator(self, image_data_url: str, mime_type: str, prompt: str) -> str:
        generator = self._generator
        call = getattr(generator, "__call__", None)
        if inspect.iscoroutinefunction(generator) or inspect.iscoroutinefunction(call):
            return await generator(image_data_url, mime_type, prompt)

        result = await asyncio.to_thread(generator, image_data_url, mime_type, prompt)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _next_id(self) -> str:
        """Epoch-millisecond id, bumped when two results share a millisecond."""
        candidate = max(self._clock(), self._last_id + 1)
        self._last_id = candidate
        return str(candidate)
