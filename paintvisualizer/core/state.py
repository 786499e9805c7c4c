"""Session data contracts for `paintvisualizer.core.controller`.

Architectural role:
    Defines the records held in memory for one running process and the single
    state struct the controller owns. Nothing here performs I/O; all mutation
    goes through `PaintController` operations.

Lifecycle:
    - `UploadedImage` is created on upload and replaced or cleared later.
    - `PaintResult` is created once per successful generation and never mutated.
    - `SessionState.results` is ordered newest first and only grows.
"""

from dataclasses import dataclass, field
from enum import Enum


class AppStatus(str, Enum):
    """Process-wide session phase."""

    IDLE = "IDLE"
    UPLOADING = "UPLOADING"
    PROCESSING = "PROCESSING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class UploadedImage:
    """Encoded source photo.

    Attributes:
        data_url: `data:<mime>;base64,<payload>` representation of the file.
        mime_type: MIME type recorded at upload time.
        filename: Original filename when known.
    """

    data_url: str
    mime_type: str
    filename: str | None = None


@dataclass(frozen=True)
class PaintResult:
    """One completed generation.

    Attributes:
        id: Unique, time-derived identifier (epoch milliseconds as string).
        original_url: Source image data URL supplied at submit time.
        result_url: Generated image data URL.
        color_prompt: Colour description that produced the result.
        timestamp: Creation time in epoch milliseconds.
    """

    id: str
    original_url: str
    result_url: str
    color_prompt: str
    timestamp: int


@dataclass
class SessionState:
    """Everything the page renders, owned by exactly one controller."""

    image: UploadedImage | None = None
    prompt: str = ""
    status: AppStatus = AppStatus.IDLE
    results: list[PaintResult] = field(default_factory=list)
    error_msg: str | None = None

    @property
    def mime_type(self) -> str:
        return self.image.mime_type if self.image else ""

    @property
    def can_submit(self) -> bool:
        """Whether the submit trigger should be enabled."""
        return (
            self.image is not None
            and bool(self.prompt.strip())
            and self.status != AppStatus.PROCESSING
        )
