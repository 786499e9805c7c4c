"""
Server-side rendering of the single PaintVisualizer page.

Architectural role:
- Render one `SessionState` to HTML through the `templates/index.html`
  Jinja2 template; no state changes happen here.
- Every control is a plain HTML form posting to the `/ui/*` routes in
  `http_api`, which redirect back to `/`.

Response formatting:
- Images are embedded as data URLs.
- All user-supplied text is escaped by Jinja2 autoescaping.
"""

from datetime import datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from paintvisualizer.core.history import download_filename, result_mime_type
from paintvisualizer.core.state import AppStatus, PaintResult, SessionState


TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

TIPS = (
    "Hãy thử sử dụng tông màu lạnh cho phòng ngủ để tạo cảm giác thư thái, dễ ngủ hơn.",
    "Màu trắng hoặc kem sáng giúp các căn hộ nhỏ trông rộng rãi và thoáng đãng hơn hẳn.",
    "Đừng quên nguyên tắc 60-30-10: 60% màu chủ đạo, 30% màu bổ trợ và 10% màu nhấn.",
)

PROMPT_PLACEHOLDER = (
    "Ví dụ: Phối màu xanh dương pastel cho bức tường chính, "
    "hoặc màu kem sữa cho toàn bộ phòng khách..."
)


def format_timestamp(timestamp_ms: int) -> str:
    """Format epoch milliseconds like vi-VN `toLocaleString` (`14:05:09 19/10/2026`)."""
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%H:%M:%S %d/%m/%Y")


def download_name(result: PaintResult) -> str:
    return download_filename(result, result_mime_type(result))


def _build_environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
    )
    env.filters["format_timestamp"] = format_timestamp
    env.filters["download_name"] = download_name
    return env


_env = _build_environment()


def render_page(state: SessionState, presets) -> str:
    """Render the complete HTML document for `state`."""
    template = _env.get_template("index.html")
    return template.render(
        state=state,
        presets=presets,
        tips=TIPS,
        placeholder=PROMPT_PLACEHOLDER,
        processing=state.status == AppStatus.PROCESSING,
    )
