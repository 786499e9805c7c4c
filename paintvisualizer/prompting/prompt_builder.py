"""Prompt assembly for paint-colour edits.

This module only turns the user's colour description into the instruction sent
to the image provider. Validation, provider selection and invocation happen
outside this module.

Design constraints:
    - Deterministic construction for identical inputs.
    - No I/O and no global state mutation.

Prompt safety model:
    The colour description is interpolated as raw text. Content filtering is
    left to the provider, which reports refusals as `ContentRejectedError`.
"""


# =========================================================
# EDIT INSTRUCTION
# =========================================================
# Component order:
#   1) Task framing (photo edit, not a new image)
#   2) User colour request
#   3) Preservation constraints
#   4) Output constraint

PAINT_TASK = (
    "You are an interior paint visualizer. Edit the attached photo of a room "
    "so that it shows the walls repainted as requested.\n\n"
)

PRESERVATION_RULES = (
    "Rules:\n"
    "- Change only painted wall and ceiling surfaces.\n"
    "- Keep furniture, floors, windows, decorations and the camera angle exactly as they are.\n"
    "- Keep the existing lighting and shadows so the new paint looks realistic.\n"
    "- If the request names a specific wall, repaint only that wall.\n\n"
)

OUTPUT_RULE = "Return the edited photo as a single image."

# Quick-pick colour descriptions offered next to the prompt box.
PRESET_PROMPTS = (
    "Màu xám tối hiện đại",
    "Xanh Sage thư giãn",
    "Kem ấm áp",
    "Trắng tinh khôi",
)


def build_paint_prompt(color_prompt: str) -> str:
    """Build the provider instruction for one colour request.

    Args:
        color_prompt: Free-text colour description typed by the user (any
            language).

    Returns:
        Fully assembled instruction string.

    Edge cases:
        - Surrounding whitespace is stripped before insertion.
    """
    request = color_prompt.strip()
    return (
        f"{PAINT_TASK}"
        f"Requested paint colour:\n{request}\n\n"
        f"{PRESERVATION_RULES}"
        f"{OUTPUT_RULE}"
    )
