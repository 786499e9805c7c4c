"""PaintVisualizer API adapter package.

Architectural role:
- Defines the external interaction boundary (HTML page and JSON API).
- Performs transport-level parsing and response shaping.
- Delegates every state change to `paintvisualizer.core.controller`.
"""
