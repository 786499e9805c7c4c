"""Core session package.

Composition:
    - `state`: status enum and the records held for one session.
    - `errors`: validation and generation exception hierarchy.
    - `controller`: `PaintController`, the only writer of session state.
    - `history`: helpers for saving generated results.
"""
