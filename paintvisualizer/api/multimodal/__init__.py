"""Upload preprocessing package for API adapters.

Architectural role:
- Reads user-selected image files into data URLs.
- Applies type/size constraints before anything enters session state.

Scope:
- Content preprocessing only; no HTTP endpoint definitions.
"""
