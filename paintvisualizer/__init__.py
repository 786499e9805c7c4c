"""PaintVisualizer: repaint a room photo from a free-text colour description.

Architectural role:
    - `core`: session state and the controller sequencing uploads and
      generation requests.
    - `image`: provider configuration and transport for the external
      generative-image service.
    - `prompting`: colour instruction to provider prompt assembly.
    - `api`: FastAPI adapter serving the single page and a JSON API.
"""
