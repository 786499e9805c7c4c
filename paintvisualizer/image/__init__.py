"""Image generation adapter package.

Scope:
    Provides image-edit provider clients and the dispatch service the
    controller calls for every submission.

Non-goals:
    - No local image processing.
    - No retry, timeout or cancellation handling.
"""
