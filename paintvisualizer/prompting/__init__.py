"""Prompt construction package.

Exposes deterministic helpers that turn a colour description into the
instruction sent to the image provider.
"""
