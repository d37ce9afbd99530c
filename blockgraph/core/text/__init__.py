"""
Text utilities for block content.
"""

from blockgraph.core.text.extraction import build_plain_text, extract_plain_text

__all__ = [
    "extract_plain_text",
    "build_plain_text",
]
