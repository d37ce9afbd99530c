"""
Plain text extraction from serialized rich-text documents.

Block content is an editor state serialized as JSON:

    {"root": {"children": [{"type": "paragraph",
                             "children": [{"type": "text", "text": "Hello"}]}]}}

The extractor walks ``root.children`` depth-first and concatenates the text of
every leaf text node. It runs on every mutation and inside search, so it never
raises: malformed input yields an empty string.
"""

import json
from typing import Any

from blockgraph.utils.logger import get_logger

logger = get_logger(__name__)


def extract_plain_text(content: Any) -> str:
    """
    Flatten a serialized document to plain text.

    Args:
        content: Serialized editor document

    Returns:
        Concatenated text of all leaf text nodes, or "" for empty/malformed input
    """
    if not content or not isinstance(content, str):
        logger.warning(
            "Skipping plain text extraction for empty or non-string content",
            extra={"content_type": type(content).__name__},
        )
        return ""

    try:
        document = json.loads(content)
    except (ValueError, RecursionError) as e:
        logger.warning(
            "Content is not a valid serialized document",
            extra={"error": str(e), "content_preview": content[:100]},
        )
        return ""

    root = document.get("root") if isinstance(document, dict) else None
    children = root.get("children") if isinstance(root, dict) else None

    if not isinstance(children, list):
        logger.warning(
            "Serialized document has no root children",
            extra={"has_root": isinstance(root, dict)},
        )
        return ""

    try:
        return "".join(_extract_node(child) for child in children)
    except RecursionError:
        logger.warning("Serialized document is nested too deeply")
        return ""


def _extract_node(node: Any) -> str:
    if not isinstance(node, dict):
        return ""

    text = node.get("text")
    if node.get("type") == "text" and isinstance(text, str) and text:
        return text

    children = node.get("children")
    if isinstance(children, list):
        return "".join(_extract_node(child) for child in children)

    return ""


def build_plain_text(title: str | None, content: Any) -> str:
    """
    Derived plain text stored on a block and used for embedding.

    Args:
        title: Block title
        content: Serialized document

    Returns:
        "<title> <extracted content>"
    """
    return f"{title or ''} {extract_plain_text(content)}"
