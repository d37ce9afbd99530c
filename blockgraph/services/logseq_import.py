"""
Logseq import.

Converts a Logseq JSON export into block inputs whose content is a
serialized Lexical editor document, then bulk-creates them.

Journal pages (page names like "May 15th, 2024") are merged into a single
"Journal" block, newest first; every other page with an id becomes a block
of its own.
"""

import json
import re
from datetime import datetime
from typing import Any

from blockgraph.models.block import Block, BlockInput, BlockType
from blockgraph.utils.exceptions import ValidationError
from blockgraph.utils.logger import get_logger

logger = get_logger(__name__)

JOURNAL_TITLE = "Journal"

JOURNAL_DATE_PATTERN = re.compile(r"^([A-Z][a-z]+) (\d{1,2})(?:st|nd|rd|th)?, (\d{4})$")

# Lexical text format bit flags
FORMAT_BOLD = 1
FORMAT_ITALIC = 2
FORMAT_UNDERLINE = 8

# (marker, format) pairs, checked in order
_INLINE_MARKERS = (("**", FORMAT_BOLD), ("*", FORMAT_ITALIC), ("__", FORMAT_UNDERLINE))


def parse_journal_date(page_name: str) -> datetime | None:
    """Parse a "Month Day[st|nd|rd|th], Year" page name; None when it is not a date.

    Full ("September") and abbreviated ("Sep") month names are accepted.
    """
    match = JOURNAL_DATE_PATTERN.match(page_name or "")
    if not match:
        return None
    month, day, year = match.groups()
    for month_format in ("%B", "%b"):
        try:
            return datetime.strptime(f"{month} {day} {year}", f"{month_format} %d %Y")
        except ValueError:
            continue
    return None


def text_node(text: str, format: int = 0) -> dict:
    return {
        "detail": 0,
        "format": format,
        "mode": "normal",
        "style": "",
        "text": text,
        "type": "text",
        "version": 1,
    }


def _element(node_type: str, children: list[dict], indent: int = 0, **extra) -> dict:
    return {
        "children": children,
        "direction": "ltr",
        "format": 0,
        "indent": indent,
        "type": node_type,
        "version": 1,
        **extra,
    }


def heading_node(text: str) -> dict:
    return _element("heading", [text_node(text)], tag="h1")


def root_document(children: list[dict]) -> str:
    """Serialize nodes as a Lexical editor state."""
    return json.dumps({"root": _element("root", children)})


def _content_node(content: str) -> dict:
    text_format = 0
    for marker, marker_format in _INLINE_MARKERS:
        if content.startswith(marker) and content.endswith(marker):
            text_format = marker_format
            content = content[len(marker) : -len(marker)]
            break

    # Logseq tags render as bold paragraphs
    if content.startswith("#"):
        return _element("paragraph", [text_node(content[1:])], textFormat=FORMAT_BOLD)
    return _element("paragraph", [text_node(content, text_format)])


def convert_block(block: dict, indent: int = 0, is_journal_entry: bool = False) -> list[dict]:
    """
    Convert a Logseq block tree into Lexical nodes.

    Args:
        block: Logseq block (``page-name``, ``content``, ``children``)
        indent: Indent level written on list nodes
        is_journal_entry: Journal entries get their heading from the caller

    Returns:
        Heading (pages only), content paragraph and a bullet list of children
    """
    nodes = []

    page_name = block.get("page-name")
    if page_name and not is_journal_entry:
        nodes.append(heading_node(page_name))

    content = block.get("content")
    if content:
        nodes.append(_content_node(content))

    children = block.get("children") or []
    if children:
        items = [
            _element(
                "listitem",
                convert_block(child, indent, is_journal_entry),
                indent=indent,
                value=index + 1,
            )
            for index, child in enumerate(children)
        ]
        nodes.append(
            _element("list", items, indent=indent, listType="bullet", start=1, tag="ul")
        )

    return nodes


def transform_logseq(data: dict) -> list[BlockInput]:
    """
    Turn a Logseq export into block inputs.

    Args:
        data: Parsed export (``{"blocks": [...]}``)

    Returns:
        The combined journal block (if any journal pages exist) followed by
        one input per regular page, in export order
    """
    pages = data.get("blocks") if isinstance(data, dict) else None
    if not isinstance(pages, list):
        pages = []

    journal_entries = []
    regular_pages = []
    for page in pages:
        if not isinstance(page, dict) or not page.get("page-name"):
            continue
        date = parse_journal_date(page["page-name"])
        if date is not None:
            journal_entries.append((date, page))
        else:
            regular_pages.append(page)

    inputs = []

    if journal_entries:
        journal_entries.sort(key=lambda entry: entry[0], reverse=True)
        nodes = []
        for index, (_, entry) in enumerate(journal_entries):
            nodes.append(heading_node(entry["page-name"]))
            nodes.extend(convert_block(entry, 0, True))
            if index < len(journal_entries) - 1:
                nodes.append(_element("paragraph", [text_node("")]))
        inputs.append(
            BlockInput(title=JOURNAL_TITLE, content=root_document(nodes), type=BlockType.TEXT)
        )

    for page in regular_pages:
        if not page.get("id"):
            continue
        inputs.append(
            BlockInput(
                title=page["page-name"],
                content=root_document(convert_block(page)),
                type=BlockType.TEXT,
            )
        )

    return inputs


class LogseqImporter:
    """Imports Logseq exports through the block repository's bulk path."""

    def __init__(self, block_repository):
        self.block_repository = block_repository

    async def import_json(self, data: dict | str | bytes, owner: str) -> list[Block]:
        """
        Import an export given as parsed JSON or raw text.

        Raises:
            ValidationError: If the payload is not valid JSON
        """
        if isinstance(data, str | bytes):
            try:
                data = json.loads(data)
            except ValueError as e:
                raise ValidationError(f"Invalid Logseq export: {e}") from e

        inputs = transform_logseq(data)
        logger.info("Importing Logseq export", extra={"user_id": owner, "pages": len(inputs)})
        return await self.block_repository.create_many(inputs, owner)
