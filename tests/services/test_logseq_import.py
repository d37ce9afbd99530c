"""
Tests for the Logseq importer.
"""

import json
from datetime import datetime

import pytest

from blockgraph.core.text import extract_plain_text
from blockgraph.services.logseq_import import (
    FORMAT_BOLD,
    FORMAT_ITALIC,
    FORMAT_UNDERLINE,
    JOURNAL_TITLE,
    convert_block,
    parse_journal_date,
    transform_logseq,
)
from blockgraph.utils.exceptions import ValidationError


@pytest.fixture
def export():
    return {
        "version": 1,
        "blocks": [
            {
                "id": "page-1",
                "page-name": "Python",
                "children": [
                    {"content": "**Decorators**", "children": [{"content": "wrap functions"}]},
                    {"content": "#tips"},
                ],
            },
            {"page-name": "May 14th, 2024", "children": [{"content": "older entry"}]},
            {"page-name": "May 15th, 2024", "children": [{"content": "newer entry"}]},
            {"page-name": "No id page", "children": [{"content": "skipped"}]},
            {"id": "page-2", "page-name": "February 30th, 2024"},
        ],
    }


def root_children(block_input):
    return json.loads(block_input.content)["root"]["children"]


@pytest.mark.unit
class TestParseJournalDate:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("May 15th, 2024", datetime(2024, 5, 15)),
            ("June 1st, 2023", datetime(2023, 6, 1)),
            ("March 22nd, 2022", datetime(2022, 3, 22)),
            ("July 3, 2021", datetime(2021, 7, 3)),
            ("Sep 3rd, 2024", datetime(2024, 9, 3)),
            ("Jan 1st, 2024", datetime(2024, 1, 1)),
        ],
    )
    def test_dates(self, name, expected):
        assert parse_journal_date(name) == expected

    @pytest.mark.parametrize("name", ["Python", "February 30th, 2024", "Smarch 1st, 2024", ""])
    def test_not_dates(self, name):
        assert parse_journal_date(name) is None


@pytest.mark.unit
class TestConvertBlock:
    def test_page_heading_and_list(self):
        nodes = convert_block({"page-name": "Page", "children": [{"content": "item"}]})

        heading, bullets = nodes
        assert heading["type"] == "heading"
        assert heading["tag"] == "h1"
        assert bullets["type"] == "list"
        assert bullets["listType"] == "bullet"
        assert bullets["children"][0]["type"] == "listitem"
        assert bullets["children"][0]["value"] == 1

    def test_inline_formats(self):
        def text_format(content):
            paragraph = convert_block({"content": content})[0]
            return paragraph["children"][0]["format"], paragraph["children"][0]["text"]

        assert text_format("**bold**") == (FORMAT_BOLD, "bold")
        assert text_format("*italic*") == (FORMAT_ITALIC, "italic")
        assert text_format("__under__") == (FORMAT_UNDERLINE, "under")
        assert text_format("plain") == (0, "plain")

    def test_tag_becomes_bold_paragraph(self):
        paragraph = convert_block({"content": "#tips"})[0]

        assert paragraph["textFormat"] == FORMAT_BOLD
        assert paragraph["children"][0]["text"] == "tips"

    def test_journal_entry_has_no_heading(self):
        nodes = convert_block({"page-name": "May 15th, 2024", "content": "x"}, 0, True)
        assert [node["type"] for node in nodes] == ["paragraph"]


@pytest.mark.unit
class TestTransform:
    def test_journal_first_then_pages(self, export):
        inputs = transform_logseq(export)

        assert [i.title for i in inputs] == [JOURNAL_TITLE, "Python", "February 30th, 2024"]

    def test_journal_newest_first(self, export):
        journal = transform_logseq(export)[0]
        headings = [n["children"][0]["text"] for n in root_children(journal) if n["type"] == "heading"]

        assert headings == ["May 15th, 2024", "May 14th, 2024"]
        assert extract_plain_text(journal.content).index("newer") < extract_plain_text(
            journal.content
        ).index("older")

    def test_page_content_extracts(self, export):
        page = transform_logseq(export)[1]

        assert extract_plain_text(page.content) == "PythonDecoratorswrap functionstips"

    def test_abbreviated_journal_pages_merge(self):
        export = {
            "blocks": [
                {"id": "j1", "page-name": "Jan 1st, 2024", "children": [{"content": "older"}]},
                {"id": "j2", "page-name": "Sep 3rd, 2024", "children": [{"content": "newer"}]},
            ]
        }

        inputs = transform_logseq(export)

        assert [i.title for i in inputs] == [JOURNAL_TITLE]
        headings = [
            n["children"][0]["text"] for n in root_children(inputs[0]) if n["type"] == "heading"
        ]
        assert headings == ["Sep 3rd, 2024", "Jan 1st, 2024"]

    def test_no_journal_block_without_journal_pages(self):
        inputs = transform_logseq({"blocks": [{"id": "p", "page-name": "Only"}]})
        assert [i.title for i in inputs] == ["Only"]

    def test_malformed_export(self):
        assert transform_logseq({}) == []
        assert transform_logseq({"blocks": "nope"}) == []
        assert transform_logseq([]) == []


@pytest.mark.unit
@pytest.mark.asyncio
class TestImporter:
    async def test_import(self, engine, export, memory_store):
        created = await engine.importer.import_json(export, "user_1")
        await engine.background.drain()

        assert [b.title for b in created] == [JOURNAL_TITLE, "Python", "February 30th, 2024"]
        assert len(await memory_store.list_blocks("user_1")) == 3

    async def test_import_raw_json(self, engine, export):
        created = await engine.importer.import_json(json.dumps(export).encode(), "user_1")
        assert len(created) == 3

    async def test_invalid_json(self, engine):
        with pytest.raises(ValidationError, match="Invalid Logseq export"):
            await engine.importer.import_json("{not json", "user_1")
