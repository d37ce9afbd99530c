"""
Tests for ID generation utilities.
"""

import re

import pytest

from blockgraph.utils.id_generator import (
    generate_activity_id,
    generate_block_id,
    generate_context_id,
    generate_feedback_id,
    generate_interaction_id,
    generate_project_id,
)


@pytest.mark.parametrize(
    ("generator", "prefix"),
    [
        (generate_block_id, "blk"),
        (generate_project_id, "prj"),
        (generate_interaction_id, "tim"),
        (generate_context_id, "ctx"),
        (generate_activity_id, "act"),
        (generate_feedback_id, "fbk"),
    ],
)
def test_prefix_and_format(generator, prefix):
    assert re.fullmatch(rf"{prefix}_[0-9a-f]{{32}}", generator())


def test_ids_are_unique():
    ids = {generate_block_id() for _ in range(1000)}
    assert len(ids) == 1000
