"""
ID generation utilities for BlockGraph.

Provides consistent ID generation for all entity types:
- Blocks: blk_xxx
- Projects: prj_xxx
- Telemetry nodes: tim_xxx, ctx_xxx, act_xxx, fbk_xxx
"""

from uuid import uuid4


def _prefixed(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex}"


def generate_block_id() -> str:
    """
    Generate unique Block ID.

    Returns:
        ID in format "blk_xxx" where xxx is 32 hex characters
    """
    return _prefixed("blk")


def generate_project_id() -> str:
    """
    Generate unique Project ID.

    Returns:
        ID in format "prj_xxx" where xxx is 32 hex characters
    """
    return _prefixed("prj")


def generate_interaction_id() -> str:
    """Generate TimeInteraction node ID ("tim_xxx")."""
    return _prefixed("tim")


def generate_context_id() -> str:
    """Generate Context node ID ("ctx_xxx")."""
    return _prefixed("ctx")


def generate_activity_id() -> str:
    """Generate Activity node ID ("act_xxx")."""
    return _prefixed("act")


def generate_feedback_id() -> str:
    """Generate Feedback node ID ("fbk_xxx")."""
    return _prefixed("fbk")
