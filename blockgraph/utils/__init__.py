"""Utility modules for BlockGraph."""

from blockgraph.utils.exceptions import (
    AnswerGenerationError,
    BlockGraphError,
    ConfigurationError,
    EmbeddingError,
    LLMError,
    NotFoundError,
    OperationTimeoutError,
    PersistenceError,
    SimilarityError,
    StoreUnavailableError,
    ValidationError,
)
from blockgraph.utils.id_generator import (
    generate_activity_id,
    generate_block_id,
    generate_context_id,
    generate_feedback_id,
    generate_interaction_id,
    generate_project_id,
)
from blockgraph.utils.logger import get_logger, setup_logging

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # ID Generators
    "generate_block_id",
    "generate_project_id",
    "generate_interaction_id",
    "generate_context_id",
    "generate_activity_id",
    "generate_feedback_id",
    # Exceptions
    "BlockGraphError",
    "ValidationError",
    "SimilarityError",
    "NotFoundError",
    "ConfigurationError",
    "EmbeddingError",
    "LLMError",
    "AnswerGenerationError",
    "PersistenceError",
    "StoreUnavailableError",
    "OperationTimeoutError",
]
