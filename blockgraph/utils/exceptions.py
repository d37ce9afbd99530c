"""
Custom exception hierarchy for BlockGraph.

Provides structured error types for better error handling and debugging.
All exceptions inherit from BlockGraphError for easy catching, and each
carries a stable ``code`` that the HTTP layer returns to clients.
"""


class BlockGraphError(Exception):
    """
    Base exception for all BlockGraph errors.
    All custom exceptions should inherit from this class.
    """

    code = "internal_error"

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize BlockGraph error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ValidationError(BlockGraphError):
    """
    Validation errors.
    Raised when input validation fails or data is invalid.
    """

    code = "validation_error"


class SimilarityError(ValidationError):
    """
    Similarity computation errors.
    Raised for zero-magnitude or mismatched embedding vectors.
    """

    code = "similarity_error"


class NotFoundError(BlockGraphError):
    """
    Resource not found errors.
    Raised when a block or project doesn't exist or isn't owned by the caller.
    """

    code = "not_found"


class ConfigurationError(BlockGraphError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    code = "configuration_error"


class EmbeddingError(BlockGraphError):
    """
    Embedding generation errors.
    Raised when the embedding provider call fails or is misconfigured.
    """

    code = "embedding_error"


class LLMError(BlockGraphError):
    """
    LLM operation errors.
    Raised when LLM operations fail (API errors, empty responses, etc.).
    """

    code = "llm_error"


class AnswerGenerationError(LLMError):
    """Raised when a cited answer cannot be produced."""

    code = "answer_generation_error"


class PersistenceError(BlockGraphError):
    """
    Graph store operation errors.
    Raised when a graph query or write fails.
    """

    code = "persistence_error"


class StoreUnavailableError(PersistenceError):
    """Raised when the graph store cannot be reached."""

    code = "store_unavailable"


class OperationTimeoutError(BlockGraphError, TimeoutError):
    """
    Timeout errors.
    Raised when an embedding, LLM or graph call exceeds its time budget.
    """

    code = "timeout"
