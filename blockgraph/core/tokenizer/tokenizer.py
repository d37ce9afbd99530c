"""
Token counting for the embedding input guard.

Uses tiktoken for accurate OpenAI-compatible token counting with a
character-based estimate as fast path.
"""

import tiktoken

from blockgraph.config import TokenizerConfig


class Tokenizer:
    """
    Token counter used before texts are sent to the embedding provider.

    Usage:
        tokenizer = Tokenizer()
        count = tokenizer.count_tokens("Hello world")
        ok = tokenizer.fits_embedding_limit("Long text...")
    """

    def __init__(self, config: TokenizerConfig | None = None):
        self.config = config or TokenizerConfig()
        self._encoder: tiktoken.Encoding | None = None

    @property
    def encoder(self) -> tiktoken.Encoding:
        """Lazy-load tiktoken encoder."""
        if self._encoder is None:
            self._encoder = tiktoken.get_encoding(self.config.model)
        return self._encoder

    def count_tokens(self, text: str) -> int:
        """
        Count tokens accurately using tiktoken.

        Falls back to the character estimate when the provider is "approximate".
        """
        if not text:
            return 0

        if self.config.provider == "approximate":
            return self.estimate_tokens(text)

        return len(self.encoder.encode(text))

    def estimate_tokens(self, text: str) -> int:
        """Approximate token count from the configured chars_per_token ratio."""
        if not text:
            return 0
        return int(len(text) / self.config.chars_per_token)

    def fits_embedding_limit(self, text: str) -> bool:
        """
        Check whether text can be sent to the embedding provider.

        Two-stage check:
        1. Fast estimate accepts texts well below the limit
        2. Accurate count only near the limit

        Args:
            text: Plain text about to be embedded

        Returns:
            True if text is at most embedding_token_limit tokens
        """
        if not text:
            return True

        limit = self.config.embedding_token_limit

        if self.estimate_tokens(text) < limit * 0.8:
            return True

        return self.count_tokens(text) <= limit
