"""
Tests for Tokenizer class.

Tests cover:
1. Token counting (accurate and approximate)
2. Embedding input limit guard
3. Edge cases (empty, unicode, large text)
"""

import re
from unittest.mock import MagicMock, patch

import pytest

from blockgraph.config import TokenizerConfig
from blockgraph.core.tokenizer import Tokenizer


@pytest.fixture(autouse=True)
def encoding():
    """Word and punctuation encoder standing in for the downloaded tiktoken encoding."""
    fake = MagicMock()
    fake.encode.side_effect = lambda text: re.findall(r"\w+|[^\w\s]", text)
    with patch("tiktoken.get_encoding", return_value=fake) as mock:
        yield mock


class TestTokenCounting:
    """Tests for token counting functionality."""

    def test_count_tokens_simple(self):
        tokenizer = Tokenizer()
        count = tokenizer.count_tokens("Hello, world!")
        assert count > 0
        assert isinstance(count, int)

    def test_count_tokens_empty(self):
        assert Tokenizer().count_tokens("") == 0

    def test_count_tokens_unicode(self):
        assert Tokenizer().count_tokens("Hello, 世界! 🌍") > 0

    def test_count_tokens_long_text(self):
        long_text = "This is a test sentence. " * 1000
        assert Tokenizer().count_tokens(long_text) > 5000

    def test_approximate_provider(self):
        tokenizer = Tokenizer(TokenizerConfig(provider="approximate", chars_per_token=4.0))
        assert tokenizer.count_tokens("a" * 400) == 100

    def test_estimate_tokens(self):
        tokenizer = Tokenizer(TokenizerConfig(chars_per_token=2.0))
        assert tokenizer.estimate_tokens("abcdef") == 3
        assert tokenizer.estimate_tokens("") == 0

    def test_encoder_is_lazy(self, encoding):
        tokenizer = Tokenizer()
        assert tokenizer._encoder is None
        tokenizer.count_tokens("x")
        tokenizer.count_tokens("y")
        assert tokenizer._encoder is not None
        encoding.assert_called_once_with(tokenizer.config.model)


class TestEmbeddingLimit:
    """Tests for the embedding input guard."""

    def test_empty_text_fits(self):
        assert Tokenizer().fits_embedding_limit("") is True

    def test_short_text_skips_accurate_count(self):
        tokenizer = Tokenizer()
        with patch.object(tokenizer, "count_tokens") as mock_count:
            assert tokenizer.fits_embedding_limit("short note") is True
            mock_count.assert_not_called()

    def test_text_near_limit_uses_accurate_count(self):
        tokenizer = Tokenizer(TokenizerConfig(embedding_token_limit=100))
        text = "x" * 360  # estimate 90 tokens, above 80% of the limit
        with patch.object(tokenizer, "count_tokens", return_value=101) as mock_count:
            assert tokenizer.fits_embedding_limit(text) is False
            mock_count.assert_called_once_with(text)

    def test_text_at_limit_fits(self):
        tokenizer = Tokenizer(TokenizerConfig(embedding_token_limit=100))
        with patch.object(tokenizer, "count_tokens", return_value=100):
            assert tokenizer.fits_embedding_limit("x" * 360) is True

    def test_oversized_text(self):
        tokenizer = Tokenizer(TokenizerConfig(embedding_token_limit=50))
        assert tokenizer.fits_embedding_limit("word " * 500) is False
