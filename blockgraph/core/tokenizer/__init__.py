"""
Token counting used to keep oversized block text away from the embedding provider.
"""

from blockgraph.config import TokenizerConfig
from blockgraph.core.tokenizer.tokenizer import Tokenizer

__all__ = ["Tokenizer", "TokenizerConfig"]
