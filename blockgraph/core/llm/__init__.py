"""
LLM provider abstraction layer for answer generation.

Supported providers:
- OpenAI (official SDK)
- Ollama (native SDK)
"""
from blockgraph.core.llm.base import LLMProvider
from blockgraph.core.llm.ollama import OllamaLLM
from blockgraph.core.llm.openai import OpenAILLM

__all__ = [
    "LLMProvider",
    "OllamaLLM",
    "OpenAILLM",
]
