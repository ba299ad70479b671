"""LLM module."""

from .llm_provider import ILLMProvider, LLMError, LLMProvider

__all__ = ["ILLMProvider", "LLMError", "LLMProvider"]
