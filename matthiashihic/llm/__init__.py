"""
Language-model backend used by ``matthiashihic run``.

Key components:
- base: ``BaseLLM`` streaming interface, ``ChatMessage`` and errors
- factory: provider registration and instantiation
- openai_llm: OpenAI chat-completions provider (httpx streaming)
"""

from .base import BackendError, BaseLLM, ChatMessage, LLMError
from .factory import create_llm, register_provider

__all__ = [
    "BackendError",
    "BaseLLM",
    "ChatMessage",
    "LLMError",
    "create_llm",
    "register_provider",
]
