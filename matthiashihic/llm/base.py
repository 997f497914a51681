"""Base LLM interface and message types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional


@dataclass
class ChatMessage:
    """A single message in a chat conversation."""

    role: str  # "system", "user", "assistant"
    content: str
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format for API calls."""
        result = {"role": self.role, "content": self.content}
        if self.name:
            result["name"] = self.name
        return result


class LLMError(Exception):
    """Base exception for LLM-related errors."""

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.model = model
        self.status_code = status_code
        self.original_error = original_error


class BackendError(LLMError):
    """The backend was unreachable or answered with an error."""


class BaseLLM(ABC):
    """
    Abstract base class for LLM providers.

    The single required operation takes ordered chat messages and returns a
    lazy, finite iterator of reply chunks.  Iterators are not restartable:
    each call to :meth:`stream_chat` issues exactly one request.
    """

    def __init__(
        self,
        name: str,
        model: str,
        config: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the LLM instance.

        Args:
            name: Logical name for this LLM instance
            model: Model identifier (e.g., "gpt-4", "gpt-4o")
            config: Provider-specific configuration including:
                - timeout: Request timeout in seconds (default 60)
                - api_key: API key (or use environment variable)
                - api_base: Override default API base URL
        """
        self.name = name
        self.model = model
        self.config = config or {}
        self.timeout = self.config.get("timeout", 60.0)

    @abstractmethod
    def stream_chat(self, messages: List[ChatMessage], **kwargs: Any) -> Iterator[str]:
        """
        Stream a chat completion.

        Args:
            messages: Ordered chat messages (system, user)
            **kwargs: Provider-specific request parameters

        Yields:
            Text chunks as they are received

        Raises:
            BackendError: If the request fails
        """

    def generate_chat(self, messages: List[ChatMessage], **kwargs: Any) -> str:
        """Collect a streamed reply into one string."""
        return "".join(self.stream_chat(messages, **kwargs))

    def close(self) -> None:
        """Release transport resources held by the provider."""

    def __enter__(self) -> "BaseLLM":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def get_provider_name(self) -> str:
        return self.__class__.__name__

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, model={self.model!r})"
