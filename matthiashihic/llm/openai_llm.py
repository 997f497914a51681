"""OpenAI chat-completions provider."""

import json
import logging
import os
from typing import Any, Dict, Iterable, Iterator, List, Optional

import httpx

from ..lang import DEFAULT_API_BASE, DEFAULT_API_KEY_ENV
from .base import BackendError, BaseLLM, ChatMessage, LLMError
from .factory import register_provider

logger = logging.getLogger(__name__)


def iter_sse_content(lines: Iterable[str]) -> Iterator[str]:
    """
    Yield ``choices[0].delta.content`` from server-sent event lines.

    Non-``data:`` lines and undecodable payloads are skipped; ``[DONE]``
    ends the stream.
    """
    for line in lines:
        if not line.startswith("data: "):
            continue
        data_str = line[6:].strip()  # Remove 'data: ' prefix
        if data_str == "[DONE]":
            break
        try:
            data = json.loads(data_str)
        except ValueError:
            logger.debug("Skipping undecodable stream line: %r", data_str[:80])
            continue
        choices = data.get("choices") or []
        if not choices:
            continue
        content = (choices[0].get("delta") or {}).get("content")
        if content:
            yield content


class OpenAILLM(BaseLLM):
    """
    OpenAI LLM provider.

    Configuration:
        - api_key: OpenAI API key (defaults to the OPENAI_API_KEY env var)
        - api_base: Base URL for API (defaults to https://api.openai.com/v1)
        - organization: Optional organization ID
        - timeout: Request timeout in seconds (default: 60)
        - client: Preconfigured ``httpx.Client`` (mainly for tests)

    Example:
        >>> llm = OpenAILLM('program', 'gpt-4', {'api_key': 'sk-...'})
        >>> for chunk in llm.stream_chat([ChatMessage('user', 'say hi')]):
        ...     print(chunk, end='')
    """

    def __init__(self, name: str, model: str, config: Optional[Dict[str, Any]] = None):
        super().__init__(name, model, config)

        self.api_key = self.config.get("api_key") or os.environ.get(DEFAULT_API_KEY_ENV)
        if not self.api_key:
            raise LLMError(
                f"OpenAI API key not found for LLM '{name}'. "
                f"Set {DEFAULT_API_KEY_ENV} environment variable or provide 'api_key' in config.",
                provider="openai",
                model=model,
            )

        self.api_base = str(self.config.get("api_base") or DEFAULT_API_BASE).rstrip("/")
        self.organization = self.config.get("organization")
        self._http_client: Optional[httpx.Client] = self.config.get("client")
        # Injected clients belong to the caller
        self._owns_client = self._http_client is None

    def _get_http_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.Client(timeout=self.timeout)
        return self._http_client

    def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._http_client is not None and self._owns_client:
            self._http_client.close()
            self._http_client = None

    def _build_headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self.organization:
            headers["OpenAI-Organization"] = self.organization
        return headers

    def stream_chat(self, messages: List[ChatMessage], **kwargs: Any) -> Iterator[str]:
        """
        Stream chat completion.

        Args:
            messages: List of chat messages
            **kwargs: Additional parameters (temperature, max_tokens, top_p)

        Yields:
            Text chunks as they are generated

        Raises:
            BackendError: If the API call fails
        """
        client = self._get_http_client()

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [msg.to_dict() for msg in messages],
            "stream": True,
        }
        for option in ("temperature", "max_tokens", "top_p"):
            if option in kwargs:
                payload[option] = kwargs[option]

        logger.debug("POST %s/chat/completions model=%s", self.api_base, self.model)
        try:
            with client.stream(
                "POST",
                f"{self.api_base}/chat/completions",
                headers=self._build_headers(),
                json=payload,
            ) as response:
                if response.is_error:
                    response.read()
                    raise BackendError(
                        f"OpenAI API error ({response.status_code}): {response.text}",
                        provider="openai",
                        model=self.model,
                        status_code=response.status_code,
                    )
                yield from iter_sse_content(response.iter_lines())
        except httpx.HTTPError as e:
            raise BackendError(
                f"OpenAI chat streaming request failed: {e}",
                provider="openai",
                model=self.model,
                original_error=e,
            ) from e

    def get_provider_name(self) -> str:
        return "openai"


register_provider("openai", OpenAILLM)
