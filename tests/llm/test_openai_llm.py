"""Tests for the OpenAI provider and the provider factory."""

import json

import httpx
import pytest

from matthiashihic.llm import BackendError, ChatMessage, LLMError, create_llm
from matthiashihic.llm.factory import get_provider_class
from matthiashihic.llm.openai_llm import OpenAILLM, iter_sse_content


def sse_body(*chunks, done=True):
    lines = [
        "data: " + json.dumps({"choices": [{"delta": {"content": chunk}}]})
        for chunk in chunks
    ]
    if done:
        lines.append("data: [DONE]")
    return "\n\n".join(lines) + "\n\n"


def make_llm(handler, **config):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return OpenAILLM("test", "gpt-4", {"api_key": "sk-test", "client": client, **config})


MESSAGES = [ChatMessage("system", "be an interpreter"), ChatMessage("user", "say hi")]


class TestChatMessage:
    """Test message serialization."""

    def test_to_dict(self):
        assert ChatMessage("user", "hi").to_dict() == {"role": "user", "content": "hi"}

    def test_to_dict_with_name(self):
        assert ChatMessage("user", "hi", name="bob").to_dict()["name"] == "bob"


class TestIterSseContent:
    """Test server-sent event parsing."""

    def test_skips_non_data_lines_and_stops_at_done(self):
        lines = [
            "",
            ": comment",
            'data: {"choices":[{"delta":{"content":"a"}}]}',
            'data: {"choices":[{"delta":{}}]}',
            "data: {broken",
            'data: {"choices":[{"delta":{"content":"b"}}]}',
            "data: [DONE]",
            'data: {"choices":[{"delta":{"content":"c"}}]}',
        ]
        assert list(iter_sse_content(lines)) == ["a", "b"]

    def test_stream_without_done(self):
        assert list(iter_sse_content(['data: {"choices":[{"delta":{"content":"x"}}]}'])) == ["x"]


class TestOpenAILLM:
    """Test the streaming chat request."""

    def test_streams_chunks(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text=sse_body("Hel", "lo", "!"))

        llm = make_llm(handler)
        assert list(llm.stream_chat(MESSAGES)) == ["Hel", "lo", "!"]

        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.openai.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        payload = json.loads(request.content)
        assert payload["model"] == "gpt-4"
        assert payload["stream"] is True
        assert payload["messages"] == [
            {"role": "system", "content": "be an interpreter"},
            {"role": "user", "content": "say hi"},
        ]

    def test_custom_api_base_and_options(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text=sse_body("ok"))

        llm = make_llm(handler, api_base="http://localhost:9000/v1/", organization="org-1")
        assert llm.generate_chat(MESSAGES, temperature=0.2) == "ok"
        assert str(requests[0].url) == "http://localhost:9000/v1/chat/completions"
        assert requests[0].headers["OpenAI-Organization"] == "org-1"
        assert json.loads(requests[0].content)["temperature"] == 0.2

    def test_error_status_raises_backend_error(self):
        def handler(request):
            return httpx.Response(401, json={"error": {"message": "bad key"}})

        with pytest.raises(BackendError) as exc_info:
            list(make_llm(handler).stream_chat(MESSAGES))
        assert exc_info.value.status_code == 401
        assert "bad key" in str(exc_info.value)

    def test_transport_failure_raises_backend_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(BackendError) as exc_info:
            list(make_llm(handler).stream_chat(MESSAGES))
        assert isinstance(exc_info.value.original_error, httpx.ConnectError)

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        assert OpenAILLM("test", "gpt-4").api_key == "sk-env"

    def test_close_releases_owned_client(self):
        llm = OpenAILLM("test", "gpt-4", {"api_key": "sk-test"})
        client = llm._get_http_client()
        with llm:
            pass
        assert client.is_closed
        assert llm._http_client is None

    def test_close_keeps_injected_client_open(self):
        llm = make_llm(lambda request: httpx.Response(200, text=sse_body("ok")))
        with llm:
            assert llm.generate_chat(MESSAGES) == "ok"
        assert not llm._http_client.is_closed

    def test_missing_api_key(self):
        with pytest.raises(LLMError) as exc_info:
            OpenAILLM("test", "gpt-4")
        assert "API key not found" in str(exc_info.value)


class TestFactory:
    """Test provider lookup."""

    def test_openai_is_registered(self):
        assert get_provider_class("OpenAI") is OpenAILLM

    def test_create_llm(self):
        llm = create_llm("prog", "openai", "gpt-4o", {"api_key": "sk-x"})
        assert isinstance(llm, OpenAILLM)
        assert llm.model == "gpt-4o"
        assert llm.get_provider_name() == "openai"

    def test_unknown_provider(self):
        with pytest.raises(LLMError) as exc_info:
            create_llm("prog", "nope", "m")
        assert "Unknown LLM provider 'nope'" in str(exc_info.value)
