from typing import Iterator, List

import pytest

from matthiashihic.llm.base import BaseLLM, ChatMessage


HELLO_SOURCE = 'hihi!\n"Hello, world!"\neat that java!\nignored junk\n'
TWO_ARGUMENT_SOURCE = 'hihi!\n"Check €1 and €2"\neat that java!\n'


class RecordingLLM(BaseLLM):
    """Backend double that replays fixed chunks and records every request."""

    def __init__(self, chunks=None, *, error: Exception = None):
        super().__init__("test", "fake-model", {})
        self.chunks = list(chunks or [])
        self.error = error
        self.requests: List[List[ChatMessage]] = []
        self.closed = False

    def stream_chat(self, messages, **kwargs) -> Iterator[str]:
        self.requests.append(list(messages))
        if self.error is not None:
            raise self.error
        yield from self.chunks

    def close(self):
        self.closed = True


def pytest_configure(config):
    """Register markers for pytest."""
    config.addinivalue_line("markers", "integration: spawns child interpreters")


@pytest.fixture
def hello_source():
    return HELLO_SOURCE


@pytest.fixture
def two_argument_source():
    return TWO_ARGUMENT_SOURCE


@pytest.fixture
def write_program(tmp_path):
    """Write program text to ``<tmp_path>/<name>`` and return the path."""

    def _write(text: str, name: str = "program.matthiashihic"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def recording_llm():
    return RecordingLLM


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Keep developer credentials and debug flags out of tests."""
    for name in (
        "OPENAI_API_KEY",
        "MATTHIASHIHIC_VERBOSE",
        "MATTHIASHIHIC_DEBUG",
        "MATTHIASHIHIC_RERAISE",
        "MATTHIASHIHIC_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
