"""
Tests for the Python renderer and the programs it generates.

Generated sources are imported as modules so their runtime behaviour can be
exercised without a network; the argument-shortage path is also checked in
a child interpreter.
"""

import ast
import importlib.util
import io
import json
import os
import subprocess
import sys

import httpx
import pytest

from matthiashihic.codegen import PythonRenderer, get_renderer, python_string_literal
from matthiashihic.compiler import compile_source, generate_source
from matthiashihic.errors import EncodingError, HihiError

MASK = b"matthiashihic-1234"


def load_module(path, name="generated_program"):
    spec = importlib.util.spec_from_file_location(name, path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def generate(tmp_path):
    """Render program text, write it to disk and import the result."""

    def _generate(text, *, credential="sk-test", **options):
        descriptor = compile_source(text, path="program.matthiashihic", credential=credential)
        source = PythonRenderer(mask=MASK, **options).render(descriptor)
        path = tmp_path / "program.py"
        path.write_text(source, encoding="utf-8")
        return source, path, load_module(path)

    return _generate


class TestPythonStringLiteral:
    """Test string literal escaping."""

    @pytest.mark.parametrize(
        "text",
        [
            "plain",
            'say "hi"',
            "back\\slash",
            "tab\there",
            "bell\x07",
            "del\x7f",
            "nbsp\xa0 and line sep\u2028",
            "cost €5 ✓ 🚀",
            "",
        ],
    )
    def test_literal_evaluates_to_the_original_text(self, text):
        literal = python_string_literal(text)
        assert ast.literal_eval(literal) == text

    def test_literal_is_single_line(self):
        assert "\n" not in python_string_literal("a\nb\rc d")

    def test_printable_unicode_is_kept_verbatim(self):
        assert python_string_literal("€") == '"€"'

    def test_lone_surrogate_is_rejected(self):
        with pytest.raises(EncodingError) as exc_info:
            python_string_literal("bad \ud800", statement="bad \ud800")
        assert exc_info.value.character == "\ud800"
        assert "U+D800" in exc_info.value.message


class TestRenderer:
    """Test source generation."""

    def test_registry_returns_python_renderer(self):
        assert isinstance(get_renderer("python"), PythonRenderer)

    def test_unknown_target(self):
        with pytest.raises(HihiError):
            get_renderer("cobol")

    def test_generated_source_compiles(self, two_argument_source):
        source = generate_source(compile_source(two_argument_source, credential="sk-x"))
        compile(source, "program.py", "exec")
        assert source.startswith("#!/usr/bin/env python3\n")

    def test_statements_are_embedded_as_data(self, generate, two_argument_source):
        _, _, module = generate(two_argument_source)
        assert module.STATEMENTS == (("Check ", 1, " and ", 2),)
        assert module.REQUIRED_ARGUMENTS == 2
        assert module.MODEL == "gpt-4"

    def test_special_characters_survive(self, generate):
        _, _, module = generate('hihi!\n"a\\b\tc €€ \x07 {{ x }}"\neat that java!')
        assert module.STATEMENTS == (("a\\b\tc € \x07 {{ x }}",),)

    def test_zero_statement_program(self, generate):
        _, _, module = generate("hihi!\neat that java!")
        assert module.STATEMENTS == ()
        assert module.render_instructions([]) == ""

    def test_empty_statement_renders_empty_tuple(self, generate):
        _, _, module = generate('hihi!\n""\n"x"\neat that java!')
        assert module.STATEMENTS == ((), ("x",))
        assert module.render_instructions([]) == "\nx"

    def test_model_and_api_base(self, tmp_path):
        descriptor = compile_source(
            'hihi!\n"x"\neat that java!',
            model="gpt-4o",
            api_base="http://localhost:8080/v1/",
            credential="k",
        )
        path = tmp_path / "custom.py"
        path.write_text(PythonRenderer().render(descriptor), encoding="utf-8")
        module = load_module(path, "custom_program")
        assert module.MODEL == "gpt-4o"
        assert module.API_BASE == "http://localhost:8080/v1"


class TestCredentialEmbedding:
    """Test credential obfuscation and lookup order."""

    def test_credential_is_not_stored_in_plain_text(self, generate):
        source, _, _ = generate('hihi!\n"x"\neat that java!', credential="sk-very-secret")
        assert "sk-very-secret" not in source

    def test_embedded_credential_round_trips(self, generate):
        _, _, module = generate('hihi!\n"x"\neat that java!', credential="sk-very-secret")
        assert module.resolve_api_key() == "sk-very-secret"

    def test_environment_overrides_embedded_credential(self, generate, monkeypatch):
        _, _, module = generate('hihi!\n"x"\neat that java!')
        monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")
        assert module.resolve_api_key() == "sk-from-env"

    def test_custom_environment_variable(self, generate, monkeypatch):
        _, _, module = generate('hihi!\n"x"\neat that java!', api_key_env="MY_KEY")
        monkeypatch.setenv("MY_KEY", "sk-mine")
        assert module.resolve_api_key() == "sk-mine"

    def test_missing_credential_exits_one(self, generate, capsys):
        _, _, module = generate('hihi!\n"x"\neat that java!', credential=None)
        assert module.main(stdin=io.StringIO(), stdout=io.StringIO()) == 1
        assert "No API key found" in capsys.readouterr().err


class TestGeneratedRuntime:
    """Test the runtime contract of generated programs."""

    def test_arguments_are_substituted(self, generate, two_argument_source, monkeypatch):
        _, _, module = generate(two_argument_source)
        sent = {}

        def fake_stream_reply(api_key, instructions, out):
            sent["api_key"] = api_key
            sent["instructions"] = instructions
            out.write("done\n")

        monkeypatch.setattr(module, "stream_reply", fake_stream_reply)
        stdout = io.StringIO()
        assert module.main(stdin=io.StringIO("a\nb\n"), stdout=stdout) == 0
        assert sent == {"api_key": "sk-test", "instructions": "Check a and b"}
        assert stdout.getvalue() == "done\n"

    def test_extra_lines_are_not_read(self, generate, two_argument_source):
        _, _, module = generate(two_argument_source)
        stdin = io.StringIO("a\r\nb\nc\n")
        assert module.read_arguments(stdin, 2) == ["a", "b"]
        assert stdin.read() == "c\n"

    def test_too_few_lines_exit_two(self, generate, two_argument_source, capsys):
        _, _, module = generate(two_argument_source)
        assert module.main(stdin=io.StringIO("only one\n"), stdout=io.StringIO()) == 2
        assert "Expected 2 arguments from stdin, got 1" in capsys.readouterr().err

    def test_terminal_stdin_exit_two(self, generate, two_argument_source, capsys):
        _, _, module = generate(two_argument_source)

        class Terminal(io.StringIO):
            def isatty(self):
                return True

        assert module.main(stdin=Terminal(), stdout=io.StringIO()) == 2
        assert "expects 2 line(s) from stdin" in capsys.readouterr().err

    def test_iter_content_parses_server_sent_events(self, generate):
        _, _, module = generate('hihi!\n"x"\neat that java!')
        lines = [
            ": keep-alive",
            'data: {"choices":[{"delta":{"role":"assistant"}}]}',
            'data: {"choices":[{"delta":{"content":"Hel"}}]}',
            "data: not json",
            'data: {"choices":[]}',
            'data: {"choices":[{"delta":{"content":"lo"}}]}',
            "data: [DONE]",
            'data: {"choices":[{"delta":{"content":"late"}}]}',
        ]
        assert list(module.iter_content(lines)) == ["Hel", "lo"]

    @pytest.mark.integration
    def test_child_process_argument_shortage(self, generate, two_argument_source):
        _, path, _ = generate(two_argument_source)
        completed = subprocess.run(
            [sys.executable, str(path)],
            input="a\n",
            capture_output=True,
            text=True,
            env=dict(os.environ),
            timeout=60,
        )
        assert completed.returncode == 2
        assert "Expected 2 arguments from stdin, got 1" in completed.stderr
        assert completed.stdout == ""


class TestGeneratedBackendRequest:
    """Test the streaming request made by generated programs."""

    @pytest.fixture
    def backend(self, monkeypatch):
        """Route the generated program's ``httpx.Client`` to a mock handler."""
        real_client = httpx.Client
        requests = []
        state = {"handler": None}

        def handler(request):
            requests.append(request)
            return state["handler"](request)

        def mock_client(**kwargs):
            return real_client(transport=httpx.MockTransport(handler), **kwargs)

        monkeypatch.setattr(httpx, "Client", mock_client)

        def use(response_handler):
            state["handler"] = response_handler
            return requests

        return use

    @staticmethod
    def sse(*chunks):
        lines = [
            "data: " + json.dumps({"choices": [{"delta": {"content": chunk}}]})
            for chunk in chunks
        ]
        return "\n\n".join(lines + ["data: [DONE]"]) + "\n\n"

    def test_streams_reply_to_stdout(self, generate, two_argument_source, backend):
        _, _, module = generate(two_argument_source)
        requests = backend(lambda request: httpx.Response(200, text=self.sse("Hel", "lo")))
        stdout = io.StringIO()

        assert module.main(stdin=io.StringIO("a\nb\n"), stdout=stdout) == 0
        assert stdout.getvalue() == "Hello\n"

        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.openai.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        payload = json.loads(request.content)
        assert payload["model"] == module.MODEL
        assert payload["stream"] is True
        assert payload["messages"] == [
            {"role": "system", "content": module.SYSTEM_PROMPT},
            {"role": "user", "content": "Check a and b"},
        ]

    def test_each_chunk_is_flushed(self, generate, backend):
        _, _, module = generate('hihi!\n"x"\neat that java!')
        backend(lambda request: httpx.Response(200, text=self.sse("a", "b", "c")))

        class Recorder(io.StringIO):
            def __init__(self):
                super().__init__()
                self.flushed = []

            def flush(self):
                self.flushed.append(self.getvalue())

        stdout = Recorder()
        assert module.main(stdin=io.StringIO(), stdout=stdout) == 0
        assert stdout.flushed == ["a", "ab", "abc", "abc\n"]

    def test_error_status_exits_one(self, generate, backend, capsys):
        _, _, module = generate('hihi!\n"x"\neat that java!')
        backend(lambda request: httpx.Response(401, json={"error": {"message": "bad key"}}))
        stdout = io.StringIO()

        assert module.main(stdin=io.StringIO(), stdout=stdout) == 1
        err = capsys.readouterr().err
        assert err.startswith("Error: OpenAI API error (401)")
        assert "bad key" in err
        assert stdout.getvalue() == ""

    def test_transport_failure_exits_one(self, generate, backend, capsys):
        _, _, module = generate('hihi!\n"x"\neat that java!')

        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        backend(refuse)
        assert module.main(stdin=io.StringIO(), stdout=io.StringIO()) == 1
        assert "Error: connection refused" in capsys.readouterr().err
