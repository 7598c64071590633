"""Tests for suggestion engines."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from llmguardian.core.models import Finding, Severity
from llmguardian.fix.models import SuggestionContext
from llmguardian.fix.suggestion import (
    AnthropicEngine,
    ClaudeCLIEngine,
    NullEngine,
    PromptingEngine,
    create_engine,
)

RESPONSE = """SEARCH:
```
console.log(x);
```

REPLACE:
```
// console.log(x);
```

EXPLANATION:
Comment out debug output.

CONFIDENCE:
0.8
"""


def _finding() -> Finding:
    return Finding(
        id="console-statement",
        severity=Severity.LOW,
        category="code-quality",
        file_path="/p/a.ts",
        line=1,
        message="console.log() statement found",
        evidence="console.log(x);",
    )


CONTEXT = SuggestionContext(file_content="console.log(x);\n", file_path="/p/a.ts", file_extension=".ts")


class ScriptedEngine(PromptingEngine):
    name = "scripted"

    def __init__(self, reply=None, error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    async def is_available(self) -> bool:
        return True

    async def _complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class TestPromptingEngine:
    def test_parsed_response(self):
        engine = ScriptedEngine(RESPONSE)
        response = asyncio.run(engine.generate_fix(_finding(), CONTEXT))

        assert response.success
        assert response.fix.search == "console.log(x);"
        assert response.fix.confidence == 0.8
        assert response.metadata["engine"] == "scripted"
        assert "console.log() statement found" in engine.prompts[0]

    def test_unparseable_response(self):
        response = asyncio.run(ScriptedEngine("Sorry, no idea.").generate_fix(_finding(), CONTEXT))

        assert not response.success
        assert response.error == "Failed to parse fix from response"
        assert response.raw_text == "Sorry, no idea."

    def test_errors_become_unsuccessful_responses(self):
        engine = ScriptedEngine(error=RuntimeError("rate limited"))
        response = asyncio.run(engine.generate_fix(_finding(), CONTEXT))

        assert not response.success
        assert response.error == "rate limited"

    def test_timeout_reported(self):
        engine = ScriptedEngine(error=asyncio.TimeoutError())
        response = asyncio.run(engine.generate_fix(_finding(), CONTEXT))

        assert not response.success
        assert "timed out" in response.error


def _process(returncode: int = 0, stdout: bytes = b"", stderr: bytes = b""):
    proc = MagicMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    proc.wait = AsyncMock(return_value=returncode)
    return proc


class TestClaudeCLIEngine:
    def test_missing_executable_is_unavailable(self):
        engine = ClaudeCLIEngine(executable="llm-guardian-no-such-binary")
        assert asyncio.run(engine.is_available()) is False

    def test_available_when_version_prints(self):
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=_process(0, b"1.0.3 (Claude Code)\n"))):
            assert asyncio.run(ClaudeCLIEngine().is_available()) is True

    def test_generate_fix_sends_prompt_on_stdin(self):
        proc = _process(0, RESPONSE.encode())
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)) as spawn:
            response = asyncio.run(ClaudeCLIEngine().generate_fix(_finding(), CONTEXT))

        assert response.success
        assert spawn.call_args.args[:2] == ("claude", "--print")
        sent = proc.communicate.call_args.args[0].decode()
        assert "console.log(x);" in sent

    def test_nonzero_exit_is_retried_then_reported(self):
        spawn = AsyncMock(return_value=_process(1, b"", b"not logged in"))
        with patch("asyncio.create_subprocess_exec", spawn):
            engine = ClaudeCLIEngine(max_retries=1, retry_delay=0)
            response = asyncio.run(engine.generate_fix(_finding(), CONTEXT))

        assert spawn.call_count == 2
        assert not response.success
        assert "not logged in" in response.error


class TestAnthropicEngine:
    def test_unavailable_without_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        assert asyncio.run(AnthropicEngine().is_available()) is False

    def test_joins_text_blocks(self):
        engine = AnthropicEngine(api_key="test-key")
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=MagicMock(content=[
            MagicMock(type="text", text=RESPONSE[:40]),
            MagicMock(type="text", text=RESPONSE[40:]),
        ]))
        engine._client = client

        response = asyncio.run(engine.generate_fix(_finding(), CONTEXT))

        assert response.success
        assert response.raw_text == RESPONSE
        assert client.messages.create.call_args.kwargs["model"] == engine.model


class TestNullEngine:
    def test_never_available(self):
        engine = NullEngine()
        assert asyncio.run(engine.is_available()) is False
        assert not asyncio.run(engine.generate_fix(_finding(), CONTEXT)).success


class TestCreateEngine:
    def test_known_names(self):
        assert isinstance(create_engine("claude-cli", timeout=3.0), ClaudeCLIEngine)
        assert isinstance(create_engine("anthropic"), AnthropicEngine)
        assert isinstance(create_engine("none"), NullEngine)

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown suggestion engine"):
            create_engine("gpt")
