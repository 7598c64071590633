"""Suggestion engines: external sources of textual fixes."""

from __future__ import annotations

import asyncio
import importlib.util
import logging
import os
import time
from typing import Protocol

from llmguardian.core.models import Finding
from llmguardian.fix.models import SuggestionContext, SuggestionResponse
from llmguardian.fix.parsing import parse_fix_response
from llmguardian.fix.prompts import build_prompt

logger = logging.getLogger("llmguardian.suggestion")


class SuggestionEngine(Protocol):
    name: str

    async def is_available(self) -> bool: ...

    async def generate_fix(self, finding: Finding, context: SuggestionContext) -> SuggestionResponse: ...


class EngineError(RuntimeError):
    pass


class PromptingEngine:
    """Shared prompt -> completion -> parse flow.

    Subclasses only implement ``_complete``; failures of any kind come
    back as an unsuccessful response rather than an exception.
    """

    name = "prompting"

    async def is_available(self) -> bool:
        raise NotImplementedError

    async def _complete(self, prompt: str) -> str:
        raise NotImplementedError

    async def generate_fix(self, finding: Finding, context: SuggestionContext) -> SuggestionResponse:
        start = time.monotonic()
        metadata = {"engine": self.name}
        try:
            text = await self._complete(build_prompt(finding, context))
        except asyncio.TimeoutError:
            metadata["duration_ms"] = int((time.monotonic() - start) * 1000)
            return SuggestionResponse(success=False, error="Suggestion engine timed out", metadata=metadata)
        except Exception as e:
            metadata["duration_ms"] = int((time.monotonic() - start) * 1000)
            return SuggestionResponse(success=False, error=str(e), metadata=metadata)

        metadata["duration_ms"] = int((time.monotonic() - start) * 1000)
        fix = parse_fix_response(text, finding)
        if fix is None:
            return SuggestionResponse(
                success=False,
                error="Failed to parse fix from response",
                raw_text=text,
                metadata=metadata,
            )
        return SuggestionResponse(success=True, fix=fix, raw_text=text, metadata=metadata)


class ClaudeCLIEngine(PromptingEngine):
    """Shells out to the ``claude`` CLI in print mode."""

    name = "claude-cli"

    def __init__(
        self,
        executable: str = "claude",
        timeout: float = 15.0,
        max_retries: int = 1,
        retry_delay: float = 1.0,
    ):
        self.executable = executable
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    async def is_available(self) -> bool:
        try:
            code, stdout, stderr = await self._run(["--version"], None, timeout=5.0)
        except (OSError, asyncio.TimeoutError):
            return False
        output = (stdout + stderr).lower()
        return code == 0 and ("claude" in output or "version" in output)

    async def _complete(self, prompt: str) -> str:
        last_error: Exception | None = None
        for attempt in range(self.max_retries + 1):
            try:
                code, stdout, stderr = await self._run(["--print"], prompt, timeout=self.timeout)
                if code != 0:
                    raise EngineError(f"claude exited with {code}: {stderr.strip()[:200]}")
                return stdout.strip()
            except asyncio.TimeoutError:
                # Retrying a timeout rarely helps.
                raise
            except (OSError, EngineError) as e:
                last_error = e
                logger.debug("claude attempt %d failed: %s", attempt + 1, e)
                if attempt < self.max_retries:
                    await asyncio.sleep(self.retry_delay)
        raise EngineError(str(last_error))

    async def _run(self, args: list[str], stdin: str | None, timeout: float) -> tuple[int, str, str]:
        proc = await asyncio.create_subprocess_exec(
            self.executable,
            *args,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(stdin.encode() if stdin is not None else None),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise
        return (
            proc.returncode if proc.returncode is not None else -1,
            stdout.decode(errors="replace"),
            stderr.decode(errors="replace"),
        )


class AnthropicEngine(PromptingEngine):
    """Calls the Anthropic Messages API directly."""

    name = "anthropic"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 2000,
        timeout: float = 15.0,
    ):
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = None

    def _get_client(self):
        """Lazy-initialize the Anthropic client."""
        if self._client is None:
            try:
                import anthropic
            except ImportError:
                raise ImportError(
                    "The anthropic engine requires the anthropic package. "
                    "Install with: pip install llm-guardian[ai]"
                )
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key, timeout=self.timeout)
        return self._client

    async def is_available(self) -> bool:
        return bool(self.api_key) and importlib.util.find_spec("anthropic") is not None

    async def _complete(self, prompt: str) -> str:
        client = self._get_client()
        response = await client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )


class NullEngine:
    """Engine that is never available."""

    name = "none"

    async def is_available(self) -> bool:
        return False

    async def generate_fix(self, finding: Finding, context: SuggestionContext) -> SuggestionResponse:
        return SuggestionResponse(success=False, error="No suggestion engine configured")


ENGINES = {
    "claude-cli": ClaudeCLIEngine,
    "anthropic": AnthropicEngine,
    "none": NullEngine,
}


def create_engine(name: str, model: str = "claude-sonnet-4-20250514", max_tokens: int = 2000, timeout: float = 15.0):
    """Build an engine from its configured name."""
    if name == "claude-cli":
        return ClaudeCLIEngine(timeout=timeout)
    if name == "anthropic":
        return AnthropicEngine(model=model, max_tokens=max_tokens, timeout=timeout)
    if name == "none":
        return NullEngine()
    raise ValueError(f"Unknown suggestion engine: {name}. Available: {', '.join(ENGINES)}")
