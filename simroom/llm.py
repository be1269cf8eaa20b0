"""LLM client: OpenAI-compatible chat completions and text-to-speech.

The chat flow depends only on the ChatLLM protocol:

    async def complete(stage, messages, *, json_output=False, temperature=None) -> str
    def stream(stage, messages, *, json_output=False, temperature=None) -> AsyncIterator[str]

`stage` names the calling step ("assistant", "player_keypoints",
"character_keypoints", "mood", "analysis"); it is used for logging and
tracing only. `messages` is the usual list of {"role", "content"} dicts.

OpenAIChat is the production implementation, built from an AISetting row.
Tests use StubLLM (defined in the test helpers) instead.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

import httpx

from simroom.config import get_settings
from simroom.models import AISetting, GlobalPrompts

logger = logging.getLogger(__name__)
trace_logger = logging.getLogger("simroom.trace")

# Reasoning-class models reject temperature and response_format.
REASONING_MODEL_PREFIXES = ("o1", "o3", "o4", "gpt-5")


def is_reasoning_model(model: str) -> bool:
    return model.startswith(REASONING_MODEL_PREFIXES)


# ---------------------------------------------------------------------------
# Protocol: every chat implementation must match these signatures
# ---------------------------------------------------------------------------

class ChatLLM(Protocol):
    async def complete(
        self, stage: str, messages: list[dict[str, str]], *,
        json_output: bool = False, temperature: float | None = None,
    ) -> str: ...

    def stream(
        self, stage: str, messages: list[dict[str, str]], *,
        json_output: bool = False, temperature: float | None = None,
    ) -> AsyncIterator[str]: ...


# ---------------------------------------------------------------------------
# OpenAIChat: connects to the provider
# ---------------------------------------------------------------------------

class OpenAIChat:
    """Async client for POST {base_url}/chat/completions and /audio/speech.

    Args:
        api_key:   Bearer token from the AI setting.
        model:     Model identifier, e.g. "gpt-4o".
        base_url:  Provider base URL. Defaults to OPENAI_BASE_URL.
        timeout:   HTTP timeout in seconds. Defaults to LLM_TIMEOUT.
        trace:     Global prompt record; when tracing is enabled every call
                   is logged on the "simroom.trace" logger.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout: float | None = None,
        trace: GlobalPrompts | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key
        self.model = model
        self._base_url = (base_url or settings.openai_base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.llm_timeout
        self._tts_model = settings.tts_model
        self._trace = trace if trace is not None and trace.tracing_enabled else None

    @property
    def reasoning(self) -> bool:
        return is_reasoning_model(self.model)

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def _build_body(
        self, messages: list[dict[str, str]], json_output: bool,
        temperature: float | None, stream: bool,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"model": self.model, "messages": messages}
        if not self.reasoning:
            if temperature is not None:
                body["temperature"] = temperature
            if json_output:
                body["response_format"] = {"type": "json_object"}
        if stream:
            body["stream"] = True
        return body

    def _log_trace(self, stage: str, messages: list[dict[str, str]], output: str) -> None:
        if self._trace is None:
            return
        trace_logger.info(
            "run=%s project=%s model=%s input=%s output=%s",
            stage, self._trace.tracing_project or "default", self.model,
            json.dumps(messages, ensure_ascii=False), json.dumps(output, ensure_ascii=False),
        )

    async def complete(
        self, stage: str, messages: list[dict[str, str]], *,
        json_output: bool = False, temperature: float | None = None,
    ) -> str:
        url = f"{self._base_url}/chat/completions"
        body = self._build_body(messages, json_output, temperature, stream=False)
        logger.debug("llm call stage=%s model=%s messages=%d", stage, self.model, len(messages))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM provider at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(_status_message(e.response.status_code, e.response.text)) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM provider timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMError(f"Connection to LLM provider failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("LLM provider returned a non-JSON response") from e
        text = _parse_completion(data)
        logger.debug("llm response stage=%s len=%d", stage, len(text))
        self._log_trace(stage, messages, text)
        return text

    async def stream(
        self, stage: str, messages: list[dict[str, str]], *,
        json_output: bool = False, temperature: float | None = None,
    ) -> AsyncIterator[str]:
        """Yield content deltas as the provider streams them (SSE `data:` lines)."""
        url = f"{self._base_url}/chat/completions"
        body = self._build_body(messages, json_output, temperature, stream=True)
        logger.debug("llm stream stage=%s model=%s messages=%d", stage, self.model, len(messages))

        parts: list[str] = []
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                async with client.stream("POST", url, json=body, headers=self._headers()) as resp:
                    if resp.status_code >= 400:
                        detail = (await resp.aread()).decode("utf-8", "replace")
                        raise LLMError(_status_message(resp.status_code, detail))
                    async for line in resp.aiter_lines():
                        chunk = _parse_stream_line(line)
                        if chunk is None:
                            continue
                        if chunk is _DONE:
                            break
                        parts.append(chunk)
                        yield chunk
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM provider at {self._base_url}") from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM provider timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMError(f"Connection to LLM provider failed: {e}") from e

        logger.debug("llm stream done stage=%s len=%d", stage, sum(len(p) for p in parts))
        self._log_trace(stage, messages, "".join(parts))

    async def speech(
        self, text: str, voice: str = "alloy", speed: float = 1.0, audio_format: str = "mp3",
    ) -> AsyncIterator[bytes]:
        """Stream synthesized audio bytes for `text`."""
        url = f"{self._base_url}/audio/speech"
        body = {
            "model": self._tts_model,
            "input": text,
            "voice": voice,
            "speed": speed,
            "response_format": audio_format,
        }
        logger.debug("tts call voice=%s len=%d", voice, len(text))
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                async with client.stream("POST", url, json=body, headers=self._headers()) as resp:
                    if resp.status_code >= 400:
                        detail = (await resp.aread()).decode("utf-8", "replace")
                        raise LLMError(_status_message(resp.status_code, detail))
                    async for data in resp.aiter_bytes():
                        yield data
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM provider at {self._base_url}") from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM provider timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMError(f"Connection to LLM provider failed: {e}") from e


def client_for(setting: AISetting, prompts: GlobalPrompts | None = None) -> OpenAIChat:
    """Build the provider client for a simulation's AI setting."""
    return OpenAIChat(api_key=setting.api_key, model=setting.model or "gpt-4o", trace=prompts)


# ---------------------------------------------------------------------------
# Wire-format helpers
# ---------------------------------------------------------------------------

_DONE = object()


def _parse_completion(data: dict) -> str:
    choices = data.get("choices")
    if not choices or "message" not in choices[0]:
        raise LLMError("Unexpected response format from LLM provider")
    return choices[0]["message"].get("content") or ""


def _parse_stream_line(line: str) -> Any:
    """Return the content delta of one SSE line, _DONE, or None to skip."""
    line = line.strip()
    if not line.startswith("data:"):
        return None
    payload = line[len("data:"):].strip()
    if payload == "[DONE]":
        return _DONE
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        logger.warning("Skipping malformed stream line: %r", payload[:200])
        return None
    choices = data.get("choices") or []
    if not choices:
        return None
    content = (choices[0].get("delta") or {}).get("content")
    return content or None


def _status_message(status: int, body: str) -> str:
    detail = ""
    try:
        detail = json.loads(body).get("error", {}).get("message", "")
    except (ValueError, TypeError, AttributeError) as e:
        logger.debug("No error message in provider body (%s): %r", e, str(body)[:200])
    if detail:
        return f"LLM provider returned HTTP {status}: {detail}"
    return f"LLM provider returned HTTP {status}"


# ---------------------------------------------------------------------------
# LLMError: raised for all connection and protocol failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM provider cannot be reached or returns an error."""
