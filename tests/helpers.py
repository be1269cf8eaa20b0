"""Shared test fixtures: a scripted LLM and a ready-to-play simulation."""

import json

import httpx

from simroom import storage
from simroom.llm import LLMError
from simroom.models import AISetting, Character, Chat, Mood, MoodBehavior, Simulation


class Broken:
    """A stream that yields `partial` and then raises `error`."""

    def __init__(self, partial, error):
        self.partial = partial
        self.error = error


class StubLLM:
    """Scripted ChatLLM. Responses are consumed per stage, in order.

    A response may be a string (complete() returns it, stream() yields it in
    small chunks), an exception instance, which is raised instead, or a
    Broken item that fails part way through a stream.
    """

    def __init__(self, **responses):
        self.responses = {stage: list(items) for stage, items in responses.items()}
        self.calls = []  # list of (stage, messages, kwargs)

    def _next(self, stage):
        queue = self.responses.get(stage)
        if not queue:
            raise AssertionError(f"unexpected LLM call for stage {stage!r}")
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def stages(self):
        return [c[0] for c in self.calls]

    async def complete(self, stage, messages, *, json_output=False, temperature=None):
        self.calls.append((stage, messages, {"json_output": json_output, "temperature": temperature}))
        item = self._next(stage)
        if isinstance(item, Broken):
            raise item.error
        return item

    async def stream(self, stage, messages, *, json_output=False, temperature=None):
        self.calls.append((stage, messages, {"json_output": json_output, "temperature": temperature}))
        item = self._next(stage)
        text = item.partial if isinstance(item, Broken) else item
        for i in range(0, len(text), 8):
            yield text[i:i + 8]
        if isinstance(item, Broken):
            raise item.error


def matched(*numbers):
    return json.dumps({"matched_keypoints": list(numbers), "reasoning": "stub"})


def mood(level, change="increase", analysis="The player was helpful."):
    return json.dumps({"analysis": analysis, "mood_change": change, "new_mood_level": level})


def stream_error(message="boom"):
    return LLMError(message)


def make_simulation(
    character_keypoints=(),
    player_keypoints=(),
    max_interactions=5,
    intensity=50,
    with_prompts=True,
    mood_prompt=True,
):
    """Create mood, character, AI setting, prompts and a simulation."""
    storage.create_mood(Mood(name="Irritated", behaviors=[
        MoodBehavior(threshold_percentage=0, behavior_text="calm"),
        MoodBehavior(threshold_percentage=50, behavior_text="snappy"),
        MoodBehavior(threshold_percentage=80, behavior_text="furious"),
    ]))
    character = storage.create_character(Character(
        name="Martha", description="An upset customer.", mood="Irritated", intensity=intensity,
    ))
    setting = storage.create_ai_setting(AISetting(name="test", api_key="sk-test", model="gpt-4o"))
    if with_prompts:
        storage.reset_global_prompts()
        if not mood_prompt:
            storage.save_global_prompts({"mood_evaluator_prompt": ""})
    return storage.create_simulation(Simulation(
        name="Complaint call",
        objective="Calm the customer down",
        context="Support hotline",
        character_id=character.id,
        setting_id=setting.id,
        character_keypoints=list(character_keypoints),
        player_keypoints=list(player_keypoints),
        max_interactions=max_interactions,
    ))


def make_chat(simulation, **fields):
    return storage.create_chat(Chat(simulation_id=simulation.id, **fields))


# ── httpx stand-ins for OpenAIChat tests ─────────────────────


class FakeStream:
    """Stand-in for the context manager returned by AsyncClient.stream().

    `fail` is raised from aiter_lines() after every line was delivered,
    the way a dropped connection surfaces mid-stream.
    """

    def __init__(self, lines=(), status=200, body=b"", chunks=(), fail=None):
        self.status_code = status
        self._lines = list(lines)
        self._body = body
        self._chunks = list(chunks)
        self._fail = fail

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def aread(self):
        return self._body

    async def aiter_lines(self):
        for line in self._lines:
            yield line
        if self._fail is not None:
            raise self._fail

    async def aiter_bytes(self):
        for chunk in self._chunks:
            yield chunk
        if self._fail is not None:
            raise self._fail


def sse_lines(*deltas, done=True):
    lines = []
    for delta in deltas:
        lines.append("data: " + json.dumps({"choices": [{"delta": {"content": delta}}]}))
        lines.append("")
    if done:
        lines.append("data: [DONE]")
    return lines


def read_error(message="connection reset by peer"):
    return httpx.ReadError(message)
