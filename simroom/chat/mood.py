"""Mood evaluation: stream the evaluator, surface its analysis as it arrives."""

import logging
from collections.abc import AsyncIterator

from pydantic import BaseModel

from simroom.llm import ChatLLM
from simroom.parsing import parse_json_object, partial_analysis
from simroom.prompts import render

logger = logging.getLogger(__name__)


class MoodResult(BaseModel):
    analysis: str = ""
    mood_change: str | None = None
    new_mood_level: float | None = None
    raw: str = ""


class MoodProgress(BaseModel):
    """One streamed step. `result` is set only on the final item."""

    analysis: str | None = None
    result: MoodResult | None = None


def _to_level(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip().rstrip("%"))
        except ValueError:
            return None
    return None


def parse_mood_result(raw: str) -> MoodResult:
    """Decode the final evaluator output. Raises ParseError."""
    data = parse_json_object(raw)
    change = data.get("mood_change")
    return MoodResult(
        analysis=str(data.get("analysis", "")),
        mood_change=None if change is None else str(change),
        new_mood_level=_to_level(data.get("new_mood_level")),
        raw=raw,
    )


async def evaluate_mood(
    llm: ChatLLM,
    template: str,
    variables: dict[str, str],
) -> AsyncIterator[MoodProgress]:
    """Stream a mood evaluation.

    Yields MoodProgress(analysis=...) whenever the partially parsed
    "analysis" text grows, then a final MoodProgress(result=...). Raises
    LLMError or ParseError.
    """
    prompt = render(template, variables)
    user_message = (
        f"Player message:\n{variables.get('PLAYER_MESSAGE', '')}\n\n"
        f"Character response:\n{variables.get('CHARACTER_RESPONSE', '')}"
    )
    raw = ""
    shown = ""
    async for chunk in llm.stream(
        "mood",
        [{"role": "system", "content": prompt}, {"role": "user", "content": user_message}],
        json_output=True,
        temperature=0,
    ):
        raw += chunk
        analysis = partial_analysis(raw)
        if analysis is not None and analysis != shown:
            shown = analysis
            yield MoodProgress(analysis=analysis)

    result = parse_mood_result(raw)
    logger.debug("mood evaluation change=%s level=%s", result.mood_change, result.new_mood_level)
    yield MoodProgress(analysis=result.analysis, result=result)
