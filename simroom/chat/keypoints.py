"""Keypoint tracking and LLM keypoint evaluation.

Tracker keys are "<side>_<n>" where side is "character" or "player" and n is
the 1-based keypoint number shown to the evaluator. The key set is fixed when
a session is loaded; evaluations only flip values to True.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import BaseModel

from simroom.llm import ChatLLM
from simroom.models import ChatMessage, Simulation
from simroom.parsing import parse_json_object
from simroom.prompts import enumerate_keypoints

logger = logging.getLogger(__name__)

SIDES = ("character", "player")


class KeypointEvaluation(BaseModel):
    raw: str
    matched: list[str]


def tracker_key(side: str, number: int) -> str:
    return f"{side}_{number}"


def build_tracker(simulation: Simulation, messages: Iterable[ChatMessage] = ()) -> dict[str, bool]:
    """One False entry per configured keypoint, then True for every historical match."""
    tracker: dict[str, bool] = {}
    for number in range(1, len(simulation.character_keypoints) + 1):
        tracker[tracker_key("character", number)] = False
    for number in range(1, len(simulation.player_keypoints) + 1):
        tracker[tracker_key("player", number)] = False
    for message in messages:
        merge_matches(tracker, message.matched_rules)
    return tracker


def merge_matches(tracker: dict[str, bool], keys: Iterable[str]) -> list[str]:
    """Mark keys as matched. Unknown keys are ignored; returns newly matched keys."""
    newly: list[str] = []
    for key in keys:
        if key in tracker and not tracker[key]:
            tracker[key] = True
            newly.append(key)
    return newly


def is_complete(tracker: dict[str, bool]) -> bool:
    """True when there is at least one keypoint and all are matched."""
    return bool(tracker) and all(tracker.values())


def _matched_numbers(data: dict[str, Any], side: str, count: int) -> list[int]:
    items = data.get("matched_keypoints", data.get("matched_ids", []))
    if not isinstance(items, list):
        return []
    numbers: list[int] = []
    for item in items:
        if isinstance(item, str):
            item = item.strip().removeprefix(f"{side}_")
        try:
            number = int(item)
        except (TypeError, ValueError):
            logger.debug("Ignoring keypoint id %r", item)
            continue
        if 1 <= number <= count and number not in numbers:
            numbers.append(number)
    return numbers


async def evaluate_keypoints(
    llm: ChatLLM,
    prompt: str,
    side: str,
    text: str,
    keypoints: Sequence[str],
) -> KeypointEvaluation:
    """Ask the LLM which keypoints `text` satisfies.

    Raises LLMError or ParseError; the turn orchestrator logs and skips those.
    """
    user_message = (
        f"Text to evaluate:\n{text}\n\n"
        f"Keypoints:\n{enumerate_keypoints(keypoints)}"
    )
    raw = await llm.complete(
        f"{side}_keypoints",
        [{"role": "system", "content": prompt}, {"role": "user", "content": user_message}],
        json_output=True,
        temperature=0,
    )
    data = parse_json_object(raw)
    matched = [tracker_key(side, n) for n in _matched_numbers(data, side, len(keypoints))]
    logger.debug("keypoint evaluation side=%s matched=%s", side, matched)
    return KeypointEvaluation(raw=raw, matched=matched)
