"""Prompt templating for the chat turn.

Templates use double-brace placeholders such as {{CHARACTER}}. Substitution
is plain string replacement: known names are replaced, unknown tokens are
left in the text verbatim.
"""

import re
from collections.abc import Mapping, Sequence

from simroom.models import Character, ChatMessage, Mood, MoodBehavior, Rule, Simulation

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Z0-9_]+)\s*\}\}")


def render(template: str, variables: Mapping[str, str]) -> str:
    """Replace {{NAME}} tokens with variables[NAME]; leave unknown tokens as-is."""

    def _sub(match: re.Match) -> str:
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        return match.group(0)

    return _PLACEHOLDER.sub(_sub, template)


def active_behavior(mood: Mood | None, intensity: float) -> MoodBehavior | None:
    """The behavior with the highest threshold that is <= intensity."""
    if mood is None:
        return None
    best: MoodBehavior | None = None
    for behavior in mood.behaviors:
        if behavior.threshold_percentage <= intensity:
            if best is None or behavior.threshold_percentage > best.threshold_percentage:
                best = behavior
    return best


def enumerate_keypoints(keypoints: Sequence[str]) -> str:
    """Number keypoints from 1; the numbers double as keypoint ids."""
    return "\n".join(f"{i}. {text}" for i, text in enumerate(keypoints, start=1))


def format_rules(simulation: Simulation) -> str:
    """Enumerated character keypoints, else the legacy inline rules."""
    if simulation.character_keypoints:
        return enumerate_keypoints(simulation.character_keypoints)
    return _format_legacy_rules(simulation.rules)


def _format_legacy_rules(rules: Sequence[Rule]) -> str:
    return "\n".join(f"- {r.question}: {r.answer}" for r in rules)


def assistant_history(messages: Sequence[ChatMessage]) -> str:
    """What the character has said so far, one line per reply."""
    return "\n".join(f"- {m.content.strip()}" for m in messages if m.role == "assistant" and m.content.strip())


def _format_level(level: float) -> str:
    return str(int(level)) if float(level).is_integer() else str(level)


# Labels used for legacy fallback sections, in output order.
_FALLBACK_LABELS: tuple[tuple[str, str], ...] = (
    ("CHARACTER", "Character"),
    ("OBJECTIVE", "Objective"),
    ("CONTEXT", "Context"),
    ("RULES", "Rules"),
    ("MOOD", "Mood"),
    ("MOOD_DETAIL", "Mood behavior"),
    ("CONVERSATION_HISTORY", "Conversation history"),
)


def system_prompt_variables(
    simulation: Simulation,
    character: Character,
    mood: Mood | None,
    mood_level: float,
    history: Sequence[ChatMessage],
) -> dict[str, str]:
    behavior = active_behavior(mood, mood_level)
    return {
        "CHARACTER": character.description or character.name,
        "OBJECTIVE": simulation.objective,
        "CONTEXT": simulation.context,
        "RULES": format_rules(simulation),
        "MOOD": mood.name if mood else character.mood,
        "MOOD_LEVEL": _format_level(mood_level),
        "MOOD_DETAIL": behavior.behavior_text if behavior else "",
        "CONVERSATION_HISTORY": assistant_history(history),
    }


def build_system_prompt(template: str, variables: Mapping[str, str]) -> str:
    """Render the system template, then append any value it did not include.

    Older templates lack some placeholders; a value that does not appear
    verbatim in the rendered text is added as a trailing "Label: value"
    section so the model still receives it.
    """
    rendered = render(template, variables)
    sections: list[str] = []
    for key, label in _FALLBACK_LABELS:
        value = variables.get(key, "")
        if value and value not in rendered:
            sections.append(f"{label}: {value}")
    if not sections:
        return rendered
    return rendered.rstrip() + "\n\n" + "\n\n".join(sections)


def mood_prompt_variables(
    character: Character,
    mood: Mood | None,
    mood_level: float,
    player_message: str,
    character_response: str,
) -> dict[str, str]:
    return {
        "MOOD": mood.name if mood else character.mood,
        "CURRENT_MOOD_LEVEL": _format_level(mood_level),
        "MOOD_LEVEL": _format_level(mood_level),
        "CHARACTER": character.description or character.name,
        "PLAYER_MESSAGE": player_message,
        "CHARACTER_RESPONSE": character_response,
    }
