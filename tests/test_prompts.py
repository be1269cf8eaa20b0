"""Tests for placeholder rendering and system/mood prompt variables."""

from simroom.models import Character, ChatMessage, Mood, MoodBehavior, Rule, Simulation
from simroom.prompts import (
    active_behavior,
    assistant_history,
    build_system_prompt,
    enumerate_keypoints,
    format_rules,
    mood_prompt_variables,
    render,
    system_prompt_variables,
)

MOOD = Mood(name="Irritated", behaviors=[
    MoodBehavior(threshold_percentage=0, behavior_text="calm"),
    MoodBehavior(threshold_percentage=50, behavior_text="snappy"),
    MoodBehavior(threshold_percentage=80, behavior_text="furious"),
])
CHARACTER = Character(name="Martha", description="An upset customer.", mood="Irritated", intensity=60)


# ── render ───────────────────────────────────────────────────


def test_render_replaces_known_names():
    assert render("Hi {{NAME}}!", {"NAME": "Ann"}) == "Hi Ann!"


def test_render_tolerates_inner_spaces():
    assert render("{{ NAME }}", {"NAME": "Ann"}) == "Ann"


def test_render_leaves_unknown_tokens():
    assert render("{{NAME}} and {{OTHER}}", {"NAME": "Ann"}) == "Ann and {{OTHER}}"


def test_render_does_not_escape_html():
    assert render("{{X}}", {"X": "<b>&</b>"}) == "<b>&</b>"


# ── mood behaviors ───────────────────────────────────────────


def test_active_behavior_picks_highest_threshold_below_level():
    assert active_behavior(MOOD, 60).behavior_text == "snappy"
    assert active_behavior(MOOD, 80).behavior_text == "furious"
    assert active_behavior(MOOD, 0).behavior_text == "calm"


def test_active_behavior_none_below_every_threshold():
    mood = Mood(name="x", behaviors=[MoodBehavior(threshold_percentage=30, behavior_text="a")])
    assert active_behavior(mood, 10) is None
    assert active_behavior(None, 50) is None


# ── rules and history ────────────────────────────────────────


def test_enumerate_keypoints():
    assert enumerate_keypoints(["a", "b"]) == "1. a\n2. b"


def test_format_rules_prefers_keypoints():
    sim = Simulation(name="s", character_keypoints=["Mention the refund"], rules=[Rule(question="q", answer="a")])
    assert format_rules(sim) == "1. Mention the refund"


def test_format_rules_falls_back_to_legacy_rules():
    sim = Simulation(name="s", rules=[Rule(question="Price?", answer="Ten euros")])
    assert format_rules(sim) == "- Price?: Ten euros"


def test_assistant_history_only_lists_character_replies():
    messages = [
        ChatMessage(role="user", content="hello"),
        ChatMessage(role="assistant", content="What do you want?"),
        ChatMessage(role="system", content="notice"),
        ChatMessage(role="assistant", content="  Fine. "),
    ]
    assert assistant_history(messages) == "- What do you want?\n- Fine."


# ── system prompt ────────────────────────────────────────────


def test_system_prompt_variables():
    sim = Simulation(name="s", objective="Calm down", context="Hotline", character_keypoints=["kp"])
    variables = system_prompt_variables(sim, CHARACTER, MOOD, 60.0, [])
    assert variables["CHARACTER"] == "An upset customer."
    assert variables["MOOD"] == "Irritated"
    assert variables["MOOD_LEVEL"] == "60"
    assert variables["MOOD_DETAIL"] == "snappy"
    assert variables["RULES"] == "1. kp"
    assert variables["CONVERSATION_HISTORY"] == ""


def test_build_system_prompt_appends_missing_values():
    variables = {"CHARACTER": "A grumpy baker", "OBJECTIVE": "Buy bread", "CONTEXT": ""}
    prompt = build_system_prompt("You are {{CHARACTER}}.", variables)
    assert prompt == "You are A grumpy baker.\n\nObjective: Buy bread"


def test_build_system_prompt_no_sections_when_all_present():
    variables = {"CHARACTER": "A", "OBJECTIVE": "B"}
    assert build_system_prompt("{{CHARACTER}} / {{OBJECTIVE}}", variables) == "A / B"


def test_mood_prompt_variables():
    variables = mood_prompt_variables(CHARACTER, MOOD, 42.5, "sorry", "hmph")
    assert variables["CURRENT_MOOD_LEVEL"] == "42.5"
    assert variables["PLAYER_MESSAGE"] == "sorry"
    assert variables["CHARACTER_RESPONSE"] == "hmph"


def test_active_behavior_between_thresholds():
    mood = Mood(name="x", behaviors=[
        MoodBehavior(threshold_percentage=70, behavior_text="high"),
        MoodBehavior(threshold_percentage=0, behavior_text="low"),
        MoodBehavior(threshold_percentage=30, behavior_text="mid"),
    ])
    assert active_behavior(mood, 45).behavior_text == "mid"
