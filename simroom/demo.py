"""Create demo data for development/testing."""

import os
import shutil

from simroom import storage
from simroom.models import (
    AISetting, Character, Mood, MoodBehavior, Path, PathSimulation, Simulation,
)

DEMO_MOODS = [
    Mood(name="Irritated", behaviors=[
        MoodBehavior(threshold_percentage=0, behavior_text="Calm but curt. Answers only what is asked."),
        MoodBehavior(threshold_percentage=40, behavior_text="Sighs often and interrupts with complaints."),
        MoodBehavior(threshold_percentage=75, behavior_text="Openly hostile. Threatens to leave the conversation."),
    ]),
    Mood(name="Anxious", behaviors=[
        MoodBehavior(threshold_percentage=0, behavior_text="Slightly hesitant, asks for reassurance."),
        MoodBehavior(threshold_percentage=50, behavior_text="Speaks quickly and jumps between worries."),
    ]),
]


def create_demo_data() -> None:
    """Wipe existing tables and create a fresh demo setup."""
    if storage.tables_dir().exists():
        shutil.rmtree(storage.tables_dir())
    storage.tables_dir().mkdir(parents=True, exist_ok=True)

    for mood in DEMO_MOODS:
        storage.create_mood(mood)
    storage.reset_global_prompts()

    setting = storage.create_ai_setting(AISetting(
        name="Default OpenAI",
        api_key=os.getenv("OPENAI_API_KEY", ""),
        model="gpt-4o",
    ))

    customer = storage.create_character(Character(
        name="Martha Klein",
        description="A long-time customer whose internet has been down for three days. "
        "She works from home and is losing money.",
        mood="Irritated",
        intensity=60,
    ))
    patient = storage.create_character(Character(
        name="Tom Berger",
        description="A patient waiting for test results, worried about what they might show.",
        mood="Anxious",
        intensity=45,
    ))

    complaint = storage.create_simulation(Simulation(
        name="Angry customer call",
        description="Handle an escalated support call.",
        objective="Calm the customer down and agree on a concrete next step.",
        context="You are a support agent at a regional internet provider.",
        character_id=customer.id,
        setting_id=setting.id,
        character_keypoints=["Accepts the proposed technician appointment"],
        player_keypoints=[
            "Apologizes for the outage",
            "Offers a technician appointment with a specific date",
        ],
        max_interactions=8,
    ))
    results = storage.create_simulation(Simulation(
        name="Breaking test results",
        description="Talk a worried patient through the next steps.",
        objective="Explain the results clearly and make sure the patient feels heard.",
        context="You are a nurse at a general practice.",
        character_id=patient.id,
        setting_id=setting.id,
        character_keypoints=["Says they understand what happens next"],
        player_keypoints=["Asks how the patient is feeling", "Explains the follow-up appointment"],
        max_interactions=10,
    ))

    storage.create_path(Path(
        name="Difficult conversations",
        description="Two short practice conversations, played in order.",
        is_public=True,
        simulations=[
            PathSimulation(simulation_id=complaint.id, order_index=0, max_attempts=3),
            PathSimulation(simulation_id=results.id, order_index=1, max_attempts=2),
        ],
    ))
