"""Chat session loading: rows plus the conversation state rebuilt from them."""

import logging

from pydantic import BaseModel

from simroom import storage
from simroom.errors import ChatNotFound, ConfigurationError
from simroom.models import (
    AISetting,
    Character,
    Chat,
    ChatMessage,
    ChatStatus,
    GlobalPrompts,
    Mood,
    Simulation,
)

from .keypoints import build_tracker

logger = logging.getLogger(__name__)


class ChatSession(BaseModel):
    """Everything one turn needs, held in memory between storage writes."""

    chat: Chat
    simulation: Simulation
    character: Character
    mood: Mood | None
    setting: AISetting
    prompts: GlobalPrompts
    messages: list[ChatMessage]
    status: ChatStatus
    mood_level: float
    tracker: dict[str, bool]

    @property
    def chat_id(self) -> str:
        return self.chat.id

    def assistant_count(self) -> int:
        return sum(1 for m in self.messages if m.role == "assistant")


def current_mood_level(messages: list[ChatMessage], character: Character) -> float:
    """Latest mood level stored on an assistant message, else the character baseline."""
    for message in reversed(messages):
        if message.role == "assistant" and message.mood_level is not None:
            return message.mood_level
    return float(character.intensity)


def load_session(chat_id: str) -> ChatSession:
    """Load a chat with its simulation, character, mood, AI setting and prompts.

    Raises ChatNotFound for an unknown chat and ConfigurationError when any
    referenced configuration is missing.
    """
    chat = storage.get_chat(chat_id)
    if chat is None:
        raise ChatNotFound(f"Chat {chat_id} not found")

    simulation = storage.get_simulation(chat.simulation_id)
    if simulation is None:
        raise ConfigurationError("The simulation for this chat no longer exists.")

    character = storage.get_character(simulation.character_id) if simulation.character_id else None
    if character is None:
        raise ConfigurationError("This simulation has no character assigned. Please edit the simulation.")

    if not simulation.setting_id:
        raise ConfigurationError(
            "This simulation doesn't have an AI setting assigned. Please edit the simulation to assign one."
        )
    setting = storage.get_ai_setting(simulation.setting_id)
    if setting is None:
        raise ConfigurationError(
            "This simulation is missing its AI configuration. Please edit the simulation and assign a valid setting."
        )
    if not setting.api_key.strip():
        raise ConfigurationError(f"API key is missing in AI setting '{setting.name}'. Please configure it.")

    prompts = storage.get_global_prompts()
    if prompts is None:
        raise ConfigurationError("Global prompts are not configured. Please save them in Settings.")

    mood = storage.find_mood(character.mood) if character.mood else None
    if character.mood and mood is None:
        logger.warning("Character %s references unknown mood %r", character.id, character.mood)

    return ChatSession(
        chat=chat,
        simulation=simulation,
        character=character,
        mood=mood,
        setting=setting,
        prompts=prompts,
        messages=list(chat.messages),
        status=chat.status,
        mood_level=current_mood_level(chat.messages, character),
        tracker=build_tracker(simulation, chat.messages),
    )
