"""Whole-chat analysis: score the player's side of a finished conversation."""

import logging
from typing import Any

from simroom import storage
from simroom.errors import AnalysisError, ChatNotFound, ConfigurationError, ParseError
from simroom.llm import ChatLLM, LLMError, client_for
from simroom.models import Chat, Character, Simulation, utcnow
from simroom.parsing import parse_json_object

logger = logging.getLogger(__name__)


def build_analysis_message(chat: Chat, simulation: Simulation, character: Character | None) -> str:
    character_text = "N/A"
    if character is not None:
        character_text = character.description or character.name or "N/A"
    player_lines = [m.content.strip() for m in chat.messages if m.role == "user" and m.content.strip()]
    return f"Character:\n{character_text}\n\nPlayer:\n" + "\n\n".join(player_lines)


async def analyze_chat(chat_id: str, llm: ChatLLM | None = None) -> dict[str, Any]:
    """Run the analysis prompt over a concluded chat and store the result.

    `llm` defaults to the client for the simulation's AI setting. Raises
    ChatNotFound, ConfigurationError or AnalysisError; chat status is never
    touched.
    """
    chat = storage.get_chat(chat_id)
    if chat is None:
        raise ChatNotFound(f"Chat {chat_id} not found")
    if chat.status == "active":
        raise AnalysisError("Only completed or failed chats can be analyzed")

    simulation = storage.get_simulation(chat.simulation_id)
    if simulation is None:
        raise ConfigurationError("The simulation for this chat no longer exists.")
    prompts = storage.get_global_prompts()
    if prompts is None or not prompts.analysis_prompt.strip():
        raise ConfigurationError("Missing analysis prompt in global prompts")

    if llm is None:
        setting = storage.get_ai_setting(simulation.setting_id) if simulation.setting_id else None
        if setting is None:
            raise ConfigurationError("This chat simulation is missing its AI setting")
        if not setting.api_key.strip():
            raise ConfigurationError(f"Missing API key in AI setting '{setting.name}'")
        llm = client_for(setting, prompts)

    character = storage.get_character(simulation.character_id) if simulation.character_id else None
    user_message = build_analysis_message(chat, simulation, character)

    try:
        raw = await llm.complete(
            "analysis",
            [
                {"role": "system", "content": prompts.analysis_prompt},
                {"role": "user", "content": user_message},
            ],
            json_output=True,
            temperature=0,
        )
        result = parse_json_object(raw)
    except (LLMError, ParseError) as e:
        logger.warning("Analysis of chat %s failed: %s", chat_id, e)
        raise AnalysisError(f"Error analyzing chat: {e}") from e

    storage.save_analysis(chat_id, result, utcnow())
    logger.info("chat %s analyzed, overall_score=%s", chat_id, result.get("overall_score"))
    return result
