"""Core domain models.

Every storage table row and every chat-flow value is one of these types.
Pydantic is used for validation and serialisation at every data boundary.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

ChatStatus = Literal["active", "completed", "failed"]
MessageRole = Literal["user", "assistant", "system"]
UserRole = Literal["admin", "user"]


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Row(BaseModel):
    """Common columns carried by every persisted row."""

    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow)


class Character(Row):
    name: str
    description: str = ""
    mood: str = ""  # name of a Mood row
    intensity: int = 50  # 0–100 baseline mood intensity


class MoodBehavior(BaseModel):
    threshold_percentage: int
    behavior_text: str


class Mood(Row):
    name: str
    behaviors: list[MoodBehavior] = Field(default_factory=list)


class Rule(BaseModel):
    """Legacy inline simulation rule."""

    question: str
    answer: str


class Simulation(Row):
    name: str
    description: str = ""
    objective: str = ""
    context: str = ""
    character_id: str | None = None
    setting_id: str | None = None
    character_keypoints: list[str] = Field(default_factory=list)
    player_keypoints: list[str] = Field(default_factory=list)
    max_interactions: int = 10
    rules: list[Rule] = Field(default_factory=list)


class AISetting(Row):
    name: str
    api_key: str = ""
    model: str = "gpt-4o"


class GlobalPrompts(Row):
    """Singleton row holding every prompt template plus tracing options."""

    system_prompt: str = ""
    character_keypoints_evaluation_prompt: str = ""
    player_keypoints_evaluation_prompt: str = ""
    mood_evaluator_prompt: str = ""
    analysis_prompt: str = ""
    tracing_enabled: bool = False
    tracing_project: str = ""
    tracing_api_key: str = ""
    updated_at: datetime = Field(default_factory=utcnow)


class ChatMessage(BaseModel):
    """A single transcript entry. Evaluation fields are set by the turn flow."""

    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utcnow)
    evaluation: str | None = None
    matched_rules: list[str] = Field(default_factory=list)
    mood_level: float | None = None
    mood_change: str | None = None
    mood_analysis: str | None = None


class PathLink(BaseModel):
    """Ties a chat to the path step it was started from."""

    path_id: str
    path_simulation_id: str
    simulation_id: str
    user_identifier: str


class Chat(Row):
    simulation_id: str
    messages: list[ChatMessage] = Field(default_factory=list)
    status: ChatStatus = "active"
    analysis_result: dict[str, Any] | None = None
    analysis_updated_at: datetime | None = None
    path: PathLink | None = None
    owner_id: str | None = None


class PathSimulation(BaseModel):
    id: str = Field(default_factory=new_id)
    simulation_id: str
    order_index: int = 0
    max_attempts: int = 3


class Path(Row):
    name: str
    description: str = ""
    is_public: bool = False
    simulations: list[PathSimulation] = Field(default_factory=list)


class PathProgress(Row):
    path_id: str
    simulation_id: str
    user_identifier: str
    attempts_used: int = 0
    completed: bool = False
    last_attempt_failed: bool = False
    updated_at: datetime = Field(default_factory=utcnow)


class User(Row):
    email: str
    password_hash: str
    role: UserRole = "user"
