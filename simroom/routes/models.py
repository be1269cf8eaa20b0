"""Pydantic request/response models for API endpoints."""

from pydantic import BaseModel, Field

from simroom.models import MoodBehavior, PathSimulation, Rule


class Credentials(BaseModel):
    email: str
    password: str


class CreateCharacter(BaseModel):
    name: str
    description: str = ""
    mood: str = ""
    intensity: int = Field(50, ge=0, le=100)


class UpdateCharacter(BaseModel):
    name: str | None = None
    description: str | None = None
    mood: str | None = None
    intensity: int | None = None


class CreateMood(BaseModel):
    name: str
    behaviors: list[MoodBehavior] = []


class UpdateMood(BaseModel):
    name: str | None = None
    behaviors: list[MoodBehavior] | None = None


class CreateSimulation(BaseModel):
    name: str
    description: str = ""
    objective: str = ""
    context: str = ""
    character_id: str
    setting_id: str
    character_keypoints: list[str] = []
    player_keypoints: list[str] = []
    max_interactions: int = Field(10, ge=1)
    rules: list[Rule] = []


class UpdateSimulation(BaseModel):
    name: str | None = None
    description: str | None = None
    objective: str | None = None
    context: str | None = None
    character_id: str | None = None
    setting_id: str | None = None
    character_keypoints: list[str] | None = None
    player_keypoints: list[str] | None = None
    max_interactions: int | None = Field(None, ge=1)
    rules: list[Rule] | None = None


class CreateAISetting(BaseModel):
    name: str
    api_key: str
    model: str = "gpt-4o"


class UpdateAISetting(BaseModel):
    name: str | None = None
    api_key: str | None = None
    model: str | None = None


class UpdateGlobalPrompts(BaseModel):
    system_prompt: str | None = None
    character_keypoints_evaluation_prompt: str | None = None
    player_keypoints_evaluation_prompt: str | None = None
    mood_evaluator_prompt: str | None = None
    analysis_prompt: str | None = None
    tracing_enabled: bool | None = None
    tracing_project: str | None = None
    tracing_api_key: str | None = None


class CreateChat(BaseModel):
    simulation_id: str


class TurnBody(BaseModel):
    message: str


class SpeechBody(BaseModel):
    message_index: int
    voice: str = "alloy"
    speed: float = Field(1.0, ge=0.25, le=4.0)
    format: str = "mp3"


class CreatePath(BaseModel):
    name: str
    description: str = ""
    is_public: bool = False
    simulations: list[PathSimulation] = []


class UpdatePath(BaseModel):
    name: str | None = None
    description: str | None = None
    is_public: bool | None = None
    simulations: list[PathSimulation] | None = None


class StartStep(BaseModel):
    user_identifier: str = Field(min_length=1)
