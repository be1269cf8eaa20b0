"""Chat session flow: load, take turns, conclude, analyze.

Components:
  session    : load a chat with its configuration and rebuild mood level
                and keypoint tracker from the stored transcript.
  turn       : the per-turn orchestrator (player evaluation, limit check,
                streamed reply, character evaluation, mood evaluation).
  keypoints  : tracker helpers and the LLM keypoint evaluator.
  mood       : streamed mood evaluator.
  completion : terminal status transitions and path progress updates.
  analysis   : whole-chat performance analysis.

Tracker keys: "character_<n>" / "player_<n>", n = 1-based keypoint number.
Message roles: "user" (player), "assistant" (character), "system" (notices
and errors; never counted as interactions).
"""

from .analysis import analyze_chat  # noqa: F401
from .completion import conclude  # noqa: F401
from .guard import InFlightGuard, creations, turns  # noqa: F401
from .keypoints import build_tracker, evaluate_keypoints, is_complete, merge_matches  # noqa: F401
from .mood import evaluate_mood  # noqa: F401
from .session import ChatSession, load_session  # noqa: F401
from .turn import TurnEvent, run_turn  # noqa: F401
