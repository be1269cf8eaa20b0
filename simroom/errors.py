"""Exception types shared by the chat flow, paths and routes.

Routes translate these into HTTPException; nothing here is retried.
"""


class ConfigurationError(Exception):
    """Missing AI setting, API key, global prompts or referenced rows."""


class ChatNotFound(LookupError):
    """The requested chat row does not exist."""


class TurnRejected(Exception):
    """A submit was refused: blank input, a turn in flight, or a closed chat."""


class ParseError(ValueError):
    """LLM output could not be recovered as a JSON object."""


class AnalysisError(Exception):
    """Whole-chat analysis could not be produced or parsed."""


class StepUnavailable(Exception):
    """A path step is locked or has no attempts left."""


class AuthError(Exception):
    """Invalid credentials or session token."""
