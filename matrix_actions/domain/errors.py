"""Action error taxonomy.

Every validation failure is raised before the protocol client is touched.
Protocol client errors are never wrapped here, with the single exception of
``PartialReactionError`` (see ``ActionRouter._react``).
"""

from typing import Any, Dict, List, Optional


class ActionError(Exception):
    """Base class for action routing failures."""

    code = "action_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class MissingParameterError(ActionError):
    """A required parameter is absent or blank."""

    code = "missing_parameter"

    def __init__(self, field: str):
        super().__init__(f"{field} required", details={"field": field})
        self.field = field


class InvalidParameterError(ActionError):
    """A parameter is present but malformed."""

    code = "invalid_parameter"

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field} {reason}", details={"field": field})
        self.field = field


class ActionDisabledError(ActionError):
    """The verb's category is gated closed for this account."""

    code = "action_disabled"

    def __init__(self, category: str):
        super().__init__(
            f"Matrix {category} actions are disabled.", details={"category": category}
        )
        self.category = category


class UnsupportedActionError(ActionError):
    code = "unsupported_action"

    def __init__(self, action: str):
        super().__init__(
            f"Unsupported Matrix action: {action}", details={"action": action}
        )
        self.action = action


class TargetResolutionError(ActionError):
    code = "target_unresolved"

    def __init__(self, room_id: str):
        super().__init__(
            "Could not find a message to act on. Please provide a messageId.",
            details={"roomId": room_id},
        )
        self.room_id = room_id


class PartialReactionError(ActionError):
    """A multi-emoji reaction failed after some emojis were already applied.

    ``added`` is the prefix of emojis that stayed applied; nothing is rolled
    back. The protocol error is kept as ``__cause__``.
    """

    code = "reaction_partial_failure"

    def __init__(self, added: List[str], emoji: str, reason: str):
        super().__init__(
            f"Reaction {emoji} failed after adding {', '.join(added)}: {reason}",
            details={"added": list(added), "failed": emoji},
        )
        self.added = list(added)
        self.emoji = emoji


class ConfigError(Exception):
    """Raised when the core config document cannot be read."""
    pass
