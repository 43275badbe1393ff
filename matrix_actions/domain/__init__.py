"""Domain layer — pure Python, no framework dependencies."""

from matrix_actions.domain.accounts import (
    MatrixAccount,
    normalize_account_id,
    resolve_matrix_account,
)
from matrix_actions.domain.errors import (
    ActionDisabledError,
    ActionError,
    ConfigError,
    InvalidParameterError,
    MissingParameterError,
    PartialReactionError,
    TargetResolutionError,
    UnsupportedActionError,
)
from matrix_actions.domain.gate import CapabilityGate
from matrix_actions.domain.models import ActionCategory, ActionSpec, ResolvedTarget
from matrix_actions.domain.router import ActionRouter
from matrix_actions.domain.target import PlaceholderPredicate, TargetResolver

__all__ = [
    "ActionCategory",
    "ActionDisabledError",
    "ActionError",
    "ActionRouter",
    "ActionSpec",
    "CapabilityGate",
    "ConfigError",
    "InvalidParameterError",
    "MatrixAccount",
    "MissingParameterError",
    "PartialReactionError",
    "PlaceholderPredicate",
    "ResolvedTarget",
    "TargetResolutionError",
    "TargetResolver",
    "UnsupportedActionError",
    "normalize_account_id",
    "resolve_matrix_account",
]
