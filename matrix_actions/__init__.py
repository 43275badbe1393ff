"""Matrix Actions — action routing and capability gating for Matrix chat actions."""

from matrix_actions.config import CONFIG, AppConfig, __version__, load_core_config
from matrix_actions.domain import (
    ActionCategory,
    ActionDisabledError,
    ActionError,
    ActionRouter,
    CapabilityGate,
    InvalidParameterError,
    MissingParameterError,
    PartialReactionError,
    PlaceholderPredicate,
    TargetResolutionError,
    TargetResolver,
    UnsupportedActionError,
)
from matrix_actions.adapters.channel import MatrixMessageActions
from matrix_actions.adapters.matrix import MatrixApiError, MatrixHttpClient
from matrix_actions.adapters.tracing import NullTracer, StderrTracer

__all__ = [
    "CONFIG",
    "AppConfig",
    "__version__",
    "load_core_config",
    "ActionCategory",
    "ActionDisabledError",
    "ActionError",
    "ActionRouter",
    "CapabilityGate",
    "InvalidParameterError",
    "MissingParameterError",
    "PartialReactionError",
    "PlaceholderPredicate",
    "TargetResolutionError",
    "TargetResolver",
    "UnsupportedActionError",
    "MatrixMessageActions",
    "MatrixApiError",
    "MatrixHttpClient",
    "NullTracer",
    "StderrTracer",
]
