"""Port interfaces (Hexagonal Architecture)."""

from matrix_actions.ports.inbound import ActionRequest, ChannelActionContext
from matrix_actions.ports.outbound import ActionTracer, MatrixClientPort

__all__ = [
    "ActionRequest",
    "ChannelActionContext",
    "ActionTracer",
    "MatrixClientPort",
]
