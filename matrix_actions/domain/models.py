"""Domain data models — pure Python dataclasses."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple


class ActionCategory(str, Enum):
    """Capability groups gated as a unit by ``channels.matrix.actions``."""

    MESSAGES = "messages"
    REACTIONS = "reactions"
    PINS = "pins"
    MEMBER_INFO = "memberInfo"
    CHANNEL_INFO = "channelInfo"


@dataclass(frozen=True)
class ResolvedTarget:
    room_id: str
    message_id: str
    from_fallback: bool = False


@dataclass(frozen=True)
class ParamField:
    """One logical parameter read from the raw params mapping.

    ``names`` are aliases tried in order; the first one yielding a value wins.
    ``label`` names the field in errors and in the extracted args.
    """

    names: Tuple[str, ...]
    label: str = ""
    kind: str = "string"  # string | integer | number | bool | json_list
    required: bool = False
    allow_empty: bool = False
    trim: bool = True
    minimum: Optional[float] = None  # numeric kinds only

    @property
    def key(self) -> str:
        return self.label or self.names[0]


def param(*names: str, **kwargs: Any) -> ParamField:
    return ParamField(names=tuple(names), **kwargs)


# Room-id fallback chain shared by every verb that needs a room.
ROOM_ALIASES = ("roomId", "channelId", "to")


@dataclass(frozen=True)
class ActionSpec:
    """Dispatch-table entry: one verb, its gate and its parameter contract."""

    verb: str
    category: Optional[ActionCategory]
    fields: Tuple[ParamField, ...]
    handler: Callable[..., Awaitable[Dict[str, Any]]]
    advertised_as: Tuple[str, ...] = field(default_factory=tuple)
