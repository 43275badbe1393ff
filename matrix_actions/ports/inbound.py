"""Inbound port — platform-agnostic action request representation."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True)
class ActionRequest:
    """A verb plus its loosely-typed params, as handed to the router."""

    verb: str
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class ChannelActionContext:
    """Call context for the outer message-action adapter."""

    action: str
    params: Dict[str, Any]
    cfg: Mapping[str, Any]
    account_id: Optional[str] = None
    gateway_client_name: Optional[str] = None
    media_local_roots: Optional[List[str]] = None
