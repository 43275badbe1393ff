"""Outbound ports — interfaces for the Matrix protocol client and tracing."""

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class MatrixClientPort(Protocol):
    """Interface for Matrix protocol clients.

    Message summaries returned by ``read_messages`` are dicts carrying at
    least ``eventId``, newest first.
    """

    async def send_message(
        self,
        to: str,
        content: str,
        *,
        media_url: Optional[str] = None,
        media_local_roots: Optional[List[str]] = None,
        reply_to_id: Optional[str] = None,
        thread_id: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> Dict[str, Any]: ...

    async def edit_message(
        self, room_id: str, message_id: str, content: str, *, account_id: Optional[str] = None
    ) -> Dict[str, Any]: ...

    async def delete_message(
        self,
        room_id: str,
        message_id: str,
        *,
        reason: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> None: ...

    async def read_messages(
        self,
        room_id: str,
        *,
        limit: Optional[int] = None,
        before: Optional[str] = None,
        after: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> Dict[str, Any]: ...

    async def react(
        self, room_id: str, message_id: str, emoji: str, *, account_id: Optional[str] = None
    ) -> None: ...

    async def list_reactions(
        self,
        room_id: str,
        message_id: str,
        *,
        limit: Optional[int] = None,
        account_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]: ...

    async def remove_reactions(
        self,
        room_id: str,
        message_id: str,
        *,
        emoji: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> Dict[str, Any]: ...

    async def pin_message(
        self, room_id: str, message_id: str, *, account_id: Optional[str] = None
    ) -> Dict[str, Any]: ...

    async def unpin_message(
        self, room_id: str, message_id: str, *, account_id: Optional[str] = None
    ) -> Dict[str, Any]: ...

    async def list_pins(
        self, room_id: str, *, account_id: Optional[str] = None
    ) -> Dict[str, Any]: ...

    async def get_member_info(
        self, user_id: str, *, room_id: Optional[str] = None, account_id: Optional[str] = None
    ) -> Dict[str, Any]: ...

    async def get_room_info(
        self, room_id: str, *, account_id: Optional[str] = None
    ) -> Dict[str, Any]: ...


@runtime_checkable
class ActionTracer(Protocol):
    """Structured event sink injected into the router."""

    def emit(self, event: str, **fields: Any) -> None: ...
