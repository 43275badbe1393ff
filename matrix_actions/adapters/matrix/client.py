"""Matrix client-server API client using aiohttp."""

import asyncio
import json
import mimetypes
import uuid
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import quote

import aiohttp

from matrix_actions.config import CONFIG
from matrix_actions.domain.accounts import MatrixAccount, resolve_matrix_account

CLIENT_API_V3 = "/_matrix/client/v3"
CLIENT_API_V1 = "/_matrix/client/v1"
MEDIA_API_V3 = "/_matrix/media/v3"

_TARGET_PREFIXES = ("matrix:", "room:", "channel:")
_MESSAGE_FILTER = json.dumps({"types": ["m.room.message"]})
_RELATIONS_PAGE = 100


class MatrixApiError(RuntimeError):
    """Error returned by the homeserver (or raised before reaching it)."""

    def __init__(self, message: str, status: Optional[int] = None, errcode: str = "M_UNKNOWN"):
        super().__init__(message)
        self.status = status
        self.errcode = errcode


def _q(value: str) -> str:
    return quote(value, safe="")


def normalize_room_target(raw: str) -> str:
    """Strip ``matrix:`` / ``room:`` / ``channel:`` prefixes from a target."""
    text = str(raw or "").strip()
    changed = True
    while changed:
        changed = False
        for prefix in _TARGET_PREFIXES:
            if text.lower().startswith(prefix):
                text = text[len(prefix):].strip()
                changed = True
    return text


def summarize_event(event: Mapping[str, Any]) -> Dict[str, Any]:
    content = event.get("content") or {}
    relates = content.get("m.relates_to") or {}
    summary: Dict[str, Any] = {
        "eventId": event.get("event_id"),
        "sender": event.get("sender"),
        "body": content.get("body"),
        "msgtype": content.get("msgtype"),
        "timestamp": event.get("origin_server_ts"),
    }
    if relates.get("rel_type") == "m.thread":
        summary["threadId"] = relates.get("event_id")
    reply = relates.get("m.in_reply_to") or {}
    if reply.get("event_id"):
        summary["replyToId"] = reply["event_id"]
    return summary


def _msgtype_for(mimetype: str) -> str:
    for prefix, msgtype in (("image/", "m.image"), ("video/", "m.video"), ("audio/", "m.audio")):
        if mimetype.startswith(prefix):
            return msgtype
    return "m.file"


def _within_roots(path: Path, roots: Optional[List[str]]) -> bool:
    for root in roots or []:
        try:
            path.relative_to(Path(root).expanduser().resolve())
            return True
        except ValueError:
            continue
    return False


def _read_local_media(local: str, roots: Optional[List[str]]) -> Tuple[Path, bytes]:
    """Resolve and read a local media file; runs off the event loop."""
    path = Path(local).expanduser().resolve()
    if not _within_roots(path, roots):
        raise MatrixApiError(f"Media path {path} is outside the allowed roots", errcode="M_FORBIDDEN")
    return path, path.read_bytes()


class MatrixHttpClient:
    """Async Matrix client (one aiohttp session per request).

    Accounts come from the core config document; ``account_id`` selects one of
    ``channels.matrix.accounts``, falling back to the top-level settings.
    """

    def __init__(self, cfg: Mapping[str, Any], timeout: Optional[float] = None):
        self._cfg = cfg
        self._timeout = timeout if timeout is not None else CONFIG["request_timeout_seconds"]

    @property
    def is_configured(self) -> bool:
        account = resolve_matrix_account(self._cfg)
        return account.enabled and account.configured

    def _account(self, account_id: Optional[str]) -> MatrixAccount:
        account = resolve_matrix_account(self._cfg, account_id)
        if not account.enabled:
            raise MatrixApiError(f"Matrix account {account.account_id} is disabled", errcode="M_DISABLED")
        if not account.configured:
            raise MatrixApiError(
                f"Matrix account {account.account_id} is not configured", errcode="M_UNCONFIGURED"
            )
        return account

    async def _request(
        self,
        account: MatrixAccount,
        method: str,
        path: str,
        *,
        base: str = CLIENT_API_V3,
        params: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        data: Optional[bytes] = None,
        content_type: Optional[str] = None,
        allow_404: bool = False,
    ) -> Optional[Dict[str, Any]]:
        url = f"{account.homeserver}{base}{path}"
        headers = {"Authorization": f"Bearer {account.access_token}"}
        if content_type:
            headers["Content-Type"] = content_type
        timeout = aiohttp.ClientTimeout(total=self._timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.request(
                method, url, params=params, json=json_body, data=data, headers=headers
            ) as resp:
                try:
                    payload = await resp.json(content_type=None)
                except ValueError:
                    payload = {}
                if not isinstance(payload, dict):
                    payload = {}
                if resp.status == 404 and allow_404:
                    return None
                if resp.status >= 400:
                    raise MatrixApiError(
                        payload.get("error") or f"HTTP {resp.status} from {method} {path}",
                        status=resp.status,
                        errcode=payload.get("errcode", "M_UNKNOWN"),
                    )
                return payload

    async def _own_user_id(self, account: MatrixAccount) -> str:
        if account.user_id:
            return account.user_id
        data = await self._request(account, "GET", "/account/whoami")
        return data.get("user_id", "")

    async def _resolve_room(
        self, account: MatrixAccount, raw: str, allow_user: bool = False
    ) -> str:
        target = normalize_room_target(raw)
        if target.startswith("#"):
            data = await self._request(account, "GET", f"/directory/room/{_q(target)}")
            room_id = data.get("room_id")
            if not room_id:
                raise MatrixApiError(f"Room alias {target} not found", status=404, errcode="M_NOT_FOUND")
            return room_id
        if target.startswith("@"):
            if not allow_user:
                raise MatrixApiError(f"Expected a room, got user {target}", errcode="M_INVALID_PARAM")
            return await self._direct_room(account, target)
        return target

    async def _direct_room(self, account: MatrixAccount, user_id: str) -> str:
        """Find the DM room with ``user_id`` in ``m.direct``, creating one if absent."""
        me = await self._own_user_id(account)
        path = f"/user/{_q(me)}/account_data/m.direct"
        direct = await self._request(account, "GET", path, allow_404=True) or {}
        rooms = direct.get(user_id) or []
        if rooms:
            return rooms[0]
        created = await self._request(
            account,
            "POST",
            "/createRoom",
            json_body={"is_direct": True, "invite": [user_id], "preset": "trusted_private_chat"},
        )
        room_id = created["room_id"]
        direct[user_id] = [room_id]
        await self._request(account, "PUT", path, json_body=direct)
        return room_id

    async def _send_event(
        self, account: MatrixAccount, room_id: str, event_type: str, content: Dict[str, Any]
    ) -> str:
        txn_id = uuid.uuid4().hex
        path = f"/rooms/{_q(room_id)}/send/{_q(event_type)}/{txn_id}"
        data = await self._request(account, "PUT", path, json_body=content)
        return data.get("event_id", "")

    async def _media_content(
        self,
        account: MatrixAccount,
        media_url: str,
        caption: str,
        media_local_roots: Optional[List[str]],
    ) -> Dict[str, Any]:
        if media_url.startswith(("http://", "https://")):
            # Remote media is linked, not re-hosted.
            body = f"{caption}\n{media_url}" if caption else media_url
            return {"msgtype": "m.text", "body": body}

        if media_url.startswith("mxc://"):
            mxc = media_url
            filename = media_url.rsplit("/", 1)[-1]
            mimetype = "application/octet-stream"
        else:
            local = media_url[len("file://"):] if media_url.startswith("file://") else media_url
            path, payload = await asyncio.to_thread(_read_local_media, local, media_local_roots)
            filename = path.name
            mimetype = mimetypes.guess_type(filename)[0] or "application/octet-stream"
            upload = await self._request(
                account,
                "POST",
                "/upload",
                base=MEDIA_API_V3,
                params={"filename": filename},
                data=payload,
                content_type=mimetype,
            )
            mxc = upload.get("content_uri", "")
            if not mxc:
                raise MatrixApiError(f"Upload of {filename} returned no content_uri")

        content: Dict[str, Any] = {
            "msgtype": _msgtype_for(mimetype),
            "body": caption or filename,
            "url": mxc,
            "info": {"mimetype": mimetype},
        }
        if caption:
            content["filename"] = filename
        return content

    # ── MatrixClientPort ───────────────────────────────────────

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
    ) -> Dict[str, Any]:
        account = self._account(account_id)
        room_id = await self._resolve_room(account, to, allow_user=True)
        if media_url:
            body = await self._media_content(account, media_url, content, media_local_roots)
        else:
            body = {"msgtype": "m.text", "body": content}

        if thread_id:
            body["m.relates_to"] = {
                "rel_type": "m.thread",
                "event_id": thread_id,
                "is_falling_back": not reply_to_id,
                "m.in_reply_to": {"event_id": reply_to_id or thread_id},
            }
        elif reply_to_id:
            body["m.relates_to"] = {"m.in_reply_to": {"event_id": reply_to_id}}

        event_id = await self._send_event(account, room_id, "m.room.message", body)
        return {"messageId": event_id, "roomId": room_id}

    async def edit_message(
        self, room_id: str, message_id: str, content: str, *, account_id: Optional[str] = None
    ) -> Dict[str, Any]:
        account = self._account(account_id)
        room_id = await self._resolve_room(account, room_id)
        new_content = {"msgtype": "m.text", "body": content}
        body = {
            "msgtype": "m.text",
            "body": f"* {content}",
            "m.new_content": new_content,
            "m.relates_to": {"rel_type": "m.replace", "event_id": message_id},
        }
        event_id = await self._send_event(account, room_id, "m.room.message", body)
        return {"messageId": event_id, "roomId": room_id, "editedId": message_id}

    async def delete_message(
        self,
        room_id: str,
        message_id: str,
        *,
        reason: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> None:
        account = self._account(account_id)
        room_id = await self._resolve_room(account, room_id)
        await self._redact(account, room_id, message_id, reason)

    async def _redact(
        self, account: MatrixAccount, room_id: str, event_id: str, reason: Optional[str] = None
    ) -> None:
        txn_id = uuid.uuid4().hex
        path = f"/rooms/{_q(room_id)}/redact/{_q(event_id)}/{txn_id}"
        await self._request(account, "PUT", path, json_body={"reason": reason} if reason else {})

    async def read_messages(
        self,
        room_id: str,
        *,
        limit: Optional[int] = None,
        before: Optional[str] = None,
        after: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Read room messages, newest first.

        ``before``/``after`` are pagination tokens from a previous call's
        ``prevBatch``/``nextBatch``.
        """
        account = self._account(account_id)
        room_id = await self._resolve_room(account, room_id)
        params = {"dir": "b", "filter": _MESSAGE_FILTER}
        if after:
            params["dir"] = "f"
            params["from"] = after
        elif before:
            params["from"] = before
        if limit is not None:
            params["limit"] = str(limit)

        data = await self._request(account, "GET", f"/rooms/{_q(room_id)}/messages", params=params)
        messages = [
            summarize_event(event)
            for event in data.get("chunk") or []
            if event.get("type") == "m.room.message"
        ]
        if params["dir"] == "f":
            messages.reverse()
        return {
            "messages": messages,
            "nextBatch": data.get("end"),
            "prevBatch": data.get("start"),
        }

    async def react(
        self, room_id: str, message_id: str, emoji: str, *, account_id: Optional[str] = None
    ) -> None:
        account = self._account(account_id)
        room_id = await self._resolve_room(account, room_id)
        body = {"m.relates_to": {"rel_type": "m.annotation", "event_id": message_id, "key": emoji}}
        await self._send_event(account, room_id, "m.reaction", body)

    async def _annotations(
        self, account: MatrixAccount, room_id: str, message_id: str, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        if limit is not None and limit < 1:
            limit = None  # non-positive means unbounded
        path = f"/rooms/{_q(room_id)}/relations/{_q(message_id)}/m.annotation/m.reaction"
        events: List[Dict[str, Any]] = []
        token: Optional[str] = None
        while True:
            params = {"limit": str(limit or _RELATIONS_PAGE)}
            if token:
                params["from"] = token
            data = await self._request(account, "GET", path, base=CLIENT_API_V1, params=params)
            events.extend(data.get("chunk") or [])
            token = data.get("next_batch")
            if not token or (limit is not None and len(events) >= limit):
                break
        return events[:limit] if limit is not None else events

    async def list_reactions(
        self,
        room_id: str,
        message_id: str,
        *,
        limit: Optional[int] = None,
        account_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        account = self._account(account_id)
        room_id = await self._resolve_room(account, room_id)
        summary: Dict[str, Dict[str, Any]] = {}
        for event in await self._annotations(account, room_id, message_id, limit):
            key = ((event.get("content") or {}).get("m.relates_to") or {}).get("key")
            if not key:
                continue
            entry = summary.setdefault(key, {"key": key, "count": 0, "users": []})
            entry["count"] += 1
            sender = event.get("sender")
            if sender and sender not in entry["users"]:
                entry["users"].append(sender)
        return list(summary.values())

    async def remove_reactions(
        self,
        room_id: str,
        message_id: str,
        *,
        emoji: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Redact this account's reactions on a message, optionally one key only."""
        account = self._account(account_id)
        room_id = await self._resolve_room(account, room_id)
        me = await self._own_user_id(account)
        removed = 0
        for event in await self._annotations(account, room_id, message_id):
            if event.get("sender") != me:
                continue
            key = ((event.get("content") or {}).get("m.relates_to") or {}).get("key")
            if emoji is not None and key != emoji:
                continue
            await self._redact(account, room_id, event["event_id"])
            removed += 1
        return {"removed": removed}

    async def _pinned(self, account: MatrixAccount, room_id: str) -> List[str]:
        path = f"/rooms/{_q(room_id)}/state/m.room.pinned_events"
        data = await self._request(account, "GET", path, allow_404=True) or {}
        return list(data.get("pinned") or [])

    async def _set_pinned(self, account: MatrixAccount, room_id: str, pinned: List[str]) -> None:
        path = f"/rooms/{_q(room_id)}/state/m.room.pinned_events"
        await self._request(account, "PUT", path, json_body={"pinned": pinned})

    async def pin_message(
        self, room_id: str, message_id: str, *, account_id: Optional[str] = None
    ) -> Dict[str, Any]:
        account = self._account(account_id)
        room_id = await self._resolve_room(account, room_id)
        pinned = await self._pinned(account, room_id)
        if message_id not in pinned:
            pinned.append(message_id)
            await self._set_pinned(account, room_id, pinned)
        return {"pinned": pinned}

    async def unpin_message(
        self, room_id: str, message_id: str, *, account_id: Optional[str] = None
    ) -> Dict[str, Any]:
        account = self._account(account_id)
        room_id = await self._resolve_room(account, room_id)
        pinned = await self._pinned(account, room_id)
        if message_id in pinned:
            pinned = [event_id for event_id in pinned if event_id != message_id]
            await self._set_pinned(account, room_id, pinned)
        return {"pinned": pinned}

    async def list_pins(
        self, room_id: str, *, account_id: Optional[str] = None
    ) -> Dict[str, Any]:
        account = self._account(account_id)
        room_id = await self._resolve_room(account, room_id)
        pinned = await self._pinned(account, room_id)
        events = []
        for event_id in pinned:
            path = f"/rooms/{_q(room_id)}/event/{_q(event_id)}"
            event = await self._request(account, "GET", path, allow_404=True)
            if event:
                events.append(summarize_event(event))
        return {"pinned": pinned, "events": events}

    async def get_member_info(
        self, user_id: str, *, room_id: Optional[str] = None, account_id: Optional[str] = None
    ) -> Dict[str, Any]:
        account = self._account(account_id)
        profile = await self._request(account, "GET", f"/profile/{_q(user_id)}", allow_404=True) or {}
        member: Dict[str, Any] = {
            "userId": user_id,
            "displayName": profile.get("displayname"),
            "avatarUrl": profile.get("avatar_url"),
        }
        if room_id:
            room_id = await self._resolve_room(account, room_id)
            path = f"/rooms/{_q(room_id)}/state/m.room.member/{_q(user_id)}"
            state = await self._request(account, "GET", path, allow_404=True) or {}
            member["roomId"] = room_id
            member["membership"] = state.get("membership")
            if state.get("displayname"):
                member["displayName"] = state["displayname"]
        return member

    async def get_room_info(
        self, room_id: str, *, account_id: Optional[str] = None
    ) -> Dict[str, Any]:
        account = self._account(account_id)
        room_id = await self._resolve_room(account, room_id)

        async def state(event_type: str) -> Dict[str, Any]:
            path = f"/rooms/{_q(room_id)}/state/{event_type}"
            return await self._request(account, "GET", path, allow_404=True) or {}

        name = await state("m.room.name")
        topic = await state("m.room.topic")
        alias = await state("m.room.canonical_alias")
        members = await self._request(account, "GET", f"/rooms/{_q(room_id)}/joined_members")
        return {
            "roomId": room_id,
            "name": name.get("name"),
            "topic": topic.get("topic"),
            "canonicalAlias": alias.get("alias"),
            "memberCount": len(members.get("joined") or {}),
        }
