"""Shared mock ports for router and adapter tests."""

import pytest


class SpyMatrixClient:
    """Mock MatrixClientPort that records every call in order."""

    def __init__(self, messages=None, fail_on=None):
        self.calls = []
        self.messages = messages if messages is not None else []
        self.fail_on = fail_on or {}
        self.pinned = []

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        error = self.fail_on.get(name)
        if error is not None:
            raise error

    def names(self):
        return [name for name, _, _ in self.calls]

    async def send_message(self, to, content, **kwargs):
        self._record("send_message", to, content, **kwargs)
        return {"messageId": "$sent:example.org", "roomId": to}

    async def edit_message(self, room_id, message_id, content, **kwargs):
        self._record("edit_message", room_id, message_id, content, **kwargs)
        return {"messageId": "$edit:example.org", "roomId": room_id, "editedId": message_id}

    async def delete_message(self, room_id, message_id, **kwargs):
        self._record("delete_message", room_id, message_id, **kwargs)

    async def read_messages(self, room_id, **kwargs):
        self._record("read_messages", room_id, **kwargs)
        return {"messages": list(self.messages), "nextBatch": "n1", "prevBatch": "p1"}

    async def react(self, room_id, message_id, emoji, **kwargs):
        self.calls.append(("react", (room_id, message_id, emoji), kwargs))
        error = self.fail_on.get(("react", emoji))
        if error is not None:
            raise error

    async def list_reactions(self, room_id, message_id, **kwargs):
        self._record("list_reactions", room_id, message_id, **kwargs)
        return [{"key": "👍", "count": 2, "users": ["@a:example.org", "@b:example.org"]}]

    async def remove_reactions(self, room_id, message_id, **kwargs):
        self._record("remove_reactions", room_id, message_id, **kwargs)
        return {"removed": 1 if kwargs.get("emoji") else 3}

    async def pin_message(self, room_id, message_id, **kwargs):
        self._record("pin_message", room_id, message_id, **kwargs)
        self.pinned.append(message_id)
        return {"pinned": list(self.pinned)}

    async def unpin_message(self, room_id, message_id, **kwargs):
        self._record("unpin_message", room_id, message_id, **kwargs)
        self.pinned = [p for p in self.pinned if p != message_id]
        return {"pinned": list(self.pinned)}

    async def list_pins(self, room_id, **kwargs):
        self._record("list_pins", room_id, **kwargs)
        return {"pinned": ["$p1:example.org"], "events": [{"eventId": "$p1:example.org"}]}

    async def get_member_info(self, user_id, **kwargs):
        self._record("get_member_info", user_id, **kwargs)
        return {"userId": user_id, "displayName": "Alice"}

    async def get_room_info(self, room_id, **kwargs):
        self._record("get_room_info", room_id, **kwargs)
        return {"roomId": room_id, "name": "General"}


class RecordingTracer:
    """Mock ActionTracer collecting (event, fields) pairs."""

    def __init__(self):
        self.events = []

    def emit(self, event, **fields):
        self.events.append((event, fields))

    def names(self):
        return [event for event, _ in self.events]

    def first(self, name):
        for event, fields in self.events:
            if event == name:
                return fields
        return None


@pytest.fixture
def spy_client():
    return SpyMatrixClient(
        messages=[
            {"eventId": "$newest:example.org", "body": "latest"},
            {"eventId": "$older:example.org", "body": "older"},
        ]
    )


@pytest.fixture
def tracer():
    return RecordingTracer()


@pytest.fixture
def make_client():
    """Factory for SpyMatrixClient with custom messages / failures."""
    return SpyMatrixClient
