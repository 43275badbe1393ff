"""Tests for domain/target.py — placeholder detection and fallback resolution."""

import pytest

from matrix_actions.domain.errors import MissingParameterError, TargetResolutionError
from matrix_actions.domain.target import (
    DEFAULT_PLACEHOLDER_PREFIXES,
    PlaceholderPredicate,
    TargetResolver,
    fallback_limit,
)

ROOM = "!room:example.org"


class TestPlaceholderPredicate:
    @pytest.mark.parametrize(
        "ref",
        [None, "", "   ", "$INPUT-xyz", "$LATEST-1", "Queued-42", "$LA:abc", "$nomatch"],
    )
    def test_unusable(self, ref):
        assert PlaceholderPredicate()(ref) is True

    @pytest.mark.parametrize("ref", ["$real:nettsi.example", "$abc:example.org", "plain-id"])
    def test_usable(self, ref):
        assert PlaceholderPredicate()(ref) is False

    def test_custom_domain_fragment(self):
        predicate = PlaceholderPredicate(domain_fragment=":nettsi")
        assert predicate("$real:nettsi.example") is False
        assert predicate("$abc:example.org") is True

    def test_from_config_extra_prefixes(self):
        cfg = {"channels": {"matrix": {"targetResolution": {"extraPlaceholderPrefixes": ["tg:"]}}}}
        predicate = PlaceholderPredicate.from_config(cfg)
        assert predicate("tg:12345") is True
        assert predicate.prefixes[: len(DEFAULT_PLACEHOLDER_PREFIXES)] == DEFAULT_PLACEHOLDER_PREFIXES

    def test_from_config_replaces_prefixes(self):
        cfg = {"channels": {"matrix": {"targetResolution": {"placeholderPrefixes": ["X-"]}}}}
        predicate = PlaceholderPredicate.from_config(cfg)
        assert predicate.prefixes == ("X-",)
        assert predicate("Queued-42") is False
        assert predicate("X-1") is True

    def test_from_empty_config(self):
        assert PlaceholderPredicate.from_config(None) == PlaceholderPredicate()


class TestFallbackLimit:
    def test_default(self):
        assert fallback_limit({}) == 5

    def test_configured(self):
        cfg = {"channels": {"matrix": {"targetResolution": {"fallbackLimit": 10}}}}
        assert fallback_limit(cfg) == 10

    def test_invalid_ignored(self):
        cfg = {"channels": {"matrix": {"targetResolution": {"fallbackLimit": 0}}}}
        assert fallback_limit(cfg) == 5


class TestTargetResolver:
    @pytest.mark.asyncio
    async def test_usable_ref_skips_lookup(self, spy_client, tracer):
        resolver = TargetResolver(spy_client, tracer=tracer)
        target = await resolver.resolve(ROOM, "$real:nettsi.example")
        assert target.room_id == ROOM
        assert target.message_id == "$real:nettsi.example"
        assert target.from_fallback is False
        assert spy_client.calls == []
        assert tracer.events == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ref", ["", "$INPUT-xyz", "$LATEST-1", "Queued-42", "$LA:abc", "$nomatch", None])
    async def test_placeholder_triggers_lookup(self, spy_client, ref):
        resolver = TargetResolver(spy_client)
        target = await resolver.resolve(ROOM, ref, account_id="ops")
        assert target.message_id == "$newest:example.org"
        assert target.from_fallback is True
        assert spy_client.calls == [("read_messages", (ROOM,), {"limit": 5, "account_id": "ops"})]

    @pytest.mark.asyncio
    async def test_fallback_picks_first_message(self, make_client):
        client = make_client(messages=[{"eventId": "$a:x"}, {"eventId": "$b:x"}, {"eventId": "$c:x"}])
        target = await TargetResolver(client).resolve(ROOM, None)
        assert target.message_id == "$a:x"

    @pytest.mark.asyncio
    async def test_no_messages_raises(self, make_client):
        client = make_client(messages=[])
        with pytest.raises(TargetResolutionError) as exc:
            await TargetResolver(client).resolve(ROOM, "$LATEST")
        assert exc.value.room_id == ROOM
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_message_without_id_raises(self, make_client):
        client = make_client(messages=[{"body": "no id"}])
        with pytest.raises(TargetResolutionError):
            await TargetResolver(client).resolve(ROOM, None)

    @pytest.mark.asyncio
    async def test_blank_room_raises(self, spy_client):
        with pytest.raises(MissingParameterError) as exc:
            await TargetResolver(spy_client).resolve("  ", "$real:nettsi.example")
        assert exc.value.field == "roomId"
        assert spy_client.calls == []

    @pytest.mark.asyncio
    async def test_fallback_events(self, spy_client, tracer):
        await TargetResolver(spy_client, tracer=tracer).resolve(ROOM, "$LATEST-1")
        assert tracer.names() == ["target_resolution_fallback", "target_resolved"]
        assert tracer.first("target_resolution_fallback")["supplied"] == "$LATEST-1"
        assert tracer.first("target_resolved")["message_id"] == "$newest:example.org"

    @pytest.mark.asyncio
    async def test_custom_limit_and_predicate(self, spy_client):
        resolver = TargetResolver(spy_client, is_placeholder=lambda ref: True, fallback_limit=2)
        target = await resolver.resolve(ROOM, "$real:nettsi.example")
        assert target.from_fallback is True
        assert spy_client.calls[0][2]["limit"] == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ref", [None, "", "   "])
    async def test_blank_ref_falls_back_with_prefix_only_predicate(self, spy_client, ref):
        resolver = TargetResolver(spy_client, is_placeholder=lambda r: bool(r) and r.startswith("tg:"))
        target = await resolver.resolve(ROOM, ref)
        assert target.message_id == "$newest:example.org"
        assert target.from_fallback is True
        assert spy_client.names() == ["read_messages"]

    @pytest.mark.asyncio
    async def test_custom_predicate_still_applies(self, spy_client):
        resolver = TargetResolver(spy_client, is_placeholder=lambda r: bool(r) and r.startswith("tg:"))
        target = await resolver.resolve(ROOM, "tg:123")
        assert target.from_fallback is True
        target = await resolver.resolve(ROOM, "$nomatch")
        assert target.message_id == "$nomatch"

    @pytest.mark.asyncio
    async def test_ref_is_trimmed(self, spy_client):
        target = await TargetResolver(spy_client).resolve(ROOM, "  $abc:example.org ")
        assert target.message_id == "$abc:example.org"
