"""ActionRouter — verb dispatch over a Matrix protocol client.

Per call: classify the verb, check its category gate, extract params, resolve
the target where needed, make the protocol call(s), wrap the result as
``{"ok": True, ...payload}``. All validation happens before the first
protocol call; protocol errors propagate unchanged.

Pure Python, no framework dependencies.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional

from matrix_actions.domain.errors import (
    ActionDisabledError,
    MissingParameterError,
    PartialReactionError,
    UnsupportedActionError,
)
from matrix_actions.domain.gate import CapabilityGate
from matrix_actions.domain.models import (
    ROOM_ALIASES,
    ActionCategory,
    ActionSpec,
    param,
)
from matrix_actions.domain.params import extract_params, split_list_param
from matrix_actions.domain.target import PlaceholderPredicate, TargetResolver, fallback_limit
from matrix_actions.ports.outbound import ActionTracer, MatrixClientPort

Args = Dict[str, Any]

_ROOM = param(*ROOM_ALIASES, label="roomId", required=True)
_ACCOUNT = param("accountId")
# Reaction verbs accept any of these for the message; order matters.
_MESSAGE_REF = param("target", "messageId", "message_id", label="messageId")
_MESSAGE_ID = param("messageId", required=True)
_REACTION_KEYS = ("emoji", "emojis", "remove")


class ActionRouter:
    """Dispatches Matrix action verbs through a data-driven table."""

    def __init__(
        self,
        client: MatrixClientPort,
        tracer: Optional[ActionTracer] = None,
        is_placeholder: Optional[Callable[[Optional[str]], bool]] = None,
    ):
        self._client = client
        self._tracer = tracer
        self._is_placeholder = is_placeholder
        self._table: Dict[str, ActionSpec] = {}
        for spec in self._build_table():
            self._table[spec.verb] = spec

    def _build_table(self) -> List[ActionSpec]:
        messages = ActionCategory.MESSAGES
        reactions = ActionCategory.REACTIONS
        pins = ActionCategory.PINS
        return [
            ActionSpec(
                "sendMessage",
                None,
                (
                    param("to", required=True),
                    param("content", required=True, allow_empty=True, trim=False),
                    param("mediaUrl", trim=False),
                    param("mediaLocalRoots", kind="json_list"),
                    param("replyToId", "replyTo", label="replyToId"),
                    param("threadId"),
                    _ACCOUNT,
                ),
                self._send_message,
                ("send",),
            ),
            ActionSpec(
                "react",
                reactions,
                (
                    _ROOM,
                    _MESSAGE_REF,
                    param("emoji", allow_empty=True),
                    param("emojis"),
                    param("remove", kind="bool"),
                    _ACCOUNT,
                ),
                self._react,
                ("react",),
            ),
            ActionSpec(
                "reactions",
                reactions,
                (_ROOM, _MESSAGE_REF, param("limit", kind="integer", minimum=1), _ACCOUNT),
                self._list_reactions,
                ("reactions",),
            ),
            ActionSpec(
                "readMessages",
                messages,
                (
                    _ROOM,
                    param("limit", kind="integer", minimum=1),
                    param("before"),
                    param("after"),
                    _ACCOUNT,
                ),
                self._read_messages,
                ("read",),
            ),
            ActionSpec(
                "editMessage",
                messages,
                (
                    _ROOM,
                    _MESSAGE_ID,
                    param("content", required=True, trim=False),
                    _ACCOUNT,
                ),
                self._edit_message,
                ("edit",),
            ),
            ActionSpec(
                "deleteMessage",
                messages,
                (_ROOM, _MESSAGE_ID, param("reason"), _ACCOUNT),
                self._delete_message,
                ("delete",),
            ),
            ActionSpec(
                "pinMessage",
                pins,
                (_ROOM, _MESSAGE_ID, _ACCOUNT),
                self._pin_message,
                ("pin",),
            ),
            ActionSpec(
                "unpinMessage",
                pins,
                (_ROOM, _MESSAGE_ID, _ACCOUNT),
                self._unpin_message,
                ("unpin",),
            ),
            ActionSpec(
                "listPins",
                pins,
                (_ROOM, _ACCOUNT),
                self._list_pins,
                ("list-pins",),
            ),
            ActionSpec(
                "memberInfo",
                ActionCategory.MEMBER_INFO,
                (
                    param("userId", required=True),
                    param("roomId", "channelId", label="roomId"),
                    _ACCOUNT,
                ),
                self._member_info,
                ("member-info",),
            ),
            ActionSpec(
                "channelInfo",
                ActionCategory.CHANNEL_INFO,
                (_ROOM, _ACCOUNT),
                self._channel_info,
                ("channel-info",),
            ),
        ]

    # ── table queries ──────────────────────────────────────────

    @property
    def verbs(self) -> List[str]:
        return list(self._table)

    def spec_for(self, verb: str) -> Optional[ActionSpec]:
        return self._table.get(verb)

    def verb_for_action(self, action: str) -> Optional[str]:
        """Map an advertised action name (``"list-pins"``) to its verb."""
        for spec in self._table.values():
            if action in spec.advertised_as:
                return spec.verb
        return None

    def list_actions(self, config: Optional[Mapping[str, Any]] = None) -> List[str]:
        gate = CapabilityGate.from_config(config)
        return gate.list_actions(
            (spec.category, spec.advertised_as) for spec in self._table.values()
        )

    # ── dispatch ───────────────────────────────────────────────

    def _emit(self, event: str, **fields: Any) -> None:
        if self._tracer is not None:
            self._tracer.emit(event, **fields)

    def _resolver(self, config: Optional[Mapping[str, Any]]) -> TargetResolver:
        predicate = self._is_placeholder or PlaceholderPredicate.from_config(config)
        return TargetResolver(
            self._client,
            is_placeholder=predicate,
            tracer=self._tracer,
            fallback_limit=fallback_limit(config),
        )

    async def dispatch(
        self,
        verb: str,
        raw_params: Optional[Mapping[str, Any]] = None,
        config: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        name = verb.strip() if isinstance(verb, str) else ""
        spec = self._table.get(name)
        if spec is None:
            raise UnsupportedActionError(str(verb))

        if spec.category is not None:
            gate = CapabilityGate.from_config(config)
            if not gate.is_enabled(spec.category):
                self._emit("action_denied", verb=name, category=spec.category.value)
                raise ActionDisabledError(spec.category.value)

        params: Mapping[str, Any] = raw_params or {}
        args = extract_params(params, spec.fields)
        self._emit(
            "action_dispatched",
            verb=name,
            category=spec.category.value if spec.category else None,
        )

        payload = await spec.handler(args, params, config)
        result: Dict[str, Any] = {"ok": True}
        result.update(payload)
        self._emit("action_completed", verb=name)
        return result

    # ── handlers ───────────────────────────────────────────────

    async def _send_message(self, args: Args, params: Mapping[str, Any], config) -> Args:
        result = await self._client.send_message(
            args["to"],
            args["content"],
            media_url=args["mediaUrl"],
            media_local_roots=args["mediaLocalRoots"],
            reply_to_id=args["replyToId"],
            thread_id=args["threadId"],
            account_id=args["accountId"],
        )
        return {"result": result}

    async def _react(self, args: Args, params: Mapping[str, Any], config) -> Args:
        """Add reactions, or remove them when ``remove`` is set or no emoji is given.

        Emojis come from ``emojis`` or, failing that, ``emoji``; both may be
        comma-separated. Adds run one at a time in order. If one fails after
        others were applied, those stay applied and ``PartialReactionError``
        carries them in ``added``.
        """
        if all(params.get(key) is None for key in _REACTION_KEYS):
            raise MissingParameterError("emoji")

        emojis = split_list_param(args["emojis"]) or split_list_param(args["emoji"])
        remove = bool(args["remove"])
        account_id = args["accountId"]
        target = await self._resolver(config).resolve(
            args["roomId"], args["messageId"], account_id
        )

        if remove or not emojis:
            removed = 0
            for emoji in emojis or [None]:
                outcome = await self._client.remove_reactions(
                    target.room_id, target.message_id, emoji=emoji, account_id=account_id
                )
                removed += int((outcome or {}).get("removed") or 0)
            self._emit(
                "reactions_removed",
                room_id=target.room_id,
                message_id=target.message_id,
                emojis=emojis,
                removed=removed,
            )
            return {"removed": removed}

        added: List[str] = []
        for emoji in emojis:
            try:
                await self._client.react(
                    target.room_id, target.message_id, emoji, account_id=account_id
                )
            except Exception as e:
                self._emit(
                    "reaction_failed",
                    room_id=target.room_id,
                    message_id=target.message_id,
                    emoji=emoji,
                    added=list(added),
                    error=str(e),
                )
                if added:
                    raise PartialReactionError(added, emoji, str(e)) from e
                raise
            added.append(emoji)
            self._emit(
                "reaction_added",
                room_id=target.room_id,
                message_id=target.message_id,
                emoji=emoji,
            )
        return {"added": added}

    async def _list_reactions(self, args: Args, params: Mapping[str, Any], config) -> Args:
        account_id = args["accountId"]
        target = await self._resolver(config).resolve(
            args["roomId"], args["messageId"], account_id
        )
        reactions = await self._client.list_reactions(
            target.room_id, target.message_id, limit=args["limit"], account_id=account_id
        )
        return {"reactions": reactions}

    async def _read_messages(self, args: Args, params: Mapping[str, Any], config) -> Args:
        result = await self._client.read_messages(
            args["roomId"],
            limit=args["limit"],
            before=args["before"],
            after=args["after"],
            account_id=args["accountId"],
        )
        return dict(result or {})

    async def _edit_message(self, args: Args, params: Mapping[str, Any], config) -> Args:
        result = await self._client.edit_message(
            args["roomId"], args["messageId"], args["content"], account_id=args["accountId"]
        )
        return {"result": result}

    async def _delete_message(self, args: Args, params: Mapping[str, Any], config) -> Args:
        await self._client.delete_message(
            args["roomId"],
            args["messageId"],
            reason=args["reason"],
            account_id=args["accountId"],
        )
        return {"deleted": True}

    async def _pin_message(self, args: Args, params: Mapping[str, Any], config) -> Args:
        result = await self._client.pin_message(
            args["roomId"], args["messageId"], account_id=args["accountId"]
        )
        return {"pinned": result.get("pinned")}

    async def _unpin_message(self, args: Args, params: Mapping[str, Any], config) -> Args:
        result = await self._client.unpin_message(
            args["roomId"], args["messageId"], account_id=args["accountId"]
        )
        return {"pinned": result.get("pinned")}

    async def _list_pins(self, args: Args, params: Mapping[str, Any], config) -> Args:
        result = await self._client.list_pins(args["roomId"], account_id=args["accountId"])
        return {"pinned": result.get("pinned"), "events": result.get("events")}

    async def _member_info(self, args: Args, params: Mapping[str, Any], config) -> Args:
        member = await self._client.get_member_info(
            args["userId"], room_id=args["roomId"], account_id=args["accountId"]
        )
        return {"member": member}

    async def _channel_info(self, args: Args, params: Mapping[str, Any], config) -> Args:
        room = await self._client.get_room_info(args["roomId"], account_id=args["accountId"])
        return {"room": room}
