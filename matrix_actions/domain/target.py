"""Message target resolution for reaction actions.

Upstream orchestration sometimes passes a synthetic or stale token instead of
a real event id. When the supplied reference is missing or looks like such a
placeholder, the resolver reads the newest few messages in the room and picks
the most recent one. This is a single best-effort guess, not a guarantee that
the guessed message is the one the caller meant.

Pure Python, no framework dependencies.
"""

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Tuple

from matrix_actions.domain.accounts import matrix_section
from matrix_actions.domain.errors import MissingParameterError, TargetResolutionError
from matrix_actions.domain.models import ResolvedTarget
from matrix_actions.ports.outbound import ActionTracer, MatrixClientPort

DEFAULT_PLACEHOLDER_PREFIXES: Tuple[str, ...] = (
    "$INPUT",  # unfilled input template
    "$LATEST",  # "latest message" sentinel
    "Queued",  # queued-message sentinel
    "$LA:",  # bridged platform ids
)
DEFAULT_ID_SIGIL = "$"
DEFAULT_DOMAIN_FRAGMENT = ":"
DEFAULT_FALLBACK_LIMIT = 5


@dataclass(frozen=True)
class PlaceholderPredicate:
    """Decides whether a supplied message reference is unusable.

    A reference is unusable when it is blank, starts with one of
    ``prefixes``, or starts with ``sigil`` without containing
    ``domain_fragment``. The prefix list is configuration, not a closed set:
    bridges with other id formats need their own entries.
    """

    prefixes: Tuple[str, ...] = DEFAULT_PLACEHOLDER_PREFIXES
    sigil: str = DEFAULT_ID_SIGIL
    domain_fragment: str = DEFAULT_DOMAIN_FRAGMENT

    def __call__(self, ref: Optional[str]) -> bool:
        if ref is None or not ref.strip():
            return True
        ref = ref.strip()
        if any(ref.startswith(prefix) for prefix in self.prefixes):
            return True
        return bool(self.sigil) and ref.startswith(self.sigil) and self.domain_fragment not in ref

    @classmethod
    def from_config(cls, cfg: Optional[Mapping[str, Any]]) -> "PlaceholderPredicate":
        """Build from ``channels.matrix.targetResolution``.

        ``placeholderPrefixes`` replaces the defaults, ``extraPlaceholderPrefixes``
        extends them, ``domainFragment`` overrides the domain check.
        """
        settings = target_settings(cfg)
        prefixes = settings.get("placeholderPrefixes")
        if isinstance(prefixes, list):
            base = tuple(str(p) for p in prefixes if str(p))
        else:
            base = DEFAULT_PLACEHOLDER_PREFIXES
        extra = settings.get("extraPlaceholderPrefixes")
        if isinstance(extra, list):
            base = base + tuple(str(p) for p in extra if str(p) and str(p) not in base)
        fragment = settings.get("domainFragment")
        return cls(
            prefixes=base,
            domain_fragment=fragment if isinstance(fragment, str) and fragment else DEFAULT_DOMAIN_FRAGMENT,
        )


def target_settings(cfg: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    settings = matrix_section(cfg).get("targetResolution")
    return settings if isinstance(settings, Mapping) else {}


def fallback_limit(cfg: Optional[Mapping[str, Any]]) -> int:
    limit = target_settings(cfg).get("fallbackLimit")
    if isinstance(limit, int) and not isinstance(limit, bool) and limit > 0:
        return limit
    return DEFAULT_FALLBACK_LIMIT


class TargetResolver:
    """Turns a room id plus an optional message reference into a real target."""

    def __init__(
        self,
        client: MatrixClientPort,
        is_placeholder: Callable[[Optional[str]], bool] = PlaceholderPredicate(),
        tracer: Optional[ActionTracer] = None,
        fallback_limit: int = DEFAULT_FALLBACK_LIMIT,
    ):
        self._client = client
        self._is_placeholder = is_placeholder
        self._tracer = tracer
        self._fallback_limit = fallback_limit

    def _emit(self, event: str, **fields: Any) -> None:
        if self._tracer is not None:
            self._tracer.emit(event, **fields)

    async def resolve(
        self,
        room_id: str,
        ref: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> ResolvedTarget:
        if not room_id or not room_id.strip():
            raise MissingParameterError("roomId")

        # Blank refs always fall back, whatever predicate is plugged in.
        usable = isinstance(ref, str) and bool(ref.strip()) and not self._is_placeholder(ref)
        if usable:
            return ResolvedTarget(room_id=room_id, message_id=ref.strip())

        self._emit(
            "target_resolution_fallback",
            room_id=room_id,
            supplied=ref,
            account_id=account_id,
            limit=self._fallback_limit,
        )
        result = await self._client.read_messages(
            room_id, limit=self._fallback_limit, account_id=account_id
        )
        messages = (result or {}).get("messages") or []
        message_id = None
        if messages and isinstance(messages[0], Mapping):
            # Newest first; ids read back from the server are taken as real.
            message_id = messages[0].get("eventId")
        if not isinstance(message_id, str) or not message_id.strip():
            raise TargetResolutionError(room_id)

        self._emit("target_resolved", room_id=room_id, message_id=message_id)
        return ResolvedTarget(room_id=room_id, message_id=message_id, from_fallback=True)
