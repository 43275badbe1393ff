"""Matrix account resolution over the core config document.

Pure Python, no framework dependencies.
"""

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

DEFAULT_ACCOUNT_ID = "default"

_INVALID_ACCOUNT_CHARS = re.compile(r"[^a-z0-9_-]+")


@dataclass(frozen=True)
class MatrixAccount:
    account_id: str
    enabled: bool
    configured: bool
    homeserver: str = ""
    user_id: str = ""
    access_token: str = ""


def matrix_section(cfg: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    """Return ``channels.matrix`` or an empty mapping."""
    channels = (cfg or {}).get("channels")
    if not isinstance(channels, Mapping):
        return {}
    matrix = channels.get("matrix")
    return matrix if isinstance(matrix, Mapping) else {}


def normalize_account_id(value: Optional[str]) -> str:
    """Lowercase, collapse unsupported characters to ``-``; blank → default."""
    text = _INVALID_ACCOUNT_CHARS.sub("-", str(value or "").strip().lower()).strip("-")
    return text or DEFAULT_ACCOUNT_ID


def find_account_key(cfg: Optional[Mapping[str, Any]], name: Optional[str]) -> Optional[str]:
    """Match ``name`` against configured account keys after normalization."""
    if not name or not str(name).strip():
        return None
    accounts = matrix_section(cfg).get("accounts")
    if not isinstance(accounts, Mapping):
        return None
    wanted = normalize_account_id(name)
    for key in accounts:
        if normalize_account_id(key) == wanted:
            return key
    return None


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def resolve_matrix_account(
    cfg: Optional[Mapping[str, Any]], account_id: Optional[str] = None
) -> MatrixAccount:
    """Merge the top-level matrix settings with one account's overrides.

    ``enabled`` defaults to true at both levels; ``configured`` requires a
    homeserver and an access token.
    """
    matrix = matrix_section(cfg)
    key = find_account_key(cfg, account_id)
    override: Mapping[str, Any] = {}
    if key is not None:
        override = matrix["accounts"][key] or {}
        if not isinstance(override, Mapping):
            override = {}

    def pick(name: str) -> str:
        return _text(override.get(name)) or _text(matrix.get(name))

    homeserver = pick("homeserver")
    access_token = pick("accessToken")
    enabled = matrix.get("enabled") is not False and override.get("enabled") is not False
    return MatrixAccount(
        account_id=key if key is not None else normalize_account_id(account_id),
        enabled=enabled,
        configured=bool(homeserver and access_token),
        homeserver=homeserver.rstrip("/"),
        user_id=pick("userId"),
        access_token=access_token,
    )
