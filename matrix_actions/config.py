"""Configuration and shared state."""

__version__ = "0.1.0"

import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from matrix_actions.domain.errors import ConfigError

load_dotenv()

_stderr_print = lambda *a, **kw: print(*a, **kw, file=sys.stderr)

CONFIG = {
    "port": int(os.getenv("MATRIX_ACTIONS_PORT", "3100")),
    "config_path": os.getenv("MATRIX_CONFIG_PATH", "matrix.json"),
    # Default account credentials; override the config file's top-level values
    "matrix_homeserver": os.getenv("MATRIX_HOMESERVER", ""),
    "matrix_user_id": os.getenv("MATRIX_USER_ID", ""),
    "matrix_access_token": os.getenv("MATRIX_ACCESS_TOKEN", ""),
    # Per-request HTTP timeout for the protocol client
    "request_timeout_seconds": float(os.getenv("MATRIX_REQUEST_TIMEOUT", "30")),
}

# Env var → key under channels.matrix
_ENV_OVERRIDES = {
    "matrix_homeserver": "homeserver",
    "matrix_user_id": "userId",
    "matrix_access_token": "accessToken",
}


def load_core_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the core config document and apply env credential overrides.

    A missing file yields an empty document. The result always has a
    ``channels.matrix`` mapping.
    """
    config_path = Path(path or CONFIG["config_path"])
    doc: Dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                doc = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Failed to read {config_path}: {e}")
        if not isinstance(doc, dict):
            raise ConfigError(f"{config_path} must hold a JSON object")
    else:
        _stderr_print(f"No config file at {config_path}, using environment only")

    channels = doc.setdefault("channels", {})
    if not isinstance(channels, dict):
        raise ConfigError("channels must be an object")
    matrix = channels.setdefault("matrix", {})
    if not isinstance(matrix, dict):
        raise ConfigError("channels.matrix must be an object")
    for env_key, cfg_key in _ENV_OVERRIDES.items():
        if CONFIG[env_key]:
            matrix[cfg_key] = CONFIG[env_key]
    return doc


# ── Typed config ────────────────────────────────────────────


@dataclass
class MatrixSettings:
    homeserver: str = ""
    user_id: str = ""
    access_token: str = ""
    request_timeout_seconds: float = 30.0


@dataclass
class AppConfig:
    """Typed view over CONFIG plus the loaded core config document."""

    port: int = 3100
    config_path: str = "matrix.json"
    matrix: MatrixSettings = field(default_factory=MatrixSettings)
    core: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create AppConfig from environment variables."""
        core = load_core_config()
        matrix = core["channels"]["matrix"]
        return cls(
            port=CONFIG["port"],
            config_path=CONFIG["config_path"],
            matrix=MatrixSettings(
                homeserver=str(matrix.get("homeserver") or ""),
                user_id=str(matrix.get("userId") or ""),
                access_token=str(matrix.get("accessToken") or ""),
                request_timeout_seconds=CONFIG["request_timeout_seconds"],
            ),
            core=core,
        )
