"""ActionTracer implementations."""

import json
import sys
from datetime import datetime, timezone
from typing import Any


def _log(msg: str):
    print(msg, file=sys.stderr)


class StderrTracer:
    """Writes one JSON object per event to stderr."""

    def __init__(self, source: str = "matrix-actions"):
        self.source = source

    def emit(self, event: str, **fields: Any) -> None:
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "source": self.source,
            "event": event,
        }
        record.update(fields)
        _log(json.dumps(record, ensure_ascii=False, default=str))


class NullTracer:
    def emit(self, event: str, **fields: Any) -> None:
        return None
