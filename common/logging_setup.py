from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, Optional


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line, stamped with the record's own creation time:
      {"t": <epoch ms>, "lvl": "WARNING", "name": "verifier.engine", "msg": "...", "extra": {...}}
    `extra`, `exc_info` and `stack` keys appear only when the record carries them.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        line: Dict[str, Any] = dict(
            t=round(record.created * 1000),
            lvl=record.levelname,
            name=record.name,
            msg=record.getMessage(),
        )
        # callers pass structured fields as extra={"extra": {...}}
        fields = getattr(record, "extra", None)
        if isinstance(fields, dict):
            line["extra"] = fields
        if record.exc_info:
            line["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            line["stack"] = self.formatStack(record.stack_info)
        return json.dumps(line, ensure_ascii=False, default=str)


def _resolve_level(name: Optional[str]) -> int:
    lvl = getattr(logging, (name or "INFO").upper(), None)
    return lvl if isinstance(lvl, int) else logging.INFO


def setup_logging(level: Optional[str] = None, *, force: bool = False) -> None:
    """
    Configure root logger once with JSON formatting.
    Level precedence:
      - explicit `level` arg (CLI --log-level or config logging.level)
      - default INFO
    `force=True` re-applies the level on an already configured root.
    """
    root = logging.getLogger()
    if getattr(root, "_tilearchive_configured", False):  # idempotent
        if force and level:
            root.setLevel(_resolve_level(level))
        return

    # stdout carries command output (reports, header JSON, raw tiles)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())

    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_resolve_level(level))
    root._tilearchive_configured = True  # type: ignore[attr-defined]


def get_logger(name: str) -> logging.Logger:
    """Module logger. Configuration is left to the entry point (see verifier.cli)."""
    return logging.getLogger(name)
