"""Logging setup shared by the CLI and library callers.

Library modules only ever do ``logger = logging.getLogger(__name__)``;
handlers are installed once by the entry point through
:func:`setup_logging`.

Two record layouts:
    human: 2025-10-28T13:45:12.345Z | INFO     | app=post job=bracket | Section 1: Profile1
    json:  {"t": "2025-10-28T13:45:12.345+00:00", "lvl": "INFO", "name": "...", "msg": "...", "job": "bracket"}

Contextual fields (application, job name) are attached with
:func:`push_context` and carried by a ``ContextVar``, so they follow the
current thread or task.
"""

import contextvars
import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    "plasma_post_log_context", default={}
)

_LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"

# Handlers installed by setup_logging(), removed again on the next call.
_installed: List[logging.Handler] = []


class ContextFormatter(logging.Formatter):
    """Render records as a human line or a JSON object, plus context.

    Parameters
    ----------
    fmt_mode : str
        ``"human"`` or ``"json"``.
    use_color : bool
        Colour the level name; ignored unless stderr is a terminal.
    tz : str
        ``"UTC"`` or ``"local"`` timestamps.
    """

    def __init__(self, fmt_mode: str = "human", use_color: bool = True, tz: str = "UTC"):
        super().__init__()
        if fmt_mode not in ("human", "json"):
            raise ValueError(f"Unknown log format: {fmt_mode}. Use 'human' or 'json'.")
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()
        self.tz = tz

    def _timestamp(self, record: logging.LogRecord) -> datetime:
        if self.tz == "UTC":
            return datetime.fromtimestamp(record.created, tz=timezone.utc)
        return datetime.fromtimestamp(record.created)

    def format(self, record: logging.LogRecord) -> str:
        ts = self._timestamp(record)
        fields = _context.get()
        if self.fmt_mode == "json":
            payload: Dict[str, Any] = {
                "t": ts.isoformat(timespec="milliseconds"),
                "lvl": record.levelname,
                "name": record.name,
                "pid": os.getpid(),
                "msg": record.getMessage(),
                **fields,
            }
            if record.exc_info:
                payload["exc"] = self.formatException(record.exc_info)
            return json.dumps(payload, default=str)

        level = f"{record.levelname:8s}"
        if self.use_color:
            level = f"{_LEVEL_COLORS.get(record.levelname, '')}{level}{_RESET}"
        parts = [ts.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z", level]
        if fields:
            parts.append(" ".join(f"{k}={v}" for k, v in fields.items()))
        parts.append(record.getMessage())
        line = " | ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _file_handler(
    log_file: str,
    rotate: Optional[Dict[str, Any]],
) -> logging.Handler:
    """Plain, size-rotated or time-rotated file handler."""
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    if not rotate:
        return logging.FileHandler(log_file, encoding="utf-8")

    mode = rotate.get("mode", "size")
    if mode == "size":
        return logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=rotate.get("max_bytes", 5_000_000),
            backupCount=rotate.get("backup_count", 5),
            encoding="utf-8",
        )
    if mode == "time":
        return logging.handlers.TimedRotatingFileHandler(
            log_file,
            when=rotate.get("when", "D"),
            interval=rotate.get("interval", 1),
            backupCount=rotate.get("backup_count", 7),
            encoding="utf-8",
        )
    raise ValueError(f"Unknown rotation mode: {mode}. Use 'size' or 'time'.")


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    rotate: Optional[Dict[str, Any]] = None,
    tz: str = "UTC",
    context: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Install console and/or file handlers on the root logger.

    Calling it again replaces the handlers it installed before, so
    repeated CLI invocations in one process do not duplicate output.

    Parameters
    ----------
    log_level : str
        ``"DEBUG"`` ... ``"CRITICAL"``.
    log_file : str, optional
        Also log to this file.
    json : bool
        JSON records in the file (the console stays human-readable).
    color : bool
        Coloured level names on a terminal.
    to_stderr : bool
        Install the console handler.
    rotate : dict, optional
        ``{"mode": "size", "max_bytes": ..., "backup_count": ...}`` or
        ``{"mode": "time", "when": "D", "interval": 1, "backup_count": ...}``.
    tz : str
        ``"UTC"`` or ``"local"``.
    context : dict, optional
        Fields pushed with :func:`push_context`, e.g. ``{"app": "post"}``.

    Returns
    -------
    dict
        ``{"handlers": [...]}`` for the handlers installed by this call.
    """
    root = logging.getLogger()
    file_handler = _file_handler(log_file, rotate) if log_file else None

    for old in _installed:
        root.removeHandler(old)
        old.close()
    _installed.clear()

    root.setLevel(getattr(logging, log_level.upper()))

    if to_stderr:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ContextFormatter("human", color, tz))
        _installed.append(console)
    if file_handler is not None:
        file_handler.setFormatter(
            ContextFormatter("json" if json else "human", use_color=False, tz=tz)
        )
        _installed.append(file_handler)

    for handler in _installed:
        root.addHandler(handler)

    if context:
        push_context(**context)
    logging.captureWarnings(True)

    return {"handlers": list(_installed)}


def push_context(**fields: Any) -> None:
    """Attach *fields* to every record logged from the current context."""
    _context.set({**_context.get(), **fields})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Drop the given context keys, or all of them when *keys* is None."""
    if keys is None:
        _context.set({})
        return
    _context.set({k: v for k, v in _context.get().items() if k not in keys})
