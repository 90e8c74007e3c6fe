from __future__ import annotations

import logging
import sys
from typing import TextIO

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _format_value(value: object) -> str:
    if isinstance(value, float):
        text = f"{value:.4f}".rstrip("0").rstrip(".")
        return text or "0"
    text = str(value)
    text = text.replace("\n", "\\n")
    if " " in text or not text:
        return repr(text)
    return text


def _format_fields(fields: dict[str, object]) -> str:
    parts: list[str] = []
    for key in sorted(fields):
        parts.append(f"{key}={_format_value(fields[key])}")
    return " ".join(parts)


def format_event(event: str, **fields: object) -> str:
    line = f"event={str(event).strip()}"
    payload = _format_fields(fields)
    if payload:
        line += f" {payload}"
    return line


def log_event(logger: logging.Logger, level: int, event: str, **fields: object) -> None:
    if not logger.isEnabledFor(level):
        return
    logger.log(level, "%s", format_event(event, **fields))


def configure_logging(*, verbose: bool = False, stream: TextIO | None = None) -> None:
    """Install a root handler for CLI runs. Library code never calls this."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


__all__ = [
    "configure_logging",
    "format_event",
    "log_event",
]
