from __future__ import annotations

"""Output directory layout and crash-safe file writes."""

from dataclasses import dataclass
import logging
import os
from pathlib import Path
import re
import tempfile

import msgspec

from .log import log_event

logger = logging.getLogger(__name__)

_UNSAFE_CHARS_RE = re.compile(r'[\\/:*?"<>|\x00-\x1f]')
_STREAM_SUFFIXES = (".gz", ".jsonl", ".json", ".ndjson", ".events")


def atomic_write_bytes(dest: Path, data: bytes) -> None:
    """Write `data` next to `dest` and rename it into place; `dest` is never left half-written."""
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="wb",
            delete=False,
            dir=dest.parent,
            prefix=dest.name + ".",
            suffix=".tmp",
        ) as handle:
            tmp_path = Path(handle.name)
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        tmp_path.replace(dest)
    finally:
        if tmp_path is not None:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass


def encode_json_document(document: object) -> bytes:
    return msgspec.json.format(msgspec.json.encode(document), indent=2) + b"\n"


def write_json_document(path: Path, document: object) -> bool:
    """Write a pretty-printed JSON document; failures are logged and reported as False."""
    try:
        atomic_write_bytes(Path(path), encode_json_document(document))
    except (OSError, TypeError, msgspec.EncodeError) as exc:
        log_event(logger, logging.ERROR, "json_write_failed", path=str(path), error=str(exc))
        return False
    log_event(logger, logging.DEBUG, "json_written", path=str(path))
    return True


def safe_path_component(name: str, *, fallback: str = "unnamed") -> str:
    """Make a participant or stream name usable as a single file name."""
    text = _UNSAFE_CHARS_RE.sub("_", str(name)).strip().rstrip(".")
    if text in ("", ".", ".."):
        return fallback
    return text


def stream_name(path: Path) -> str:
    name = Path(path).name
    lowered = name.lower()
    stripped = True
    while stripped:
        stripped = False
        for suffix in _STREAM_SUFFIXES:
            if lowered.endswith(suffix) and len(lowered) > len(suffix):
                name = name[: -len(suffix)]
                lowered = lowered[: -len(suffix)]
                stripped = True
    return safe_path_component(name, fallback="stream")


@dataclass(frozen=True, slots=True)
class OutputLayout:
    """`<root>/round<N>/<t|ct>/<participant>.rec` plus analytics JSON at `<root>`."""

    root: Path

    @classmethod
    def for_stream(cls, output_dir: Path, events_path: Path) -> OutputLayout:
        return cls(root=Path(output_dir) / stream_name(events_path))

    def round_dir(self, round_number: int) -> Path:
        return self.root / f"round{int(round_number)}"

    def rec_path(self, round_number: int, team: str, name: str) -> Path:
        return self.round_dir(round_number) / str(team).lower() / f"{safe_path_component(name)}.rec"

    def analytics_path(self, filename: str) -> Path:
        return self.root / filename
