"""Dump the persisted session and document blobs for inspection."""

from __future__ import annotations

import json
from pathlib import Path

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import JsonLexer

from .errors import DeserializationFailure
from .persistence.blobs import DOCUMENTS_BLOB, SESSION_BLOB, BlobStore


def collect_state(directory: Path) -> dict[str, object]:
    """Return each blob's decoded JSON, or an error string when unreadable."""
    blobs = BlobStore(directory)
    out: dict[str, object] = {"directory": str(directory)}
    for key in (SESSION_BLOB, DOCUMENTS_BLOB):
        try:
            out[key] = blobs.read(key)
        except DeserializationFailure as exc:
            out[key] = {"error": str(exc)}
    return out


def render_state(directory: Path, color: bool) -> str:
    text = json.dumps(collect_state(directory), indent=2) + "\n"
    if not color:
        return text
    return highlight(text, JsonLexer(), TerminalFormatter())
