"""Low-level terminal input decoding.

Reads raw bytes from stdin and translates them into normalized key tokens.
Handles ESC-sequence timing and Alt/arrow combos.
"""

from __future__ import annotations

import os
import select

ESC_SEQUENCE_TIMEOUT_MS = 25


class KeyReader:
    """Decode keys from one file descriptor, buffering bytes read ahead."""

    def __init__(self, fd: int) -> None:
        self.fd = fd
        self._pending: list[bytes] = []

    def _read_ready_byte(self, timeout_ms: int) -> bytes | None:
        """Read one byte if one arrives within ``timeout_ms``, else ``None``.

        End of input also yields ``None``.
        """
        ready, _, _ = select.select([self.fd], [], [], max(0.0, timeout_ms / 1000.0))
        if not ready:
            return None
        ch = os.read(self.fd, 1)
        if not ch:
            return None
        return ch

    def read_key(self, timeout_ms: int | None = None) -> str:
        """Return the next key token, or ``""`` when ``timeout_ms`` elapses first."""
        if self._pending:
            ch = self._pending.pop(0)
        else:
            if timeout_ms is not None:
                ready, _, _ = select.select([self.fd], [], [], max(0.0, timeout_ms / 1000.0))
                if not ready:
                    return ""
            ch = os.read(self.fd, 1)
            if not ch:
                return ""

        if ch == b"\x0f":
            return "CTRL_O"
        if ch == b"\t":
            return "TAB"
        if ch in {b"\r", b"\n"}:
            return "ENTER"
        if ch == b"\x03":
            return "CTRL_C"

        if ch != b"\x1b":
            if ch[0] >= 0x80:
                return self._read_utf8(ch)
            return ch.decode("utf-8", errors="replace")

        # Escape / arrow key sequences.
        seq = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
        if seq is None:
            return "ESC"
        if seq in {b"b", b"B"}:
            return "ALT_LEFT"
        if seq in {b"f", b"F"}:
            return "ALT_RIGHT"
        if seq != b"[":
            self._pending.append(seq)
            return "ESC"
        seq = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
        if seq is None:
            return "ESC"
        if seq == b"A":
            return "UP"
        if seq == b"B":
            return "DOWN"
        if seq == b"C":
            return "RIGHT"
        if seq == b"D":
            return "LEFT"
        if seq in {b"5", b"6"}:
            tail = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
            if tail == b"~":
                return "PAGE_UP" if seq == b"5" else "PAGE_DOWN"
            return "ESC"
        if seq == b"1":
            parts = [self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS) for _ in range(3)]
            if None in parts or parts[0] != b";":
                return "ESC"
            modifier, final = parts[1], parts[2]
            if modifier in {b"3", b"9"} and final == b"C":
                return "ALT_RIGHT"
            if modifier in {b"3", b"9"} and final == b"D":
                return "ALT_LEFT"
        return "ESC"

    def _read_utf8(self, lead: bytes) -> str:
        needed = 1 if lead[0] >= 0xC0 else 0
        if lead[0] >= 0xE0:
            needed = 2
        if lead[0] >= 0xF0:
            needed = 3
        data = lead
        for _ in range(needed):
            nxt = self._read_ready_byte(ESC_SEQUENCE_TIMEOUT_MS)
            if nxt is None:
                break
            data += nxt
        return data.decode("utf-8", errors="replace")
