"""Low-level terminal input decoding.

Reads raw bytes from stdin and translates them into normalized key tokens:
printable characters are returned as-is, everything else as an upper-case
name (``ENTER``, ``ESC``, ``UP``, ``CTRL_U``, ``ALT_X``, ``PAGE_DOWN``...).
"""

from __future__ import annotations

import os
import select

ESC_SEQUENCE_TIMEOUT_MS = 25
_PENDING_BYTES: list[bytes] = []

_SINGLE_BYTE_TOKENS = {
    b"\t": "TAB",
    b"\r": "ENTER",
    b"\n": "ENTER",
    b"\x08": "BACKSPACE",
    b"\x7f": "BACKSPACE",
    b" ": "SPACE",
    b"\x00": "CTRL_SPACE",
}

_CSI_FINAL_TOKENS = {
    b"A": "UP",
    b"B": "DOWN",
    b"C": "RIGHT",
    b"D": "LEFT",
    b"H": "HOME",
    b"F": "END",
    b"Z": "SHIFT_TAB",
}

_CSI_TILDE_TOKENS = {
    "1": "HOME",
    "2": "INSERT",
    "3": "DELETE",
    "4": "END",
    "5": "PAGE_UP",
    "6": "PAGE_DOWN",
    "7": "HOME",
    "8": "END",
}

NAMED_KEYS = frozenset(
    {
        *_SINGLE_BYTE_TOKENS.values(),
        *_CSI_FINAL_TOKENS.values(),
        *_CSI_TILDE_TOKENS.values(),
        "ESC",
    }
)


def is_named_key(token: str) -> bool:
    """Return whether ``token`` is a named key rather than a literal character."""
    if token in NAMED_KEYS:
        return True
    if token.startswith(("CTRL_", "ALT_", "SHIFT_")):
        return len(token.split("_", 1)[1]) > 0
    return len(token) > 1 and token[0] == "F" and token[1:].isdigit()


def _read_ready_byte(fd: int, timeout_ms: int) -> bytes | None:
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def _read_utf8_tail(fd: int, first: bytes) -> str:
    """Complete a multi-byte UTF-8 character started by ``first``."""
    lead = first[0]
    if lead >= 0xF0:
        needed = 3
    elif lead >= 0xE0:
        needed = 2
    elif lead >= 0xC0:
        needed = 1
    else:
        needed = 0
    data = first
    for _ in range(needed):
        part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if part is None:
            break
        data += part
    return data.decode("utf-8", errors="replace")


def _decode_escape(fd: int) -> str:
    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return "ESC"
    if seq not in {b"[", b"O"}:
        if seq.isalnum():
            return f"ALT_{seq.decode('ascii').upper()}"
        _PENDING_BYTES.append(seq)
        return "ESC"

    params = b""
    while True:
        part = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if part is None:
            return "ESC"
        if part in _CSI_FINAL_TOKENS and not params:
            return _CSI_FINAL_TOKENS[part]
        if part == b"~":
            code = params.decode("ascii", errors="replace").split(";", 1)[0]
            return _CSI_TILDE_TOKENS.get(code, "ESC")
        if part.isalpha():
            # Modified arrows such as ``ESC [ 1 ; 2 C``.
            base = _CSI_FINAL_TOKENS.get(part)
            if base is None:
                return "ESC"
            modifier = params.decode("ascii", errors="replace").rsplit(";", 1)[-1]
            if modifier == "2":
                return f"SHIFT_{base}"
            if modifier in {"3", "9"}:
                return f"ALT_{base}"
            if modifier == "5":
                return f"CTRL_{base}"
            return base
        params += part
        if len(params) > 16:
            return "ESC"


def read_key(fd: int, timeout_ms: int | None = None) -> str:
    """Read one key token from ``fd``; ``""`` when ``timeout_ms`` elapses."""
    if _PENDING_BYTES:
        ch = _PENDING_BYTES.pop(0)
    else:
        if timeout_ms is not None:
            ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
            if not ready:
                return ""
        ch = os.read(fd, 1)
        if not ch:
            return ""

    token = _SINGLE_BYTE_TOKENS.get(ch)
    if token is not None:
        return token
    if ch == b"\x1b":
        return _decode_escape(fd)
    code = ch[0]
    if 1 <= code <= 26:
        return f"CTRL_{chr(code + 64)}"
    if code >= 0x80:
        return _read_utf8_tail(fd, ch)
    return ch.decode("utf-8", errors="replace")


__all__ = ["ESC_SEQUENCE_TIMEOUT_MS", "NAMED_KEYS", "is_named_key", "read_key"]
