"""Chunked storage for captured terminal output."""

from __future__ import annotations

import os
import re
from typing import Iterator

#: Size of one chunk; each chunk holds at most ``CHUNK_SIZE - 1`` bytes.
CHUNK_SIZE = 1024
CHUNK_CAPACITY = CHUNK_SIZE - 1

DEFAULT_OUTPUT = "ptyb_buffer.txt"

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[ml]")
_WINDOW_TITLE = re.compile(r".*\x07")
_UNKNOWN_SEQUENCE = re.compile(r"004l\r")


class BufferInsertError(ValueError):
    """Raised when inserted text is larger than one chunk."""


def _as_bytes(text: str | bytes) -> bytes:
    data = text.encode("utf-8", "surrogateescape") if isinstance(text, str) else bytes(text)
    # Inserted text is treated as a C string: it ends at the first NUL.
    return data.split(b"\0", 1)[0]


class PtyBuffer:
    """Terminal output for one client, kept as a list of fixed-size chunks."""

    def __init__(self, cid: int = 0) -> None:
        self.cid = cid
        self._chunks: list[bytearray] = [bytearray()]

    def insert(self, text: str | bytes) -> None:
        """Append ``text``; it must not exceed ``CHUNK_SIZE`` bytes."""
        data = _as_bytes(text)
        if len(data) > CHUNK_SIZE:
            raise BufferInsertError(
                f"cannot insert {len(data)} bytes; the limit is {CHUNK_SIZE}"
            )
        last = self._chunks[-1]
        if len(last) == CHUNK_CAPACITY:
            last = bytearray()
            self._chunks.append(last)
        room = CHUNK_CAPACITY - len(last)
        last += data[:room]
        rest = data[room:]
        if rest:
            self._chunks.append(bytearray(rest))

    def chunks(self) -> Iterator[bytes]:
        """Yield the contents of each chunk in order."""
        for chunk in self._chunks:
            yield bytes(chunk)

    def text(self) -> str:
        """Return the whole buffer as a string."""
        return b"".join(self._chunks).decode("utf-8", "surrogateescape")

    def __len__(self) -> int:
        return sum(len(chunk) for chunk in self._chunks)


def strip_control_sequences(text: str) -> str:
    """Remove ANSI colour/mode escapes, window-title sequences and ``004l\\r``."""
    text = _ANSI_ESCAPE.sub("", text)
    text = _WINDOW_TITLE.sub("", text)
    return _UNKNOWN_SEQUENCE.sub("", text)


def write_buffer(buffer: PtyBuffer | None, path: str | os.PathLike = DEFAULT_OUTPUT) -> str:
    """Write the cleaned contents of ``buffer`` to ``path`` and return the path."""
    if buffer is None:
        raise ValueError("there is no buffer to write")
    cleaned = strip_control_sequences(buffer.text())
    with open(path, "w", encoding="utf-8", errors="surrogateescape", newline="") as out:
        out.write(cleaned)
    return os.fspath(path)