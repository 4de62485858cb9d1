"""Incremental decoding of server-sent event streams."""

from __future__ import annotations

from typing import List, Optional

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


class SSEDecoder:
    """Split streamed text into ``data:`` payloads.

    Text arrives in arbitrary chunks, so an incomplete trailing line is kept
    in a buffer until the rest of it arrives. Blank lines, comments and
    non-data fields are ignored. The ``[DONE]`` sentinel sets :attr:`done`
    and is not returned as a payload.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self.done = False

    def feed(self, text: str) -> List[str]:
        """Add ``text`` and return every payload completed by it."""
        self._buffer += text
        *lines, self._buffer = self._buffer.split("\n")
        payloads = []
        for line in lines:
            payload = self._parse_line(line)
            if payload is not None:
                payloads.append(payload)
        return payloads

    def flush(self) -> List[str]:
        """Return the payload of an unterminated final line, if any."""
        line, self._buffer = self._buffer, ""
        payload = self._parse_line(line)
        return [payload] if payload is not None else []

    def _parse_line(self, line: str) -> Optional[str]:
        if self.done:
            return None
        line = line.strip()
        if not line.startswith(DATA_PREFIX):
            return None
        data = line[len(DATA_PREFIX):].strip()
        if data == DONE_SENTINEL:
            self.done = True
            return None
        return data or None
