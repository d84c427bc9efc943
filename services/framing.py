"""Split a connection's byte stream into textual tick records."""

from __future__ import annotations

from typing import Callable, Iterator

END_OF_TRANSMISSION = b"\r\n"


def iter_records(payload: str) -> Iterator[str]:
    """Yield the non-empty records of ``payload``, one per line.

    Carriage returns count as line breaks, so ``\\r``, ``\\n`` and ``\\r\\n``
    all separate records.
    """
    normalized = payload.replace("\r", "\n")
    for line in normalized.split("\n"):
        if line:
            yield line


class FrameDecoder:
    """Accumulates the chunks read from one connection."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        self._buffer = bytearray()
        self.finished = False

    def feed(self, chunk: bytes) -> bool:
        """Buffer ``chunk``; return True once the device has ended its transmission."""
        self._buffer.extend(chunk)
        # Only a chunk carrying nothing but line breaks ends the transmission;
        # a data chunk that happens to begin with CRLF does not.
        if chunk.startswith(END_OF_TRANSMISSION) and not chunk.strip(b"\r\n"):
            self.finished = True
        return self.finished

    @property
    def bytes_received(self) -> int:
        return len(self._buffer)

    def text(self) -> str:
        return self._buffer.decode(self.encoding, errors="replace")

    def records(self) -> Iterator[str]:
        return iter_records(self.text())


def read_transmission(
    read: Callable[[int], bytes],
    chunk_size: int = 256,
    decoder: FrameDecoder | None = None,
) -> FrameDecoder:
    """Read chunks until EOF or an end-of-transmission chunk.

    ``read`` follows socket semantics: an empty result means the peer closed
    the connection. Read errors propagate to the caller.
    """
    frames = decoder or FrameDecoder()
    while True:
        chunk = read(chunk_size)
        if not chunk:
            break
        if frames.feed(chunk):
            break
    return frames
