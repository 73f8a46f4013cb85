"""Line reassembly for the gateway byte stream."""

from __future__ import annotations


class StreamAssembler:
    """Split an arbitrary chunked stream into complete, trimmed lines.

    The trailing fragment of each chunk is held until its newline arrives.
    Owned by one connection; call :meth:`reset` whenever that connection is
    re-established so a fragment never joins data from a new link.
    """

    def __init__(self) -> None:
        self._buffer = ""

    @property
    def pending(self) -> str:
        """The incomplete line currently held back."""
        return self._buffer

    def feed(self, chunk: str | bytes) -> list[str]:
        """Append *chunk* and return every line it completed."""
        if isinstance(chunk, bytes):
            chunk = chunk.decode("ascii", errors="replace")
        self._buffer += chunk
        *complete, self._buffer = self._buffer.split("\n")
        return [stripped for stripped in (line.strip() for line in complete) if stripped]

    def reset(self) -> None:
        self._buffer = ""
