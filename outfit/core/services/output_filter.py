"""
Output filter — mark every line the target prints.

Remote output is shown dimmed behind a gutter so it stands apart from
outfit's own status lines. Chunks are forwarded as soon as they
arrive: a partial line is written immediately and the prefix is
emitted only when the next line actually starts.
"""

from __future__ import annotations

from typing import BinaryIO

import click

GUTTER = "   │ "
RESET = "\x1b[0m"


class LinePrefixer:
    """Incremental line transform over a binary stream.

    Args:
        stream: Binary destination (e.g. ``sys.stdout.buffer``).
        prefix: Written at the start of every line.
        reset: Written right before every line ending (``\\n`` or ``\\r\\n``).
    """

    def __init__(self, stream: BinaryIO, prefix: bytes = b"", reset: bytes = b""):
        self._stream = stream
        self._prefix = prefix
        self._reset = reset
        self._at_line_start = True

    def write(self, chunk: bytes) -> None:
        if not chunk:
            return

        out = bytearray()
        start = 0
        while start < len(chunk):
            end = chunk.find(b"\n", start)
            piece = chunk[start:] if end < 0 else chunk[start:end + 1]
            start += len(piece)

            if self._at_line_start:
                out += self._prefix
            if piece.endswith(b"\r\n"):
                out += piece[:-2] + self._reset + b"\r\n"
                self._at_line_start = True
            elif piece.endswith(b"\n"):
                out += piece[:-1] + self._reset + b"\n"
                self._at_line_start = True
            else:
                out += piece
                self._at_line_start = False

        self._stream.write(bytes(out))
        self._stream.flush()

    __call__ = write

    def close(self) -> None:
        """Finish a line the target left unterminated."""
        if not self._at_line_start:
            self._stream.write(self._reset + b"\n")
            self._stream.flush()
            self._at_line_start = True


def for_stream(stream: BinaryIO, color: bool | None = None) -> LinePrefixer:
    """A LinePrefixer styled for ``stream``: dimmed on a TTY, plain otherwise."""
    if color is None:
        isatty = getattr(stream, "isatty", None)
        color = bool(isatty and isatty())

    if color:
        prefix = click.style(GUTTER, dim=True, reset=False)
        return LinePrefixer(stream, prefix.encode(), RESET.encode())
    return LinePrefixer(stream, GUTTER.encode())
