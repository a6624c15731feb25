"""Line-oriented text output with indentation."""

from contextlib import contextmanager
from typing import Iterator, TextIO

INDENT_WIDTH = 4
HEX_BYTES_PER_LINE = 16


class Printer:
    """Writes indented lines to a text stream."""

    def __init__(self, stream: TextIO):
        self.stream = stream
        self.level = 0

    def indent(self) -> None:
        self.level += 1

    def unindent(self) -> None:
        self.level -= 1

    @contextmanager
    def with_indent(self) -> Iterator[None]:
        self.indent()
        try:
            yield
        finally:
            self.unindent()

    def line(self, text: str = "") -> None:
        self.stream.write(self._prefix() + text + "\n")

    def hex(self, data: bytes) -> str:
        """Format bytes as hex, one block of 16 bytes per line, one level deeper."""
        self.indent()
        try:
            prefix = self._prefix()
            lines = []
            for i in range(0, len(data), HEX_BYTES_PER_LINE):
                chunk = data[i : i + HEX_BYTES_PER_LINE]
                lines.append(prefix + " ".join(f"{b:02x}" for b in chunk))
        finally:
            self.unindent()

        return "".join("\n" + line for line in lines)

    def _prefix(self) -> str:
        return " " * (self.level * INDENT_WIDTH)
