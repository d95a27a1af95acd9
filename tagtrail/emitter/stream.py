"""Text stream sink (standard output by default)."""

from __future__ import annotations

import sys
from typing import TextIO

from tagtrail.emitter.manager import RecordSink
from tagtrail.errors import EmitError


class StreamSink(RecordSink):
    """Writes records to a text stream, flushing after every line.

    The stream is resolved on each write when none was given, so that a
    replaced ``sys.stdout`` (e.g. under test capture) is honoured.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @property
    def sink_name(self) -> str:
        return "stdout" if self._stream is None else "stream"

    def write(self, line: str) -> None:
        stream = self._stream or sys.stdout
        try:
            stream.write(line + "\n")
            stream.flush()
        except (OSError, ValueError) as exc:
            raise EmitError(self.sink_name, exc) from exc
