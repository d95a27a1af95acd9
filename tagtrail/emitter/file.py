"""Append-only file sink."""

from __future__ import annotations

from pathlib import Path

from tagtrail.emitter.manager import RecordSink
from tagtrail.errors import EmitError


class FileSink(RecordSink):
    """Appends one line per record to a file.

    The file is opened, written and closed on every call, so a crash loses
    at most the record being written.  The parent directory must exist.

    Args:
        path: Target file; ``~`` is expanded.
    """

    def __init__(self, path: str | Path) -> None:
        if not str(path):
            raise ValueError("File sink path must not be empty")
        self._path = Path(path).expanduser()

    @property
    def sink_name(self) -> str:
        return "file"

    @property
    def path(self) -> Path:
        return self._path

    def write(self, line: str) -> None:
        try:
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
                fh.flush()
        except OSError as exc:
            raise EmitError(self.sink_name, exc) from exc
