"""Read-only, memory-mapped view of the package-manager history log."""

from __future__ import annotations

import mmap
from pathlib import Path
from typing import Iterator, Optional, Union

from ..exceptions import LogUnavailable, MalformedLine
from ..logging_config import get_logger

logger = get_logger(__name__)


class LogSource:
    """Map a history log file for the duration of one extraction run.

    The mapping is released on every exit path when used as a context
    manager::

        with LogSource("/var/log/apt/history.log") as source:
            for number, line in source.lines():
                ...
    """

    def __init__(self, path: Optional[Union[str, Path]]):
        self.path: Optional[Path] = Path(path) if path else None
        self._map: Optional[mmap.mmap] = None
        self._buffer: Optional[bytes] = None

    @property
    def buffer(self) -> Union[mmap.mmap, bytes]:
        """The immutable byte region. Raises if the source is not open."""
        if self._map is not None:
            return self._map
        if self._buffer is not None:
            return self._buffer
        raise RuntimeError("LogSource is not open. Use as context manager or call open().")

    def open(self) -> "LogSource":
        if self.path is None:
            raise LogUnavailable(None, "history path not set")
        try:
            with open(self.path, "rb") as f:
                size = f.seek(0, 2)
                if size == 0:
                    # Zero-length files cannot be mapped
                    self._buffer = b""
                else:
                    self._map = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)
        except OSError as e:
            raise LogUnavailable(self.path, e.strerror or str(e))
        except ValueError as e:
            raise LogUnavailable(self.path, str(e))
        logger.debug("Mapped %s (%d bytes)", self.path, len(self))
        return self

    def close(self) -> None:
        if self._map is not None:
            self._map.close()
            self._map = None
        self._buffer = None

    def __len__(self) -> int:
        return len(self.buffer)

    def __enter__(self) -> "LogSource":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def lines(self) -> Iterator[tuple[int, str]]:
        """Yield ``(line_number, text)`` pairs, numbered from 1.

        Each call starts over at the beginning of the region. Line
        terminators are stripped; a trailing ``\\r`` is removed as well.
        A line that is not valid UTF-8 raises ``MalformedLine``.
        """
        buf = self.buffer
        size = len(buf)
        pos = 0
        number = 0
        while pos < size:
            end = buf.find(b"\n", pos)
            if end == -1:
                end = size
            raw = buf[pos:end]
            pos = end + 1
            number += 1
            if raw.endswith(b"\r"):
                raw = raw[:-1]
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedLine(
                    number,
                    raw.decode("utf-8", errors="backslashreplace"),
                    f"invalid UTF-8 at column {e.start + 1}",
                )
            yield number, text
