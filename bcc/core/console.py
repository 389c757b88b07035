"""Console output handler used for diagnostics across the build core."""
from __future__ import annotations

from typing import TextIO
import sys


class Console:
    """Simple console output handler with configurable log level.

    Levels: none < error < warning < info < debug
    Default: 'info'
    """

    LEVELS = {
        "none": 0,
        "error": 1,
        "warning": 2,
        "info": 3,
        "debug": 4,
    }

    def __init__(self, level: str = "info", dry_run: bool = False, stream: TextIO | None = None):
        if level not in self.LEVELS:
            known = ", ".join(self.LEVELS)
            raise ValueError(f"Unknown log level '{level}'. Expected one of: {known}")
        self.level_name = level
        self.level = self.LEVELS[level]
        self.dry_run = dry_run
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        # Resolved lazily so redirected stderr (tests, wrappers) is honoured.
        return self._stream if self._stream is not None else sys.stderr

    def _emit(self, tag: str, message: str) -> None:
        print(f"[{tag}] {message}", file=self.stream)

    def info(self, message: str) -> None:
        if self.level >= self.LEVELS["info"]:
            self._emit("INFO", message)

    def warning(self, message: str) -> None:
        if self.level >= self.LEVELS["warning"]:
            self._emit("WARNING", message)

    def error(self, message: str) -> None:
        if self.level >= self.LEVELS["error"]:
            self._emit("ERROR", message)

    def dry(self, message: str) -> None:
        if self.dry_run:
            self._emit("DRY", message)

    def debug(self, message: str) -> None:
        if self.level >= self.LEVELS["debug"]:
            self._emit("DEBUG", message)
