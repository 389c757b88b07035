"""Exception taxonomy shared by the build orchestration core."""
from __future__ import annotations

from typing import TYPE_CHECKING, Sequence
import shlex

if TYPE_CHECKING:  # pragma: no cover
    from .command_runner import CommandResult


class BuildError(RuntimeError):
    """Base class for every recoverable failure raised by the core."""


class SpawnError(BuildError):
    """Raised when a process could not be created."""

    def __init__(self, command: Sequence[str], reason: str, *, os_error: OSError | None = None):
        rendered = " ".join(shlex.quote(part) for part in command) or "<empty>"
        super().__init__(f"Could not spawn {rendered}: {reason}")
        self.command = list(command)
        self.reason = reason
        self.os_error = os_error


class CommandError(BuildError):
    """Raised when a command ran but did not exit with status zero."""

    def __init__(self, result: "CommandResult"):
        rendered = " ".join(shlex.quote(part) for part in result.command)
        if result.signal_name:
            message = f"Command was terminated by {result.signal_name}: {rendered}"
        else:
            message = f"Command failed with exit code {result.returncode}: {rendered}"
        super().__init__(message)
        self.result = result


class ProcessSetError(BuildError):
    """Raised by ``wait_all`` when at least one member of the set failed."""

    def __init__(self, failures: Sequence["CommandResult"], total: int, *, invalid: int = 0):
        super().__init__(f"{len(failures) + invalid} of {total} processes failed")
        self.failures = list(failures)
        self.total = total
        self.invalid = invalid


class InvalidProcessHandle(BuildError):
    """Raised when waiting on a handle that is invalid or already joined."""


class FileOperationError(BuildError):
    """Filesystem failure with the underlying OS error preserved."""

    def __init__(self, message: str, *, path: str | None = None, os_error: OSError | None = None):
        if os_error is not None and os_error.strerror:
            message = f"{message}: {os_error.strerror}"
        super().__init__(message)
        self.path = path
        self.os_error = os_error
        self.errno = os_error.errno if os_error is not None else None


class StaleInputMissing(BuildError):
    """An input required to produce an existing output does not exist."""

    def __init__(self, output_path: str, input_path: str):
        super().__init__(f"Input '{input_path}' required by '{output_path}' does not exist")
        self.output_path = output_path
        self.input_path = input_path


class AllocationExhausted(BuildError):
    """The arena has no room left for the requested allocation."""

    def __init__(self, requested: int, available: int, capacity: int):
        super().__init__(
            f"Arena exhausted: requested {requested} bytes, {available} of {capacity} available. "
            "Increase the arena capacity."
        )
        self.requested = requested
        self.available = available
        self.capacity = capacity


class UnsupportedFileError(BuildError):
    """Raised for filesystem entries the copy routines cannot reproduce."""

    def __init__(self, path: str, kind: str):
        super().__init__(f"Unsupported type of file {path} ({kind})")
        self.path = path
        self.kind = kind


__all__ = [
    "AllocationExhausted",
    "BuildError",
    "CommandError",
    "FileOperationError",
    "InvalidProcessHandle",
    "ProcessSetError",
    "SpawnError",
    "StaleInputMissing",
    "UnsupportedFileError",
]
