"""Core primitives for build orchestration: processes, staleness, files and memory."""

from .arena import Arena, DEFAULT_CAPACITY
from .archive import DistArchiver
from .buffer import ByteBuffer, DynamicArray, INITIAL_CAPACITY
from .command_runner import (
    Command,
    CommandResult,
    CommandRunner,
    ProcessHandle,
    ProcessSet,
    RecordingCommandRunner,
    SubprocessCommandRunner,
    render_command,
)
from .config_loader import FILE_LOADERS, load_config_file, merge_mappings, normalize_string_list
from .console import Console
from .errors import (
    AllocationExhausted,
    BuildError,
    CommandError,
    FileOperationError,
    InvalidProcessHandle,
    ProcessSetError,
    SpawnError,
    StaleInputMissing,
    UnsupportedFileError,
)
from .fs import FileOperations, FileType
from .rebuild import RebuildCheck, RebuildVerdict, needs_rebuild, needs_rebuild1
from .string_view import StringView

__all__ = [
    "AllocationExhausted",
    "DistArchiver",
    "Arena",
    "BuildError",
    "ByteBuffer",
    "Command",
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "Console",
    "DEFAULT_CAPACITY",
    "DynamicArray",
    "FILE_LOADERS",
    "FileOperationError",
    "FileOperations",
    "FileType",
    "INITIAL_CAPACITY",
    "InvalidProcessHandle",
    "ProcessHandle",
    "ProcessSet",
    "ProcessSetError",
    "RebuildCheck",
    "RebuildVerdict",
    "RecordingCommandRunner",
    "SpawnError",
    "StaleInputMissing",
    "StringView",
    "SubprocessCommandRunner",
    "UnsupportedFileError",
    "load_config_file",
    "merge_mappings",
    "needs_rebuild",
    "needs_rebuild1",
    "normalize_string_list",
    "render_command",
]
