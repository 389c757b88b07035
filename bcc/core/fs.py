"""Filesystem helpers used by build recipes and the bootstrap."""
from __future__ import annotations

from enum import Enum
from typing import List, Union
import os
import stat

from .arena import Arena
from .buffer import ByteBuffer
from .console import Console
from .errors import FileOperationError, UnsupportedFileError

PathLike = Union[str, "os.PathLike[str]"]

_BINARY = getattr(os, "O_BINARY", 0)


class FileType(str, Enum):
    REGULAR = "regular"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"
    ERROR = "error"


def file_type_from_mode(mode: int) -> FileType:
    if stat.S_ISDIR(mode):
        return FileType.DIRECTORY
    if stat.S_ISREG(mode):
        return FileType.REGULAR
    if stat.S_ISLNK(mode):
        return FileType.SYMLINK
    return FileType.OTHER


class FileOperations:
    """Filesystem primitives that report every failure once through ``console``.

    Path strings built while walking trees are allocated from ``arena`` and
    released when each step returns.
    """

    COPY_CHUNK_SIZE = 32 * 1024

    def __init__(self, console: Console | None = None, arena: Arena | None = None) -> None:
        self.console = console or Console()
        self.arena = arena or Arena()

    def _fail(self, message: str, path: str, exc: OSError) -> FileOperationError:
        error = FileOperationError(message, path=path, os_error=exc)
        self.console.error(str(error))
        return error

    def mkdir_if_not_exists(self, path: PathLike) -> bool:
        """Create ``path``; return ``False`` when it already existed."""

        target = os.fspath(path)
        try:
            os.mkdir(target, 0o755)
        except FileExistsError:
            self.console.info(f"directory `{target}` already exists")
            return False
        except OSError as exc:
            raise self._fail(f"could not create directory `{target}`", target, exc) from exc
        self.console.info(f"created directory `{target}`")
        return True

    def classify(self, path: PathLike, *, strict: bool = True) -> FileType:
        """Classify ``path`` without following symlinks.

        When the entry cannot be inspected a :class:`FileOperationError` is
        raised, or :attr:`FileType.ERROR` is returned if ``strict`` is off.
        """

        target = os.fspath(path)
        try:
            info = os.lstat(target)
        except OSError as exc:
            error = self._fail(f"Could not get stat of {target}", target, exc)
            if strict:
                raise error from exc
            return FileType.ERROR
        return file_type_from_mode(info.st_mode)

    def list_directory(self, path: PathLike) -> List[str]:
        """Every entry name of ``path``, including the ``.`` and ``..`` pseudo entries."""

        target = os.fspath(path)
        try:
            names = os.listdir(target)
        except OSError as exc:
            raise self._fail(f"Could not read directory {target}", target, exc) from exc
        return [os.curdir, os.pardir, *names]

    def file_exists(self, path: PathLike) -> bool:
        target = os.fspath(path)
        try:
            os.stat(target)
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise self._fail(f"Could not check if file {target} exists", target, exc) from exc
        return True

    def rename(self, old_path: PathLike, new_path: PathLike) -> None:
        old, new = os.fspath(old_path), os.fspath(new_path)
        self.console.info(f"renaming {old} -> {new}")
        try:
            os.replace(old, new)
        except OSError as exc:
            raise self._fail(f"could not rename {old} to {new}", old, exc) from exc

    @staticmethod
    def _write_all(fd: int, data: bytes | memoryview) -> None:
        view = memoryview(data)
        while view:
            written = os.write(fd, view)
            view = view[written:]

    def copy_file(self, src_path: PathLike, dst_path: PathLike) -> None:
        """Copy file contents and permission bits from ``src_path`` to ``dst_path``."""

        src, dst = os.fspath(src_path), os.fspath(dst_path)
        self.console.info(f"copying {src} -> {dst}")
        try:
            src_fd = os.open(src, os.O_RDONLY | _BINARY)
        except OSError as exc:
            raise self._fail(f"Could not open file {src}", src, exc) from exc

        try:
            try:
                mode = stat.S_IMODE(os.fstat(src_fd).st_mode)
            except OSError as exc:
                raise self._fail(f"Could not get mode of file {src}", src, exc) from exc

            try:
                dst_fd = os.open(dst, os.O_CREAT | os.O_TRUNC | os.O_WRONLY | _BINARY, mode)
            except OSError as exc:
                raise self._fail(f"Could not create file {dst}", dst, exc) from exc

            try:
                while True:
                    try:
                        chunk = os.read(src_fd, self.COPY_CHUNK_SIZE)
                    except OSError as exc:
                        raise self._fail(f"Could not read from file {src}", src, exc) from exc
                    if not chunk:
                        break
                    try:
                        self._write_all(dst_fd, chunk)
                    except OSError as exc:
                        raise self._fail(f"Could not write to file {dst}", dst, exc) from exc
                if hasattr(os, "fchmod"):
                    os.fchmod(dst_fd, mode)
            finally:
                os.close(dst_fd)
        finally:
            os.close(src_fd)

    def copy_tree(self, src_path: PathLike, dst_path: PathLike) -> None:
        """Recursively copy ``src_path`` to ``dst_path``.

        Symlinks are skipped with a warning; any other non regular entry
        raises :class:`UnsupportedFileError`. Entries copied before a failure
        stay in place.
        """

        src, dst = os.fspath(src_path), os.fspath(dst_path)
        with self.arena.checkpoint():
            kind = self.classify(src)
            if kind is FileType.DIRECTORY:
                self.mkdir_if_not_exists(dst)
                for name in self.list_directory(src):
                    if name in (os.curdir, os.pardir):
                        continue
                    # Siblings reuse the same arena offset
                    with self.arena.checkpoint():
                        child_src = self.arena.sprintf("%s/%s", src, name).decode()
                        child_dst = self.arena.sprintf("%s/%s", dst, name).decode()
                        self.copy_tree(child_src, child_dst)
            elif kind is FileType.REGULAR:
                self.copy_file(src, dst)
            elif kind is FileType.SYMLINK:
                self.console.warning(f"Copying symlinks is not supported yet, skipping {src}")
            else:
                error = UnsupportedFileError(src, kind.value)
                self.console.error(str(error))
                raise error

    def read_entire_file(self, path: PathLike, buffer: ByteBuffer | None = None) -> ByteBuffer:
        """Append the contents of ``path`` to ``buffer`` (a new one by default)."""

        target = os.fspath(path)
        sink = buffer if buffer is not None else ByteBuffer()
        try:
            with open(target, "rb") as handle:
                while True:
                    chunk = handle.read(self.COPY_CHUNK_SIZE)
                    if not chunk:
                        break
                    sink.extend(chunk)
        except OSError as exc:
            raise self._fail(f"Could not read file {target}", target, exc) from exc
        return sink

    def write_entire_file(self, path: PathLike, data: bytes | bytearray | ByteBuffer) -> None:
        target = os.fspath(path)
        payload = data.to_bytes() if isinstance(data, ByteBuffer) else bytes(data)
        try:
            fd = os.open(target, os.O_CREAT | os.O_TRUNC | os.O_WRONLY | _BINARY, 0o644)
        except OSError as exc:
            raise self._fail(f"Could not open file {target} for writing", target, exc) from exc
        try:
            self._write_all(fd, payload)
        except OSError as exc:
            raise self._fail(f"Could not write into file {target}", target, exc) from exc
        finally:
            os.close(fd)


__all__ = ["FileOperations", "FileType", "file_type_from_mode"]
