"""Distribution archives of build output trees."""
from __future__ import annotations

from pathlib import Path
from typing import Dict
import os
import tarfile
import zipfile

import zstandard as zstd

from .console import Console

ZSTD_LEVEL = 19

FORMAT_SUFFIXES: Dict[str, str] = {
    "zst": ".tar.zst",
    "gztar": ".tar.gz",
    "tar": ".tar",
    "zip": ".zip",
}

_ALIASES: Dict[str, str] = {
    "tar.zst": "zst",
    "tzst": "zst",
    "gz": "gztar",
    "tar.gz": "gztar",
    "tgz": "gztar",
}

_EXTRA_SUFFIXES: Dict[str, str] = {".tzst": "zst", ".tgz": "gztar"}


def normalize_format(name: str) -> str:
    normalized = name.strip().lower()
    normalized = _ALIASES.get(normalized, normalized)
    if normalized not in FORMAT_SUFFIXES:
        raise ValueError(f"Unsupported archive format '{name}'")
    return normalized


def format_from_path(path: Path) -> str:
    filename = path.name.lower()
    candidates = {suffix: fmt for fmt, suffix in FORMAT_SUFFIXES.items()}
    candidates.update(_EXTRA_SUFFIXES)
    # .tar.zst must win over .tar
    for suffix in sorted(candidates, key=len, reverse=True):
        if filename.endswith(suffix):
            return candidates[suffix]
    raise ValueError(f"Cannot tell the archive format of '{path.name}'")


def _zstd_threads() -> int:
    return max(1, min(4, (os.cpu_count() or 1) // 2))


class DistArchiver:
    """Pack a directory into a single archive and unpack it again.

    Archive members are relative to the packed directory, so unpacking
    reproduces its contents directly inside the destination.
    """

    def __init__(self, console: Console) -> None:
        self.console = console

    def pack(
        self,
        source_dir: Path | str,
        target_path: Path | str,
        *,
        archive_format: str | None = None,
        overwrite: bool = True,
    ) -> Path:
        source = Path(source_dir)
        target = Path(target_path)
        if not source.is_dir():
            raise FileNotFoundError(f"Cannot archive '{source}': not a directory")
        fmt = normalize_format(archive_format) if archive_format else format_from_path(target)

        if self.console.dry_run:
            self.console.dry(f"Would archive {source} to {target} ({fmt})")
            return target
        if target.exists() and not overwrite:
            raise FileExistsError(f"Archive '{target}' already exists")

        target.parent.mkdir(parents=True, exist_ok=True)
        self.console.info(f"archiving {source} -> {target}")
        if fmt == "zip":
            self._pack_zip(source, target)
        elif fmt == "zst":
            compressor = zstd.ZstdCompressor(level=ZSTD_LEVEL, threads=_zstd_threads(), write_checksum=True)
            with target.open("wb") as raw, compressor.stream_writer(raw) as writer:
                with tarfile.open(fileobj=writer, mode="w|", format=tarfile.PAX_FORMAT) as tar:
                    self._add_tree(tar, source)
        else:
            mode = "w:gz" if fmt == "gztar" else "w"
            with tarfile.open(target, mode, format=tarfile.PAX_FORMAT) as tar:
                self._add_tree(tar, source)
        return target

    @staticmethod
    def _add_tree(tar: tarfile.TarFile, source: Path) -> None:
        for item in sorted(source.iterdir()):
            tar.add(item, arcname=item.name)

    @staticmethod
    def _pack_zip(source: Path, target: Path) -> None:
        with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
            for dirpath, dirnames, filenames in os.walk(source):
                dirnames.sort()
                current = Path(dirpath)
                for filename in sorted(filenames):
                    path = current / filename
                    archive.write(path, path.relative_to(source).as_posix())

    def unpack(
        self,
        archive_path: Path | str,
        destination_dir: Path | str,
        *,
        archive_format: str | None = None,
    ) -> None:
        archive = Path(archive_path)
        dest = Path(destination_dir)
        if not archive.is_file():
            raise FileNotFoundError(f"Archive '{archive}' does not exist")
        fmt = normalize_format(archive_format) if archive_format else format_from_path(archive)

        if self.console.dry_run:
            self.console.dry(f"Would extract {archive} to {dest}")
            return

        dest.mkdir(parents=True, exist_ok=True)
        if fmt == "zip":
            with zipfile.ZipFile(archive) as handle:
                handle.extractall(dest)
        elif fmt == "zst":
            with archive.open("rb") as raw, zstd.ZstdDecompressor().stream_reader(raw) as reader:
                with tarfile.open(fileobj=reader, mode="r|") as tar:
                    tar.extractall(dest, filter="data")
        else:
            with tarfile.open(archive, "r:gz" if fmt == "gztar" else "r:") as tar:
                tar.extractall(dest, filter="data")
        self.console.info(f"extracted {archive} -> {dest}")


__all__ = ["DistArchiver", "FORMAT_SUFFIXES", "format_from_path", "normalize_format"]
