"""Timestamp based staleness checks."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple, Union
import os

from .console import Console
from .errors import BuildError, FileOperationError, StaleInputMissing

PathLike = Union[str, "os.PathLike[str]"]


class RebuildVerdict(str, Enum):
    STALE = "stale"
    FRESH = "fresh"
    ERROR = "error"


@dataclass(frozen=True)
class RebuildCheck:
    """Verdict for one output artifact against its inputs.

    The check is advisory: inputs may change after it has been taken.
    """

    verdict: RebuildVerdict
    output_path: str
    reason: str | None = None
    error: BuildError | None = None

    @property
    def stale(self) -> bool:
        return self.verdict is RebuildVerdict.STALE

    @property
    def fresh(self) -> bool:
        return self.verdict is RebuildVerdict.FRESH

    def require(self) -> bool:
        """Return whether a rebuild is needed, raising the stored error for ERROR verdicts."""

        if self.verdict is RebuildVerdict.ERROR:
            if self.error is not None:
                raise self.error
            raise BuildError(self.reason or f"could not check whether {self.output_path} needs a rebuild")
        return self.stale


def _as_paths(input_paths: Iterable[PathLike] | PathLike) -> List[str]:
    if isinstance(input_paths, (str, bytes, os.PathLike)):
        return [os.fspath(input_paths)]
    return [os.fspath(path) for path in input_paths]


def needs_rebuild(
    output_path: PathLike,
    input_paths: Iterable[PathLike],
    *,
    console: Console | None = None,
) -> RebuildCheck:
    """Compare the modification time of ``output_path`` against ``input_paths``.

    A missing output is always stale. A missing input next to an existing
    output is an error. Otherwise the output is stale only if some input is
    strictly newer; equal timestamps count as fresh.
    """

    console = console or Console()
    output = os.fspath(output_path)
    inputs = _as_paths(input_paths)

    try:
        output_mtime = os.stat(output).st_mtime_ns
    except FileNotFoundError:
        return RebuildCheck(RebuildVerdict.STALE, output, reason=f"{output} does not exist")
    except OSError as exc:
        error = FileOperationError(f"could not stat {output}", path=output, os_error=exc)
        console.error(str(error))
        return RebuildCheck(RebuildVerdict.ERROR, output, reason=str(error), error=error)

    stamps: List[Tuple[str, int]] = []
    for input_path in inputs:
        try:
            stamps.append((input_path, os.stat(input_path).st_mtime_ns))
        except FileNotFoundError:
            error = StaleInputMissing(output, input_path)
        except OSError as exc:
            error = FileOperationError(f"could not stat {input_path}", path=input_path, os_error=exc)
        else:
            continue
        console.error(str(error))
        return RebuildCheck(RebuildVerdict.ERROR, output, reason=str(error), error=error)

    for input_path, input_mtime in stamps:
        if input_mtime > output_mtime:
            return RebuildCheck(RebuildVerdict.STALE, output, reason=f"{input_path} is newer than {output}")

    return RebuildCheck(RebuildVerdict.FRESH, output)


def needs_rebuild1(output_path: PathLike, input_path: PathLike, *, console: Console | None = None) -> RebuildCheck:
    return needs_rebuild(output_path, [input_path], console=console)


__all__ = ["RebuildCheck", "RebuildVerdict", "needs_rebuild", "needs_rebuild1"]
