"""
Base class for discovery sources.

A source knows which files to read for one SourceKind and how to turn
their text into RawCandidate objects. Parsing is best-effort: a bad line
is counted and skipped, a missing file becomes a warning.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from loguru import logger

from sshm.core.exceptions import SourceUnavailableError
from sshm.core.types import SourceKind
from sshm.discovery.models import RawCandidate, SourceResult

DEFAULT_MAX_BYTES = 8 * 1024 * 1024


@dataclass
class ParseStats:
    """Line counters shared across the files of one source."""

    lines: int = 0
    skipped: int = 0


def iter_lines(text: str | Iterable[str]) -> Iterator[str]:
    """Yield lines from a string or any iterable of lines (e.g. a file)."""
    if isinstance(text, str):
        yield from text.splitlines()
    else:
        for line in text:
            yield line.rstrip("\r\n")


def read_bounded(path: Path, max_bytes: int, tail: bool = False) -> str:
    """
    Read at most ``max_bytes`` from a text file.

    With ``tail`` the end of the file is kept (newest shell history),
    otherwise the beginning. A line cut in half by the limit is dropped.

    Raises:
        SourceUnavailableError: File missing or unreadable.
    """
    try:
        with open(path, "rb") as f:
            size = f.seek(0, os.SEEK_END)
            truncated = size > max_bytes
            if tail and truncated:
                f.seek(size - max_bytes)
                data = f.read(max_bytes)
                newline = data.find(b"\n")
                data = data[newline + 1:] if newline != -1 else b""
            else:
                f.seek(0)
                data = f.read(max_bytes)
                if truncated:
                    newline = data.rfind(b"\n")
                    data = data[:newline + 1] if newline != -1 else b""
    except FileNotFoundError:
        raise SourceUnavailableError(str(path), "not found") from None
    except IsADirectoryError:
        raise SourceUnavailableError(str(path), "is a directory") from None
    except OSError as e:
        raise SourceUnavailableError(str(path), e.strerror or str(e)) from e

    if truncated:
        logger.warning(f"📁 {path} is larger than {max_bytes} bytes, read was truncated")
    return data.decode("utf-8", errors="replace")


class BaseSource(ABC):
    """Abstract base class for discovery sources."""

    kind: ClassVar[SourceKind]
    # Keep the end of oversized files instead of the beginning
    read_tail: ClassVar[bool] = False

    def __init__(self, paths: Sequence[Path], max_bytes: int = DEFAULT_MAX_BYTES):
        self.paths = [Path(p) for p in paths]
        self.max_bytes = max_bytes

    @abstractmethod
    def parse(
        self,
        text: str | Iterable[str],
        stats: ParseStats | None = None,
    ) -> Iterator[RawCandidate]:
        """Lazily produce candidates from the text of one file."""

    def load(self) -> SourceResult:
        """
        Read and parse every configured file of this source.

        Never raises for missing files or bad lines; those end up in
        the result's warnings and skip counter.
        """
        result = SourceResult(kind=self.kind)
        stats = ParseStats()
        unavailable: list[SourceUnavailableError] = []

        for path in self.paths:
            try:
                text = read_bounded(path, self.max_bytes, tail=self.read_tail)
            except SourceUnavailableError as e:
                logger.debug(f"📁 Skipping {self.kind.value} file: {e}")
                unavailable.append(e)
                continue

            before = len(result.candidates)
            result.candidates.extend(self.parse(text, stats))
            result.files_read += 1
            logger.debug(
                f"🔍 {path}: {len(result.candidates) - before} candidates"
            )

        result.lines_skipped = stats.skipped

        if self.paths and result.files_read == 0:
            reasons = "; ".join(f"{e.path}: {e.reason}" for e in unavailable)
            result.warnings.append(f"{self.kind.value} unavailable ({reasons})")
        elif result.files_read and not result.candidates and stats.skipped:
            result.warnings.append(
                f"{self.kind.value}: no hosts recognised ({stats.skipped} lines skipped)"
            )

        return result
