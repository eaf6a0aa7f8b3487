"""Log sources: single files, compressed archives and rotated sets."""

import gzip
import io
import re
import sys
import tarfile
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Iterable, Iterator

from ..config import PathLike
from ..errors import LogSourceError
from ..logging_config import get_logger
from ..models import DateTimeStamp
from ..parsers.decorators import parse_decoration

logger = get_logger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

# Lines scanned per segment when looking for its first timestamp
PEEK_LINES = 200

# gc.log, gc.log.3, gc.log.3.current
ROTATION_SUFFIX = re.compile(r"^(?P<base>.+?)(?:\.(?P<index>\d+))?(?:\.current)?$")


class GCLogFile(ABC):
    """A finite, non-restartable sequence of raw log lines."""

    def __init__(self, path: PathLike):
        self.path = Path(path)
        if not self.path.exists():
            raise LogSourceError(f"Log source not found: {self.path}")
        self._lines: Iterator[str] | None = None
        self._exhausted = False

    def open(self) -> Iterator[str]:
        """Return the line iterator. A source can be opened once."""
        if self._lines is not None:
            raise LogSourceError(f"{self.path} has already been opened")
        self._lines = self._track(self._read_lines())
        return self._lines

    def is_exhausted(self) -> bool:
        return self._exhausted

    def close(self) -> None:
        if self._lines is not None:
            self._lines.close()

    def _track(self, lines: Iterator[str]) -> Iterator[str]:
        yield from lines
        self._exhausted = True

    @abstractmethod
    def _read_lines(self) -> Iterator[str]:
        """Yield lines without their trailing newline."""

    def __enter__(self) -> "GCLogFile":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.path)!r})"


class SingleGCLogFile(GCLogFile):
    """One log file: plain text, gzip, zip or tar.gz.

    Archives are read as the concatenation of their entries in archive order.
    """

    def _read_lines(self) -> Iterator[str]:
        if zipfile.is_zipfile(self.path):
            with zipfile.ZipFile(self.path) as archive:
                for info in archive.infolist():
                    if info.is_dir():
                        continue
                    with archive.open(info) as raw:
                        yield from _text_lines(raw)
        elif _is_gzip(self.path) and tarfile.is_tarfile(self.path):
            with tarfile.open(self.path, "r:gz") as archive:
                for member in archive:
                    if not member.isfile():
                        continue
                    raw = archive.extractfile(member)
                    if raw is not None:
                        with raw:
                            yield from _text_lines(raw)
        else:
            yield from _file_lines(self.path)


class RotatingGCLogFile(GCLogFile):
    """A set of rotated logs read as one chronological stream.

    ``path`` may be a directory, a zip archive or any one file of the set.
    Segments are ordered by the first decorated timestamp they contain;
    segments without one, and ties, fall back to the rotation index.
    """

    def __init__(self, path: PathLike):
        super().__init__(path)
        self._is_zip = self.path.is_file() and zipfile.is_zipfile(self.path)

    def segments(self) -> list[str]:
        """Names of the segments in reading order."""
        if self._is_zip:
            with zipfile.ZipFile(self.path) as archive:
                names = [info.filename for info in archive.infolist() if not info.is_dir()]
                return _order_segments(
                    names, lambda name: _peek(_text_lines(archive.open(name)))
                )

        paths = {str(p): p for p in self._member_files()}
        return _order_segments(list(paths), lambda name: _peek(_file_lines(paths[name])))

    def _read_lines(self) -> Iterator[str]:
        names = self.segments()
        logger.debug("Reading %s segments from %s", len(names), self.path)
        if self._is_zip:
            with zipfile.ZipFile(self.path) as archive:
                for name in names:
                    with archive.open(name) as raw:
                        yield from _text_lines(raw)
        else:
            for name in names:
                yield from _file_lines(Path(name))

    def _member_files(self) -> list[Path]:
        if self.path.is_dir():
            return sorted(
                p for p in self.path.iterdir() if p.is_file() and not p.name.startswith(".")
            )
        base = ROTATION_SUFFIX.match(self.path.name).group("base")
        return sorted(
            p
            for p in self.path.parent.iterdir()
            if p.is_file() and ROTATION_SUFFIX.match(p.name).group("base") == base
        )


def _is_gzip(path: Path) -> bool:
    with open(path, "rb") as f:
        return f.read(2) == GZIP_MAGIC


def _text_lines(raw: IO[bytes]) -> Iterator[str]:
    with io.TextIOWrapper(raw, encoding="utf-8", errors="replace") as text:
        for line in text:
            yield line.rstrip("\r\n")


def _file_lines(path: Path) -> Iterator[str]:
    """Lines of a plain or gzip-compressed file."""
    if _is_gzip(path):
        yield from _text_lines(gzip.open(path, "rb"))
    else:
        yield from _text_lines(open(path, "rb"))


def _peek(lines: Iterator[str]) -> DateTimeStamp | None:
    """First decorated timestamp among the leading lines."""
    try:
        for count, line in enumerate(lines):
            if count >= PEEK_LINES:
                break
            if decoration := parse_decoration(line):
                return decoration.timestamp
        return None
    finally:
        lines.close()


def _rotation_index(name: str) -> int:
    match = ROTATION_SUFFIX.match(Path(name).name)
    index = match.group("index") if match else None
    # The unnumbered file is the live one
    return int(index) if index is not None else sys.maxsize


def _order_segments(names: Iterable[str], first_stamp) -> list[str]:
    def key(name: str) -> tuple:
        stamp = first_stamp(name)
        if stamp is None:
            return (1, 0.0, _rotation_index(name), name)
        seconds = stamp.date_time.timestamp() if stamp.date_time else stamp.to_seconds()
        return (0, seconds, _rotation_index(name), name)

    return sorted(names, key=key)
