"""Synthetic GC log generator for tests and demos."""

import gzip
import io
import random
import tarfile
import zipfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator, Protocol

from ..config import PathLike
from ..logging_config import get_logger

logger = get_logger(__name__)

LINES_PER_CYCLE = 3
YOUNG_CAPACITY_KB = 76288
OLD_CAPACITY_KB = 175104
HEAP_CAPACITY_KB = YOUNG_CAPACITY_KB + OLD_CAPACITY_KB


class ISim(Protocol):
    """Produce log data for a pipeline run."""

    def lines(self, records: int) -> Iterator[str]:
        """Yield ``records`` log lines in chronological order."""
        ...


class GCLogSim:
    """Writes Parallel GC logs with application and safepoint times.

    Every cycle is three lines: application time, a collection, and the
    stopped time for that collection. Output is fully determined by ``seed``.
    """

    def __init__(
        self,
        seed: int = 0,
        start: datetime = datetime(2023, 1, 1, tzinfo=timezone.utc),
        full_gc_every: int = 25,
    ):
        self.seed = seed
        self.start = start
        self.full_gc_every = full_gc_every
        # Latest uptime + duration over the application and safepoint lines written
        self.last_event_end = 0.0

    def lines(self, records: int) -> Iterator[str]:
        rng = random.Random(self.seed)
        uptime = 0.5
        old_kb = 0
        cycle = 0
        written = 0
        self.last_event_end = 0.0

        while written < records:
            cycle += 1
            app_time = round(rng.uniform(0.05, 0.5), 7)
            uptime = round(uptime + app_time, 3)
            yield self._decorate(uptime, f"Application time: {app_time:.7f} seconds")
            self.last_event_end = max(self.last_event_end, uptime + app_time)
            written += 1
            if written == records:
                break

            young_before = rng.randint(60000, YOUNG_CAPACITY_KB)
            if cycle % self.full_gc_every == 0:
                pause = round(rng.uniform(0.05, 0.2), 7)
                old_after = rng.randint(20000, 40000)
                body = (
                    f"[Full GC (Ergonomics) [PSYoungGen: {young_before}K->0K({YOUNG_CAPACITY_KB}K)] "
                    f"[ParOldGen: {old_kb}K->{old_after}K({OLD_CAPACITY_KB}K)] "
                    f"{young_before + old_kb}K->{old_after}K({HEAP_CAPACITY_KB}K), "
                    f"[Metaspace: 3021K->3021K(1056768K)], {pause:.7f} secs] "
                    f"[Times: user=0.10 sys=0.01, real={pause:.2f} secs]"
                )
            else:
                pause = round(rng.uniform(0.002, 0.03), 7)
                young_after = rng.randint(5000, 12000)
                old_after = min(old_kb + rng.randint(500, 2000), OLD_CAPACITY_KB)
                body = (
                    f"[GC (Allocation Failure) [PSYoungGen: {young_before}K->{young_after}K"
                    f"({YOUNG_CAPACITY_KB}K)] {young_before + old_kb}K->{young_after + old_after}K"
                    f"({HEAP_CAPACITY_KB}K), {pause:.7f} secs] "
                    f"[Times: user=0.02 sys=0.00, real={pause:.2f} secs]"
                )
            old_kb = old_after
            yield self._decorate(uptime, body)
            written += 1
            if written == records:
                break

            stopped = round(pause + 0.0002, 7)
            uptime = round(uptime + pause + 0.001, 3)
            yield self._decorate(
                uptime,
                f"Total time for which application threads were stopped: {stopped:.7f} seconds, "
                f"Stopping threads took: 0.0000500 seconds",
            )
            self.last_event_end = max(self.last_event_end, uptime + stopped)
            written += 1

    def write_single(self, path: PathLike, records: int) -> Path:
        """Write one plain text log."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("".join(f"{line}\n" for line in self.lines(records)))
        logger.debug("Wrote %s records to %s", records, path)
        return path

    def write_gzip(self, path: PathLike, records: int) -> Path:
        path = Path(path)
        with gzip.open(path, "wt", encoding="utf-8") as f:
            for line in self.lines(records):
                f.write(f"{line}\n")
        return path

    def write_rotating(
        self, directory: PathLike, records: int, files: int = 5, wrap: bool = False
    ) -> Path:
        """Write a rotated set ``gc.log.0`` .. ``gc.log.N``.

        The newest segment carries the ``.current`` suffix. With ``wrap`` the
        numbering starts part-way through the set, the way the JVM reuses
        names once it has cycled through all of them.
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        for name, text in self._segments(records, files, wrap):
            (directory / name).write_text(text)
        return directory

    def write_zip(
        self, path: PathLike, records: int, files: int = 1, wrap: bool = False
    ) -> Path:
        """Write a zip archive whose entries are stored in name order."""
        path = Path(path)
        segments = sorted(self._segments(records, files, wrap))
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for name, text in segments:
                archive.writestr(name, text)
        return path

    def write_tar_gz(self, path: PathLike, records: int, files: int = 1) -> Path:
        """Write a tar.gz archive whose members are in chronological order."""
        path = Path(path)
        with tarfile.open(path, "w:gz") as archive:
            for name, text in self._segments(records, files, wrap=False):
                data = text.encode("utf-8")
                info = tarfile.TarInfo(name)
                info.size = len(data)
                archive.addfile(info, io.BytesIO(data))
        return path

    def _segments(self, records: int, files: int, wrap: bool) -> list[tuple[str, str]]:
        if files < 1:
            raise ValueError(f"files must be positive, got {files}")
        lines = list(self.lines(records))
        per_file = -(-len(lines) // files) if lines else 0
        offset = files // 2 if wrap else 0

        segments = []
        for index in range(files):
            chunk = lines[index * per_file:(index + 1) * per_file]
            name = f"gc.log.{(index + offset) % files}"
            if index == files - 1:
                name += ".current"
            segments.append((name, "".join(f"{line}\n" for line in chunk)))
        return segments

    def _decorate(self, uptime: float, body: str) -> str:
        stamp = self.start + timedelta(seconds=uptime)
        date = stamp.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + stamp.strftime("%z")
        return f"{date}: {uptime:.3f}: {body}"
