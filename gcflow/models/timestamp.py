"""Point-in-time model for JVM log records."""

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict


class DateTimeStamp(BaseModel):
    """A log decoration: JVM uptime, wall clock date, or both."""

    model_config = ConfigDict(frozen=True)

    uptime: float | None = None  # seconds since JVM start
    date_time: datetime | None = None

    def add(self, seconds: float) -> "DateTimeStamp":
        """Return a stamp shifted forward by ``seconds``."""
        return DateTimeStamp(
            uptime=None if self.uptime is None else self.uptime + seconds,
            date_time=(
                None
                if self.date_time is None
                else self.date_time + timedelta(seconds=seconds)
            ),
        )

    def is_epoch(self) -> bool:
        return self.date_time is None and self.uptime == 0.0

    def after(self, other: "DateTimeStamp") -> bool:
        """True if this stamp is strictly later than ``other``."""
        if self.uptime is not None and other.uptime is not None:
            return self.uptime > other.uptime
        if self.date_time is not None and other.date_time is not None:
            return self.date_time > other.date_time
        # Stamps on different axes are only ordered against the epoch
        return other.is_epoch() and not self.is_epoch()

    def to_seconds(self) -> float:
        """Uptime in seconds, or POSIX time when only a date is known."""
        if self.uptime is not None:
            return self.uptime
        if self.date_time is not None:
            return self.date_time.timestamp()
        return 0.0

    def __str__(self) -> str:
        parts = []
        if self.date_time is not None:
            parts.append(self.date_time.isoformat())
        if self.uptime is not None:
            parts.append(f"{self.uptime:.3f}s")
        return " ".join(parts) or "-"


EPOCH = DateTimeStamp(uptime=0.0)
