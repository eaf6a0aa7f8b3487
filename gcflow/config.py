"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent
LOGS_DIR = PROJECT_ROOT / "logs"
DEFAULT_LOG_PATH = LOGS_DIR / "gcflow.log"

DEFAULT_DEPLOYMENT_TIMEOUT = 30.0
DEFAULT_COMPLETION_TIMEOUT = 300.0
DEFAULT_READ_BATCH_SIZE = 1000


PathLike = Union[str, Path]


def resolve_log_path(env_value: PathLike | None = None) -> Path:
    """Resolve GCFLOW_LOG_FILE to an absolute path."""
    if not env_value:
        return DEFAULT_LOG_PATH

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _timeout_from_env(name: str, default: float) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    if raw.strip().lower() in ("0", "none", "off"):
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value


def _flag_from_env(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class PipelineSettings:
    """Tunables for one pipeline run."""

    deployment_timeout: float | None = DEFAULT_DEPLOYMENT_TIMEOUT
    completion_timeout: float | None = DEFAULT_COMPLETION_TIMEOUT
    read_batch_size: int = DEFAULT_READ_BATCH_SIZE
    wire_codec: bool = False

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        """Build settings from GCFLOW_* environment variables."""
        raw_batch = os.getenv("GCFLOW_READ_BATCH_SIZE", str(DEFAULT_READ_BATCH_SIZE))
        try:
            batch_size = int(raw_batch)
        except ValueError:
            raise ValueError(
                f"GCFLOW_READ_BATCH_SIZE must be an integer, got {raw_batch!r}"
            ) from None
        if batch_size < 1:
            raise ValueError(f"GCFLOW_READ_BATCH_SIZE must be positive, got {batch_size}")

        return cls(
            deployment_timeout=_timeout_from_env(
                "GCFLOW_DEPLOYMENT_TIMEOUT", DEFAULT_DEPLOYMENT_TIMEOUT
            ),
            completion_timeout=_timeout_from_env(
                "GCFLOW_COMPLETION_TIMEOUT", DEFAULT_COMPLETION_TIMEOUT
            ),
            read_batch_size=batch_size,
            wire_codec=_flag_from_env("GCFLOW_WIRE_CODEC"),
        )
