"""Runtime settings for the diffs service."""

import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 1000

ENV_BATCH_LOAD = "MR_DIFFS_BATCH_LOAD"
ENV_PER_PAGE = "MR_DIFFS_PER_PAGE"
ENV_MAX_WORKERS = "MR_DIFFS_MAX_WORKERS"

_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in _FALSE_VALUES


def _env_positive_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


class DiffSettings(BaseModel):
    """Feature gate and sizing knobs."""

    model_config = ConfigDict(frozen=True)

    batch_load_enabled: bool = True
    default_per_page: int = Field(default=DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE)
    max_workers: Optional[int] = Field(default=None, ge=1)  # None = CPU count

    @classmethod
    def from_env(cls) -> "DiffSettings":
        """Build settings from MR_DIFFS_* environment variables."""
        return cls(
            batch_load_enabled=_env_flag(ENV_BATCH_LOAD, True),
            default_per_page=_env_positive_int(ENV_PER_PAGE, DEFAULT_PER_PAGE),
            max_workers=_env_positive_int(ENV_MAX_WORKERS, None),
        )

    def is_batch_enabled(self) -> bool:
        return self.batch_load_enabled
