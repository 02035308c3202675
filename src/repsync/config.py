"""Runtime configuration for study synchronisation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}
DEFAULT_UPDATE_CHECK_INTERVAL_S = 5 * 60


def _env_path(name: str, default: Path) -> Path:
    return Path(os.getenv(name, str(default)))


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    return float(value)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE_VALUES


def _default_data_dir() -> Path:
    return _env_path("REPSYNC_DATA_DIR", Path("data"))


@dataclass(slots=True)
class LichessSettings:
    """Lichess-specific configuration."""

    base_url: str = field(
        default_factory=lambda: os.getenv("LICHESS_BASE_URL", "https://lichess.org")
    )
    timeout_s: float = field(default_factory=lambda: _env_float("REPSYNC_LICHESS_TIMEOUT_S", 30.0))
    max_retries: int = field(default_factory=lambda: _env_int("REPSYNC_LICHESS_MAX_RETRIES", 3))

    def study_metadata_url(self, username: str) -> str:
        return f"{self.base_url.rstrip('/')}/api/study/by/{username}"

    def study_pgn_url(self, remote_id: str) -> str:
        return f"{self.base_url.rstrip('/')}/api/study/{remote_id}.pgn"


@dataclass(slots=True)
class Settings:
    """Central configuration for study synchronisation and repertoire storage."""

    data_dir: Path = field(default_factory=_default_data_dir)
    duckdb_path: Path | None = None
    update_check_interval_s: int = field(
        default_factory=lambda: _env_int(
            "REPSYNC_UPDATE_CHECK_INTERVAL_S",
            DEFAULT_UPDATE_CHECK_INTERVAL_S,
        )
    )
    only_variant: bool = field(default_factory=lambda: _env_bool("REPSYNC_ONLY_VARIANT", True))
    lichess: LichessSettings = field(default_factory=LichessSettings)

    def __post_init__(self) -> None:
        if self.duckdb_path is None:
            self.duckdb_path = _env_path(
                "REPSYNC_DUCKDB_PATH",
                self.data_dir / "repsync.duckdb",
            )

    def ensure_dirs(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        if self.duckdb_path is not None:
            self.duckdb_path.parent.mkdir(parents=True, exist_ok=True)


def get_settings(**overrides: object) -> Settings:
    """Return a Settings instance with environment and keyword overrides applied."""
    load_dotenv()
    settings = Settings(**overrides)  # type: ignore[arg-type]
    settings.ensure_dirs()
    return settings
