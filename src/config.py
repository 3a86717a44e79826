from __future__ import annotations

from functools import cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ARTIFACTS_DIR = PROJECT_ROOT / "artifacts"
DB_FILE = ARTIFACTS_DIR / "trip_ledger.db"


class AppSettings(BaseSettings):
    db_file: Path = DB_FILE
    db_echo: bool = False
    default_currency: str = "RUB"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TRIP_LEDGER_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@cache
def config() -> AppSettings:
    return AppSettings()
