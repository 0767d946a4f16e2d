import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    record_store: str
    hydrate_on_start: bool
    log_level: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///qms.db"),
        record_store=_getenv("RECORD_STORE", "sql").lower(),
        hydrate_on_start=_getenv("HYDRATE_ON_START", "1") not in ("0", "false", "no"),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "RECORD_STORE": s.record_store,
        "HYDRATE_ON_START": s.hydrate_on_start,
        "LOG_LEVEL": s.log_level,
    }
