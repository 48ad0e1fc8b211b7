from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration for the organizer service, read from the environment.

    Variables:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/organizer.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - JWT_KEY: secret used to sign identity tokens (required to issue tokens)
    - TOKEN_TTL_SECONDS: lifetime of issued tokens. Default 3600
    - BCRYPT_ROUNDS: bcrypt work factor. Default 10
    - UPLOAD_DIR: directory uploaded images are written to. Default 'uploads/images'
    - MAX_UPLOAD_BYTES: largest accepted image upload. Default 500000
    - LOG_LEVEL: root log level. Default 'INFO'
    """

    persistence_backend: str
    sqlite_db_path: str
    cors_allow_origins: List[str]
    jwt_key: Optional[str]
    token_ttl_seconds: int
    bcrypt_rounds: int
    upload_dir: str
    max_upload_bytes: int
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Split CORS_ALLOW_ORIGINS into a list. Accepts:
    - "*" for any origin
    - a comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    bcrypt_rounds = _parse_int(_get_env("BCRYPT_ROUNDS", "10"), 10)
    # bcrypt only accepts 4..31
    bcrypt_rounds = min(max(bcrypt_rounds, 4), 31)

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/organizer.db").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        jwt_key=os.getenv("JWT_KEY") or None,
        token_ttl_seconds=_parse_int(_get_env("TOKEN_TTL_SECONDS", "3600"), 3600),
        bcrypt_rounds=bcrypt_rounds,
        upload_dir=_get_env("UPLOAD_DIR", os.path.join("uploads", "images")).strip(),
        max_upload_bytes=_parse_int(_get_env("MAX_UPLOAD_BYTES", "500000"), 500000),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )
