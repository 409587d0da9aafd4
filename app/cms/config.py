import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    frontend_url: str
    port: int
    uploads_dir: str
    frontend_build_dir: str
    body_limit_mb: int
    cors_explicit: bool
    db_wait_for_ready: bool
    token_ttl_hours: int


@dataclass(frozen=True)
class ServerOptions:
    """
    Structured bootstrap options. Every server variant is a combination of these flags.
    """

    env: str = "development"
    cors_origin: str | None = None  # None -> any origin
    cors_methods: tuple[str, ...] | None = None
    cors_headers: tuple[str, ...] | None = None
    body_limit_bytes: int | None = 10 * 1024 * 1024
    uploads_dir: Path = Path("uploads")
    frontend_dir: Path | None = None
    health_route: bool = True
    root_banner: bool = True
    json_errors: bool = True
    wait_for_db: bool = False

    @property
    def is_production(self) -> bool:
        return self.env in ("prod", "production")


EXPLICIT_CORS_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
EXPLICIT_CORS_HEADERS = ("Content-Type", "Authorization")


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getflag(name: str, default: bool = False) -> bool:
    raw = _getenv(name)
    if not raw:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


def _getint(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}.") from None


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV") or _getenv("NODE_ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///cms.db"),
        frontend_url=_getenv("FRONTEND_URL", ""),
        port=_getint("PORT", 5000),
        uploads_dir=_getenv("UPLOADS_DIR", "uploads"),
        frontend_build_dir=_getenv("FRONTEND_BUILD_DIR", ""),
        body_limit_mb=_getint("BODY_LIMIT_MB", 10),
        cors_explicit=_getflag("CORS_EXPLICIT"),
        db_wait_for_ready=_getflag("DB_WAIT_FOR_READY"),
        token_ttl_hours=_getint("TOKEN_TTL_HOURS", 24),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "PORT": s.port,
        "TOKEN_TTL_HOURS": s.token_ttl_hours,
    }


def options_from_settings(s: Settings | None = None) -> ServerOptions:
    s = s or load_settings()
    return ServerOptions(
        env=s.env,
        cors_origin=s.frontend_url or None,
        cors_methods=EXPLICIT_CORS_METHODS if s.cors_explicit else None,
        cors_headers=EXPLICIT_CORS_HEADERS if s.cors_explicit else None,
        body_limit_bytes=s.body_limit_mb * 1024 * 1024 if s.body_limit_mb > 0 else None,
        uploads_dir=Path(s.uploads_dir),
        frontend_dir=Path(s.frontend_build_dir) if s.frontend_build_dir else None,
        wait_for_db=s.db_wait_for_ready,
    )
