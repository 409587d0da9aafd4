import os
from dataclasses import dataclass

DEV_API_URL = "http://localhost:5000/api"


@dataclass(frozen=True)
class ClientSettings:
    env: str
    api_url: str
    app_origin: str
    opencage_api_key: str

    @property
    def is_production(self) -> bool:
        return self.env in ("prod", "production")

    @property
    def is_development(self) -> bool:
        return self.env == "development"


def _getenv(*names: str, default: str = "") -> str:
    for name in names:
        value = (os.environ.get(name) or "").strip()
        if value:
            return value
    return default


def load_client_settings() -> ClientSettings:
    return ClientSettings(
        env=_getenv("ENV", "NODE_ENV", default="development"),
        api_url=_getenv("API_URL", "REACT_APP_API_URL"),
        app_origin=_getenv("APP_ORIGIN"),
        opencage_api_key=_getenv("OPENCAGE_API_KEY", "REACT_APP_OPENCAGE_API_KEY"),
    )


def resolve_base_url(env: str, api_url: str = "", origin: str = "") -> str:
    """
    Production talks to the API on the application's own origin; development uses API_URL or localhost.
    """
    if env in ("prod", "production"):
        if not origin:
            raise RuntimeError("APP_ORIGIN must be set in production.")
        return origin.rstrip("/") + "/api"
    return (api_url or DEV_API_URL).rstrip("/")
