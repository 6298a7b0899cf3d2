import os
from pathlib import Path

# Basic settings helper to read environment configuration.

BACKEND_ROOT = Path(__file__).resolve().parent


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_choice(val: str | None, choices: tuple[str, ...], default: str) -> str:
    if val is None:
        return default
    val = val.strip().lower()
    return val if val in choices else default


class Settings:
    def __init__(self) -> None:
        self.GEODICT_DATABASE_URL: str = os.getenv(
            "GEODICT_DATABASE_URL", f"sqlite:///{BACKEND_ROOT / 'geodict.db'}"
        )
        self.IP_DATABASE_PATH: str = os.getenv(
            "IP_DATABASE_PATH", str(BACKEND_ROOT / "data" / "GeoLite2-City.mmdb")
        )
        self.STREET_GEOCODER_BACKEND: str = _as_choice(
            os.getenv("STREET_GEOCODER_BACKEND"), ("database", "nominatim"), "database"
        )
        self.NOMINATIM_SEARCH_URL: str = os.getenv(
            "NOMINATIM_SEARCH_URL", "https://nominatim.openstreetmap.org/search"
        )
        self.NOMINATIM_USER_AGENT: str | None = os.getenv("NOMINATIM_USER_AGENT")
        self.NOMINATIM_MIN_INTERVAL: float = float(os.getenv("NOMINATIM_MIN_INTERVAL", "1.1"))
        self.GEODICT_VERSION: str = os.getenv("GEODICT_VERSION", "Geodict build 000000")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.CORS_ALLOW_ALL: bool = _as_bool(os.getenv("CORS_ALLOW_ALL"), True)


settings = Settings()
