import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env early so the settings below see it
load_dotenv(dotenv_path=Path(__file__).resolve().parent.parent / ".env", override=False)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings(BaseModel):
    # Support multiple common env var names for Mongo connection string
    mongo_uri: str = Field(
        default_factory=lambda: (
            os.getenv("MONGO_URI")
            or os.getenv("MONGODB_URI")
            or os.getenv("MONGO_URL")
            or ""
        )
    )
    mongo_db: str = Field(default_factory=lambda: os.getenv("MONGO_DB_NAME", "sapph"))
    # Optional: provide a non-SRV fallback URI (e.g., mongodb://127.0.0.1:27017)
    mongo_alt_uri: str = Field(default_factory=lambda: os.getenv("MONGO_ALT_URI", ""))
    # Optional: force direct connection (applies to non-SRV URIs)
    mongo_direct: bool = Field(default_factory=lambda: _env_flag("MONGO_DIRECT"))
    cors_origin: str = Field(
        default_factory=lambda: (
            os.getenv("CORS_ORIGINS")
            or os.getenv("CORS_ORIGIN")
            or "http://localhost:5173,http://127.0.0.1:5173"
        )
    )
    port: int = Field(default_factory=lambda: int(os.getenv("PY_BACKEND_PORT", "8081")))
    slow_request_ms: int = Field(default_factory=lambda: int(os.getenv("SLOW_REQUEST_MS", "800")))

    # Tokens are minted by the auth provider; we only verify them
    jwt_secret: str = Field(default_factory=lambda: os.getenv("JWT_SECRET", ""))

    # Discovery
    discovery_page_size: int = Field(default_factory=lambda: int(os.getenv("DISCOVERY_PAGE_SIZE", "50")))
    discovery_max_pages: int = Field(default_factory=lambda: int(os.getenv("DISCOVERY_MAX_PAGES", "3")))
    discovery_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("DISCOVERY_TIMEOUT_SECONDS", "15"))
    )

    # Profile fetch (degrades to a minimal profile after the last retry)
    profile_fetch_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("PROFILE_FETCH_TIMEOUT_SECONDS", "10"))
    )
    profile_fetch_retries: int = Field(default_factory=lambda: int(os.getenv("PROFILE_FETCH_RETRIES", "2")))

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origin.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
