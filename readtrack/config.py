import os
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    # API settings
    api_host: str = field(default_factory=lambda: os.getenv("API_HOST", "127.0.0.1"))
    api_port: int = field(default_factory=lambda: int(os.getenv("API_PORT", "5184")))
    api_key: str = field(default_factory=lambda: os.getenv("API_KEY", "super-secret-key"))
    require_api_key: bool = field(default_factory=lambda: _env_bool("REQUIRE_API_KEY"))
    cors_origins: List[str] = field(
        default_factory=lambda: _env_list("CORS_ORIGINS", "http://localhost:5173")
    )

    # Database settings
    database_file: str = field(default_factory=lambda: os.getenv("READTRACK_DB_FILE", "library.db"))

    # Client settings
    api_url: str = field(default_factory=lambda: os.getenv("READTRACK_API_URL", "http://127.0.0.1:5184"))
    request_timeout: float = field(default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT", "10")))

    # Authentication (external identity provider)
    require_auth: bool = field(default_factory=lambda: _env_bool("REQUIRE_AUTH"))
    auth_login_url: Optional[str] = field(default_factory=lambda: os.getenv("AUTH_LOGIN_URL"))
    auth_logout_url: Optional[str] = field(default_factory=lambda: os.getenv("AUTH_LOGOUT_URL"))

    # Application settings
    app_name: str = field(default_factory=lambda: os.getenv("APP_NAME", "ReadTrack"))
    app_version: str = field(default_factory=lambda: os.getenv("APP_VERSION", "1.0.0"))
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())


settings = Settings()
