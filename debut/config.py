import os
import re
from functools import lru_cache
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file early so env vars are available for YAML interpolation
_env_file = Path(__file__).parent.parent / ".env"
load_dotenv(_env_file)

# Pattern to match $VAR_NAME environment variable references
ENV_VAR_PATTERN = re.compile(r"\$([A-Z_][A-Z0-9_]*)")


def interpolate_env_vars(value):
    """Recursively replace $VAR_NAME with os.environ values."""
    if isinstance(value, str):

        def replace(match):
            var = match.group(1)
            val = os.environ.get(var)
            if val is None:
                raise ValueError(f"Environment variable ${var} not set")
            return val

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: interpolate_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    return value


def get_config_path() -> Path:
    """Return the app.yaml path, overridable with DEBUT_CONFIG."""
    override = os.environ.get("DEBUT_CONFIG")
    if override:
        return Path(override)
    return Path.cwd() / "app.yaml"


def load_app_config() -> dict:
    """Load and parse app.yaml with environment variable interpolation."""
    config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"app.yaml not found at {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    return interpolate_env_vars(config)


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    url: str = "sqlite+aiosqlite:///./app.db"
    pool_size: int = 5
    pool_overflow: int = 10
    pool_timeout: int = 30
    echo: bool = False
    # Table prefix of the main site (named sites override it in ``sites``)
    table_prefix: str = ""
    # Character set / collation used when creating tables on MySQL
    charset: str | None = None
    collate: str | None = None


class AppearanceConfig(BaseModel):
    """Appearance date storage configuration."""

    table_name: str = "object_appearance_dates"
    # Seconds a looked-up appearance date stays cached
    cache_ttl: float = 60.0


class SiteConfig(BaseModel):
    """A named site sharing the codebase but with its own tables."""

    table_prefix: str


class LogfireConfig(BaseModel):
    """Pydantic Logfire configuration."""

    enabled: bool = False
    service_name: str = "debut"
    environment: str | None = None
    console: bool = False


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    debug: bool = False
    secret_key: str

    # Active site name ("" is the main site), from DEBUT_SITE
    site: str = Field(default="", validation_alias=AliasChoices("DEBUT_SITE", "site"))

    # Sections loaded from app.yaml
    db: DatabaseConfig = DatabaseConfig()
    appearance: AppearanceConfig = AppearanceConfig()
    sites: dict[str, SiteConfig] = {}
    logfire: LogfireConfig = LogfireConfig()


@lru_cache
def get_settings() -> Settings:
    """Load settings from .env and app.yaml."""
    base_settings = Settings()

    try:
        app_config = load_app_config()
    except FileNotFoundError:
        return base_settings

    updates = {}

    if "db" in app_config:
        updates["db"] = DatabaseConfig(**app_config["db"])

    if "appearance" in app_config:
        updates["appearance"] = AppearanceConfig(**app_config["appearance"])

    if "sites" in app_config:
        updates["sites"] = {
            name: SiteConfig(**site) for name, site in (app_config["sites"] or {}).items()
        }

    if "logfire" in app_config:
        updates["logfire"] = LogfireConfig(**app_config["logfire"])

    if updates:
        return base_settings.model_copy(update=updates)

    return base_settings
