"""Configuration for portal, provisioning service and CLI.

Loads from YAML config file with environment variable overrides.
Pattern: CONFIG__{SECTION}__{KEY} overrides nested YAML keys.
Example: CONFIG__AUTH__ACCESS_TOKEN_EXPIRE_MINUTES=60
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


# --- Sections ---


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///portal.db"
    echo: bool = False


class AuthConfig(BaseModel):
    backend: str = Field(default="local", description="local | gotrue")
    jwt_secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440  # 24 hours
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    login_path: str = "/auth"
    cookie_name: str = "access_token"


class CorsConfig(BaseModel):
    allow_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]


class DashboardDefaults(BaseModel):
    widgets: list[str] = ["progress", "tasks", "payments", "team"]
    primary_color: str = "#3b82f6"
    meeting_url: str = "https://calendly.com/advant_x/seguimiento"


class PortalConfig(BaseModel):
    database: DatabaseConfig = DatabaseConfig()
    auth: AuthConfig = AuthConfig()
    cors: CorsConfig = CorsConfig()
    dashboard: DashboardDefaults = DashboardDefaults()
    environment: str = "development"


def _apply_env_overrides(config_dict: dict, prefix: str = "CONFIG") -> dict:
    """Apply environment variable overrides to config dict.

    Pattern: CONFIG__SECTION__KEY=value maps to config[section][key] = value
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}__"):
            continue
        parts = key[len(prefix) + 2 :].lower().split("__")
        target = config_dict
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        # Type coercion for common cases
        if value.lower() in ("true", "false"):
            value = value.lower() == "true"
        elif value.isdigit():
            value = int(value)
        target[parts[-1]] = value
    return config_dict


# Dedicated env vars (deployment convention) -> (section, key)
_DEDICATED_ENV = {
    "DATABASE_URL": ("database", "url"),
    "IDENTITY_BACKEND": ("auth", "backend"),
    "JWT_SECRET_KEY": ("auth", "jwt_secret_key"),
    "ACCESS_TOKEN_EXPIRE_MINUTES": ("auth", "access_token_expire_minutes"),
    "SUPABASE_URL": ("auth", "supabase_url"),
    "SUPABASE_SERVICE_ROLE_KEY": ("auth", "supabase_service_role_key"),
    "ENVIRONMENT": ("environment", None),
}


def load_config(
    config_path: Optional[str] = None,
) -> PortalConfig:
    """Load configuration from YAML file with env overrides.

    Priority: env vars > YAML file > defaults
    """
    config_dict = {}

    # 1. Load YAML if exists
    if config_path is None:
        config_path = os.getenv("CONFIG_PATH", "config/portal.yml")
    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            config_dict = yaml.safe_load(f) or {}

    # 2. Dedicated env vars
    for env_name, (section, key) in _DEDICATED_ENV.items():
        value = os.getenv(env_name)
        if not value:
            continue
        if key is None:
            config_dict[section] = value
        else:
            config_dict.setdefault(section, {})[key] = value

    # 3. Apply CONFIG__ overrides
    config_dict = _apply_env_overrides(config_dict)

    return PortalConfig(**config_dict)


# Singleton for the running process
_config: Optional[PortalConfig] = None


def get_config() -> PortalConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Optional[str] = None) -> PortalConfig:
    global _config
    _config = load_config(config_path)
    return _config
