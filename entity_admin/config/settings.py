from pydantic_settings import BaseSettings
import os
from pathlib import Path
from typing import List, Optional
from dotenv import load_dotenv

# Determine environment before loading any dotenv files.
# ENVIRONMENT=production selects .env.production; anything else uses .env.
_project_dir = Path(__file__).resolve().parent.parent.parent
_is_production = os.environ.get("ENVIRONMENT") == "production"

if _is_production:
    load_dotenv(_project_dir / ".env.production", override=False)
else:
    load_dotenv(_project_dir / ".env", override=False)


class Settings(BaseSettings):
    APP_NAME: str = "entity-admin"
    SETTING_VERSION: str = "0.1.0"

    # Remote admin API
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:3400/api/v1")
    API_TIMEOUT_SECONDS: float = float(os.getenv("API_TIMEOUT_SECONDS", "30"))
    API_TOKEN: Optional[str] = os.getenv("API_TOKEN")  # Used only when no token provider is supplied
    SCHEMA_ENDPOINT_TEMPLATE: str = "/admin/schema/{slug}"

    # Entity defaults
    DEFAULT_PAGE_SIZE: int = 25
    DEFAULT_PAGE_SIZE_OPTIONS: List[int] = [5, 10, 25, 50, 100]

    # Caching
    LIST_CACHE_TTL_SECONDS: float = 30.0
    CONFIG_CACHE_TTL_SECONDS: float = 300.0

    # Environment
    IS_PRODUCTION: bool = _is_production

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_FILENAME_PREFIX: str = "entity_admin"
    LOG_BACKUP_COUNT: int = 10
    LOG_FORMAT: str = "standard"  # Options: "standard" or "json"
    LOG_PERFORMANCE_THRESHOLD_MS: int = 500  # Log slow remote calls above this threshold

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = 'utf-8'
        extra = "ignore"


settings = Settings()
