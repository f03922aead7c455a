from typing import Any, Union
from pydantic import field_validator
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings."""
    PROJECT_NAME: str = "Cleopatra Eyewear"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"

    # Security
    SECRET_KEY: str = "development_secret_key"
    SESSION_COOKIE: str = "storefront_session"
    SESSION_MAX_AGE: int = 60 * 60 * 24  # 24 hours
    SESSION_SWEEP_INTERVAL: int = 60 * 60 * 24
    SESSION_HTTPS_ONLY: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./storefront.db"
    SEED_ON_STARTUP: bool = False

    # Environment
    ENVIRONMENT: str = "development"

    # CORS
    BACKEND_CORS_ORIGINS: Union[list, str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Any) -> list:
        """Parse the CORS origins from a string or return the list as is."""
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
