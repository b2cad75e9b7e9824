from pathlib import Path
from typing import Annotated, Any, List, Optional
from urllib.parse import quote_plus

from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    PROJECT_NAME: str = "Spring Legal Consultancy"
    VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"

    # --- Environment & Debug ---
    ENVIRONMENT: str = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # --- Server ---
    HOST: str = "0.0.0.0"
    PORT: int = 3001

    # --- Sessions / Captcha ---
    SECRET_KEY: Optional[SecretStr] = Field(default=None, validate_default=True)
    SESSION_COOKIE_NAME: str = "session"
    SESSION_MAX_AGE_SECONDS: int = 600
    CAPTCHA_SINGLE_USE: bool = Field(
        default=False,
        description="Clear the captcha secret after the first successful match.",
    )

    # --- Mail (operator notifications) ---
    SMTP_SERVER: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_SECURE: bool = False  # implicit TLS (port 465) instead of STARTTLS
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[SecretStr] = None
    SMTP_TIMEOUT: int = 10
    FROM_EMAIL: Optional[str] = None
    TO_EMAIL: Optional[str] = None

    # --- Static site ---
    SITE_ROOT: Optional[str] = None  # defaults to <project>/public

    # --- Rate Limiting / Proxy ---
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    RATE_LIMIT_MAX_REQUESTS: int = 1000
    TRUSTED_PROXIES: List[str] = Field(
        default_factory=lambda: ["127.0.0.1", "10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16"],
        description="CIDR ranges of trusted reverse proxies for X-Forwarded-For",
    )

    # --- CORS ---
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3001"],
        description="Allowed CORS origins; a comma-separated string is accepted.",
    )

    # --- Database Config ---
    DB_HOST: Optional[str] = "localhost"
    DB_USER: Optional[str] = "postgres"
    DB_PASSWORD: Optional[str] = None
    DB_PORT: Optional[str] = "5432"
    DB_NAME: Optional[str] = "spring_legal_db"

    # --- Connection Pool ---
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_PRE_PING: bool = True

    # --- Full URL (takes precedence over DB_*) ---
    DATABASE_URL: Optional[str] = Field(default=None, validate_default=True)

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def split_allowed_origins(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip().startswith("["):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> Any:
        if isinstance(v, str) and v:
            return v

        values = info.data
        if not values.get("DB_HOST") or not values.get("DB_USER"):
            return None

        user = values.get("DB_USER")
        # passwords may contain @, # or ! and must be escaped inside the URL
        password = quote_plus(values.get("DB_PASSWORD") or "")
        host = values.get("DB_HOST")
        port = values.get("DB_PORT") or "5432"
        db = values.get("DB_NAME") or "spring_legal_db"

        return f"postgresql+psycopg://{user}:{password}@{host}:{port}/{db}"

    @field_validator("SECRET_KEY", mode="before")
    @classmethod
    def validate_secret_key(
        cls, v: Optional[SecretStr], info: ValidationInfo
    ) -> Optional[SecretStr]:
        env = info.data.get("ENVIRONMENT") or "local"
        if env != "local" and not v:
            raise ValueError(
                "SECRET_KEY must be set in environment for non-local deployments"
            )
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def session_secret(self) -> str:
        if self.SECRET_KEY is None:
            return "your-secret-key"
        return self.SECRET_KEY.get_secret_value()

    @property
    def site_root(self) -> Path:
        if self.SITE_ROOT:
            return Path(self.SITE_ROOT)
        return BASE_DIR / "public"

    @property
    def mail_configured(self) -> bool:
        return bool(
            self.SMTP_SERVER
            and self.SMTP_USERNAME
            and self.SMTP_PASSWORD
            and self.FROM_EMAIL
            and self.TO_EMAIL
        )


settings = Settings()
