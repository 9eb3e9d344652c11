from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="AGENTICOS_", env_file=".env", extra="ignore")

    ENV: str = Field(default="dev")

    # Row store: libsql:// / https:// 走远程 Turso，其余走 SQLAlchemy 异步引擎
    DB_URL: str = Field(default="sqlite+aiosqlite:///./agenticos.db")
    DB_AUTH_TOKEN: str | None = Field(default=None)
    DB_TIMEOUT: float = Field(default=30.0)

    # Auth
    JWT_SECRET_KEY: str = Field(default="agenticos-dev-secret-change-me")
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_EXPIRE_HOURS: int = Field(default=24)
    SEED_DEMO_USER: bool = Field(default=True)

    # Spec generation
    ANTHROPIC_API_KEY: str | None = Field(default=None)
    ANTHROPIC_BASE_URL: str = Field(default="https://api.anthropic.com/v1")
    ANTHROPIC_MODEL: str = Field(default="claude-opus-4-5-20251101")
    AI_MAX_TOKENS: int = Field(default=4096)
    AI_TIMEOUT: float = Field(default=300.0)
    AI_MAX_RETRIES: int = Field(default=3)

    LOG_DIR: str = Field(default="logs")
    LOG_LEVEL: str = Field(default="INFO")

settings = Settings()
