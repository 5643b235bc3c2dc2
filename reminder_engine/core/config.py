from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import PostgresDsn, RedisDsn, computed_field
from typing import Literal, Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "reminders"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432

    @computed_field
    def DATABASE_URL(self) -> PostgresDsn:
        return PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD or None,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )

    REDIS_URL: RedisDsn = "redis://localhost:6379/0"

    # Where pending notification jobs live: "redis" survives restarts, "memory" does not
    NOTIFICATION_JOBSTORE: Literal["redis", "memory"] = "redis"

    # Telegram is the presentation channel for fired notifications
    TELEGRAM_BOT_TOKEN: Optional[str] = None
    TELEGRAM_CHAT_ID: Optional[int] = None

    # Identity of this device process
    DEVICE_ID: str = "default-device"
    DEVICE_PLATFORM: Literal["ios", "android"] = "ios"
    USER_ID: Optional[str] = None

    # Reconciliation
    RECONCILE_TOLERANCE_SECONDS: int = 60
    DEFAULT_SNOOZE_MINUTES: int = 15
    RESYNC_INTERVAL_MINUTES: int = 0  # 0 disables the periodic safety resync

settings = Settings()
