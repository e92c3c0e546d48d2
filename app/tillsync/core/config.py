from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "TILLSYNC"
    DATABASE_URL: str = "sqlite+pysqlite:///./tillsync.db"
    METRICS_ENABLED: bool = True
    BATCH_VALIDATE_MAX_ITEMS: int = 500
    CONFLICT_HISTORY_LIMIT: int = 100
    OPS_ENABLE_INTEGRITY_SCAN: bool = True


settings = Settings()
