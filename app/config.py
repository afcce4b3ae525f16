from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database settings
    DATABASE_URL: str

    # JWT settings
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24

    # Storage settings
    STORAGE_BACKEND: str = "local"  # local | s3 (future)
    STORAGE_BASE_PATH: str = "uploads"
    MAX_UPLOAD_SIZE_MB: int = 1000

    # Logging settings
    LOG_LEVEL: str = "INFO"

    # CORS settings
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    # "env_file": ".env"：從.env檔案讀取環境變數
    # "extra": "ignore"：忽略Settings類別沒定義的環境變數
    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
