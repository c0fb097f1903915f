from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    DATABASE_URL: str = "sqlite:///./data/skillar.db"

    # Blob storage (cover images), served by the API under /blobs
    BLOB_DIR: str = "./data/blobs"
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # Auth tokens
    JWT_SECRET: str = "change-me"
    JWT_TTL_MINUTES: int = 60 * 24 * 7

    # Verification oracle: "simulated" (random) or "vision" (OpenAI-compatible model)
    ORACLE_BACKEND: str = "simulated"
    ORACLE_SUCCESS_RATE: float = 0.8
    VERIFY_LATENCY_SECONDS: float = 2.0
    VISION_MODEL: str = "gpt-4o-mini"
    VISION_BASE_URL: str = "https://api.openai.com/v1"
    VISION_API_KEY: str = ""

    # Live training sessions held by the API are closed after this much inactivity
    TRAINING_IDLE_TIMEOUT_SECONDS: float = 900.0
    TRAINING_SWEEP_SECONDS: float = 60.0

    # Dashboard
    RECENT_SESSIONS_LIMIT: int = 5

    # Session records that failed to save, replayed on the next save
    OUTBOX_PATH: str = "./data/outbox.jsonl"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

# Ensure data dirs exist
Path(settings.BLOB_DIR).mkdir(parents=True, exist_ok=True)
Path(settings.OUTBOX_PATH).parent.mkdir(parents=True, exist_ok=True)
Path("data").mkdir(exist_ok=True)
