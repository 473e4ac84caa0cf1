from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    database_url: str = "sqlite:///./analysis.db"
    worker_url: str = "http://worker-host:8000/analyze"
    worker_api_key: str | None = None

    public_base_url: str = "http://localhost:8080"

    webhook_hmac_secret: str | None = None

    request_timeout_seconds: float = 60.0
    reaper_delay_seconds: float = 30.0
    default_topic_score: float = 50
    simulate_missing_files: bool = True

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    @property
    def callback_url(self) -> str:
        return f"{self.public_base_url.rstrip('/')}/v1/webhook/analysis"

settings = Settings()
