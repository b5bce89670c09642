from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    """Configuration for the backend API client and task polling."""
    API_BASE_URL: str = "http://139.196.221.226:8080"
    REQUEST_TIMEOUT_SECONDS: float = 30.0
    POLL_INTERVAL_SECONDS: float = 1.5
    MAX_POLL_ATTEMPTS: int = 30
    MAX_TRANSIENT_FAILURES: int | None = None
    UPLOAD_MIME_TYPE: str = "image/jpeg"
    LOG_LEVEL: str = "INFO"
    DEBUG_HTTP_LOG: bool = False

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_client_settings() -> ClientSettings:
    """Return a fresh client settings instance."""
    return ClientSettings()
