from pydantic_settings import BaseSettings
from typing import ClassVar, Optional


class Settings(BaseSettings):
    # Claude interpretation configuration
    CLAUDE_API_KEY: Optional[str] = None
    CLAUDE_API_ENDPOINT: str = "https://api.anthropic.com/v1/messages"
    CLAUDE_MODEL: str = "claude-3-5-haiku-latest"
    CLAUDE_MAX_TOKENS: int = 300
    CLAUDE_TIMEOUT_SECONDS: float = 30.0
    CLAUDE_LIVE_REQUESTS: bool = False

    # Static analysis configuration
    STRINGS_MIN_LENGTH: int = 4
    STRINGS_MAX_COUNT: int = 20
    MALWARE_HASHES_FILE: Optional[str] = None
    MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024

    # Service configuration
    LOG_LEVEL: str = "INFO"
    HOST: str = "127.0.0.1"
    PORT: int = 8080

    model_config: ClassVar = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore"
    }


settings = Settings()
