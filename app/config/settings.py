from pydantic_settings  import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # Azure OpenAI (an empty key selects demo mode)
    AZURE_OPENAI_ENDPOINT: Optional[str] = None
    AZURE_OPENAI_API_KEY: Optional[str] = None
    AZURE_OPENAI_API_VERSION: str = "2024-10-21"
    AZURE_OPENAI_CHAT_DEPLOYMENT_NAME: str = "gpt-4o"

    # Demo mode simulated delays
    DEMO_ANALYSIS_DELAY_MS: int = 3000
    DEMO_REFINEMENT_DELAY_MS: int = 2000

    # Report export
    REPORT_FILENAME: str = "StackSentinel_Analysis.md"

    # In-memory sessions (LRU bound + idle expiry)
    SESSION_MAX_COUNT: int = 1000
    SESSION_TTL_SECONDS: int = 3600

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

    @property
    def has_credential(self) -> bool:
        return bool(self.AZURE_OPENAI_API_KEY and self.AZURE_OPENAI_API_KEY.strip())


def load_settings() -> Settings:
    """
    Build a fresh Settings object so the credential is read from the
    environment at call time rather than at import time.
    """
    return Settings()


settings = Settings()
