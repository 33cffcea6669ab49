from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    project_name: str = "AutoViz-Insight"
    env: str = "dev"

    api_host: str = "0.0.0.0"
    api_port: int = 8000

    cors_origins: str = "http://localhost:8501"  # comma-separated
    log_level: str = "INFO"

    openai_api_key: str | None = None
    openai_base_url: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_timeout: float = 60.0

    # Ingestion / engine limits
    max_rows: int = 3000
    numeric_sample_rows: int = 50
    query_result_limit: int = 50

    # AI payload sizes
    ai_sample_rows: int = 15
    summary_context_rows: int = 20

    # Minimum time the "analyzing" state lasts
    analysis_min_delay_seconds: float = 2.5

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    def cors_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

settings = Settings()
