from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OpenRouter
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "openai/gpt-4-turbo"
    openrouter_model: str = ""  # optional override of default_model
    oracle_timeout_seconds: float = 60.0
    oracle_max_tokens: int = 1024

    # Firecrawl
    firecrawl_api_key: str = ""
    firecrawl_base_url: str = "https://api.firecrawl.dev"
    fetch_timeout_seconds: float = 30.0
    fetch_retry_max: int = 0

    # Research loop defaults
    research_source_limit: int = 5
    research_max_iterations: int = 3
    research_confidence_threshold: int = 85
    research_findings_per_iteration: int = 2
    research_content_prefix_chars: int = 1000
    research_deadline_seconds: float = 0.0  # 0 disables the deadline
    source_pools_path: str = ""  # empty uses the bundled routing table

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"
    log_to_file: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]


settings = Settings()
