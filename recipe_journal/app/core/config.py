import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    scraper_user_agent: str = Field(
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_6) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
        alias="SCRAPER_USER_AGENT",
    )
    fetch_timeout_seconds: float = Field(15.0, alias="FETCH_TIMEOUT_SECONDS")
    fetch_max_bytes: int = Field(2_000_000, alias="FETCH_MAX_BYTES")
    fetch_max_redirects: int = Field(5, alias="FETCH_MAX_REDIRECTS")
    fetch_retry_backoff_seconds: float = Field(1.0, alias="FETCH_RETRY_BACKOFF_SECONDS")
    # 0 disables the bound
    recipe_cache_max_entries: int = Field(500, alias="RECIPE_CACHE_MAX_ENTRIES")
    llm_base_url: str | None = Field(None, alias="LLM_BASE_URL")
    llm_model_name: str = Field("gemini-2.5-flash-lite", alias="LLM_MODEL_NAME")
    llm_api_key: str | None = Field(None, alias="LLM_API_KEY")
    llm_timeout_seconds: float = Field(30.0, alias="LLM_TIMEOUT_SECONDS")
    smart_scale_max_tokens: int = Field(2048, alias="SMART_SCALE_MAX_TOKENS")
    smart_scale_temperature: float = Field(0.3, alias="SMART_SCALE_TEMPERATURE")
    smart_scale_cache_ttl_seconds: int = Field(24 * 60 * 60, alias="SMART_SCALE_CACHE_TTL_SECONDS")
    smart_scale_cache_max_entries: int = Field(2000, alias="SMART_SCALE_CACHE_MAX_ENTRIES")
    # Caller policy for the HTTP routes; the scaling engine itself accepts any multiplier
    min_multiplier: float = Field(0.1, alias="MIN_MULTIPLIER")
    max_multiplier: float = Field(10.0, alias="MAX_MULTIPLIER")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    try:
        settings = Settings()
    except PermissionError:
        logger.warning("Unable to read .env; continuing with environment variables only")
        settings = Settings(_env_file=None)
    return settings
