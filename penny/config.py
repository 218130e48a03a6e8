from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    wit_access_token: str = ""
    wit_url: str = "https://api.wit.ai"
    wit_api_version: str = "20200612"
    telegram_bot_token: str = ""
    db_path: str = "penny_ledger.json"
    default_budget: float = 500
    confirmation_timeout_minutes: float = 3
    max_transitions: int = 32
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
