from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Lunch Flow
    lunch_flow_api_key: str = ""
    lunch_flow_base_url: str = "https://www.lunchflow.app/api/v1"

    # Actual Budget (actual-http-api server)
    actual_server_url: str = "http://localhost:5007"
    actual_api_key: str = ""
    actual_budget_sync_id: str = ""
    actual_encryption_password: str = ""

    # Duplicate detection
    duplicate_checking_across_accounts: bool = False
    duplicate_date_tolerance_days: int = 3
    payee_similarity_threshold: float = 0.6

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/actual_flow.db"

    # Scheduling
    scheduler_enabled: bool = True
    actual_flow_cron: str = "0 6 * * *"
    actual_flow_run_on_startup: bool = False

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
