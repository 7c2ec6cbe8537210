"""
Application configuration using Pydantic Settings.
Loads from environment variables and .env file.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from vacation_tracker.constants import ISSUE_TITLE_PREFIX, VACATION_LABEL_PREFIX


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Vacation Tracker API"
    debug: bool = False
    port: int = 8490
    log_level: str = "INFO"

    # Data repository (the issue tracker holding vacation issues)
    github_api_url: str = "https://api.github.com"
    github_owner: str = ""
    github_repo: str = ""
    team_config_path: str = "team-config.json"

    # Authentication strategy
    # github-app: reads use the installation token, writes use the user token
    # oauth-app: reads and writes both use the user token
    auth_provider: Literal["github-app", "oauth-app"] = "github-app"
    github_app_id: Optional[str] = None
    github_app_private_key: Optional[str] = None
    github_app_installation_id: Optional[int] = None

    # Issue conventions
    vacation_label_prefix: str = VACATION_LABEL_PREFIX
    issue_title_prefix: str = ISSUE_TITLE_PREFIX

    # Client-side caching (seconds)
    cache_ttl_seconds: float = 60
    team_config_ttl_seconds: float = 300
    cache_max_windows: int = 256

    # Re-authentication prompt de-duplication window (seconds)
    reauth_reset_seconds: float = 1.5

    # Read retry policy
    read_max_retries: int = 2

    # HTTP
    http_timeout: float = 10.0

    @property
    def github_app_configured(self) -> bool:
        """True when every GitHub App credential is present."""
        return bool(
            self.github_app_id
            and self.github_app_private_key
            and self.github_app_installation_id
        )

    @property
    def app_private_key_pem(self) -> Optional[str]:
        """Private key with escaped newlines restored (env vars often carry '\\n')."""
        if not self.github_app_private_key:
            return None
        return self.github_app_private_key.replace("\\n", "\n")

    @property
    def repository_configured(self) -> bool:
        return bool(self.github_owner and self.github_repo)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
