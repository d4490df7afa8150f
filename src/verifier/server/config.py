"""Configuration for the verify-conformance server."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from verifier.processing.release import STABLE_TXT_URL


class Settings(BaseSettings):
    """Server configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False

    # GitHub settings, either a token or a GitHub App
    github_token: str = ""
    github_app_id: int = 0
    github_app_private_key: str = ""
    github_app_private_key_path: str = ""
    github_webhook_secret: str = ""
    bot_login: str = ""

    # Scope, comma separated
    repos: str = ""
    orgs: str = ""

    # Periodic full scan, 0 disables
    scan_interval_seconds: int = 3600

    # Release metadata
    metadata_root: str = "./kodata/conformance-testdata"
    stable_txt_url: str = STABLE_TXT_URL

    # Logging
    log_level: str = "INFO"

    @property
    def repo_list(self) -> list[str]:
        return [r.strip() for r in self.repos.split(",") if r.strip()]

    @property
    def org_list(self) -> list[str]:
        return [o.strip() for o in self.orgs.split(",") if o.strip()]

    @property
    def uses_github_app(self) -> bool:
        return not self.github_token and bool(self.github_app_id)

    def get_private_key(self) -> str:
        """Get the GitHub App private key."""
        if self.github_app_private_key:
            return self.github_app_private_key

        if self.github_app_private_key_path:
            key_path = Path(self.github_app_private_key_path)
            if key_path.exists():
                return key_path.read_text()

        raise ValueError(
            "GitHub App private key not configured. "
            "Set GITHUB_APP_PRIVATE_KEY or GITHUB_APP_PRIVATE_KEY_PATH"
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
