"""Configuration for jira-notifier."""

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings


class JiraConfig(BaseModel):
    """Jira options handed to the routing core.

    Built once from ``Settings`` at the application edge and passed around
    explicitly inside a ``JiraContext``.
    """

    url: str
    vcstype: str = ""
    user: str = ""
    password: str = ""
    use_dynamic_channels: bool = False
    use_cache: bool = False

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./notifier.db"
    api_prefix: str = "/api/v1"
    debug: bool = False

    # Workspace that owns mappings and preferences
    workspace_id: str = "default"

    # Jira Server
    jira_url: str = ""
    jira_vcstype: str = ""
    jira_user: str = ""
    jira_password: str = ""
    jira_use_dynamic_channels: bool = False
    jira_use_cache: bool = True

    # Cache
    cache_backend: str = "memory"
    redis_url: str = "redis://localhost:6379/0"
    cache_default_ttl: int = 3600
    cache_check_period: int = 30
    cache_max_entries: int = 10000

    # Slack
    slack_bot_token: str = ""

    # Deploy approval callback; empty disables the approval gate
    approval_webhook_url: str = ""

    model_config = {"env_prefix": "NOTIF_"}

    @field_validator("cache_backend")
    @classmethod
    def _check_cache_backend(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("memory", "redis"):
            raise ValueError("cache_backend must be 'memory' or 'redis'")
        return value

    def jira_config(self) -> JiraConfig:
        if not self.jira_url:
            raise RuntimeError("Jira not configured: set NOTIF_JIRA_URL")
        return JiraConfig(
            url=self.jira_url,
            vcstype=self.jira_vcstype,
            user=self.jira_user,
            password=self.jira_password,
            use_dynamic_channels=self.jira_use_dynamic_channels,
            use_cache=self.jira_use_cache,
        )


settings = Settings()
