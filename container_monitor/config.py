from typing import List, Mapping, NamedTuple, Optional

from pydantic import BaseModel, Field, ValidationError


class ConfigError(Exception):
    pass


class NotionConfig(NamedTuple):
    """Configuration for the Notion block API client."""

    # API connection settings
    base_url: str = "https://api.notion.com/v1"
    api_version: str = "2022-06-28"
    timeout: int = 30

    # Notion allows ~3 requests/sec per integration, 350ms between requests is safe
    min_interval: float = 0.35
    default_retry_after: float = 1.0

    children_page_size: int = 100
    nested_page_size: int = 20


class MonitorConfig(NamedTuple):
    refresh_interval: float = 60.0


class AppConfig(BaseModel):
    notion_token: str = Field(min_length=1)
    notion_page_id: str = Field(min_length=1)

    log_level: str = "INFO"
    log_file: Optional[str] = None


ENV_VARS = {
    "notion_token": "NOTION_TOKEN",
    "notion_page_id": "NOTION_PAGE_ID",
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
}
REQUIRED_ENV_VARS = ["NOTION_TOKEN", "NOTION_PAGE_ID"]


def load_config(environ: Mapping[str, str]) -> AppConfig:
    """Build the app config from environment variables.

    Args:
        environ (Mapping[str, str]): Usually `os.environ`

    Raises:
        ConfigError: If a required variable is missing or empty

    Returns:
        AppConfig: The validated configuration
    """
    missing: List[str] = [
        name for name in REQUIRED_ENV_VARS if not environ.get(name, "").strip()
    ]
    if missing:
        raise ConfigError(
            f"Missing required environment variable(s): {', '.join(missing)}"
        )

    values = {
        field: environ[env_name].strip()
        for field, env_name in ENV_VARS.items()
        if environ.get(env_name, "").strip()
    }

    try:
        return AppConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
