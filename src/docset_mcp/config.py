"""Configuration settings for the docset MCP server."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """docset-mcp configuration.

    Environment variables (prefix ``DOCSET_``):
    - FETCH_TIMEOUT: Per-request timeout in seconds (default: 30)
    - FETCH_MIN_INTERVAL: Minimum seconds between requests to one host
    - USER_AGENT: Fixed User-Agent header (empty = rotate built-in list)
    - ALLOW_PRIVATE_HOSTS: Skip the SSRF guard (default: false)
    - MIN_CONTENT_LENGTH: Shortest Markdown the fetch tool accepts
    - TOOL_TIMEOUT: Hard timeout per tool call in seconds (0 = no timeout)
    - LOG_LEVEL: loguru level (default: INFO)
    """

    # Fetching
    fetch_timeout: float = 30.0
    fetch_min_interval: float = 0.25
    user_agent: str = ""
    allow_private_hosts: bool = False

    # Tools
    min_content_length: int = 100
    tool_timeout: int = 120

    # Logging
    log_level: str = "INFO"

    model_config = {"env_prefix": "DOCSET_", "case_sensitive": False}


settings = Settings()
