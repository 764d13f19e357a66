"""
Runtime configuration for the Wealthsimple client.

Base URLs are passed explicitly to every component through ``ApiConfig``;
environment variables only provide the defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DATA_DIR_ENV = "WEALTHSIMPLE_CLI_DATA_DIR"
TOKEN_PATH_ENV = "WEALTHSIMPLE_TOKEN_PATH"
BASE_URL_ENV = "WEALTHSIMPLE_API_BASE_URL"
GRAPHQL_URL_ENV = "WEALTHSIMPLE_GRAPHQL_URL"

DEFAULT_BASE_URL = "https://api.production.wealthsimple.com/v1/"
DEFAULT_GRAPHQL_URL = "https://my.wealthsimple.com/graphql"
DEFAULT_TIMEOUT = 30.0


def resolve_data_dir() -> Path:
    """Resolve the base data directory."""
    env_dir = os.getenv(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / ".wealthsimple-cli-tools"


def resolve_token_path(
    token_path_env: str = TOKEN_PATH_ENV,
    token_filename: str = "credentials.json",
) -> Path:
    """Resolve the credential file path."""
    env_path = os.getenv(token_path_env)
    if env_path:
        return Path(env_path).expanduser()
    return resolve_data_dir() / "tokens" / token_filename


@dataclass(frozen=True)
class ApiConfig:
    """Endpoints of the REST and GraphQL APIs."""

    base_url: str = DEFAULT_BASE_URL
    graphql_url: str = DEFAULT_GRAPHQL_URL
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self):
        if not self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url + "/")

    @classmethod
    def from_env(cls) -> "ApiConfig":
        return cls(
            base_url=os.getenv(BASE_URL_ENV, DEFAULT_BASE_URL),
            graphql_url=os.getenv(GRAPHQL_URL_ENV, DEFAULT_GRAPHQL_URL),
        )

    def url(self, path: str) -> str:
        """Full REST URL for ``path`` (no leading slash)."""
        return self.base_url + path
