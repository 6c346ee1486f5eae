"""Runtime configuration read from the environment (and a local .env file)."""

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

# Package URL type -> deps.dev system name
DEFAULT_DEPS_DEV_SYSTEMS: dict[str, str] = {
    "npm": "NPM",
    "golang": "GO",
    "maven": "MAVEN",
    "pypi": "PYPI",
    "nuget": "NUGET",
    "cargo": "CARGO",
    "gem": "RUBYGEMS",
}


class ConfigError(ValueError):
    """Raised when an environment variable holds a malformed value."""


class Settings(BaseModel):
    """Settings shared by the fetchers, analyzers and CLI."""

    github_token: str | None = None
    deps_dev_url: str = "https://api.deps.dev"
    github_api_url: str = "https://api.github.com"
    http_timeout: float = Field(default=30.0, gt=0)
    stats_max_attempts: int = Field(default=5, ge=1)
    stats_retry_interval: float = Field(default=2.0, ge=0)
    log_level: str = "WARNING"
    ecosystem_systems: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_DEPS_DEV_SYSTEMS)
    )

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None, dotenv: bool = True) -> "Settings":
        """Build settings from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ``.
            dotenv: Load a ``.env`` file into ``os.environ`` first.

        Returns:
            Settings with defaults for every unset variable.

        Raises:
            ConfigError: If a variable cannot be parsed.
        """
        if dotenv and env is None:
            load_dotenv()
        source = os.environ if env is None else env

        values: dict = {}
        mapping = {
            "GITHUB_TOKEN": "github_token",
            "PKGHEALTH_DEPS_DEV_URL": "deps_dev_url",
            "PKGHEALTH_GITHUB_API_URL": "github_api_url",
            "PKGHEALTH_HTTP_TIMEOUT": "http_timeout",
            "PKGHEALTH_STATS_MAX_ATTEMPTS": "stats_max_attempts",
            "PKGHEALTH_STATS_RETRY_INTERVAL": "stats_retry_interval",
            "PKGHEALTH_LOG_LEVEL": "log_level",
        }
        for var, field in mapping.items():
            raw = source.get(var)
            if raw:
                values[field] = raw.strip()

        systems = source.get("PKGHEALTH_DEPS_DEV_SYSTEMS")
        if systems:
            values["ecosystem_systems"] = parse_system_map(systems)

        if "log_level" in values:
            level = values["log_level"].upper()
            if not isinstance(logging.getLevelName(level), int):
                raise ConfigError(f"Unknown log level: {values['log_level']}")
            values["log_level"] = level

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(str(e)) from e


def parse_system_map(raw: str) -> dict[str, str]:
    """Parse ``type=SYSTEM`` pairs separated by commas.

    >>> parse_system_map("npm=NPM, pypi=PYPI")
    {'npm': 'NPM', 'pypi': 'PYPI'}
    """
    systems = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        purl_type, sep, system = pair.partition("=")
        if not sep or not purl_type.strip() or not system.strip():
            raise ConfigError(f"Invalid deps.dev system mapping: {pair!r}")
        systems[purl_type.strip().lower()] = system.strip().upper()
    return systems
