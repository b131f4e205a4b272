"""
Settings loader for vcsflow.

Loads settings from a KEY=value env file (.vcsflow.env in the repository
root by default), validates it against the settings schema and fills in
defaults for anything missing.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from . import envparse
from . import validate
from .constants import (
    AUTH_ERROR_MESSAGES,
    DEFAULT_GIT_TIMEOUT,
    DEFAULT_NEW_BRANCH_PREFIX,
    DEFAULT_READY_MAX_POLLS,
    DEFAULT_READY_POLL_INTERVAL,
    DEFAULT_REMOTE,
    DEFAULT_REMOTE_TIMEOUT,
    SETTINGS_FILENAME,
)
from .errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Runtime settings from .vcsflow.env"""
    ready_poll_interval: float = DEFAULT_READY_POLL_INTERVAL
    ready_max_polls: int = DEFAULT_READY_MAX_POLLS
    max_auth_retries: Optional[int] = None  # None = keep asking while the user keeps answering
    auth_error_messages: tuple[str, ...] = AUTH_ERROR_MESSAGES
    git_timeout: int = DEFAULT_GIT_TIMEOUT
    remote_timeout: int = DEFAULT_REMOTE_TIMEOUT
    default_remote: str = DEFAULT_REMOTE
    new_branch_prefix: str = DEFAULT_NEW_BRANCH_PREFIX
    desktop_notifications: bool = False
    source: Optional[Path] = field(default=None, compare=False)


def settings_from_env(env: dict[str, str], source: Optional[Path] = None) -> Settings:
    """Build Settings from parsed env values.

    Raises:
        ConfigError: If a value doesn't match the settings schema
    """
    try:
        validate.validate(env, "settings")
    except validate.ValidationError as e:
        where = f" in {source}" if source else ""
        raise ConfigError(f"Invalid settings{where}: {e}") from None

    extra_auth = tuple(
        m.strip() for m in env.get("AUTH_ERROR_MESSAGES", "").split(",") if m.strip()
    )
    max_retries = int(env.get("MAX_AUTH_RETRIES", "0"))

    return Settings(
        ready_poll_interval=float(env.get("READY_POLL_INTERVAL", DEFAULT_READY_POLL_INTERVAL)),
        ready_max_polls=int(env.get("READY_MAX_POLLS", DEFAULT_READY_MAX_POLLS)),
        max_auth_retries=max_retries or None,
        auth_error_messages=AUTH_ERROR_MESSAGES + extra_auth,
        git_timeout=int(env.get("GIT_TIMEOUT", DEFAULT_GIT_TIMEOUT)),
        remote_timeout=int(env.get("REMOTE_TIMEOUT", DEFAULT_REMOTE_TIMEOUT)),
        default_remote=env.get("DEFAULT_REMOTE", DEFAULT_REMOTE),
        new_branch_prefix=env.get("NEW_BRANCH_PREFIX", DEFAULT_NEW_BRANCH_PREFIX),
        desktop_notifications=env.get("DESKTOP_NOTIFICATIONS", "false").lower() in ("true", "1"),
        source=source,
    )


def load_settings(repo_path: Path, config_path: Optional[Path] = None) -> Settings:
    """Load settings for a repository.

    An explicit config_path must exist. Without one, <repo>/.vcsflow.env is
    used when present and defaults otherwise.
    """
    path = config_path or (repo_path / SETTINGS_FILENAME)
    if not path.exists():
        if config_path is not None:
            raise ConfigError(f"Settings file not found: {config_path}")
        logger.debug(f"No {SETTINGS_FILENAME} in {repo_path}, using defaults")
        return Settings()

    try:
        env = envparse.load_env(str(path))
    except ValueError as e:
        raise ConfigError(f"{path}: {e}") from None

    settings = settings_from_env(env, source=path)
    logger.debug(f"Loaded settings from {path}")
    return settings
