"""
Runtime settings for QuietDrop.

Values come from the process environment, optionally seeded from a .env
file via python-dotenv.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError


DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT = 8080
DEFAULT_RATE_LIMIT = 10
DEFAULT_RATE_WINDOW = 60.0
DEFAULT_IO_TIMEOUT = 10.0
DEFAULT_MAX_FRAME = 1024 * 1024
DEFAULT_SALT_FILE = 'salt.txt'


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration."""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    rate_limit: int = DEFAULT_RATE_LIMIT
    rate_window: float = DEFAULT_RATE_WINDOW
    io_timeout: float = DEFAULT_IO_TIMEOUT
    max_frame_size: int = DEFAULT_MAX_FRAME
    key_dir: str = '.'
    salt_file: str = DEFAULT_SALT_FILE
    log_level: str = 'INFO'


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: Optional path to a .env file (default: search cwd)

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If a numeric variable is invalid
    """
    load_dotenv(env_file)

    return Settings(
        host=os.getenv('QUIETDROP_HOST', DEFAULT_HOST),
        port=_env_int('QUIETDROP_PORT', DEFAULT_PORT),
        rate_limit=_env_int('QUIETDROP_RATE_LIMIT', DEFAULT_RATE_LIMIT),
        rate_window=_env_float('QUIETDROP_RATE_WINDOW', DEFAULT_RATE_WINDOW),
        io_timeout=_env_float('QUIETDROP_IO_TIMEOUT', DEFAULT_IO_TIMEOUT),
        max_frame_size=_env_int('QUIETDROP_MAX_FRAME', DEFAULT_MAX_FRAME, minimum=1),
        key_dir=os.getenv('QUIETDROP_KEY_DIR', '.'),
        salt_file=os.getenv('QUIETDROP_SALT_FILE', DEFAULT_SALT_FILE),
        log_level=os.getenv('QUIETDROP_LOG_LEVEL', 'INFO').upper(),
    )
