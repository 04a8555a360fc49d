"""
================================================================================
EasyQA Common Utilities
================================================================================

Process-wide configuration store and loguru logging setup shared by the
framework, the page objects and the pytest lifecycle.

Exports:
    - ConfigStore: YAML-backed key/value settings with env overrides
    - ConfigurationError: Raised on invalid YAML or writes after sealing
    - get_config_store / get_config / set_config: Module-level helpers
    - init_logger: Configure loguru sinks once per process

Usage:
    from easyqa_tools.common import get_config, init_logger

    init_logger()
    timeout = int(get_config("wait.time.seconds", 30))

Configuration hierarchy (highest to lowest priority):
    1. Runtime overrides via set() (setup window only)
    2. Environment variables (EASYQA_WAIT__TIME__SECONDS overrides wait.time.seconds)
    3. YAML configuration file
    4. Default values passed to get()

================================================================================
"""

from __future__ import annotations

import os
import sys
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from loguru import logger


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"

ENV_PREFIX = "EASYQA_"


class ConfigurationError(Exception):
    """Raised when configuration loading or access fails."""
    pass


# ============================================================
# Configuration Management
# ============================================================

class ConfigStore:
    """
    Process-wide key/value settings, loaded once and overridable during setup.

    Keys use dot notation and map onto nested YAML sections, so
    ``wait.time.seconds`` reads ``wait: {time: {seconds: ...}}``.

    Writes are only allowed inside the setup window. Once ``seal()`` has been
    called (normally right before sessions are spun up) any further ``set()``
    raises ConfigurationError, which makes the read-mostly contract explicit
    instead of relying on the absence of concurrent writers.
    """

    _instance: Optional["ConfigStore"] = None
    _instance_lock = threading.Lock()

    def __init__(self, config_path: Optional[Union[str, Path]] = None) -> None:
        """
        Initialize and load the store.

        Args:
            config_path: Path to YAML configuration file.
                        Uses DEFAULT_CONFIG_PATH if not specified.
        """
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._config: Dict[str, Any] = {}
        self._overrides: Dict[str, Any] = {}
        self._sealed = False
        self._write_lock = threading.Lock()
        self._load_config()

    @classmethod
    def instance(cls, config_path: Optional[Union[str, Path]] = None) -> "ConfigStore":
        """Return the shared store, creating it on first use."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls(config_path)
            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """
        Drop the shared instance.

        Useful for testing when configuration needs to be reloaded
        with different settings.
        """
        with cls._instance_lock:
            cls._instance = None

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            logger.warning(
                f"Configuration file not found: {self._config_path}. "
                f"Using defaults and environment variables only."
            )
            self._config = {}
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {e}"
            ) from e
        logger.debug(f"Loaded configuration from: {self._config_path}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Runtime overrides win, then environment variables, then YAML.

        Args:
            key: Dot-notation path (e.g., "wait.time.seconds")
            default: Default value if key not found

        Returns:
            Configuration value or default

        Examples:
            >>> store.get("browser")
            'chrome'

            >>> store.get("wait.time.seconds", 30)
            30
        """
        if key in self._overrides:
            return self._overrides[key]

        env_value = os.environ.get(self._env_key(key))
        if env_value is not None:
            return self._convert_type(env_value, default)

        value: Any = self._config
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        """
        Override a configuration value for the rest of the process.

        Raises:
            ConfigurationError: If the setup window has been sealed
        """
        with self._write_lock:
            if self._sealed:
                raise ConfigurationError(
                    f"Configuration is sealed; cannot set '{key}' while sessions may be active"
                )
            self._overrides[key] = value
        logger.debug(f"Configuration override: {key}={value!r}")

    def seal(self) -> None:
        """Close the setup window. Later writes raise ConfigurationError."""
        with self._write_lock:
            self._sealed = True
        logger.debug("Configuration sealed")

    @property
    def sealed(self) -> bool:
        return self._sealed

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get entire configuration section.

        Args:
            section: Section name (e.g., "logging", "viewport")

        Returns:
            Section dictionary or empty dict if not found
        """
        value = self._config.get(section, {})
        return dict(value) if isinstance(value, dict) else {}

    def reload(self) -> None:
        """Reload configuration from file. Runtime overrides are kept."""
        self._load_config()
        logger.info(f"Configuration reloaded from: {self._config_path}")

    @staticmethod
    def _env_key(key: str) -> str:
        # wait.time.seconds -> EASYQA_WAIT__TIME__SECONDS
        return ENV_PREFIX + key.upper().replace(".", "__")

    @staticmethod
    def _convert_type(value: str, reference: Any) -> Any:
        """
        Convert string value to match reference type.

        Used for environment variables which are always strings.
        """
        if reference is None:
            return value

        if isinstance(reference, bool):
            return value.lower() in ("true", "1", "yes", "on")
        if isinstance(reference, int):
            try:
                return int(value)
            except ValueError:
                return value
        if isinstance(reference, float):
            try:
                return float(value)
            except ValueError:
                return value

        return value


def get_config_store() -> ConfigStore:
    """Return the process-wide ConfigStore."""
    return ConfigStore.instance()


def get_config(key: str, default: Any = None) -> Any:
    """
    Convenience function to get a configuration value.

    Example:
        base_url = get_config("url", "http://localhost:3000")
    """
    return get_config_store().get(key, default)


def set_config(key: str, value: Any) -> None:
    """Convenience function to override a configuration value."""
    get_config_store().set(key, value)


def parse_bool(value: Any) -> bool:
    """Interpret a boolean-as-string configuration value."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("true", "1", "yes", "on")


# ============================================================
# Logging Setup
# ============================================================

_logger_initialized = False


def init_logger(
    level: str = None,
    format_string: str = None,
    log_file: str = None
) -> None:
    """
    Initializes the loguru logger with standard settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        format_string: Log format string. Uses default if not provided.
        log_file: Optional file path to write logs to.

    Example:
        init_logger()  # Use defaults
        init_logger(level="DEBUG", log_file="test-output/logs/ui.log")
    """
    global _logger_initialized

    if _logger_initialized:
        return

    logger.remove()

    level = (level or get_config("logging.level", "INFO")).upper()
    format_string = format_string or get_config(
        "logging.format",
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stderr,
        format=format_string,
        level=level,
        colorize=True,
    )

    log_file = log_file or get_config("logging.file")
    if log_file:
        ensure_directory(os.path.dirname(log_file) or ".")
        logger.add(
            log_file,
            format=format_string,
            level=level,
            rotation=get_config("logging.rotation", "10 MB"),
            retention=get_config("logging.retention", "7 days"),
            enqueue=True,
        )

    _logger_initialized = True
    logger.debug("Logger initialized successfully")


# ============================================================
# Common Utilities
# ============================================================

def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensures a directory exists, creating it if necessary.

    Returns:
        The path (for chaining)
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


__all__ = [
    "ConfigStore",
    "ConfigurationError",
    "get_config_store",
    "get_config",
    "set_config",
    "parse_bool",
    "init_logger",
    "ensure_directory",
]
