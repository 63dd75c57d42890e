"""Configuration manager for client settings stored as JSON."""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from .errors import (
    ConfigurationError,
    DeltaChatError,
    FileSystemError,
    InvalidConfigError,
)
from .logging import get_logger, init_logging
from .paths import (
    ACCOUNTS_PATH_ENV,
    CONFIG_PATH,
    CONFIG_PATH_ENV,
    DEFAULT_SERVER_BIN,
    LOG_DIR_ENV,
    LOG_LEVEL_ENV,
    SERVER_PATH_ENV,
)

logger = get_logger(__name__)


class TransportConfig(BaseModel):
    """Pydantic model for the server process settings."""

    server_path: str = DEFAULT_SERVER_BIN
    accounts_dir: Optional[str] = None
    forward_stderr: bool = True
    start_timeout: float = 10.0  # in seconds
    close_timeout: float = 5.0  # in seconds
    call_timeout: Optional[float] = None  # in seconds, None waits forever


class TestServerConfig(BaseModel):
    """Pydantic model for the test mail server used by AcFactory."""

    __test__ = False

    mail_server: str = "localhost"
    send_server: str = "localhost"
    mail_port: int = 3143
    send_port: int = 3025
    mail_security: int = 3
    send_security: int = 3
    mvbox_move: bool = False

    def as_account_config(self) -> Dict[str, str]:
        """Account config keys understood by the core server."""
        return {
            "mail_server": self.mail_server,
            "send_server": self.send_server,
            "mail_port": str(self.mail_port),
            "send_port": str(self.send_port),
            "mail_security": str(self.mail_security),
            "send_security": str(self.send_security),
            "mvbox_move": "1" if self.mvbox_move else "0",
        }


class LoggingConfig(BaseModel):
    """Pydantic model for logging settings."""

    log_level: str = "INFO"
    console_level: str = "WARNING"
    log_dir: Optional[str] = None
    max_file_size: int = 5_242_880  # 5 MB
    backup_count: int = 5


class ClientConfig(BaseModel):
    """Pydantic model for overall client configuration."""

    version: str = "0.1.0"
    transport: TransportConfig = Field(default_factory=TransportConfig)
    test_server: TestServerConfig = Field(default_factory=TestServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# env var -> dotted config key
ENV_OVERRIDES = {
    SERVER_PATH_ENV: "transport.server_path",
    ACCOUNTS_PATH_ENV: "transport.accounts_dir",
    LOG_LEVEL_ENV: "logging.console_level",
    LOG_DIR_ENV: "logging.log_dir",
    "DC_TEST_MAIL_SERVER": "test_server.mail_server",
    "DC_TEST_SEND_SERVER": "test_server.send_server",
    "DC_TEST_MAIL_PORT": "test_server.mail_port",
    "DC_TEST_SEND_PORT": "test_server.send_port",
}


class ConfigManager:
    """Loads client configuration from a JSON file plus environment overrides.

    The file is optional and never created implicitly: a missing file means
    defaults. Values are validated by the pydantic models above.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
    ):
        env_path = (env if env is not None else os.environ).get(CONFIG_PATH_ENV)
        self.path = Path(config_path or env_path or CONFIG_PATH)
        self.env = dict(os.environ if env is None else env)
        self.config = self._load_config()
        self._apply_env_overrides()
        init_logging().apply_config(self.config.logging)
        logger.debug(f"Configuration loaded from {self.path}")

    def _load_config(self) -> ClientConfig:
        """Load configuration from file or fall back to defaults."""

        if not self.path.exists():
            logger.debug("No config file found, using default configuration.")
            return ClientConfig()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return ClientConfig(**data)

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse config file: {e}")
            raise InvalidConfigError(
                f"Configuration file is not valid JSON: {str(e)}"
            ) from e
        except (ValidationError, TypeError) as e:
            logger.error(f"Failed to validate config file: {e}")
            raise InvalidConfigError(
                f"Configuration data does not match expected schema: {str(e)}"
            ) from e
        except OSError as e:
            raise FileSystemError(
                f"Failed to read configuration file {self.path}: {str(e)}"
            ) from e

    def _apply_env_overrides(self) -> None:
        for env_name, key_path in ENV_OVERRIDES.items():
            value = self.env.get(env_name)
            if value:
                self.set(key_path, value)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get a configuration value using dot-separated key path."""

        obj: Any = self.config
        for key in key_path.split("."):
            if not hasattr(obj, key):
                return default
            obj = getattr(obj, key)

        return obj

    def set(self, key_path: str, value: Any) -> None:
        """Set a configuration value using dot-separated key path.

        The value is validated against the model field, so strings from the
        environment are coerced to the field's type.
        """

        try:
            keys = key_path.split(".")
            obj: Any = self.config

            for key in keys[:-1]:
                if not isinstance(getattr(obj, key, None), BaseModel):
                    raise InvalidConfigError(
                        f"Configuration path '{key_path}' is invalid: '{key}' not found"
                    )
                obj = getattr(obj, key)

            field = keys[-1]
            if field not in type(obj).model_fields:
                raise InvalidConfigError(
                    f"Configuration key '{field}' does not exist in path '{key_path}'"
                )

            data = obj.model_dump()
            data[field] = value
            validated = type(obj).model_validate(data)
            setattr(obj, field, getattr(validated, field))

        except DeltaChatError:
            raise
        except ValidationError as e:
            raise InvalidConfigError(
                f"Invalid value for configuration key '{key_path}': {str(e)}"
            ) from e
        except Exception as e:
            raise ConfigurationError(
                f"Failed to set configuration key '{key_path}': {str(e)}"
            ) from e

    def save(self, path: Optional[Path] = None) -> Path:
        """Write the current configuration to a JSON file."""

        target = Path(path or self.path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding="utf-8") as f:
                json.dump(self.config.model_dump(), f, indent=2, ensure_ascii=False)
            logger.debug(f"Configuration saved to {target}")
            return target

        except OSError as e:
            raise FileSystemError(f"Failed to write configuration file: {str(e)}") from e


## Convenience Functions

_config_manager: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """Get or create the process-wide configuration manager."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()

    return _config_manager


def reset_config() -> None:
    """Forget the process-wide configuration (for testing purposes)"""
    global _config_manager
    _config_manager = None
