"""Resolve ring buffer configuration from file, environment, and overrides."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ringfifo.config_manager.buffer_config import RingBufferConfig
from ringfifo.const import CONFIG_ENCODING, ENV_PREFIX
from ringfifo.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_ENV_MAP: dict[str, str] = {
    "capacity": f"{ENV_PREFIX}CAPACITY",
    "storage": f"{ENV_PREFIX}STORAGE",
    "dtype": f"{ENV_PREFIX}DTYPE",
    "element_shape": f"{ENV_PREFIX}ELEMENT_SHAPE",
    "shared_memory_name": f"{ENV_PREFIX}SHARED_MEMORY_NAME",
    "log_interval": f"{ENV_PREFIX}LOG_INTERVAL",
}


def build_default_config() -> RingBufferConfig:
    """Return the configuration used when nothing overrides it."""
    return RingBufferConfig()


def _validation_messages(exc: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc']) or 'config'}: {error['msg']}"
        for error in exc.errors()
    ]


def _parse_shape(raw_value: str) -> tuple[int, ...] | str:
    """Parse ``"3,4"`` into ``(3, 4)``; unparsable input is left for validation."""
    parts = [part.strip() for part in raw_value.split(",") if part.strip()]
    try:
        return tuple(int(part) for part in parts)
    except ValueError:
        return raw_value


class ConfigManager:
    """Build effective ring buffer configuration from file, env, and overrides."""

    def __init__(self, config_path: Path | str | None = None) -> None:
        """Initialise ConfigManager.

        Args:
            config_path: Optional YAML file providing the base configuration.
        """
        self.config_path = Path(config_path) if config_path is not None else None

    def _read_file(self) -> dict[str, Any]:
        """Read the YAML configuration file, if one was given.

        Raises:
            ConfigurationError: If the file is missing or not a YAML mapping.
        """
        if self.config_path is None:
            return {}

        try:
            with self.config_path.open("r", encoding=CONFIG_ENCODING) as config_file:
                file_data = yaml.safe_load(config_file) or {}
        except FileNotFoundError as exc:
            raise ConfigurationError(
                [f"Config file {str(self.config_path)!r} not found"]
            ) from exc
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                [f"Config file {str(self.config_path)!r} is not valid YAML: {exc}"]
            ) from exc

        if not isinstance(file_data, dict):
            raise ConfigurationError(
                [f"Config file {str(self.config_path)!r} must hold a mapping"]
            )
        return file_data

    def _read_env_overrides(self) -> dict[str, Any]:
        """Read configuration overrides from environment variables.

        Returns:
            A dictionary of configuration field names to override values.
        """
        overrides: dict[str, Any] = {}

        for field_name, env_var_name in _ENV_MAP.items():
            env_value = os.getenv(env_var_name)
            if env_value is None:
                continue

            if field_name == "element_shape":
                overrides[field_name] = _parse_shape(env_value)
            else:
                overrides[field_name] = env_value.strip()

        return overrides

    def resolve_effective_config(
        self, overrides: dict[str, Any] | None = None
    ) -> RingBufferConfig:
        """Resolve the effective configuration.

        Precedence, lowest first: defaults, config file, environment,
        ``overrides``. Overrides whose value is ``None`` are ignored.

        Raises:
            ConfigurationError: If the merged settings do not validate.
        """
        merged: dict[str, Any] = build_default_config().model_dump()
        merged.update(self._read_file())
        merged.update(self._read_env_overrides())
        if overrides is not None:
            merged.update(
                {name: value for name, value in overrides.items() if value is not None}
            )

        try:
            config = RingBufferConfig.model_validate(merged)
        except ValidationError as exc:
            raise ConfigurationError(_validation_messages(exc)) from exc

        logger.debug("Resolved ring buffer config: %s", config)
        return config

    def save(self, config: RingBufferConfig, path: Path | str | None = None) -> Path:
        """Write ``config`` as YAML to ``path`` (default: ``config_path``).

        Raises:
            ConfigurationError: If no destination path is known.
        """
        destination = Path(path) if path is not None else self.config_path
        if destination is None:
            raise ConfigurationError(["No config path to save to"])

        destination.parent.mkdir(parents=True, exist_ok=True)
        with destination.open("w", encoding=CONFIG_ENCODING) as config_file:
            yaml.safe_dump(config.model_dump(mode="json"), config_file)
        return destination
