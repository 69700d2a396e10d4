"""
Manages loading and validation of the environment-provided configuration.
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from godot_export.exceptions import ConfigurationError
from godot_export.models.config import ExportConfig

log = logging.getLogger(__name__)


class ConfigManager:
    """Builds an ExportConfig from environment variables and CLI overrides."""

    def __init__(self, environ: Mapping[str, str] | None = None, base_dir: Path | None = None):
        self._environ = os.environ if environ is None else environ
        self.base_dir = base_dir or Path.cwd()

    def load_config(self, cli_options: dict[str, Any] | None = None) -> ExportConfig:
        """
        Loads configuration from the environment, applies CLI overrides, and validates it.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated ExportConfig object.

        Raises:
            ConfigurationError: If a required variable is missing or validation fails.
        """
        config_from_env = self._get_config_as_dict()

        # Override with CLI options
        if cli_options:
            config_from_env.update(
                {key: value for key, value in cli_options.items() if value is not None}
            )

        try:
            return ExportConfig(**config_from_env, base_dir=self.base_dir)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads every known variable that is set (and non-blank) in the environment."""
        config = {}
        for field_name, env_var in ExportConfig.get_env_keys().items():
            value = self._environ.get(env_var)
            if value is None or not value.strip():
                continue
            config[field_name] = value.strip()
            log.debug(f"Read {env_var} from environment.")
        return config
