"""Configuration management utilities."""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from ..core.constants import APP_DIR_ENV, APP_DIR_NAME, CONFIG_FILE_NAME
from ..models.config import Config

logger = logging.getLogger(__name__)


def get_app_dir() -> Path:
    """Return the aoe data directory, honouring ``AOE_HOME``."""
    override = os.environ.get(APP_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / APP_DIR_NAME


class ConfigManager:
    """Loads and saves the user configuration file."""

    def __init__(self, data_dir: Optional[Path] = None):
        """Initialize config manager."""
        self.data_dir = data_dir or get_app_dir()
        self.config_file = self.data_dir / CONFIG_FILE_NAME

    def load_config(self) -> Config:
        """Load configuration, falling back to defaults when absent or invalid."""
        if not self.config_file.exists():
            return Config()
        try:
            data = yaml.safe_load(self.config_file.read_text()) or {}
            return Config(**data)
        except (yaml.YAMLError, ValidationError, TypeError) as e:
            logger.warning(f"Ignoring invalid config {self.config_file}: {e}")
            return Config()

    def save_config(self, config: Config):
        """Write configuration as YAML."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        data = config.model_dump(mode="json")
        self.config_file.write_text(yaml.safe_dump(data, sort_keys=False))
