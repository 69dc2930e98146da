"""Configuration management for the DevTask application."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass
class ConfigModel:
    """Global configuration model for DevTask."""

    # File paths
    data_dir: str = "~/.devtask"
    store_file: str = "store.yaml"
    export_dir: str = "~/.devtask/exports"

    # Report presentation
    report_title: str = "DevTaskManager"
    date_format: str = "%Y-%m-%d"

    # Charts embedded in PDF exports
    chart_dpi: int = 150
    chart_top_n: int = 10

    # Diagnostics
    log_level: str = "WARNING"

    def __post_init__(self):
        """Post-initialization setup."""
        # Expand user paths
        self.data_dir = os.path.expanduser(self.data_dir)
        self.export_dir = os.path.expanduser(self.export_dir)

        # Ensure directories exist
        Path(self.data_dir).mkdir(parents=True, exist_ok=True)

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        data = {
            "data_dir": self.data_dir,
            "store_file": self.store_file,
            "export_dir": self.export_dir,
            "report_title": self.report_title,
            "date_format": self.date_format,
            "chart_dpi": self.chart_dpi,
            "chart_top_n": self.chart_top_n,
            "log_level": self.log_level,
        }
        return yaml.dump(data, default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ConfigModel":
        """Deserialize config from YAML, ignoring keys this version doesn't know."""
        data = yaml.safe_load(yaml_str) or {}
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        return cls(**{key: value for key, value in data.items() if key in known})

    def get_store_path(self) -> Path:
        """Get the entity store file path."""
        return Path(self.data_dir) / self.store_file

    def get_config_path(self) -> Path:
        """Get the config file path."""
        return Path(self.data_dir) / "config.yaml"

    def get_export_path(self, filename: Optional[str] = None) -> Path:
        """Get the export directory, or a file inside it."""
        if filename:
            return Path(self.export_dir) / filename
        return Path(self.export_dir)


def default_config_path() -> Path:
    """Location of the config file when none is given explicitly."""
    return Path(os.path.expanduser(ConfigModel.data_dir)) / "config.yaml"


class Config:
    """Configuration manager for DevTask."""

    _instance: Optional[ConfigModel] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Load configuration from file or create default."""
        if cls._instance is not None:
            return cls._instance

        if config_path is None:
            config_path = default_config_path()

        config = None
        if config_path.exists():
            try:
                with open(config_path, 'r') as f:
                    yaml_content = f.read()
                config = ConfigModel.from_yaml(yaml_content)
                logger.info(f"Loaded configuration from {config_path}")
            except (OSError, yaml.YAMLError, TypeError, ValueError) as e:
                logger.warning(f"Failed to load config from {config_path}: {e}. Using default configuration.")
        else:
            # Create default config file
            config = ConfigModel()
            cls.save(config, config_path)
            logger.info(f"Created default configuration at {config_path}")

        if config is None:
            config = ConfigModel()

        cls._instance = config
        return config

    @classmethod
    def save(cls, config: ConfigModel, config_path: Optional[Path] = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = config.get_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(config_path, 'w') as f:
                f.write(config.to_yaml())
            logger.info(f"Configuration saved to {config_path}")
        except OSError as e:
            logger.error(f"Failed to save config to {config_path}: {e}")

    @classmethod
    def get(cls) -> ConfigModel:
        """Get the current configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reload(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Reload configuration from file."""
        cls._instance = None
        return cls.load(config_path)


def get_config() -> ConfigModel:
    """Get the current configuration."""
    return Config.get()
