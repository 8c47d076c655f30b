"""Configuration management."""

import json
import logging
from typing import Dict, Any, Optional, Union
from pathlib import Path

import yaml

from build_progress.core.scanner import DEFAULT_EXTENSIONS

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("build-progress.json", "build-progress.yaml", "build-progress.yml")


def find_config_file(project_dir: Union[str, Path]) -> Optional[Path]:
    """Find the first configuration file present in a project directory."""
    for name in CONFIG_FILENAMES:
        candidate = Path(project_dir) / name
        try:
            if candidate.is_file():
                return candidate
        except OSError as e:
            logger.warning(f"Cannot access config file {candidate}: {e}")
    return None


class Config:
    """Build progress configuration manager."""

    def __init__(self, config_file: Optional[Path] = None, project_dir: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_file: Path to configuration file (JSON or YAML)
            project_dir: Directory searched for a configuration file when
                config_file is not given
        """
        project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.config_file = Path(config_file) if config_file else (
            find_config_file(project_dir) or project_dir / CONFIG_FILENAMES[0]
        )
        self._config: Dict[str, Any] = self._get_default_config()
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file, on top of the defaults."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                if self.config_file.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f) or {}
                else:
                    data = json.load(f)
        except FileNotFoundError:
            return
        except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable config {self.config_file}: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Ignoring config {self.config_file}: expected a mapping")
            return

        self.update(data)

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "source_root": "src",
            "cache_dir": "node_modules/.progress",
            "extensions": list(DEFAULT_EXTENSIONS),
            "dependency_marker": "node_modules",
            "bar_width": 40,
            "description": "Building",
        }

    def _is_valid(self, key: str, value: Any) -> bool:
        """Check a value against the type of the key's default."""
        default = self._get_default_config().get(key)
        if default is None:
            return True
        # bool is an int subclass but never a valid width
        if isinstance(value, bool) and not isinstance(default, bool):
            return False
        if isinstance(default, str) and isinstance(value, Path):
            return True
        if isinstance(default, list):
            return isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value)
        if not isinstance(value, type(default)):
            return False
        if isinstance(default, int):
            return value > 0
        return True

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        return self._config.get(key, default)

    def update(self, values: Dict[str, Any]) -> None:
        """Override several values at once.

        Values whose type does not match the key's default are skipped
        with a warning, keeping the current value.
        """
        for key, value in values.items():
            if not self._is_valid(key, value):
                logger.warning(
                    f"Ignoring invalid value {value!r} for '{key}', "
                    f"keeping {self._config.get(key)!r}"
                )
                continue
            self._config[key] = value

    def save(self) -> None:
        """Save configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            if self.config_file.suffix in (".yaml", ".yml"):
                yaml.safe_dump(self._config, f, default_flow_style=False)
            else:
                json.dump(self._config, f, indent=2)
