"""
Configuration loader for ReelForge

Handles loading and merging of YAML configuration files with environment variable overrides.
"""

import os
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "REELFORGE_"


class ConfigLoader:
    """
    Loads and manages configuration from YAML files with cascading priority:
    1. Default configuration (reelforge/config/default.yaml)
    2. User configuration (config/config.yaml at project root)
    3. Environment variable overrides (REELFORGE_SECTION_KEY format)
    """

    def __init__(self, user_config_path: Optional[str] = None):
        """
        Initialize configuration loader

        Args:
            user_config_path: Path to user config file (default: config/config.yaml at project root)
        """
        self.package_dir = Path(__file__).parent
        self.default_config_path = self.package_dir / "default.yaml"

        if user_config_path:
            self.user_config_path = Path(user_config_path)
        else:
            # reelforge/config/ -> project root -> config/
            project_root = self.package_dir.parent.parent
            self.user_config_path = project_root / "config" / "config.yaml"

        self.config = self._load_config()

    def _load_yaml(self, file_path: Path) -> Dict[str, Any]:
        """Load YAML file and return as dictionary"""
        try:
            if not file_path.exists():
                logger.debug(f"Config file not found: {file_path}")
                return {}

            with open(file_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
                if config is None:
                    return {}
                return config
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Error loading config from {file_path}: {e}")
            return {}

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Recursively merge two configuration dictionaries

        Args:
            base: Base configuration
            override: Configuration to merge on top

        Returns:
            Merged configuration
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    @staticmethod
    def _parse_env_value(env_value: str) -> Any:
        """Parse an override as int, float or bool, keeping strings as-is."""
        try:
            if '.' in env_value:
                return float(env_value)
            return int(env_value)
        except ValueError:
            pass
        lowered = env_value.lower()
        if lowered in ('true', 'yes'):
            return True
        if lowered in ('false', 'no'):
            return False
        return env_value

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variable overrides to configuration

        Environment variables use the format REELFORGE_SECTION_KEY. Because keys
        themselves contain underscores, the first segment is taken as the section
        and the lowercased remainder as the key.
        Example: REELFORGE_COMPOSITION_SEGMENT_TIMEOUT_SECONDS=90

        Args:
            config: Configuration dictionary

        Returns:
            Configuration with environment overrides applied
        """
        result = self._merge_configs({}, config)

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX):
                continue

            remainder = env_key[len(ENV_PREFIX):].lower()
            section, _, key = remainder.partition('_')
            if not section or not key:
                continue

            current = result.setdefault(section, {})
            if not isinstance(current, dict):
                continue

            current[key] = self._parse_env_value(env_value)
            logger.debug(f"Applied env override: {env_key} = {env_value}")

        return result

    def _load_config(self) -> Dict[str, Any]:
        """
        Load configuration with cascading priority

        Returns:
            Merged configuration dictionary
        """
        logger.debug(f"Loading default config from: {self.default_config_path}")
        config = self._load_yaml(self.default_config_path)

        if self.user_config_path.exists():
            logger.info(f"Loading user config from: {self.user_config_path}")
            user_config = self._load_yaml(self.user_config_path)
            config = self._merge_configs(config, user_config)
        else:
            logger.debug(f"No user config found at: {self.user_config_path}")

        return self._apply_env_overrides(config)

    def get(self, *keys, default: Any = None) -> Any:
        """
        Get configuration value using dot notation or multiple keys

        Examples:
            config.get('composition', 'fps')
            config.get('composition.fps')
            config.get('storage', 'backend', default='local')
        """
        if len(keys) == 1 and isinstance(keys[0], str) and '.' in keys[0]:
            keys = keys[0].split('.')

        current = self.config
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get entire configuration section, or an empty dict if missing."""
        return self.get(section, default={})

    def reload(self) -> None:
        """Reload configuration from files"""
        self.config = self._load_config()
        logger.info("Configuration reloaded")

    def __repr__(self) -> str:
        return f"ConfigLoader(default={self.default_config_path}, user={self.user_config_path})"
