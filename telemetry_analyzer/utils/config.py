# telemetry_analyzer/utils/config.py - Configuration management
"""
Configuration management for the analyzers.
Loads settings from YAML files and reads ALP-style matching-group files.
"""

import copy
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Sequence
import logging

from telemetry_analyzer.errors import ConfigError


logger = logging.getLogger(__name__)


class Config:
    """
    Configuration manager for the analyzers.

    Loads configuration from YAML files and provides access to settings.
    """

    DEFAULT_CONFIG = {
        'httplog': {
            'slow_threshold': 1.0,
            'alp_config_paths': [
                'data/alp.yml',
                'internal/extproc/alp/alp.yml',
            ],
            'matching_groups': [],
        },
        'slowlog': {
            'slow_threshold': 0.5,
            'timeout_seconds': 30.0,
            'queue_size': 128,
        },
        'pprof': {
            'profile_type': 'unknown',
        },
        'output': {
            'indent': 2,
        },
    }

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to YAML configuration file
        """
        self.logger = logging.getLogger(__name__)
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_file:
            self.load_from_file(config_file)

    def load_from_file(self, config_file: str):
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML file

        Raises:
            ConfigError: If the file cannot be read or is not a YAML mapping
        """
        config_path = Path(config_file)

        if not config_path.exists():
            self.logger.warning(f"Config file not found: {config_file}, using defaults")
            return

        try:
            with open(config_path, 'r') as f:
                loaded_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config {config_file}: {e}") from e

        if loaded_config is None:
            return
        if not isinstance(loaded_config, dict):
            raise ConfigError(f"Config {config_file} must be a mapping")

        self._merge_config(self.config, loaded_config)
        self.logger.info(f"Loaded configuration from {config_file}")

    def _merge_config(self, base: Dict, override: Dict):
        """
        Recursively merge configuration dictionaries.

        Args:
            base: Base configuration dictionary
            override: Override configuration dictionary
        """
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'slowlog.timeout_seconds')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self.config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """
        Set configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'httplog.slow_threshold')
            value: Value to set
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def to_dict(self) -> Dict:
        """
        Get full configuration as dictionary.

        Returns:
            Configuration dictionary
        """
        return copy.deepcopy(self.config)


def load_alp_config(path: Optional[str] = None,
                    search_paths: Sequence[str] = ()) -> List[str]:
    """
    Load the matching groups of an ALP configuration file.

    The file is a YAML mapping with a ``matching_groups`` list of regular
    expressions. An explicit path wins over the search paths; otherwise the
    first search path that can be read is used.

    Args:
        path: Explicit config file path
        search_paths: Candidate paths tried in order

    Returns:
        Matching-group patterns in declaration order

    Raises:
        ConfigError: No file could be read, or its content is invalid
    """
    candidates = [path] if path else list(search_paths)
    if not candidates:
        raise ConfigError("No ALP config path given")

    content = None
    for candidate in candidates:
        try:
            content = Path(candidate).read_text(encoding='utf-8')
        except OSError:
            continue
        logger.info(f"Loaded ALP config from {candidate}")
        break

    if content is None:
        raise ConfigError(f"ALP config not found in: {', '.join(candidates)}")

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid ALP config: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("ALP config must be a mapping")

    groups = data.get('matching_groups') or []
    if not isinstance(groups, list) or not all(isinstance(g, str) for g in groups):
        raise ConfigError("matching_groups must be a list of strings")

    logger.info(f"Loaded {len(groups)} matching groups from ALP config")
    return groups
