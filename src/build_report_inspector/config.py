# ============================================================================
# FILE: config.py
# RELPATH: build_report_inspector/src/build_report_inspector/config.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: JSON configuration manager with defaults and validation
# ============================================================================

"""
Configuration Manager for Build Report Inspector.

Handles loading, saving and validating the JSON configuration file. Values
missing from the file fall back to DEFAULT_CONFIG; unknown keys are kept
untouched so that newer files still load.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from build_report_inspector.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

DEFAULT_CONFIG_FILE = "inspector_config.json"


class ConfigManager:
    """
    Manages application configuration.

    Keys are addressed with dot notation, e.g. ``tools.timeout_seconds``.
    """

    DEFAULT_CONFIG = {
        "global_settings": {
            "log_dir": "logs",
            "appendix_dir": "BuildReports/Mobile",
            "temp_dir": "Temp",
        },
        "analysis": {
            "max_entries": 0,
            "skip_scripts": True,
            "csv_output": "",
        },
        "tools": {
            "timeout_seconds": 600,
            "java_home": "",
            "android_sdk_root": "",
            "bundletool_path": "",
            "android_tools_dir": "",
            "size_tool": "/usr/bin/size",
            "file_tool": "/usr/bin/file",
        },
    }

    # Tool settings that fall back to environment variables when empty
    ENVIRONMENT_FALLBACKS = {
        "tools.java_home": ("JAVA_HOME",),
        "tools.android_sdk_root": ("ANDROID_SDK_ROOT", "ANDROID_HOME"),
    }

    def __init__(self, config_file: str = DEFAULT_CONFIG_FILE, create_if_missing: bool = True):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to configuration file
            create_if_missing: Write the defaults to ``config_file`` when it
                does not exist; otherwise keep them in memory only
        """
        self.config_file = Path(config_file)
        self.config: Dict = {}
        self._load_or_create(create_if_missing)

    def _load_or_create(self, create_if_missing: bool) -> None:
        if self.config_file.exists():
            self.load()
        else:
            self.config = self._deep_copy(self.DEFAULT_CONFIG)
            if create_if_missing:
                self.save()

    def load(self) -> Dict:
        """
        Load configuration from file, filling in missing defaults.

        Returns:
            Loaded configuration dictionary

        Raises:
            ConfigLoadError: If file cannot be loaded or parsed
        """
        try:
            text = self.config_file.read_text(encoding='utf-8')
            data = json.loads(text)
        except FileNotFoundError:
            raise ConfigLoadError(str(self.config_file), "File not found")
        except json.JSONDecodeError as e:
            raise ConfigLoadError(str(self.config_file), f"Invalid JSON: {str(e)}")
        except OSError as e:
            raise ConfigLoadError(str(self.config_file), str(e))

        if not isinstance(data, dict):
            raise ConfigLoadError(str(self.config_file), "Top-level value must be an object")

        self.config = self._merge(self._deep_copy(self.DEFAULT_CONFIG), data)
        return self.config

    def save(self) -> None:
        """
        Save configuration to file.

        Raises:
            ConfigError: If file cannot be written
        """
        try:
            text = json.dumps(self.config, indent=2, ensure_ascii=False)
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            self.config_file.write_text(text, encoding='utf-8')
        except OSError as e:
            raise ConfigError(f"Failed to save config: {str(e)}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot-notation path.

        Empty tool locations listed in ENVIRONMENT_FALLBACKS are resolved
        from the environment.

        Args:
            key_path: Dot-separated path (e.g., 'global_settings.log_dir')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                value = None
                break

        if not value and key_path in self.ENVIRONMENT_FALLBACKS:
            for variable in self.ENVIRONMENT_FALLBACKS[key_path]:
                if os.environ.get(variable):
                    return os.environ[variable]

        if value is None:
            return default
        return value

    def set(self, key_path: str, value: Any) -> None:
        """
        Set configuration value using dot-notation path.

        Args:
            key_path: Dot-separated path
            value: Value to set
        """
        keys = key_path.split('.')
        target = self.config

        for key in keys[:-1]:
            if key not in target:
                target[key] = {}
            target = target[key]

        target[keys[-1]] = value

    def validate(self) -> bool:
        """
        Validate configuration against schema.

        Returns:
            True if valid

        Raises:
            ConfigValidationError: If validation fails
        """
        for section in ("global_settings", "analysis", "tools"):
            if not isinstance(self.config.get(section), dict):
                raise ConfigValidationError(
                    section,
                    self.config.get(section),
                    f"Required section '{section}' missing"
                )

        self._validate_max_entries()
        self._validate_timeout()
        self._validate_skip_scripts()

        return True

    def _validate_max_entries(self) -> None:
        value = self.get('analysis.max_entries')
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ConfigValidationError(
                'analysis.max_entries',
                value,
                "Must be a non-negative integer (0 means unlimited)"
            )

    def _validate_timeout(self) -> None:
        value = self.get('tools.timeout_seconds')
        if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
            raise ConfigValidationError(
                'tools.timeout_seconds',
                value,
                "Must be a positive number"
            )

    def _validate_skip_scripts(self) -> None:
        value = self.get('analysis.skip_scripts')
        if not isinstance(value, bool):
            raise ConfigValidationError(
                'analysis.skip_scripts',
                value,
                "Must be true or false"
            )

    def _merge(self, base: Dict, overrides: Dict) -> Dict:
        """Recursively overlay ``overrides`` onto ``base``."""
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                self._merge(base[key], value)
            else:
                base[key] = value
        return base

    def _deep_copy(self, obj: Any) -> Any:
        """Deep copy a configuration object."""
        if isinstance(obj, dict):
            return {k: self._deep_copy(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._deep_copy(item) for item in obj]
        else:
            return obj

    def reset_to_defaults(self) -> None:
        """Reset configuration to default values."""
        self.config = self._deep_copy(self.DEFAULT_CONFIG)
        self.save()

    def export_dict(self) -> Dict:
        return self._deep_copy(self.config)


def load_config(config_file: Optional[str] = None) -> ConfigManager:
    """
    Load and validate configuration for a command line run.

    Without an explicit file the defaults are used and nothing is written.
    """
    if config_file is None:
        manager = ConfigManager(DEFAULT_CONFIG_FILE, create_if_missing=False)
    else:
        manager = ConfigManager(config_file)
    manager.validate()
    return manager


# ============================================================================
# LIFECYCLE STATUS: Active
# DEPENDENCIES: exceptions.py
# TESTS: tests/unit/test_config.py
# ============================================================================
