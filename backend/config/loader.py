"""
Configuration loader
Supports loading configuration from TOML and YAML files, with environment variable override support
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import toml
import yaml

logger = logging.getLogger(__name__)

# Sections owned by the engine; user config files cannot override them
SYSTEM_SECTIONS = {
    "focus",  # Tick interval, lookback windows, classifier input caps
    "logging",  # Log level, directory, file rotation
}


class ConfigLoader:
    """Configuration loader class"""

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = config_file or self._get_default_config_file()
        self._config: Dict[str, Any] = {}

    def _get_default_config_file(self) -> str:
        """Get default configuration file path

        Always ~/.config/focus-engine/config.toml; the file is created from a
        template on first load.
        """
        user_config_dir = Path.home() / ".config" / "focus-engine"
        user_config_file = user_config_dir / "config.toml"

        logger.debug(f"Using user configuration directory: {user_config_file}")
        return str(user_config_file)

    def load(self) -> Dict[str, Any]:
        """Load configuration, create default configuration if it doesn't exist

        Configuration hierarchy (later overrides earlier):
        1. Project default config (backend/config/config.toml)
        2. User config (~/.config/focus-engine/config.toml)
        """
        config_path = Path(self.config_file)

        if not config_path.exists():
            logger.debug(f"Configuration file doesn't exist: {self.config_file}")
            self._create_default_config(config_path)

        try:
            project_config = self._load_project_config()

            with open(self.config_file, "r", encoding="utf-8") as f:
                config_content = f.read()

            config_content = self._replace_env_vars(config_content)

            if self.config_file.endswith(".toml"):
                user_config = toml.loads(config_content)
            else:
                # Default to YAML parser
                user_config = yaml.safe_load(config_content) or {}

            self._config = self._merge_configs(project_config, user_config)

            logger.debug(f"✓ Configuration file loaded successfully: {self.config_file}")
            return self._config

        except (yaml.YAMLError, toml.TomlDecodeError) as e:
            logger.error(f"Configuration file parsing error: {e}")
            raise
        except Exception as e:
            logger.error(f"Configuration loading failed: {e}")
            raise

    def _load_project_config(self) -> Dict[str, Any]:
        """Load project default configuration from backend/config/config.toml

        Returns:
            Project configuration dictionary, or empty dict if file doesn't exist
        """
        project_config_file = Path(__file__).parent / "config.toml"

        if not project_config_file.exists():
            logger.debug(f"Project config file not found: {project_config_file}")
            return {}

        try:
            with open(project_config_file, "r", encoding="utf-8") as f:
                config_content = f.read()

            config_content = self._replace_env_vars(config_content)

            project_config = toml.loads(config_content)
            logger.debug(f"✓ Project config loaded: {project_config_file}")
            return project_config

        except Exception as e:
            logger.warning(f"Failed to load project config: {e}")
            return {}

    def _merge_configs(
        self, base: Dict[str, Any], override: Dict[str, Any], top_level: bool = True
    ) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries

        Args:
            base: Base configuration (project defaults)
            override: Override configuration (user config)
            top_level: Whether system sections should be filtered at this level

        Returns:
            Merged configuration dictionary
        """
        result = base.copy()

        for key, value in override.items():
            if top_level and key in SYSTEM_SECTIONS:
                logger.debug(
                    f"Ignoring system-level section in user config: [{key}] "
                    "(use project config for system settings)"
                )
                continue

            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value, top_level=False)
            else:
                result[key] = value

        return result

    def _create_default_config(self, config_path: Path) -> None:
        """Create default configuration file"""
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(config_path, "w", encoding="utf-8") as f:
                f.write(self._get_default_config_content())

            logger.debug(f"✓ Default configuration file created: {config_path}")

        except Exception as e:
            logger.error(f"Failed to create default configuration file: {e}")
            raise

    def _get_default_config_content(self) -> str:
        """Get default configuration content for user configuration

        Only user-level settings belong here. Engine settings ([focus],
        [logging]) live in backend/config/config.toml.
        """
        data_dir = Path.home() / ".config" / "focus-engine"

        return f"""# Focus Engine User Configuration File
# Location: ~/.config/focus-engine/config.toml
#
# System-level sections ([focus], [logging]) are managed in
# backend/config/config.toml and are IGNORED here.

[database]
# Database storage location
path = '{data_dir / "focus.db"}'

[llm]
# Any OpenAI-compatible chat completions endpoint
base_url = "${{FOCUS_LLM_BASE_URL:https://api.openai.com/v1}}"
api_key = "${{FOCUS_LLM_API_KEY:}}"
model = "${{FOCUS_LLM_MODEL:gpt-4o-mini}}"
"""

    def _replace_env_vars(self, content: str) -> str:
        """Replace environment variable placeholders"""

        def replace_var(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) else ""
            return os.getenv(var_name, default_value)

        # Match ${VAR_NAME} or ${VAR_NAME:default_value} format
        pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"
        return re.sub(pattern, replace_var, content)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value, supports dot-separated nested keys"""
        keys = key.split(".")
        value = self._config

        try:
            for k in keys:
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> bool:
        """Set configuration value, supports dot-separated nested keys"""
        keys = key.split(".")
        config = self._config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value
        return self.save()

    def save(self) -> bool:
        """Save configuration to file"""
        try:
            config_path = Path(self.config_file)
            config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.config_file, "w", encoding="utf-8") as f:
                toml.dump(self._config, f)

            logger.debug(f"✓ Configuration saved to: {self.config_file}")
            return True

        except Exception as e:
            logger.error(f"Failed to save configuration: {e}")
            return False


# Global configuration instance
_config_instance: Optional[ConfigLoader] = None


def get_config(config_file: Optional[str] = None) -> ConfigLoader:
    """Get global configuration instance"""
    global _config_instance
    if config_file is not None:
        _config_instance = ConfigLoader(config_file)
        _config_instance.load()
    elif _config_instance is None:
        _config_instance = ConfigLoader()
        _config_instance.load()
    return _config_instance
