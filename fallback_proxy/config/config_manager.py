# config/config_manager.py
import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

from .default_config import CONFIG

logger = logging.getLogger("FallbackProxy")


class ConfigLoadError(Exception):
    pass


def deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merges two dictionaries.
    Overrides merge into base.
    """
    result = copy.deepcopy(base)
    for key, value in overrides.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


class ConfigManager:
    """
    Owns the proxy configuration: Python defaults overlaid with the operator's
    JSON config file.

    Only the operator's file content is ever written back, so defaults coming
    from the environment (management key, Redis host) never land on disk.
    """

    def __init__(self, config_path: Union[str, Path, None] = None):
        if config_path is None:
            from .base.settings import CONFIG_PATH
            config_path = CONFIG_PATH
        self.config_path = Path(config_path)
        self._file_config: Dict[str, Any] = self._load_file()
        self._global_config = deep_merge(CONFIG, self._file_config)
        logger.info(f"ConfigManager initialized from '{self.config_path}'.")

    def _load_file(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            logger.warning(
                f"Config file '{self.config_path}' not found. Using default configuration."
            )
            return {}
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigLoadError(f"Failed to read config file '{self.config_path}': {e}") from e
        if not isinstance(data, dict):
            raise ConfigLoadError(
                f"Config file '{self.config_path}' must contain a JSON object."
            )
        return data

    def get_global_config(self) -> Dict[str, Any]:
        """
        Returns the active global configuration.
        """
        return self._global_config

    # Alias for compatibility with code that expects a single config object
    def get_active_config(self) -> Dict[str, Any]:
        return self.get_global_config()

    def update_global_config(self, new_config: Dict[str, Any]):
        """
        Updates the in-memory global configuration (not persisted).
        """
        self._global_config = new_config
        logger.info("Global configuration updated via ConfigManager.")

    def save_model_fallbacks(self, rules: List[Dict[str, str]], depth: Optional[int]):
        """
        Writes the fallback section to the config file and refreshes the
        in-memory configuration. Raises OSError / TypeError on failure, in which
        case neither the file nor the in-memory config is changed.
        """
        file_config = copy.deepcopy(self._file_config)
        file_config["model_fallbacks"] = rules
        file_config["model_fallback_depth"] = depth

        self._write_atomic(file_config)

        self._file_config = file_config
        global_config = copy.deepcopy(self._global_config)
        global_config["model_fallbacks"] = copy.deepcopy(rules)
        global_config["model_fallback_depth"] = depth
        self._global_config = global_config
        logger.info(
            f"Persisted {len(rules)} model fallback(s) (depth={depth}) to '{self.config_path}'."
        )

    def _write_atomic(self, data: Dict[str, Any]):
        content = json.dumps(data, indent=2, ensure_ascii=False)
        directory = self.config_path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.config_path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.write("\n")
            os.replace(tmp_path, self.config_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
