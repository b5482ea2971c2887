from .config_manager import ConfigManager, ConfigLoadError, deep_merge

__all__ = ["ConfigManager", "ConfigLoadError", "deep_merge"]
