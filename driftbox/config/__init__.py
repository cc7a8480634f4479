"""
配置管理模块

导出配置相关的类和函数
"""

from .config import (
    Config,
    ConfigManager,
    StoreSettings,
    LoggingConfig,
    APIConfig,
    CONFIG_FILE_ENV,
    ENV_PREFIX,
    get_config,
    get_config_manager,
    set_config_path,
    reload_config,
)

__all__ = [
    "Config",
    "ConfigManager",
    "StoreSettings",
    "LoggingConfig",
    "APIConfig",
    "CONFIG_FILE_ENV",
    "ENV_PREFIX",
    "get_config",
    "get_config_manager",
    "set_config_path",
    "reload_config",
]
