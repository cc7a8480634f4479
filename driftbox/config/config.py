"""
配置管理系统

支持从 YAML 文件、环境变量加载配置
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from driftbox.models.filestore import (
    DEFAULT_TRANSFER_BUFF_SIZE,
    MB_10,
    StoreConfig,
)

# 加载 .env 文件
load_dotenv()

ENV_PREFIX = "DRIFTBOX_"

# 指定配置文件路径的环境变量（不参与配置覆盖）
CONFIG_FILE_ENV = "DRIFTBOX_CONFIG_FILE"

# 配置文件查找顺序
CONFIG_SEARCH_PATHS = (
    "./config/settings.yaml",
    "./settings.yaml",
    "~/.config/driftbox/settings.yaml",
)


class StoreSettings(BaseModel):
    """文件存储配置"""

    storage_dir: str = Field(default=".driftbox_tmp", description="后备存储目录")
    max_upload_size: int = Field(default=MB_10, gt=0, description="最大上传大小（字节）")
    chunk_size: int = Field(default=DEFAULT_TRANSFER_BUFF_SIZE, gt=0, description="传输缓冲区大小（字节）")
    file_field: str = Field(default="_file_", min_length=1, description="文件字段 / 键参数名称")
    allowed_extensions: Union[str, List[str]] = Field(
        default="images",
        description="允许的扩展名列表，或预设名称 (all, images, compressed, text)"
    )
    allow_no_extension: bool = Field(default=False, description="是否允许无扩展名文件")

    def to_store_config(self) -> StoreConfig:
        """转换为不可变的存储配置"""
        return StoreConfig(
            storage_dir=Path(self.storage_dir).expanduser(),
            max_upload_size=self.max_upload_size,
            chunk_size=self.chunk_size,
            file_field=self.file_field,
            allowed_extensions=self.allowed_extensions,
            allow_no_extension=self.allow_no_extension,
        )


class LoggingConfig(BaseModel):
    """日志配置"""

    level: str = Field(default="INFO", description="日志级别")
    format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        description="日志格式"
    )
    file: Optional[str] = Field(default="./logs/driftbox.log", description="日志文件路径（为空则只输出到控制台）")
    max_bytes: int = Field(default=10485760, description="日志文件最大大小（10MB）")
    backup_count: int = Field(default=5, description="日志备份数量")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """验证日志级别"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class APIConfig(BaseModel):
    """API 服务配置"""

    host: str = Field(default="localhost", description="API 服务主机")
    port: int = Field(default=5000, description="API 服务端口")
    reload: bool = Field(default=False, description="是否自动重载")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="CORS 允许的源")


class Config(BaseModel):
    """Driftbox 总配置"""

    # 环境配置
    environment: str = Field(default="development", description="运行环境 (development, production, test)")
    debug: bool = Field(default=False, description="调试模式")

    # 各模块配置
    store: StoreSettings = Field(default_factory=StoreSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: APIConfig = Field(default_factory=APIConfig)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """验证运行环境"""
        valid_envs = ["development", "production", "test"]
        if v not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v


class ConfigManager:
    """
    配置管理器

    支持从 YAML 文件加载配置，支持环境变量覆盖
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        初始化配置管理器

        Args:
            config_path: YAML 配置文件路径，默认读取 DRIFTBOX_CONFIG_FILE，再按顺序查找
        """
        self.config_path = config_path or os.getenv(CONFIG_FILE_ENV) or self._find_config_file()
        self._config: Optional[Config] = None

    @staticmethod
    def _find_config_file() -> str:
        """返回 CONFIG_SEARCH_PATHS 中第一个存在的文件，都不存在时返回第一项"""
        for candidate in CONFIG_SEARCH_PATHS:
            if Path(candidate).expanduser().is_file():
                return str(Path(candidate).expanduser())
        return CONFIG_SEARCH_PATHS[0]

    def load_yaml(self) -> Dict[str, Any]:
        """
        读取 YAML 配置文件，文件不存在时返回空字典

        Raises:
            ValueError: 文件顶层不是映射
        """
        path = Path(self.config_path)
        if not path.is_file():
            return {}

        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
        return data

    def _override_from_env(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        从环境变量覆盖配置

        支持嵌套配置，使用 __ 分隔层级，例如：
        DRIFTBOX_STORE__STORAGE_DIR=/tmp/driftbox
        DRIFTBOX_API__PORT=8080

        Args:
            config_dict: 原始配置字典

        Returns:
            覆盖后的配置字典
        """
        result = {
            key: dict(value) if isinstance(value, dict) else value
            for key, value in config_dict.items()
        }

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX) or env_key == CONFIG_FILE_ENV:
                continue

            # 移除前缀，将 __ 替换为 .
            key = env_key[len(ENV_PREFIX):].replace("__", ".").lower()
            parts = key.split(".")

            # 设置嵌套值
            current = result
            for part in parts[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]
            current[parts[-1]] = self._parse_env_value(env_value)

        return result

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        """
        解析环境变量值

        Args:
            value: 环境变量值

        Returns:
            解析后的值
        """
        # 尝试解析为数字
        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        # 尝试解析为布尔值
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False

        # 逗号分隔的列表（如扩展名）
        if "," in value:
            return [item.strip() for item in value.split(",") if item.strip()]

        return value

    def load(self) -> Config:
        """
        加载配置

        从 YAML 文件加载配置，并使用环境变量覆盖

        Returns:
            配置对象
        """
        if self._config is not None:
            return self._config

        yaml_config = self.load_yaml()
        merged_config = self._override_from_env(yaml_config)

        self._config = Config(**merged_config)
        return self._config

    def reload(self) -> Config:
        """
        重新加载配置

        Returns:
            配置对象
        """
        self._config = None
        return self.load()

    def save(self, path: Optional[str] = None, config: Optional[Config] = None) -> None:
        """
        保存配置到 YAML 文件

        Args:
            path: 保存路径，默认为原配置文件路径
            config: 要保存的配置，默认为当前加载的配置
        """
        save_path = path or self.config_path

        # 确保目录存在
        parent = os.path.dirname(save_path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        config_dict = (config or self.load()).model_dump(mode="json", exclude_none=True)

        with open(save_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(config_dict, f, allow_unicode=True, default_flow_style=False, sort_keys=False)


# 全局配置管理器实例
_config_manager: Optional[ConfigManager] = None


def get_config(config_path: Optional[str] = None) -> Config:
    """
    获取全局配置对象

    Args:
        config_path: 可选的配置文件路径（仅在首次调用时生效）

    Returns:
        配置对象
    """
    global _config_manager

    if _config_manager is None:
        _config_manager = ConfigManager(config_path)

    return _config_manager.load()


def get_config_manager() -> ConfigManager:
    """
    获取全局配置管理器

    Returns:
        配置管理器
    """
    global _config_manager

    if _config_manager is None:
        _config_manager = ConfigManager()

    return _config_manager


def set_config_path(config_path: Optional[str]) -> ConfigManager:
    """
    使用指定配置文件重建全局配置管理器

    Args:
        config_path: 配置文件路径，None 表示按默认顺序查找

    Returns:
        新的配置管理器
    """
    global _config_manager

    _config_manager = ConfigManager(config_path)
    return _config_manager


def reload_config() -> Config:
    """
    重新加载全局配置

    Returns:
        配置对象
    """
    global _config_manager

    if _config_manager is not None:
        return _config_manager.reload()

    return get_config()


__all__ = [
    "ENV_PREFIX",
    "CONFIG_FILE_ENV",
    "CONFIG_SEARCH_PATHS",
    "StoreSettings",
    "LoggingConfig",
    "APIConfig",
    "Config",
    "ConfigManager",
    "get_config",
    "get_config_manager",
    "set_config_path",
    "reload_config",
]
