"""
配置管理系统单元测试
"""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from driftbox.config import (
    CONFIG_FILE_ENV,
    APIConfig,
    Config,
    ConfigManager,
    LoggingConfig,
    StoreSettings,
)
from driftbox.models.filestore import EXT_ALL, EXT_IMG


class TestStoreSettings:
    """测试存储配置"""

    def test_default_values(self):
        """测试默认值"""
        settings = StoreSettings()

        assert settings.storage_dir == ".driftbox_tmp"
        assert settings.max_upload_size == 10 * 1024 * 1024
        assert settings.chunk_size == 256
        assert settings.file_field == "_file_"
        assert settings.allowed_extensions == "images"
        assert settings.allow_no_extension is False

    def test_to_store_config(self, tmp_path):
        """测试转换为存储配置"""
        settings = StoreSettings(
            storage_dir=str(tmp_path / "files"),
            allowed_extensions=[".png", ".txt"],
            chunk_size=1024
        )

        config = settings.to_store_config()

        assert config.storage_dir == tmp_path / "files"
        assert config.allowed_extensions == frozenset({".png", ".txt"})
        assert config.chunk_size == 1024

    def test_to_store_config_preset(self):
        """测试预设名称"""
        assert StoreSettings().to_store_config().allowed_extensions == EXT_IMG
        assert StoreSettings(allowed_extensions="all").to_store_config().allowed_extensions == EXT_ALL

    def test_invalid_values(self):
        """测试无效值"""
        with pytest.raises(ValidationError):
            StoreSettings(chunk_size=0)


class TestLoggingConfig:
    """测试日志配置"""

    def test_default_values(self):
        """测试默认值"""
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.file == "./logs/driftbox.log"

    def test_level_normalized(self):
        """测试日志级别转为大写"""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_level(self):
        """测试无效日志级别"""
        with pytest.raises(ValidationError):
            LoggingConfig(level="VERBOSE")


class TestConfig:
    """测试总配置"""

    def test_default_values(self):
        """测试默认值"""
        config = Config()

        assert config.environment == "development"
        assert config.debug is False
        assert isinstance(config.store, StoreSettings)
        assert isinstance(config.api, APIConfig)
        assert config.api.port == 5000

    def test_invalid_environment(self):
        """测试无效运行环境"""
        with pytest.raises(ValidationError):
            Config(environment="staging")


class TestConfigManager:
    """测试配置管理器"""

    def test_missing_file_uses_defaults(self, tmp_path, clean_env):
        """测试配置文件不存在时使用默认值"""
        manager = ConfigManager(str(tmp_path / "missing.yaml"))

        config = manager.load()

        assert config.store.storage_dir == ".driftbox_tmp"

    def test_load_yaml(self, tmp_path, clean_env):
        """测试从 YAML 文件加载"""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.safe_dump({
            "environment": "test",
            "store": {
                "storage_dir": "/tmp/driftbox-test",
                "allowed_extensions": [".png", ".zip"],
                "max_upload_size": 2048
            },
            "api": {"port": 9000}
        }), encoding="utf-8")

        config = ConfigManager(str(config_file)).load()

        assert config.environment == "test"
        assert config.store.max_upload_size == 2048
        assert config.store.allowed_extensions == [".png", ".zip"]
        assert config.api.port == 9000
        assert config.api.host == "localhost"

    def test_load_is_cached(self, tmp_path, clean_env):
        """测试重复加载返回同一对象，reload 重新读取"""
        manager = ConfigManager(str(tmp_path / "settings.yaml"))

        first = manager.load()
        assert manager.load() is first
        assert manager.reload() is not first

    def test_env_override(self, tmp_path, clean_env):
        """测试环境变量覆盖 YAML 配置"""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.safe_dump({"store": {"max_upload_size": 2048}}), encoding="utf-8")

        clean_env.setenv("DRIFTBOX_STORE__MAX_UPLOAD_SIZE", "4096")
        clean_env.setenv("DRIFTBOX_STORE__ALLOW_NO_EXTENSION", "yes")
        clean_env.setenv("DRIFTBOX_STORE__ALLOWED_EXTENSIONS", ".png, .gif")
        clean_env.setenv("DRIFTBOX_API__PORT", "8080")
        clean_env.setenv("DRIFTBOX_DEBUG", "true")

        config = ConfigManager(str(config_file)).load()

        assert config.store.max_upload_size == 4096
        assert config.store.allow_no_extension is True
        assert config.store.allowed_extensions == [".png", ".gif"]
        assert config.api.port == 8080
        assert config.debug is True

    def test_env_single_extension(self, tmp_path, clean_env):
        """测试环境变量指定单个扩展名"""
        clean_env.setenv("DRIFTBOX_STORE__ALLOWED_EXTENSIONS", ".png")

        config = ConfigManager(str(tmp_path / "settings.yaml")).load()

        assert config.store.to_store_config().allowed_extensions == frozenset({".png"})

    def test_config_file_env(self, tmp_path, clean_env):
        """测试通过环境变量指定配置文件"""
        config_file = tmp_path / "custom.yaml"
        config_file.write_text(yaml.safe_dump({"api": {"port": 7000}}), encoding="utf-8")
        clean_env.setenv(CONFIG_FILE_ENV, str(config_file))

        manager = ConfigManager()

        assert manager.config_path == str(config_file)
        assert manager.load().api.port == 7000

    @pytest.mark.parametrize("raw, expected", [
        ("42", 42),
        ("0.5", 0.5),
        ("true", True),
        ("off", False),
        ("a, b,c", ["a", "b", "c"]),
        ("images", "images"),
    ])
    def test_parse_env_value(self, raw, expected):
        """测试环境变量值解析"""
        assert ConfigManager._parse_env_value(raw) == expected

    def test_save_and_reload(self, tmp_path, clean_env):
        """测试保存后重新加载"""
        target = tmp_path / "nested" / "settings.yaml"
        config = Config(store=StoreSettings(storage_dir="/srv/driftbox", allowed_extensions="text"))

        ConfigManager(str(target)).save(config=config)

        assert target.exists()
        loaded = ConfigManager(str(target)).load()
        assert loaded.store.storage_dir == "/srv/driftbox"
        assert loaded.store.allowed_extensions == "text"

    def test_example_settings_file(self, clean_env):
        """测试仓库中的示例配置可以加载"""
        example = Path(__file__).parent.parent.parent / "config" / "settings.example.yaml"

        config = ConfigManager(str(example)).load()

        assert config.store.to_store_config().chunk_size > 0
