"""
Driftbox CLI 测试
"""

import yaml
from click.testing import CliRunner

from driftbox import __version__
from driftbox.cli import cli


class TestCLI:
    """命令行工具测试"""

    def test_version(self):
        """测试版本号"""
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_init_config(self, tmp_path, clean_env):
        """测试生成默认配置文件"""
        target = tmp_path / "config" / "settings.yaml"

        result = CliRunner().invoke(cli, ["init-config", str(target)])

        assert result.exit_code == 0, result.output
        data = yaml.safe_load(target.read_text(encoding="utf-8"))
        assert data["store"]["chunk_size"] == 256
        assert data["store"]["file_field"] == "_file_"
        assert data["api"]["port"] == 5000

    def test_init_config_refuses_overwrite(self, tmp_path, clean_env):
        """测试不覆盖已存在的文件"""
        target = tmp_path / "settings.yaml"
        target.write_text("debug: true\n", encoding="utf-8")

        result = CliRunner().invoke(cli, ["init-config", str(target)])

        assert result.exit_code == 1
        assert target.read_text(encoding="utf-8") == "debug: true\n"

        result = CliRunner().invoke(cli, ["init-config", str(target), "--force"])
        assert result.exit_code == 0

    def test_show_config(self, tmp_path, clean_env):
        """测试显示合并后的配置"""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.safe_dump({"store": {"storage_dir": "/srv/files"}}), encoding="utf-8")
        clean_env.setenv("DRIFTBOX_API__PORT", "8123")

        result = CliRunner().invoke(cli, ["show-config", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        body = yaml.safe_load(result.output)
        assert body["store"]["storage_dir"] == "/srv/files"
        assert body["api"]["port"] == 8123

    def test_show_config_invalid(self, tmp_path, clean_env):
        """测试无效配置"""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.safe_dump({"environment": "staging"}), encoding="utf-8")

        result = CliRunner().invoke(cli, ["show-config", "--config", str(config_file)])

        assert result.exit_code == 1
