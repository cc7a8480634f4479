"""
Driftbox CLI

命令行工具用于启动服务和管理配置
"""

import os
import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from driftbox import __version__
from driftbox.config import CONFIG_FILE_ENV, Config, ConfigManager, set_config_path


@click.group()
@click.version_option(version=__version__)
def cli():
    """Driftbox 临时文件存储 CLI

    启动 REST API 服务、生成和查看配置
    """
    pass


@cli.command()
@click.option("--host", default=None, help="监听地址（默认使用配置中的 api.host）")
@click.option("--port", type=int, default=None, help="监听端口（默认使用配置中的 api.port）")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), default=None, help="配置文件路径")
@click.option("--reload/--no-reload", default=None, help="代码变更时自动重载")
def serve(host: Optional[str], port: Optional[int], config_path: Optional[str], reload: Optional[bool]):
    """启动 REST API 服务

    服务关闭时会删除整个存储目录
    """
    import uvicorn

    from driftbox.api.logging_config import setup_logging

    if config_path:
        # 重载模式下子进程通过环境变量找到同一个配置文件
        os.environ[CONFIG_FILE_ENV] = str(Path(config_path).resolve())

    try:
        config = set_config_path(config_path).load()
    except (ValueError, yaml.YAMLError) as e:
        click.echo(f"❌ 配置无效: {e}", err=True)
        sys.exit(1)

    setup_logging(
        log_level=config.logging.level,
        log_file=config.logging.file,
        max_bytes=config.logging.max_bytes,
        backup_count=config.logging.backup_count,
        log_format=config.logging.format
    )

    host = host or config.api.host
    port = port or config.api.port
    reload = config.api.reload if reload is None else reload

    click.echo(f"🚀 Driftbox {__version__} 监听 http://{host}:{port}")
    click.echo(f"📁 存储目录: {config.store.storage_dir}")

    uvicorn.run(
        "driftbox.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_config=None
    )


@cli.command("init-config")
@click.argument("path", type=click.Path(dir_okay=False), default="./config/settings.yaml")
@click.option("--force", is_flag=True, help="覆盖已存在的文件")
def init_config(path: str, force: bool):
    """生成默认配置文件

    PATH: 输出路径（默认 ./config/settings.yaml）
    """
    target = Path(path)
    if target.exists() and not force:
        click.echo(f"❌ 配置文件已存在: {target}（使用 --force 覆盖）", err=True)
        sys.exit(1)

    # 只写默认值，不读取现有文件或环境变量
    ConfigManager(config_path=str(target)).save(config=Config())

    click.echo(f"✅ 已生成配置文件: {target}")


@cli.command("show-config")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), default=None, help="配置文件路径")
def show_config(config_path: Optional[str]):
    """显示生效的配置（YAML 与环境变量合并后）"""
    manager = ConfigManager(config_path)

    try:
        config = manager.load()
    except (ValueError, yaml.YAMLError) as e:
        click.echo(f"❌ 配置无效: {e}", err=True)
        sys.exit(1)

    click.echo(f"# 配置文件: {manager.config_path}")
    click.echo(
        yaml.safe_dump(
            config.model_dump(mode="json"),
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False
        ),
        nl=False
    )


def main():
    """CLI 入口"""
    cli()


if __name__ == "__main__":
    main()
