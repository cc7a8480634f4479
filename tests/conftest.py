"""
Pytest 配置文件

设置测试环境
"""

import os
import sys
from pathlib import Path

import pytest

# 添加项目根目录到 Python 路径（未安装包时也能导入 driftbox）
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from driftbox.config import ENV_PREFIX  # noqa: E402


@pytest.fixture
def clean_env(monkeypatch):
    """移除所有 DRIFTBOX_ 环境变量，避免本机配置影响测试"""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
