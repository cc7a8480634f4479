"""
文件存储测试配置

提供测试夹具和测试工具
"""

import io
import tempfile
from pathlib import Path

import pytest

from driftbox.filestore import LocalFileStore
from driftbox.models.filestore import EXT_COMP, EXT_IMG, EXT_TXT, StoreConfig


@pytest.fixture
def temp_dir():
    """临时目录夹具"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def storage_dir(temp_dir):
    """存储目录（由 LocalFileStore 创建）"""
    return temp_dir / "store"


@pytest.fixture
def store_config(storage_dir):
    """允许图片、压缩包和文本的存储配置，使用较小的缓冲区以覆盖多块传输"""
    return StoreConfig(
        storage_dir=storage_dir,
        allowed_extensions=EXT_IMG | EXT_COMP | EXT_TXT,
        chunk_size=64,
        max_upload_size=64 * 1024
    )


@pytest.fixture
def file_store(store_config):
    """LocalFileStore 实例夹具"""
    store = LocalFileStore(store_config)
    yield store
    store.teardown()


@pytest.fixture
def upload(file_store):
    """上传字节内容的便捷函数"""
    def _upload(data: bytes, filename: str, content_type=None, store=None) -> str:
        return (store or file_store).upload(io.BytesIO(data), filename, content_type)
    return _upload


@pytest.fixture
def png_content():
    """示例 PNG 内容（跨越多个传输块）"""
    return b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4


@pytest.fixture
def text_content():
    """示例文本内容"""
    return "date,gmv,orders\n2026-01-01,10000,50\n".encode("utf-8")
