"""
FileStore 工厂函数

提供便捷的 FileStore 实例获取方法
"""

import logging
from typing import Optional

from driftbox.filestore.base import BaseFileStore
from driftbox.filestore.file_store import LocalFileStore
from driftbox.models.filestore import StoreConfig

logger = logging.getLogger(__name__)


# 全局单例
_global_filestore: Optional[BaseFileStore] = None


def get_file_store(
    config: Optional[StoreConfig] = None,
    force_new: bool = False
) -> BaseFileStore:
    """
    获取 FileStore 实例

    Args:
        config: 存储配置，为 None 则从应用配置加载
        force_new: 是否强制创建新实例（旧实例不会被清理）

    Returns:
        FileStore 实例
    """
    global _global_filestore

    if force_new or _global_filestore is None:
        if config is None:
            from driftbox.config import get_config
            config = get_config().store.to_store_config()

        _global_filestore = LocalFileStore(config)

    return _global_filestore


def set_file_store(store: BaseFileStore) -> None:
    """替换全局 FileStore 实例（用于测试或自定义后端）"""
    global _global_filestore
    _global_filestore = store


def reset_file_store() -> None:
    """拆除并重置全局 FileStore 实例"""
    global _global_filestore

    if _global_filestore is not None:
        try:
            _global_filestore.teardown()
        finally:
            _global_filestore = None


__all__ = [
    "get_file_store",
    "set_file_store",
    "reset_file_store",
]
