"""
Driftbox 数据模型

导出所有 Pydantic 模型
"""

from .filestore import (
    DEFAULT_TRANSFER_BUFF_SIZE,
    MB_10,
    EXT_ALL,
    EXT_IMG,
    EXT_COMP,
    EXT_TXT,
    EXTENSION_PRESETS,
    StoreConfig,
    StoredFileInfo,
    ArchiveContent,
    StorageStats,
)

__all__ = [
    "DEFAULT_TRANSFER_BUFF_SIZE",
    "MB_10",
    "EXT_ALL",
    "EXT_IMG",
    "EXT_COMP",
    "EXT_TXT",
    "EXTENSION_PRESETS",
    "StoreConfig",
    "StoredFileInfo",
    "ArchiveContent",
    "StorageStats",
]
