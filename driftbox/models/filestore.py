"""
文件存储相关模型

定义临时文件存储的配置、文件信息与归档结果模型
"""

from datetime import datetime
from pathlib import Path
from typing import FrozenSet, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# 默认传输缓冲区大小（字节）
DEFAULT_TRANSFER_BUFF_SIZE = 256

# 10 MiB
MB_10 = 10 << 20

# 表示允许所有扩展名的哨兵值
EXT_ALL = "_all_"

# Web 上最常用的图片扩展名
# 参考: developer.mozilla.org/en-US/docs/Web/Media/Formats/Image_types
EXT_IMG: FrozenSet[str] = frozenset({
    ".apng", ".avif", ".gif", ".jpg", ".jpeg", ".jfif",
    ".pjpeg", ".pjp", ".png", ".svg", ".webp", ".bmp",
})

# 仅允许压缩文件
EXT_COMP: FrozenSet[str] = frozenset({".zip", ".tar", ".tgz", ".gz", ".bz2"})

# 仅允许文本文件
EXT_TXT: FrozenSet[str] = frozenset({".txt"})

# 配置文件中可使用的预设名称
EXTENSION_PRESETS = {
    "all": EXT_ALL,
    "images": EXT_IMG,
    "compressed": EXT_COMP,
    "text": EXT_TXT,
}

AllowedExtensions = Union[Literal["_all_"], FrozenSet[str]]


class StoreConfig(BaseModel):
    """
    文件存储配置

    构造后不可修改（frozen），整个存储生命周期内保持不变
    """

    model_config = ConfigDict(frozen=True)

    storage_dir: Path = Field(
        default=Path(".driftbox_tmp"),
        description="后备存储目录"
    )
    max_upload_size: int = Field(
        default=MB_10,
        gt=0,
        description="单个上传文件的最大大小（字节）"
    )
    chunk_size: int = Field(
        default=DEFAULT_TRANSFER_BUFF_SIZE,
        gt=0,
        description="传输缓冲区大小（字节）"
    )
    file_field: str = Field(
        default="_file_",
        min_length=1,
        description="请求中文件字段 / 键参数的名称"
    )
    allowed_extensions: AllowedExtensions = Field(
        default=EXT_IMG,
        description="允许的扩展名集合，或 '_all_' 表示全部允许"
    )
    allow_no_extension: bool = Field(
        default=False,
        description="是否允许无扩展名的文件"
    )

    @field_validator("allowed_extensions", mode="before")
    @classmethod
    def expand_extensions(cls, v):
        """展开预设名称，并将 ['_all_'] 归一化为哨兵值"""
        if isinstance(v, str):
            if v in EXTENSION_PRESETS:
                return EXTENSION_PRESETS[v]
            if v == EXT_ALL:
                return EXT_ALL
            # 单个扩展名，例如环境变量 DRIFTBOX_STORE__ALLOWED_EXTENSIONS=.png
            if v.startswith("."):
                return frozenset({v})
            raise ValueError(
                f"Unknown extension preset: {v}. "
                f"Must be one of {sorted(EXTENSION_PRESETS)} or a list of extensions"
            )

        if isinstance(v, (list, tuple, set, frozenset)):
            items = list(v)
            if EXT_ALL in items:
                if len(items) > 1:
                    raise ValueError(f"'{EXT_ALL}' cannot be combined with other extensions")
                return EXT_ALL
            return frozenset(items)

        return v

    @property
    def allows_all_extensions(self) -> bool:
        """是否允许所有扩展名"""
        return self.allowed_extensions == EXT_ALL


class StoredFileInfo(BaseModel):
    """已存储文件的信息"""

    key: str = Field(
        ...,
        min_length=1,
        description="文件键（后备文件的基础名）"
    )
    size_bytes: int = Field(
        default=0,
        ge=0,
        description="文件大小（字节）"
    )
    content_types: List[str] = Field(
        default_factory=list,
        description="上传时记录的 Content-Type"
    )
    modified_at: Optional[datetime] = Field(
        None,
        description="最后修改时间"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "key": "3820571946.png",
                "size_bytes": 2048,
                "content_types": ["image/png"],
                "modified_at": "2026-02-06T15:30:00"
            }
        }


class ArchiveContent(BaseModel):
    """ZIP 归档结果"""

    data: bytes = Field(
        ...,
        description="完整的 ZIP 字节"
    )
    entries: List[str] = Field(
        default_factory=list,
        description="归档条目名称（按请求顺序）"
    )
    media_type: str = Field(
        default="application/zip",
        description="MIME 类型"
    )
    filename: str = Field(
        default="archive.zip",
        description="建议的下载文件名"
    )

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class StorageStats(BaseModel):
    """存储统计信息"""

    storage_dir: str = Field(
        ...,
        description="后备存储目录"
    )
    file_count: int = Field(
        default=0,
        ge=0,
        description="文件数量"
    )
    total_size_bytes: int = Field(
        default=0,
        ge=0,
        description="总大小（字节）"
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
