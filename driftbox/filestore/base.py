"""
文件存储基础接口

定义所有存储实现的抽象基类
"""

import logging
from abc import ABC, abstractmethod
from typing import BinaryIO, Iterable, List, Sequence, Tuple, Union

from driftbox.filestore.errors import FileNotFoundInStoreError, FileStoreError
from driftbox.filestore.transfer import DownloadStream
from driftbox.models.filestore import (
    ArchiveContent,
    StorageStats,
    StoreConfig,
    StoredFileInfo,
)

logger = logging.getLogger(__name__)

# 上传时声明的 Content-Type，可以是单个值、多个值或缺省
ContentTypes = Union[str, Sequence[str], None]

# upload_many 的单项: (字节流, 原始文件名, Content-Type)
UploadItem = Tuple[BinaryIO, str, ContentTypes]


class BaseFileStore(ABC):
    """
    存储基类

    定义统一的存储接口规范，具体实现（本地磁盘、对象存储等）
    在构造时选定，调用方只依赖本接口
    """

    def __init__(self, config: StoreConfig):
        """
        初始化存储

        Args:
            config: 存储配置
        """
        self.config = config

    @abstractmethod
    def upload(
        self,
        stream: BinaryIO,
        filename: str,
        content_type: ContentTypes = None
    ) -> str:
        """
        存储上传文件

        Args:
            stream: 上传内容字节流
            filename: 原始文件名（用于提取扩展名）
            content_type: 声明的 Content-Type

        Returns:
            文件键

        Raises:
            BadRequestError: 输入缺失或超过大小限制
            ExtensionNotPermittedError: 扩展名被拒绝
            StorageIOError: 存储失败
        """
        pass

    @abstractmethod
    def download(self, key: str) -> DownloadStream:
        """
        打开已存储文件

        Args:
            key: 文件键

        Returns:
            DownloadStream: 读取句柄

        Raises:
            BadRequestError: 缺少键
            FileNotFoundInStoreError: 文件不存在
            StorageIOError: 读取失败
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """
        删除文件

        Args:
            key: 文件键

        Raises:
            BadRequestError: 缺少键
            FileNotFoundInStoreError: 文件不存在
            StorageIOError: 删除失败
        """
        pass

    @abstractmethod
    def build_archive(self, keys: Sequence[str]) -> ArchiveContent:
        """
        将多个文件打包为 ZIP（全部成功或全部失败）

        Args:
            keys: 按顺序排列的文件键

        Returns:
            ArchiveContent: 归档结果

        Raises:
            BadRequestError: 键重复
            FileNotFoundInStoreError: 第一个不存在的键
            StorageIOError: 读取或打包失败
        """
        pass

    @abstractmethod
    def stat(self, key: str) -> StoredFileInfo:
        """获取已存储文件的信息"""
        pass

    @abstractmethod
    def list_keys(self) -> List[str]:
        """列出当前所有文件键"""
        pass

    @abstractmethod
    def teardown(self) -> None:
        """删除整个存储目录；之后存储不可再使用"""
        pass

    def upload_many(self, items: Iterable[UploadItem]) -> List[str]:
        """
        按顺序上传多个文件

        任一文件失败时删除本次已存储的文件，然后抛出该异常

        Args:
            items: (字节流, 原始文件名, Content-Type) 序列

        Returns:
            文件键列表（与输入顺序一致）
        """
        keys: List[str] = []
        try:
            for stream, filename, content_type in items:
                keys.append(self.upload(stream, filename, content_type))
        except Exception:
            for key in keys:
                self._discard(key)
            raise
        return keys

    def exists(self, key: str) -> bool:
        """
        检查文件是否存在

        Args:
            key: 文件键

        Returns:
            文件是否存在
        """
        try:
            self.stat(key)
        except FileNotFoundInStoreError:
            return False
        return True

    def get_storage_stats(self) -> StorageStats:
        """
        获取存储统计信息

        Returns:
            存储统计信息
        """
        infos = []
        for key in self.list_keys():
            try:
                infos.append(self.stat(key))
            except FileNotFoundInStoreError:
                # 统计期间被并发删除
                continue

        return StorageStats(
            storage_dir=str(self.config.storage_dir),
            file_count=len(infos),
            total_size_bytes=sum(info.size_bytes for info in infos)
        )

    def _discard(self, key: str) -> None:
        """回滚时删除文件，尽力而为"""
        try:
            self.delete(key)
        except FileNotFoundInStoreError:
            pass
        except FileStoreError:
            logger.exception(f"Failed to roll back upload, orphaned file: {key}")

    def __enter__(self):
        """上下文管理器入口"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """上下文管理器退出"""
        self.teardown()


__all__ = [
    "ContentTypes",
    "UploadItem",
    "BaseFileStore",
]
