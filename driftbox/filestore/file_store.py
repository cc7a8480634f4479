"""
本地磁盘文件存储

在单个后备目录中保存上传文件，以唯一的基础名作为文件键
"""

import io
import logging
import os
import shutil
import stat
import tempfile
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence

from driftbox.filestore.archiver import Archiver
from driftbox.filestore.base import BaseFileStore, ContentTypes
from driftbox.filestore.errors import (
    BadRequestError,
    ExtensionNotPermittedError,
    FileNotFoundInStoreError,
    FileStoreError,
    StorageIOError,
)
from driftbox.filestore.metadata_cache import MetadataCache
from driftbox.filestore.policy import ExtensionPolicy, file_extension
from driftbox.filestore.security import FORBIDDEN_KEY_CHARS, SecurePathResolver
from driftbox.filestore.transfer import DownloadStream, copy_stream
from driftbox.models.filestore import ArchiveContent, StoreConfig, StoredFileInfo

logger = logging.getLogger(__name__)


def _normalize_content_types(content_type: ContentTypes) -> List[str]:
    """将声明的 Content-Type 统一为列表"""
    if content_type is None:
        return []
    if isinstance(content_type, str):
        return [content_type] if content_type else []
    return [str(t) for t in content_type if t]


class LocalFileStore(BaseFileStore):
    """
    本地磁盘文件存储

    特性:
    - 扩展名白名单
    - 通过 mkstemp 原子分配唯一文件名（不依赖锁）
    - 分块流式读写，不缓冲整个文件
    - 内存中的 Content-Type 缓存（读写锁保护）
    - 按需 ZIP 打包

    示例:
        >>> store = LocalFileStore(StoreConfig(storage_dir=Path("/tmp/driftbox")))
        >>> key = store.upload(io.BytesIO(b"\\xff\\xd8"), "photo.png", "image/png")
        >>> with store.download(key) as stream:
        ...     data = stream.read_all()
    """

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        metadata_cache: Optional[MetadataCache] = None
    ):
        """
        初始化本地文件存储

        Args:
            config: 存储配置（默认使用 StoreConfig()）
            metadata_cache: 元数据缓存（默认创建新的缓存）

        Raises:
            StorageIOError: 存储目录无法创建
        """
        super().__init__(config or StoreConfig())
        self.storage_dir = Path(self.config.storage_dir)

        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"Failed to create storage directory: {e}") from e

        self.policy = ExtensionPolicy.from_config(self.config)
        self.metadata = metadata_cache if metadata_cache is not None else MetadataCache()
        self.resolver = SecurePathResolver(self.storage_dir)

        logger.info(f"LocalFileStore initialized at {self.storage_dir}")

    # ===== 上传 =====

    def upload(
        self,
        stream: BinaryIO,
        filename: str,
        content_type: ContentTypes = None
    ) -> str:
        if stream is None:
            raise BadRequestError("failed to obtain file from request")
        if not filename:
            raise BadRequestError("expected file name", details={"field": self.config.file_field})
        ext = file_extension(filename)
        # 键由扩展名派生，无法解析的扩展名在写盘前拒绝
        if "\x00" in filename or any(c in ext for c in FORBIDDEN_KEY_CHARS):
            raise BadRequestError("invalid file name", details={"filename": filename})

        try:
            self.policy.check(ext)
        except ExtensionNotPermittedError as e:
            logger.warning(f"Rejected upload {filename!r}: {e.message}")
            raise

        # 磁盘操作不持有缓存锁，唯一性由 O_EXCL 创建保证
        try:
            fd, path = tempfile.mkstemp(suffix=ext, prefix="", dir=self.storage_dir)
        except OSError as e:
            logger.error(f"Failed to allocate backing file for {filename!r}: {e}")
            raise StorageIOError(f"Failed to allocate backing file: {e}") from e

        file_path = Path(path)
        key = file_path.name

        try:
            with os.fdopen(fd, "wb") as dst:
                size = copy_stream(
                    stream,
                    dst,
                    self.config.chunk_size,
                    limit=self.config.max_upload_size
                )
        except OSError as e:
            self._remove_partial(file_path)
            logger.error(f"Failed to write upload {filename!r}: {e}")
            raise StorageIOError(f"Failed to write file: {e}") from e
        except Exception:
            self._remove_partial(file_path)
            raise

        # 文件写入完成后才记录元数据，此前键不会返回给任何调用方
        self.metadata.put(key, _normalize_content_types(content_type))

        logger.info(f"Stored upload {filename!r} as {key} ({size} bytes)")
        return key

    def _remove_partial(self, file_path: Path) -> None:
        """删除上传失败留下的部分文件"""
        try:
            file_path.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            logger.exception(f"Failed to remove partial upload: {file_path.name}")

    # ===== 读取 =====

    def download(self, key: str) -> DownloadStream:
        file_path = self._resolve(key)

        try:
            f = open(file_path, "rb")
        except (FileNotFoundError, IsADirectoryError) as e:
            raise FileNotFoundInStoreError(key) from e
        except OSError as e:
            logger.error(f"Failed to open {key}: {e}")
            raise StorageIOError(f"cannot open: {key}", details={"key": key}) from e

        try:
            size = os.fstat(f.fileno()).st_size
        except OSError as e:
            f.close()
            raise StorageIOError(f"cannot stat: {key}", details={"key": key}) from e

        # 缓存中没有记录时不设置 Content-Type
        content_types = self.metadata.get(key)

        logger.debug(f"Opened {key} for download ({size} bytes)")
        return DownloadStream(
            key=key,
            file=f,
            content_types=content_types,
            size=size,
            chunk_size=self.config.chunk_size
        )

    def stat(self, key: str) -> StoredFileInfo:
        file_path = self._resolve(key)

        try:
            st = file_path.stat()
        except FileNotFoundError as e:
            raise FileNotFoundInStoreError(key) from e
        except OSError as e:
            raise StorageIOError(f"cannot stat: {key}", details={"key": key}) from e

        if not stat.S_ISREG(st.st_mode):
            raise FileNotFoundInStoreError(key)

        return StoredFileInfo(
            key=key,
            size_bytes=st.st_size,
            content_types=self.metadata.get(key) or [],
            modified_at=datetime.fromtimestamp(st.st_mtime)
        )

    def list_keys(self) -> List[str]:
        try:
            return sorted(p.name for p in self.storage_dir.iterdir() if p.is_file())
        except OSError as e:
            raise StorageIOError(f"Failed to list storage directory: {e}") from e

    # ===== 删除 =====

    def delete(self, key: str) -> None:
        # 只解析一次，同一路径用于删除文件和清理缓存
        file_path = self._resolve(key)

        try:
            file_path.unlink()
        except (FileNotFoundError, IsADirectoryError) as e:
            raise FileNotFoundInStoreError(key) from e
        except OSError as e:
            logger.error(f"Failed to delete {key}: {e}")
            raise StorageIOError(f"failed to delete file: {e}", details={"key": key}) from e

        self.metadata.remove(file_path.name)
        logger.info(f"Deleted {key}")

    # ===== 归档 =====

    def build_archive(self, keys: Sequence[str]) -> ArchiveContent:
        keys = list(keys)

        archive = io.BytesIO()
        try:
            with Archiver(archive, self.config.chunk_size) as archiver:
                for key in keys:
                    self._add_to_archive(archiver, key)
            data = archive.getvalue()
        except FileStoreError as e:
            # 已写入的部分归档随缓冲区一起丢弃
            logger.warning(f"failed to compile archive: {e.message}")
            raise
        finally:
            archive.close()

        logger.info(f"Built archive with {len(keys)} entries ({len(data)} bytes)")
        return ArchiveContent(data=data, entries=archiver.entries)

    def _add_to_archive(self, archiver: Archiver, key: str) -> None:
        file_path = self._resolve(key)
        try:
            archiver.add_file(file_path)
        except (FileNotFoundError, IsADirectoryError) as e:
            raise FileNotFoundInStoreError(key) from e
        except OSError as e:
            raise StorageIOError(
                f"failed to compile archive: {e}",
                details={"key": key}
            ) from e

    # ===== 生命周期 =====

    def teardown(self) -> None:
        try:
            shutil.rmtree(self.storage_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to remove storage directory {self.storage_dir}: {e}")
            raise StorageIOError(f"Failed to remove storage directory: {e}") from e
        finally:
            self.metadata.clear()

        logger.info(f"LocalFileStore torn down: {self.storage_dir}")

    def _resolve(self, key: str) -> Path:
        """缺少键时为 BadRequest，无效键为 NotFound"""
        if not key:
            raise BadRequestError("expected file name", details={"field": self.config.file_field})
        return self.resolver.resolve(key)


__all__ = [
    "LocalFileStore",
]
