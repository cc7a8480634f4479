"""
传输引擎

以固定大小的分块在流之间复制数据，不在内存中保存完整文件
"""

import logging
from typing import BinaryIO, Iterator, List, Optional

from driftbox.filestore.errors import UploadTooLargeError

logger = logging.getLogger(__name__)


def iter_chunks(source: BinaryIO, chunk_size: int) -> Iterator[bytes]:
    """
    按块读取源流

    Args:
        source: 可读的二进制流
        chunk_size: 每块最大字节数

    Yields:
        读取到的数据块，流结束时停止
    """
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            break
        yield chunk


def copy_stream(
    source: BinaryIO,
    destination: BinaryIO,
    chunk_size: int,
    limit: Optional[int] = None
) -> int:
    """
    将源流分块复制到目标流

    读入可复用的缓冲区后立即写出，只写出实际读到的字节。
    读写失败（OSError）直接向上传播，调用方应视为整个传输失败。

    Args:
        source: 可读的二进制流
        destination: 可写的二进制流
        chunk_size: 缓冲区大小
        limit: 允许写入的最大字节数（None 表示不限制）

    Returns:
        写入的字节数

    Raises:
        UploadTooLargeError: 数据超过 limit
        OSError: 读写失败
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    written = 0
    buff = bytearray(chunk_size)
    readinto = getattr(source, "readinto", None)

    with memoryview(buff) as view:
        while True:
            if readinto is not None:
                n = readinto(buff)
                if not n:
                    break
                chunk = view[:n]
            else:
                chunk = source.read(chunk_size)
                if not chunk:
                    break
                n = len(chunk)

            if limit is not None and written + n > limit:
                raise UploadTooLargeError(limit)

            destination.write(chunk)
            written += n

    return written


class DownloadStream:
    """
    已存储文件的读取句柄

    迭代时按块输出文件内容，迭代结束或调用 close() 后释放文件句柄。
    支持上下文管理器。
    """

    def __init__(
        self,
        key: str,
        file: BinaryIO,
        content_types: Optional[List[str]],
        size: int,
        chunk_size: int
    ):
        self.key = key
        self.content_types = list(content_types or [])
        self.size = size
        self.chunk_size = chunk_size
        self._file = file

    @property
    def content_type(self) -> Optional[str]:
        """首个记录的 Content-Type，没有记录时为 None"""
        return self.content_types[0] if self.content_types else None

    @property
    def closed(self) -> bool:
        return self._file.closed

    def __iter__(self) -> Iterator[bytes]:
        try:
            yield from iter_chunks(self._file, self.chunk_size)
        finally:
            self.close()

    def read_all(self) -> bytes:
        """读取剩余全部内容（用于小文件和测试）"""
        return b"".join(self)

    def copy_to(self, destination: BinaryIO) -> int:
        """将内容分块写入目标流"""
        try:
            return copy_stream(self._file, destination, self.chunk_size)
        finally:
            self.close()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"DownloadStream(key={self.key!r}, size={self.size}, content_types={self.content_types!r})"


__all__ = [
    "iter_chunks",
    "copy_stream",
    "DownloadStream",
]
