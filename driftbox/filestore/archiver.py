"""
ZIP 归档器

从已存储文件按需构建 ZIP 归档
"""

import logging
import warnings
import zipfile
from pathlib import Path
from typing import BinaryIO, List

from driftbox.filestore.transfer import copy_stream

logger = logging.getLogger(__name__)


class Archiver:
    """
    ZIP 写入器

    每个文件以其基础名作为条目名，内容通过传输引擎分块写入
    """

    def __init__(self, buffer: BinaryIO, chunk_size: int):
        """
        初始化归档器

        Args:
            buffer: ZIP 输出目标
            chunk_size: 传输缓冲区大小
        """
        self.chunk_size = chunk_size
        self.entries: List[str] = []
        self._zip = zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED)

    def add_file(self, file_path: Path) -> str:
        """
        添加文件到归档

        Args:
            file_path: 文件路径

        Returns:
            条目名称

        Raises:
            OSError: 文件无法打开或读取（FileNotFoundError 表示文件不存在）
        """
        entry_name = Path(file_path).name
        with open(file_path, "rb") as src:
            # 重复的键写入同名条目，zipfile 对此只发出警告
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", UserWarning)
                dst = self._zip.open(entry_name, mode="w", force_zip64=True)
            with dst:
                written = copy_stream(src, dst, self.chunk_size)

        logger.debug(f"Archived entry {entry_name} ({written} bytes)")
        self.entries.append(entry_name)
        return entry_name

    def close(self) -> None:
        """写入中央目录并关闭归档"""
        self._zip.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


__all__ = [
    "Archiver",
]
