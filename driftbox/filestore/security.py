"""
安全路径解析

将文件键解析为存储目录内的物理路径，防止路径遍历
"""

from pathlib import Path

from driftbox.filestore.errors import FileNotFoundInStoreError

# 禁止出现在键中的字符；键由上传扩展名派生，上传时同样检查
FORBIDDEN_KEY_CHARS = ("/", "\\", "\x00", "\n", "\r")


class SecurePathResolver:
    """
    安全路径解析器

    每个键只解析一次，解析结果同时用于读取、删除和缓存清理
    """

    FORBIDDEN_CHARS = FORBIDDEN_KEY_CHARS

    def __init__(self, storage_dir: Path):
        """
        初始化路径解析器

        Args:
            storage_dir: 存储目录
        """
        self.storage_dir = Path(storage_dir)
        self._storage_resolved = self.storage_dir.resolve()

    def resolve(self, key: str) -> Path:
        """
        解析文件键为物理路径

        安全措施:
        1. 验证键格式
        2. 禁止路径遍历
        3. 确保路径直接位于存储目录内

        Args:
            key: 文件键

        Returns:
            解析后的物理路径

        Raises:
            FileNotFoundInStoreError: 键无效或指向存储目录之外
        """
        if not self.is_valid_key(key):
            raise FileNotFoundInStoreError(key)

        file_path = self._storage_resolved / key

        # 符号链接等情况下解析结果必须仍在存储目录内
        resolved = file_path.resolve()
        if resolved.parent != self._storage_resolved:
            raise FileNotFoundInStoreError(key)

        return file_path

    def is_valid_key(self, key: str) -> bool:
        """
        验证键格式

        Args:
            key: 文件键

        Returns:
            是否有效
        """
        if not key:
            return False

        if key in (".", ".."):
            return False

        if ".." in key:
            return False

        if any(char in key for char in self.FORBIDDEN_CHARS):
            return False

        return True


__all__ = [
    "FORBIDDEN_KEY_CHARS",
    "SecurePathResolver",
]
