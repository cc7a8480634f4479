"""
扩展名策略

判断上传文件的扩展名是否允许存储
"""

from typing import AbstractSet, Union

from driftbox.filestore.errors import ExtensionNotPermittedError, NoExtensionError
from driftbox.models.filestore import EXT_ALL, StoreConfig


def file_extension(filename: str) -> str:
    """
    提取文件扩展名

    扩展名是文件名中从最后一个 '.'（含）到结尾的部分，没有 '.' 时为空字符串。
    客户端路径中的目录部分先被去掉（"/" 与 "\\" 都视为分隔符）。

    Args:
        filename: 原始文件名

    Returns:
        扩展名（含前导点），例如 '.png'
    """
    base = filename.replace("\\", "/").rsplit("/", 1)[-1]
    idx = base.rfind(".")
    if idx < 0:
        return ""
    return base[idx:]


class ExtensionPolicy:
    """
    扩展名白名单策略

    规则（按顺序）:
    1. 扩展名为空且不允许无扩展名文件 -> 拒绝（NoExtension）
    2. 白名单为 '_all_' -> 允许
    3. 扩展名与白名单中某项完全匹配（区分大小写，含前导点）-> 允许，否则拒绝
    """

    def __init__(
        self,
        allowed_extensions: Union[str, AbstractSet[str]],
        allow_no_extension: bool = False
    ):
        self.allowed_extensions = allowed_extensions
        self.allow_no_extension = allow_no_extension

    @classmethod
    def from_config(cls, config: StoreConfig) -> "ExtensionPolicy":
        return cls(config.allowed_extensions, config.allow_no_extension)

    def check(self, extension: str) -> None:
        """
        检查扩展名，不允许时抛出异常

        Raises:
            NoExtensionError: 无扩展名文件不被允许
            ExtensionNotPermittedError: 扩展名不在白名单中
        """
        if extension == "" and not self.allow_no_extension:
            raise NoExtensionError()

        if self.allowed_extensions == EXT_ALL:
            return

        if extension not in self.allowed_extensions:
            raise ExtensionNotPermittedError(extension)

    def is_allowed(self, extension: str) -> bool:
        """扩展名是否允许"""
        try:
            self.check(extension)
        except ExtensionNotPermittedError:
            return False
        return True


__all__ = [
    "file_extension",
    "ExtensionPolicy",
]
