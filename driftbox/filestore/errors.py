"""
文件存储错误类型

所有存储操作的失败都以下列异常之一抛出，调用方按类或 kind 匹配，
不解析错误消息文本。
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """错误类别"""

    BAD_REQUEST = "bad_request"                          # 输入缺失或无效
    EXTENSION_NOT_PERMITTED = "extension_not_permitted"  # 扩展名策略拒绝
    NOT_FOUND = "not_found"                              # 键不对应任何已存储文件
    IO_ERROR = "io_error"                                # 文件系统失败


class PolicyViolation(str, Enum):
    """扩展名策略拒绝原因"""

    NO_EXTENSION = "no_extension"
    EXTENSION_NOT_PERMITTED = "extension_not_permitted"


class FileStoreError(Exception):
    """
    文件存储异常基类

    携带错误类别、消息和结构化详情
    """

    kind: ErrorKind = ErrorKind.IO_ERROR

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class BadRequestError(FileStoreError):
    """请求输入缺失或无效（客户端修正前不可重试）"""

    kind = ErrorKind.BAD_REQUEST


class UploadTooLargeError(BadRequestError):
    """上传内容超过最大允许大小"""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(
            f"upload exceeds maximum size of {limit} bytes",
            details={"max_upload_size": limit}
        )


class ExtensionNotPermittedError(BadRequestError):
    """扩展名被策略拒绝"""

    kind = ErrorKind.EXTENSION_NOT_PERMITTED

    def __init__(
        self,
        extension: str,
        reason: PolicyViolation = PolicyViolation.EXTENSION_NOT_PERMITTED,
        message: str = "file extension not permitted"
    ):
        self.extension = extension
        self.reason = reason
        super().__init__(
            message,
            details={"extension": extension, "reason": reason.value}
        )


class NoExtensionError(ExtensionNotPermittedError):
    """无扩展名文件不被允许"""

    def __init__(self):
        super().__init__(
            "",
            reason=PolicyViolation.NO_EXTENSION,
            message="no-extension files not permitted"
        )


class FileNotFoundInStoreError(FileStoreError):
    """键不对应任何已存储文件"""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"cannot open: {key}", details={"key": key})


class StorageIOError(FileStoreError):
    """文件系统操作失败（可能是暂时性的，存储本身不重试）"""

    kind = ErrorKind.IO_ERROR


__all__ = [
    "ErrorKind",
    "PolicyViolation",
    "FileStoreError",
    "BadRequestError",
    "UploadTooLargeError",
    "ExtensionNotPermittedError",
    "NoExtensionError",
    "FileNotFoundInStoreError",
    "StorageIOError",
]
