"""
文件存储模块

提供临时文件的上传、下载、删除与 ZIP 打包
"""

from .errors import (
    ErrorKind,
    PolicyViolation,
    FileStoreError,
    BadRequestError,
    UploadTooLargeError,
    ExtensionNotPermittedError,
    NoExtensionError,
    FileNotFoundInStoreError,
    StorageIOError,
)

from .policy import ExtensionPolicy, file_extension

from .transfer import copy_stream, iter_chunks, DownloadStream

from .metadata_cache import MetadataCache, ReadWriteLock

from .security import FORBIDDEN_KEY_CHARS, SecurePathResolver

from .archiver import Archiver

from .base import BaseFileStore

from .file_store import LocalFileStore

from .factory import get_file_store, set_file_store, reset_file_store

__all__ = [
    # Errors
    "ErrorKind",
    "PolicyViolation",
    "FileStoreError",
    "BadRequestError",
    "UploadTooLargeError",
    "ExtensionNotPermittedError",
    "NoExtensionError",
    "FileNotFoundInStoreError",
    "StorageIOError",
    # Policy
    "ExtensionPolicy",
    "file_extension",
    # Transfer
    "copy_stream",
    "iter_chunks",
    "DownloadStream",
    # Metadata
    "MetadataCache",
    "ReadWriteLock",
    # Security
    "FORBIDDEN_KEY_CHARS",
    "SecurePathResolver",
    # Archive
    "Archiver",
    # Stores
    "BaseFileStore",
    "LocalFileStore",
    # Factory
    "get_file_store",
    "set_file_store",
    "reset_file_store",
]
