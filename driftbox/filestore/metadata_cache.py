"""
元数据缓存

文件键 -> 上传时记录的 Content-Type 列表，支持并发访问
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Sequence


class ReadWriteLock:
    """
    读写锁（单写者/多读者）

    多个读者可同时持有；写者独占，且与所有读者互斥。
    等待中的写者会阻止新读者进入，避免写者饥饿。
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class MetadataCache:
    """
    并发安全的元数据缓存

    put/remove/clear 为写操作，与所有读写互斥；get 等读操作可并发进行。
    """

    def __init__(self):
        self._entries: Dict[str, List[str]] = {}
        self._lock = ReadWriteLock()

    def put(self, key: str, content_types: Sequence[str]) -> None:
        """记录文件的 Content-Type"""
        with self._lock.write_locked():
            self._entries[key] = list(content_types)

    def get(self, key: str) -> Optional[List[str]]:
        """获取文件的 Content-Type，不存在时返回 None"""
        with self._lock.read_locked():
            entry = self._entries.get(key)
            return list(entry) if entry is not None else None

    def remove(self, key: str) -> bool:
        """
        移除条目

        Returns:
            条目是否存在
        """
        with self._lock.write_locked():
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock.write_locked():
            self._entries.clear()

    def keys(self) -> List[str]:
        """当前所有键的快照"""
        with self._lock.read_locked():
            return list(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock.read_locked():
            return key in self._entries

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._entries)


__all__ = [
    "ReadWriteLock",
    "MetadataCache",
]
