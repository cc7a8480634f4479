"""
元数据缓存与读写锁测试
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from driftbox.filestore import MetadataCache, ReadWriteLock


class TestMetadataCache:
    """元数据缓存基础操作测试"""

    def test_put_and_get(self):
        """测试写入和读取"""
        cache = MetadataCache()
        cache.put("1.png", ["image/png"])

        assert cache.get("1.png") == ["image/png"]
        assert "1.png" in cache
        assert len(cache) == 1

    def test_get_missing(self):
        """测试读取不存在的键"""
        assert MetadataCache().get("missing.png") is None

    def test_get_returns_copy(self):
        """测试返回值的修改不影响缓存"""
        cache = MetadataCache()
        cache.put("1.png", ["image/png"])

        cache.get("1.png").append("text/plain")

        assert cache.get("1.png") == ["image/png"]

    def test_empty_content_types(self):
        """测试记录空的 Content-Type 列表"""
        cache = MetadataCache()
        cache.put("1.txt", [])

        assert cache.get("1.txt") == []
        assert "1.txt" in cache

    def test_remove(self):
        """测试移除"""
        cache = MetadataCache()
        cache.put("1.png", ["image/png"])

        assert cache.remove("1.png") is True
        assert cache.remove("1.png") is False
        assert cache.get("1.png") is None

    def test_clear_and_keys(self):
        """测试清空和键快照"""
        cache = MetadataCache()
        cache.put("a.png", ["image/png"])
        cache.put("b.gif", ["image/gif"])

        assert sorted(cache.keys()) == ["a.png", "b.gif"]

        cache.clear()

        assert cache.keys() == []
        assert len(cache) == 0

    def test_concurrent_put_get_remove(self):
        """测试并发读写后状态一致"""
        cache = MetadataCache()

        def worker(i: int):
            key = f"{i}.png"
            cache.put(key, [f"image/{i}"])
            assert cache.get(key) == [f"image/{i}"]
            if i % 2:
                assert cache.remove(key) is True

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(worker, range(200)))

        assert sorted(cache.keys()) == sorted(f"{i}.png" for i in range(0, 200, 2))


class TestReadWriteLock:
    """读写锁测试"""

    def test_readers_share_lock(self):
        """测试多个读者可同时持有锁"""
        lock = ReadWriteLock()
        barrier = threading.Barrier(3, timeout=5)

        def reader():
            with lock.read_locked():
                # 三个读者都在临界区内才能通过屏障
                barrier.wait()

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert not barrier.broken

    def test_writer_excludes_readers(self):
        """测试写者持有锁时读者等待"""
        lock = ReadWriteLock()
        entered = threading.Event()

        def reader():
            with lock.read_locked():
                entered.set()

        lock.acquire_write()
        t = threading.Thread(target=reader)
        t.start()

        assert not entered.wait(timeout=0.2)

        lock.release_write()
        assert entered.wait(timeout=5)
        t.join(timeout=5)

    def test_writer_waits_for_readers(self):
        """测试读者持有锁时写者等待"""
        lock = ReadWriteLock()
        entered = threading.Event()

        def writer():
            with lock.write_locked():
                entered.set()

        lock.acquire_read()
        t = threading.Thread(target=writer)
        t.start()

        assert not entered.wait(timeout=0.2)

        lock.release_read()
        assert entered.wait(timeout=5)
        t.join(timeout=5)

    def test_lock_released_on_exception(self):
        """测试异常时释放锁"""
        lock = ReadWriteLock()

        with pytest.raises(RuntimeError):
            with lock.write_locked():
                raise RuntimeError("boom")

        # 锁已释放，可以再次获取
        with lock.read_locked():
            pass
        with lock.write_locked():
            pass
