"""
ZIP 打包测试
"""

import io
import os
import zipfile

import pytest

from driftbox.filestore import (
    Archiver,
    FileNotFoundInStoreError,
)


class TestArchiver:
    """归档器测试"""

    def test_add_file(self, temp_dir):
        """测试添加跨越多个块的文件"""
        data = os.urandom(10 * 1024)
        source = temp_dir / "12345.png"
        source.write_bytes(data)

        buffer = io.BytesIO()
        with Archiver(buffer, chunk_size=64) as archiver:
            assert archiver.add_file(source) == "12345.png"

        assert archiver.entries == ["12345.png"]
        with zipfile.ZipFile(io.BytesIO(buffer.getvalue())) as zf:
            assert zf.read("12345.png") == data

    def test_add_missing_file(self, temp_dir):
        """测试源文件不存在"""
        with Archiver(io.BytesIO(), chunk_size=64) as archiver:
            with pytest.raises(FileNotFoundError):
                archiver.add_file(temp_dir / "missing.png")

        assert archiver.entries == []


class TestBuildArchive:
    """存储打包测试"""

    def test_build_archive(self, file_store, upload, png_content, text_content):
        """测试按请求顺序打包，条目以键命名"""
        first = upload(text_content, "report.txt", "text/plain")
        second = upload(png_content, "photo.png", "image/png")

        archive = file_store.build_archive([second, first])

        assert archive.media_type == "application/zip"
        assert archive.filename == "archive.zip"
        assert archive.entries == [second, first]
        assert archive.size_bytes == len(archive.data)

        with zipfile.ZipFile(io.BytesIO(archive.data)) as zf:
            assert zf.namelist() == [second, first]
            assert zf.read(first) == text_content
            assert zf.read(second) == png_content
            assert zf.testzip() is None

    def test_missing_key_aborts(self, file_store, upload):
        """测试任一键不存在时整个打包失败"""
        key = upload(b"data", "photo.png")

        with pytest.raises(FileNotFoundInStoreError) as exc_info:
            file_store.build_archive([key, "0000000.png", key + ".gz"])

        assert exc_info.value.key == "0000000.png"

    def test_deleted_key_aborts(self, file_store, upload):
        """测试打包前被删除的键"""
        keep = upload(b"keep", "keep.png")
        gone = upload(b"gone", "gone.png")
        file_store.delete(gone)

        with pytest.raises(FileNotFoundInStoreError):
            file_store.build_archive([keep, gone])

    def test_traversal_key(self, file_store):
        """测试路径遍历键"""
        with pytest.raises(FileNotFoundInStoreError):
            file_store.build_archive(["../../etc/passwd"])

    def test_repeated_key(self, file_store, upload):
        """测试重复的键各自写入一个条目"""
        key = upload(b"data", "photo.png")

        archive = file_store.build_archive([key, key])

        assert archive.entries == [key, key]
        with zipfile.ZipFile(io.BytesIO(archive.data)) as zf:
            assert zf.namelist() == [key, key]
            for info in zf.infolist():
                with zf.open(info) as entry:
                    assert entry.read() == b"data"

    def test_empty_archive(self, file_store):
        """测试空列表生成有效的空 ZIP"""
        archive = file_store.build_archive([])

        assert archive.entries == []
        with zipfile.ZipFile(io.BytesIO(archive.data)) as zf:
            assert zf.namelist() == []

    def test_archive_does_not_modify_store(self, file_store, upload):
        """测试打包不影响已存储文件"""
        key = upload(b"data", "photo.png", "image/png")

        file_store.build_archive([key])

        assert file_store.list_keys() == [key]
        assert file_store.download(key).read_all() == b"data"
