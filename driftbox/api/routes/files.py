"""
文件管理路由

处理文件上传、下载、删除以及多文件打包下载
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response, StreamingResponse
from pydantic import BaseModel, Field
from starlette.background import BackgroundTask
from starlette.datastructures import FormData, UploadFile

from driftbox.api.errors import ValidationException
from driftbox.filestore import BaseFileStore, get_file_store

logger = logging.getLogger(__name__)

router = APIRouter()


# ===== 请求 / 响应模型 =====

class FileOperationResponse(BaseModel):
    """文件操作响应"""
    success: bool = True
    data: Optional[Dict[str, Any]] = None
    message: Optional[str] = None


class ArchiveRequest(BaseModel):
    """打包下载请求"""
    filenames: List[str] = Field(..., description="按顺序排列的文件键")

    class Config:
        json_schema_extra = {
            "example": {
                "filenames": ["4821937.png", "9912034.zip"]
            }
        }


# ===== 依赖 =====

def get_store() -> BaseFileStore:
    """获取当前文件存储"""
    return get_file_store()


def _form_files(form: FormData, field: str) -> List[UploadFile]:
    """取出表单字段中的所有文件（忽略同名的普通文本字段）"""
    return [value for value in form.getlist(field) if isinstance(value, UploadFile)]


def _query_key(request: Request, store: BaseFileStore) -> str:
    """从查询参数读取文件键"""
    field = store.config.file_field
    key = request.query_params.get(field)
    if not key:
        raise ValidationException("expected file name", field=field)
    return key


# ===== 端点 =====

@router.post("/upload", response_model=FileOperationResponse)
async def upload_file(request: Request, store: BaseFileStore = Depends(get_store)):
    """
    上传单个文件

    - multipart/form-data，文件字段名由 store.file_field 配置（默认 `_file_`）
    - 扩展名必须在白名单内
    - 返回生成的文件键
    """
    field = store.config.file_field
    form = await request.form()

    try:
        uploads = _form_files(form, field)
        if not uploads:
            raise ValidationException("failed to obtain file from request", field=field)

        upload = uploads[0]
        key = await run_in_threadpool(
            store.upload,
            upload.file,
            upload.filename or "",
            upload.headers.getlist("content-type")
        )
    finally:
        await form.close()

    return FileOperationResponse(data={"key": key, "filename": upload.filename})


@router.post("/upload-many", response_model=FileOperationResponse)
async def upload_many_files(request: Request, store: BaseFileStore = Depends(get_store)):
    """
    批量上传

    同一字段下的所有文件按顺序存储；任一文件失败时整个请求失败，
    已存储的文件会被删除
    """
    field = store.config.file_field
    form = await request.form()

    try:
        uploads = _form_files(form, field)
        if not uploads:
            raise ValidationException("failed to obtain file from request", field=field)

        items = [
            (u.file, u.filename or "", u.headers.getlist("content-type"))
            for u in uploads
        ]
        keys = await run_in_threadpool(store.upload_many, items)
    finally:
        await form.close()

    return FileOperationResponse(
        data={
            "keys": keys,
            "files": [
                {"key": key, "filename": u.filename}
                for key, u in zip(keys, uploads)
            ]
        }
    )


@router.get("/download")
async def download_file(request: Request, store: BaseFileStore = Depends(get_store)):
    """
    下载文件

    以分块流的形式返回文件内容；Content-Type 为上传时声明的类型
    （缓存中无记录时为 application/octet-stream）
    """
    key = _query_key(request, store)
    stream = await run_in_threadpool(store.download, key)

    return StreamingResponse(
        iter(stream),
        media_type=stream.content_type or "application/octet-stream",
        headers={"Content-Length": str(stream.size)},
        background=BackgroundTask(stream.close)
    )


@router.get("/stat", response_model=FileOperationResponse)
async def get_file_info(request: Request, store: BaseFileStore = Depends(get_store)):
    """获取文件信息"""
    key = _query_key(request, store)
    info = await run_in_threadpool(store.stat, key)
    return FileOperationResponse(data=info.model_dump(mode="json"))


@router.get("/stats", response_model=FileOperationResponse)
async def get_storage_stats(store: BaseFileStore = Depends(get_store)):
    """获取存储统计信息"""
    stats = await run_in_threadpool(store.get_storage_stats)
    return FileOperationResponse(data=stats.model_dump(mode="json"))


@router.delete("/delete", response_model=FileOperationResponse)
async def delete_file(request: Request, store: BaseFileStore = Depends(get_store)):
    """删除文件（同时清理其 Content-Type 记录）"""
    key = _query_key(request, store)
    await run_in_threadpool(store.delete, key)
    return FileOperationResponse(message="file deleted", data={"key": key})


@router.post("/download-many")
async def download_many_files(body: ArchiveRequest, store: BaseFileStore = Depends(get_store)):
    """
    打包下载

    请求体: {"filenames": [...]}；任一文件缺失时返回错误而不是部分归档
    """
    archive = await run_in_threadpool(store.build_archive, body.filenames)

    return Response(
        content=archive.data,
        media_type=archive.media_type,
        headers={"Content-Disposition": f'attachment; filename="{archive.filename}"'}
    )


__all__ = ["router", "get_store"]
