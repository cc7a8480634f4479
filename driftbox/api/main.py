"""
Driftbox FastAPI 服务

提供临时文件上传、下载、删除和打包下载的 REST API
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from driftbox import __version__
from driftbox.api.errors import (
    APIException,
    LoggingMiddleware,
    api_exception_handler,
    file_store_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from driftbox.api.routes import files, health
from driftbox.api.state import pop_app_state, set_app_state
from driftbox.config import Config, get_config
from driftbox.filestore import (
    BaseFileStore,
    FileStoreError,
    get_file_store,
    reset_file_store,
    set_file_store,
)
from driftbox.models.filestore import StoreConfig

logger = logging.getLogger(__name__)


def build_lifespan(
    store_config: Optional[StoreConfig] = None,
    file_store: Optional[BaseFileStore] = None
):
    """
    构造应用生命周期

    启动时创建文件存储，关闭时拆除整个存储目录

    Args:
        store_config: 存储配置，为 None 时沿用全局存储实例
        file_store: 已创建的存储实例，优先于 store_config
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Driftbox API 服务启动中...")

        if file_store is not None:
            set_file_store(file_store)
            store = file_store
        elif store_config is not None:
            store = get_file_store(store_config, force_new=True)
        else:
            store = get_file_store()
        set_app_state("file_store", store)
        logger.info(f"FileStore 初始化完成: {store.config.storage_dir}")

        try:
            yield
        finally:
            logger.info("Driftbox API 服务关闭中...")
            pop_app_state("file_store")
            try:
                reset_file_store()
            except FileStoreError:
                logger.exception("拆除 FileStore 失败")
            logger.info("Driftbox API 服务已关闭")

    return lifespan


def create_app(
    config: Optional[Config] = None,
    file_store: Optional[BaseFileStore] = None
) -> FastAPI:
    """
    创建 FastAPI 应用

    Args:
        config: 应用配置，默认使用全局配置；显式传入时存储也按其 store 段创建
        file_store: 已创建的存储实例（用于测试或自定义后端）

    Returns:
        FastAPI 应用
    """
    store_config = config.store.to_store_config() if config is not None else None
    config = config or get_config()

    app = FastAPI(
        title="Driftbox API",
        description="并发临时文件存储 - REST API 服务",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=build_lifespan(store_config, file_store)
    )

    # CORS 中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 日志中间件
    app.add_middleware(LoggingMiddleware, log_level=config.logging.level)

    # ===== 异常处理 =====

    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(FileStoreError, file_store_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # ===== 注册路由 =====

    app.include_router(
        health.router,
        prefix="/api/v1",
        tags=["健康检查"]
    )

    app.include_router(
        files.router,
        prefix="/api/v1/files",
        tags=["文件管理"]
    )

    @app.get("/api")
    async def api_info():
        """API 信息"""
        return {
            "name": "Driftbox API",
            "version": __version__,
            "docs": "/docs",
            "endpoints": {
                "health": "/api/v1/health",
                "upload": "/api/v1/files/upload",
                "upload_many": "/api/v1/files/upload-many",
                "download": "/api/v1/files/download",
                "download_many": "/api/v1/files/download-many",
                "delete": "/api/v1/files/delete",
            }
        }

    return app


app = create_app()


__all__ = ["app", "create_app", "build_lifespan"]
