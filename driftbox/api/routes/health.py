"""
健康检查路由

/health 返回进程状态；/ready 在文件存储初始化且存储目录可用时才返回 200
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from driftbox import __version__
from driftbox.api.state import get_app_state

logger = logging.getLogger(__name__)

router = APIRouter()

_started_at = time.monotonic()


class HealthStatus(BaseModel):
    """服务状态"""
    status: str = Field(description="healthy / degraded")
    version: str = Field(description="Driftbox 版本")
    timestamp: str = Field(description="UTC 时间（ISO 8601）")
    uptime_seconds: float = Field(description="进程运行时间（秒）")
    storage_dir: Optional[str] = Field(None, description="存储目录，未初始化时为空")


def _storage_dir() -> Optional[str]:
    """已初始化且目录存在时返回存储目录"""
    store = get_app_state().get("file_store")
    if store is None:
        return None
    storage_dir = store.config.storage_dir
    return str(storage_dir) if storage_dir.is_dir() else None


@router.get("/health", response_model=HealthStatus)
async def health_check():
    """进程状态；存储不可用时为 degraded，但仍返回 200"""
    storage_dir = _storage_dir()
    return HealthStatus(
        status="healthy" if storage_dir else "degraded",
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        uptime_seconds=round(time.monotonic() - _started_at, 3),
        storage_dir=storage_dir
    )


@router.get("/ping", response_class=PlainTextResponse)
async def ping():
    return "pong"


@router.get("/ready")
async def readiness_check():
    """就绪探针"""
    storage_dir = _storage_dir()
    if storage_dir is None:
        logger.warning("就绪检查失败: 文件存储未初始化或存储目录不存在")
        return JSONResponse(status_code=503, content={"status": "not_ready"})
    return {"status": "ready", "storage_dir": storage_dir}


@router.get("/live")
async def liveness_check():
    """存活探针"""
    return {"status": "alive"}


__all__ = ["router", "HealthStatus"]
