"""
API 错误处理模块

存储异常 -> HTTP 状态码的映射、统一的错误响应格式，以及请求日志中间件。

错误响应格式:
    {"success": false, "error": {"code": "...", "message": "...", "details": {...}}}
"""

import logging
import time
import uuid
from typing import Any, Dict, Optional, Tuple

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from driftbox.filestore.errors import ErrorKind, FileStoreError, UploadTooLargeError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


# ===== 错误代码定义 =====

class ErrorCode:
    """标准错误代码"""

    # 客户端错误
    BAD_REQUEST = "BAD_REQUEST"
    EXTENSION_NOT_PERMITTED = "EXTENSION_NOT_PERMITTED"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

    # 服务端错误
    STORAGE_ERROR = "STORAGE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# 存储错误类别 -> (HTTP 状态码, 错误代码)
STORE_ERROR_STATUS: Dict[ErrorKind, Tuple[int, str]] = {
    ErrorKind.BAD_REQUEST: (status.HTTP_400_BAD_REQUEST, ErrorCode.BAD_REQUEST),
    ErrorKind.EXTENSION_NOT_PERMITTED: (status.HTTP_400_BAD_REQUEST, ErrorCode.EXTENSION_NOT_PERMITTED),
    ErrorKind.NOT_FOUND: (status.HTTP_404_NOT_FOUND, ErrorCode.NOT_FOUND),
    ErrorKind.IO_ERROR: (status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.STORAGE_ERROR),
}

# 框架抛出的 HTTP 状态码 -> 错误代码
_HTTP_STATUS_CODES: Dict[int, str] = {
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.METHOD_NOT_ALLOWED,
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: ErrorCode.PAYLOAD_TOO_LARGE,
}


# ===== 自定义异常 =====

class APIException(Exception):
    """
    路由层异常基类

    存储层之外的请求错误（例如缺少查询参数）使用此类抛出
    """

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.INTERNAL_ERROR,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationException(APIException):
    """请求缺少必需的字段或参数"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            code=ErrorCode.BAD_REQUEST,
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"field": field} if field else None
        )


# ===== 错误响应模型 =====

class ErrorDetail(BaseModel):
    """错误详情"""
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """错误响应"""
    success: bool = False
    error: ErrorDetail


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    """
    构造错误响应

    Args:
        status_code: HTTP 状态码
        code: 错误代码
        message: 错误消息
        details: 结构化详情（为空时输出 null）

    Returns:
        JSON 响应
    """
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details or None))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def store_error_status(exc: FileStoreError) -> Tuple[int, str]:
    """存储异常对应的 (HTTP 状态码, 错误代码)"""
    if isinstance(exc, UploadTooLargeError):
        return status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, ErrorCode.PAYLOAD_TOO_LARGE
    return STORE_ERROR_STATUS.get(
        exc.kind,
        (status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.INTERNAL_ERROR)
    )


# ===== 异常处理器 =====

async def file_store_exception_handler(request: Request, exc: FileStoreError) -> JSONResponse:
    """
    存储异常处理器

    客户端错误记录为 WARNING，I/O 错误连同异常链记录为 ERROR
    """
    status_code, code = store_error_status(exc)

    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} 存储失败: {exc.message}", exc_info=exc)
    else:
        logger.warning(f"{request.method} {request.url.path} 被拒绝: {code} {exc.message}")

    return error_response(status_code, code, exc.message, exc.details)


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """路由层异常处理器"""
    logger.warning(f"{request.method} {request.url.path} 请求无效: {exc.message}")
    return error_response(exc.status_code, exc.code, exc.message, exc.details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    框架 HTTP 异常处理器（未知路由、方法不允许、表单无法解析等）
    """
    if exc.status_code >= 500:
        code = ErrorCode.INTERNAL_ERROR
    else:
        code = _HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.BAD_REQUEST)

    return error_response(exc.status_code, code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """请求体无法解析或缺少字段时统一返回 400"""
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    logger.warning(f"{request.method} {request.url.path} 请求体无效: {errors}")

    return error_response(
        status.HTTP_400_BAD_REQUEST,
        ErrorCode.BAD_REQUEST,
        "failed to decode request",
        {"errors": errors}
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """兜底处理器：未预期的异常返回 500，不暴露内部信息"""
    logger.error(f"{request.method} {request.url.path} 未处理的异常: {exc!r}", exc_info=exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.INTERNAL_ERROR,
        "internal server error"
    )


# ===== 请求日志中间件 =====

class LoggingMiddleware(BaseHTTPMiddleware):
    """
    请求日志中间件

    为每个请求分配请求 ID（沿用客户端传入的 X-Request-ID），
    记录方法、路径、状态码与耗时，并在响应头中返回请求 ID 和处理时间
    """

    def __init__(self, app, log_level: str = "INFO"):
        super().__init__(app)
        self.log_level = logging.getLevelName(log_level.upper())
        if not isinstance(self.log_level, int):
            self.log_level = logging.INFO

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        started = time.perf_counter()

        logger.log(
            self.log_level,
            f"[{request_id}] --> {request.method} {request.url.path} from {client_address(request)}"
        )

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"[{request_id}] !!! {request.method} {request.url.path}")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.log(
            self.log_level,
            f"[{request_id}] <-- {request.method} {request.url.path} "
            f"{response.status_code} ({elapsed_ms:.1f}ms)"
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = f"{elapsed_ms:.2f}"
        return response


def client_address(request: Request) -> str:
    """客户端地址（优先使用代理头）"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",", 1)[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


__all__ = [
    "REQUEST_ID_HEADER",
    "ErrorCode",
    "STORE_ERROR_STATUS",
    "APIException",
    "ValidationException",
    "ErrorDetail",
    "ErrorResponse",
    "error_response",
    "store_error_status",
    "file_store_exception_handler",
    "api_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "global_exception_handler",
    "LoggingMiddleware",
    "client_address",
]
