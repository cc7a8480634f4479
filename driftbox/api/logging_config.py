"""
日志配置模块

根日志记录器输出到控制台，可选再写入按大小轮转的日志文件。
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Dict, List, Optional

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 第三方库的日志级别（避免访问日志和 multipart 解析刷屏）
THIRD_PARTY_LEVELS: Dict[str, int] = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "multipart": logging.WARNING,
    "python_multipart": logging.WARNING,
}


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    log_format: str = DEFAULT_FORMAT
) -> None:
    """
    配置根日志记录器（重复调用会替换之前的处理器）

    Args:
        log_level: 日志级别 (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: 日志文件路径，为 None 或空时只输出到控制台
        max_bytes: 单个日志文件最大大小
        backup_count: 保留的轮转文件数量
        log_format: 日志格式
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    formatter = logging.Formatter(fmt=log_format, datefmt=DATE_FORMAT)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8"
            )
        )

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name, lib_level in THIRD_PARTY_LEVELS.items():
        logging.getLogger(name).setLevel(max(level, lib_level))

    logging.getLogger(__name__).info(
        f"日志初始化完成: level={logging.getLevelName(level)}, file={log_file or '-'}"
    )


__all__ = ["setup_logging", "DEFAULT_FORMAT"]
