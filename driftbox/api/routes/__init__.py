"""
API 路由模块
"""

from . import files, health

__all__ = ["files", "health"]
