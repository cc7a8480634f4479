"""
API 应用状态管理

提供全局状态访问，避免循环导入
"""

from typing import Any, Dict

# 全局状态
_global_state: Dict[str, Any] = {}


def get_app_state() -> Dict[str, Any]:
    """获取应用状态"""
    return _global_state


def set_app_state(key: str, value: Any) -> None:
    """设置应用状态"""
    _global_state[key] = value


def pop_app_state(key: str) -> Any:
    """移除并返回应用状态项，不存在时返回 None"""
    return _global_state.pop(key, None)


__all__ = ["get_app_state", "set_app_state", "pop_app_state"]
