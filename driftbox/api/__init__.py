"""
Driftbox REST API

FastAPI 应用、路由、错误处理和日志配置
"""
