"""
Driftbox - 并发临时文件存储服务

上传文件获得唯一键，之后通过该键下载、批量打包或删除
"""

__version__ = "1.0.0"
