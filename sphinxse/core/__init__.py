"""
核心模块 - 配置和异常
"""
from .config import Config, BuilderConfig, ServerConfig
from .errors import SphinxSEError, ValidationError, ArgumentError

__all__ = ["Config", "BuilderConfig", "ServerConfig", "SphinxSEError", "ValidationError", "ArgumentError"]
