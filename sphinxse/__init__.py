"""
sphinxse - SphinxSE 查询字符串构建器

累积检索词、过滤条件、排序分组和字段权重，
渲染为 searchd 可识别的单行查询字符串。
"""

__version__ = "0.1.0"
__author__ = "sphinxse Team"

from .core.config import Config
from .core.errors import SphinxSEError, ValidationError, ArgumentError
from .query.builder import QueryBuilder

__all__ = ["QueryBuilder", "Config", "SphinxSEError", "ValidationError", "ArgumentError"]
