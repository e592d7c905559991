"""
异常模块 - 查询构建过程中的错误类型

所有异常都在出错的调用处同步抛出，构建器内部不做任何恢复：

    from sphinxse.core.errors import SphinxSEError, ValidationError

    try:
        builder.set_filter("group_id", [])
    except ValidationError as e:
        logger.warning(f"过滤条件无效: {e}")
"""

from typing import Dict, Any, Optional


class SphinxSEError(Exception):
    """
    sphinxse 所有异常的基类

    Attributes:
        message: 错误描述
        details: 附加上下文（可选）
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | 详情: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典，便于日志输出"""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(SphinxSEError):
    """参数校验失败：空过滤值集合、偏移量越界、预设无效等"""


class ArgumentError(SphinxSEError):
    """调用缺少必要参数，例如字段查询简写没有提供查询值"""
