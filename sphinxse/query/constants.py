"""
查询选项常量 - searchd 可识别的匹配、排序、排名和分组函数名称
"""

from enum import Enum
from typing import Any


class MatchMode(str, Enum):
    """匹配模式"""
    ALL = "all"
    ANY = "any"
    PHRASE = "phrase"
    BOOLEAN = "boolean"
    EXTENDED = "extended"
    EXTENDED2 = "extended2"


class SortMode(str, Enum):
    """排序模式"""
    RELEVANCE = "relevance"
    ATTR_DESC = "attr_desc"
    ATTR_ASC = "attr_asc"
    TIME_SEGMENTS = "time_segments"
    EXTENDED = "extended"
    EXPR = "expr"


class RankMode(str, Enum):
    """排名模式"""
    PROXIMITY_BM25 = "proximity_bm25"
    BM25 = "bm25"
    NONE = "none"
    WORDCOUNT = "wordcount"
    PROXIMITY = "proximity"
    MATCHANY = "matchany"
    FIELDMASK = "fieldmask"
    SPH04 = "sph04"
    EXPR = "expr"
    EXPORT = "export"


class GroupFunc(str, Enum):
    """分组函数"""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ATTR = "attr"
    ATTRPAIR = "attrpair"


def option_value(value: Any) -> Any:
    """枚举成员取其值，其他值原样返回"""
    if isinstance(value, Enum):
        return value.value
    return value
