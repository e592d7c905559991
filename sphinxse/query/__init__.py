"""
查询层模块 - 查询构建、转义和预设
"""

from .builder import QueryBuilder
from .constants import MatchMode, SortMode, RankMode, GroupFunc
from .escaping import escape_string, strip_delimiter
from .presets import PresetManager, QueryPreset

__all__ = [
    "QueryBuilder", "MatchMode", "SortMode", "RankMode", "GroupFunc",
    "escape_string", "strip_delimiter", "PresetManager", "QueryPreset",
]
