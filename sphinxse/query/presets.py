"""
查询预设模块 - 从 YAML 加载命名查询模板并应用到构建器
"""

import copy
import os
import re
from pathlib import Path
from typing import Dict, List, Any, Optional
import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from loguru import logger

from ..core.errors import ValidationError
from .builder import QueryBuilder


class FilterPreset(BaseModel):
    """值过滤"""
    attribute: str = Field(description="属性名")
    values: List[int] = Field(default_factory=list, description="值集合")
    exclude: bool = Field(default=False, description="是否排除")


class RangePreset(BaseModel):
    """整数范围过滤"""
    attribute: str = Field(description="属性名")
    min_value: int = Field(description="最小值")
    max_value: int = Field(description="最大值")
    exclude: bool = Field(default=False, description="是否排除")


class FloatRangePreset(BaseModel):
    """浮点范围过滤"""
    attribute: str = Field(description="属性名")
    min_value: float = Field(description="最小值")
    max_value: float = Field(description="最大值")
    exclude: bool = Field(default=False, description="是否排除")


class GroupByPreset(BaseModel):
    """分组设置"""
    attribute: str = Field(description="分组属性")
    func: str = Field(default="attr", description="分组函数")
    group_sort: Optional[str] = Field(default=None, description="分组排序子句")
    distinct: Optional[str] = Field(default=None, description="去重计数属性")


class QueryPreset(BaseModel):
    """查询预设"""
    index: Optional[str] = Field(default=None, description="索引名")
    match_mode: Optional[str] = Field(default=None, description="匹配模式")
    ranker: Optional[str] = Field(default=None, description="排名器")
    rank_expr: str = Field(default="", description="排名表达式")
    sort_mode: Optional[str] = Field(default=None, description="排序模式")
    sort_by: str = Field(default="", description="排序子句")
    field_weights: Dict[str, int] = Field(default_factory=dict, description="字段权重")
    filters: List[FilterPreset] = Field(default_factory=list)
    ranges: List[RangePreset] = Field(default_factory=list)
    float_ranges: List[FloatRangePreset] = Field(default_factory=list)
    group_by: Optional[GroupByPreset] = None
    select: List[str] = Field(default_factory=list, description="select 表达式")
    offset: int = Field(default=0, description="偏移量")
    limit: Optional[int] = Field(default=None, description="返回数量")
    max_matches: Optional[int] = Field(default=None, description="最大匹配数")
    max_query_time: Optional[int] = Field(default=None, description="最大查询时间(毫秒)")


class PresetsFile(BaseModel):
    """预设文件（匹配 YAML 结构）"""
    presets: Dict[str, QueryPreset] = Field(default_factory=dict)


class PresetManager:
    """查询预设管理器"""

    def __init__(self, config_path: str):
        """
        初始化预设管理器

        Args:
            config_path: 预设文件路径

        Raises:
            FileNotFoundError: 文件不存在
            ValidationError: 文件内容不符合预设结构
        """
        self.config_path = Path(config_path)
        self.presets_file = self._load_presets(self.config_path)
        logger.info(f"查询预设加载完成: {self.list_presets()}")

    def _load_presets(self, config_path: Path) -> PresetsFile:
        """加载预设文件"""
        if not config_path.exists():
            raise FileNotFoundError(f"预设文件不存在: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        config_data = self._replace_env_vars(config_data)

        try:
            return PresetsFile(**config_data)
        except PydanticValidationError as e:
            logger.error(f"预设文件格式错误: {config_path}")
            raise ValidationError("预设文件格式错误", {"path": str(config_path), "errors": e.errors()}) from e

    def _replace_env_vars(self, config_data: Any) -> Any:
        """替换配置中的 ${VAR_NAME} 环境变量"""
        if isinstance(config_data, dict):
            return {key: self._replace_env_vars(value) for key, value in config_data.items()}
        if isinstance(config_data, list):
            return [self._replace_env_vars(value) for value in config_data]
        if not isinstance(config_data, str):
            return config_data

        def substitute(match: re.Match) -> str:
            env_value = os.getenv(match.group(1))
            if env_value is None:
                logger.warning(f"环境变量 {match.group(1)} 未设置")
                return match.group(0)
            return env_value

        return re.sub(r'\$\{([^}]+)\}', substitute, config_data)

    def list_presets(self) -> List[str]:
        """获取预设名称列表"""
        return list(self.presets_file.presets)

    def get_preset(self, name: str) -> QueryPreset:
        """
        获取指定预设

        Raises:
            ValidationError: 预设不存在
        """
        preset = self.presets_file.presets.get(name)
        if preset is None:
            raise ValidationError(f"预设不存在: {name}", {"available": self.list_presets()})
        return preset

    def apply(self, name: str, builder: QueryBuilder) -> QueryBuilder:
        """
        将预设应用到构建器

        在目标构建器的副本上回放，全部成功后才写回，校验失败时目标构建器保持不变。

        Args:
            name: 预设名称
            builder: 目标构建器

        Returns:
            目标构建器
        """
        preset = self.get_preset(name)

        scratch = copy.deepcopy(builder)
        self._replay(preset, scratch)
        builder.__dict__.update(scratch.__dict__)

        logger.debug(f"已应用查询预设: {name}")
        return builder

    def _replay(self, preset: QueryPreset, builder: QueryBuilder):
        """通过构建器的设置方法回放预设"""
        if preset.index:
            builder.set_index(preset.index)
        if preset.match_mode:
            builder.set_match_mode(preset.match_mode)
        if preset.ranker:
            builder.set_ranking_mode(preset.ranker, preset.rank_expr)
        if preset.sort_mode:
            builder.set_sort_mode(preset.sort_mode, preset.sort_by)
        if preset.field_weights:
            builder.set_field_weights(preset.field_weights)

        for item in preset.filters:
            builder.set_filter(item.attribute, item.values, item.exclude)
        for item in preset.ranges:
            builder.set_filter_range(item.attribute, item.min_value, item.max_value, item.exclude)
        for item in preset.float_ranges:
            builder.set_filter_float_range(item.attribute, item.min_value, item.max_value, item.exclude)

        if preset.group_by:
            builder.set_group_by(preset.group_by.attribute, preset.group_by.func,
                                 preset.group_by.group_sort)
            if preset.group_by.distinct:
                builder.set_group_distinct(preset.group_by.distinct)

        if preset.select:
            builder.set_select(preset.select)

        if preset.limit is not None:
            builder.set_limits(preset.offset, preset.limit, preset.max_matches)
        elif preset.offset:
            builder.set_offset(preset.offset, preset.max_matches)
        elif preset.max_matches is not None:
            builder.set_max_matches(preset.max_matches)

        if preset.max_query_time is not None:
            builder.set_max_query_time(preset.max_query_time)

    def export_presets(self, file_path: str):
        """导出预设到文件"""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, 'w', encoding='utf-8') as f:
            yaml.dump(self.presets_file.model_dump(), f, default_flow_style=False, allow_unicode=True, sort_keys=False)
        logger.info(f"预设已导出到: {file_path}")
