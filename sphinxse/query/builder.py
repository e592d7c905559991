"""
查询构建器模块 - 组装 SphinxSE 查询字符串
"""

from typing import Dict, List, Any, Optional, Union, Iterable, Tuple, Callable
from loguru import logger

from ..core.config import BuilderConfig, Config
from ..core.errors import ValidationError, ArgumentError
from .constants import option_value
from .escaping import escape_string, strip_delimiter

SelectInput = Union[str, Dict[str, Optional[str]], Iterable[Any], None]


class QueryBuilder:
    """
    查询构建器 - 累积查询条件，并渲染为 searchd 可识别的查询字符串

    输出形如 ``select=expr1,expr2; query=...; filter=attr,1,2; !range=attr,0,10;``，
    由调用方通过 SphinxSE 表的 query 列发送给 searchd。
    """

    # 渲染顺序，searchd 端不会重新排序
    FIELDS = (
        "query", "limit", "offset", "mode", "sort", "index", "fieldweights",
        "filter", "range", "floatrange", "groupby", "groupsort", "distinct",
        "host", "port", "ranker", "maxmatches", "cutoff", "maxquerytime",
    )

    # 构造时可预置的配置项
    CONFIG_KEYS = frozenset(FIELDS + ("select",))

    EXCLUDE_MARKER = "!"

    # 只有过滤类字段带排除标记
    EXCLUDABLE_FIELDS = frozenset(("filter", "range", "floatrange"))

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 defaults: Optional[BuilderConfig] = None):
        """
        初始化查询构建器

        Args:
            config: 预置字段，键为字段名，未知键忽略
            defaults: 构建默认值
        """
        self.defaults = defaults or BuilderConfig()
        self._config = dict(config or {})

        self._init_state()
        self._apply_config(self._config)

        logger.debug(f"查询构建器初始化完成，预置字段: {sorted(self._config)}")

    @classmethod
    def from_config(cls, config: Config) -> "QueryBuilder":
        """从主配置创建构建器，预置服务器和索引"""
        builder = cls(defaults=config.builder)
        if config.server.host:
            builder.set_server(config.server.host, config.server.port)
        if config.server.index:
            builder.set_index(config.server.index)
        return builder

    def _init_state(self):
        """初始化全部字段为未设置"""
        self._query = ""
        self._field_queries: Dict[str, str] = {}
        self._select: Dict[str, str] = {}

        self._limit = None
        self._offset = None
        self._mode = None
        self._sort = None
        self._index = None
        self._fieldweights = None
        self._filter: List[str] = []
        self._range: List[str] = []
        self._floatrange: Dict[str, str] = {}
        self._groupby = None
        self._groupsort = None
        self._distinct = None
        self._host = None
        self._port = None
        self._ranker = None
        self._maxmatches = None
        self._cutoff = None
        self._maxquerytime = None

    def _apply_config(self, config: Dict[str, Any]):
        """按字段名载入预置配置"""
        for key, value in config.items():
            if key not in self.CONFIG_KEYS:
                logger.debug(f"忽略未知配置项: {key}")
                continue

            if key == "query":
                self.set_query(value)
            elif key == "select":
                self.set_select(value)
            elif key == "fieldweights" and isinstance(value, dict):
                self.set_field_weights(value)
            elif key in ("filter", "range"):
                entries = value if isinstance(value, (list, tuple)) else [value]
                setattr(self, f"_{key}", [str(entry) for entry in entries])
            elif key == "floatrange":
                self._floatrange = self._load_float_ranges(value)
            else:
                setattr(self, f"_{key}", option_value(value))

    def _load_float_ranges(self, value: Any) -> Dict[str, str]:
        """浮点范围按属性名建索引"""
        if isinstance(value, dict):
            return {attribute: str(entry) for attribute, entry in value.items()}

        entries = value if isinstance(value, (list, tuple)) else [value]
        ranges = {}
        for entry in entries:
            entry = str(entry)
            attribute = entry.lstrip(self.EXCLUDE_MARKER).split(",", 1)[0]
            ranges[attribute] = entry
        return ranges

    def reset(self) -> "QueryBuilder":
        """清空所有累积状态，恢复到构造时的预置值"""
        self._init_state()
        self._apply_config(self._config)
        return self

    # ------------------------------------------------------------------
    # 连接与分页
    # ------------------------------------------------------------------

    def set_server(self, host: str, port: int = 0) -> "QueryBuilder":
        """
        设置 searchd 主机名和端口

        Args:
            host: 主机名
            port: 端口
        """
        self._host = host
        self._port = port
        return self

    def set_limits(self, offset: int, limit: int, max_matches: Optional[int] = None,
                   cutoff: int = 0) -> "QueryBuilder":
        """
        设置结果集的偏移量和数量，可选设置 max-matches 和 cutoff

        Args:
            offset: 偏移量
            limit: 返回数量
            max_matches: 最大匹配数，默认取配置值
            cutoff: 找到多少匹配后停止搜索，0 表示不限制

        Raises:
            ValidationError: offset 为负或不小于 max_matches
        """
        if max_matches is None:
            max_matches = self.defaults.max_matches

        self._check_offset(offset, max_matches)

        self._offset = offset
        self._limit = limit
        self._maxmatches = max_matches
        self._cutoff = cutoff
        return self

    def set_offset(self, offset: int, max_matches: Optional[int] = None) -> "QueryBuilder":
        """
        单独设置偏移量

        Args:
            offset: 偏移量
            max_matches: 最大匹配数；给出时一并保存，否则使用当前值或配置默认值

        Raises:
            ValidationError: offset 为负或不小于上限
        """
        bound = max_matches
        if bound is None:
            bound = self._maxmatches or self.defaults.max_matches

        self._check_offset(offset, bound)

        self._offset = offset
        if max_matches is not None:
            self._maxmatches = max_matches
        return self

    def set_max_matches(self, max_matches: int) -> "QueryBuilder":
        """
        单独设置最大匹配数

        Raises:
            ValidationError: 已设置的 offset 不小于新的上限
        """
        self._check_offset(self._offset or 0, max_matches)

        self._maxmatches = max_matches
        return self

    def _check_offset(self, offset: int, max_matches: int):
        if offset < 0 or offset >= max_matches:
            details = {"offset": offset, "max_matches": max_matches}
            logger.warning(f"偏移量越界: {details}")
            raise ValidationError("offset 必须在 [0, max_matches) 范围内", details)

    def set_max_query_time(self, max_time: int) -> "QueryBuilder":
        """
        设置每个索引的最大查询时间（毫秒），0 表示不限制

        Args:
            max_time: 毫秒数
        """
        self._maxquerytime = max_time
        return self

    # ------------------------------------------------------------------
    # 匹配、排名与排序
    # ------------------------------------------------------------------

    def set_match_mode(self, mode) -> "QueryBuilder":
        """设置匹配模式"""
        self._mode = option_value(mode)
        return self

    def set_ranking_mode(self, ranker, rank_expr: str = "") -> "QueryBuilder":
        """
        设置排名模式

        Args:
            ranker: 排名器名称
            rank_expr: 排名表达式，仅 expr 排名器需要
        """
        ranker = option_value(ranker)
        self._ranker = strip_delimiter(f"{ranker}:{rank_expr}" if rank_expr else ranker)
        return self

    def set_sort_mode(self, mode, sort_by: str = "") -> "QueryBuilder":
        """
        设置匹配结果的排序模式

        Args:
            mode: 排序模式
            sort_by: 排序子句
        """
        self._sort = strip_delimiter(f"{option_value(mode)}:{sort_by}")
        return self

    def set_field_weights(self, weights: Dict[str, int]) -> "QueryBuilder":
        """
        按字段名绑定权重，保持传入顺序

        Args:
            weights: 字段名到权重的映射
        """
        pairs = [f"{field},{weight}" for field, weight in weights.items()]
        self._fieldweights = ",".join(pairs)
        return self

    def set_index(self, index: str) -> "QueryBuilder":
        """设置要搜索的索引"""
        self._index = strip_delimiter(index) if index else index
        return self

    # ------------------------------------------------------------------
    # 查询表达式
    # ------------------------------------------------------------------

    def field_query(self, fields: Union[str, Iterable[str]], value: str,
                    quorum: Optional[float] = None,
                    operator: Optional[str] = None) -> "QueryBuilder":
        """
        在指定字段上添加关键词匹配

        同一组字段重复调用时覆盖之前的子句。

        Args:
            fields: 字段名或字段名集合
            value: 关键词，会被转义
            quorum: 法定比例，0 表示不附加
            operator: 法定比例运算符
        """
        if quorum is None:
            quorum = self.defaults.quorum
        if operator is None:
            operator = self.defaults.quorum_operator

        if isinstance(fields, str):
            field_string = f"@{fields}"
        else:
            names = sorted(fields) if isinstance(fields, (set, frozenset)) else list(fields)
            field_string = "@(" + ",".join(names) + ")"

        clause = f'{field_string} "{escape_string(value)}"'
        if quorum:
            clause += f"{operator}{quorum}"

        self._field_queries[field_string] = clause
        return self

    def __getattr__(self, name: str) -> Callable[..., "QueryBuilder"]:
        # 未知的公开属性视为字段查询简写: builder.title("hello")
        if name.startswith("_"):
            raise AttributeError(name)

        def shorthand(*args, **kwargs) -> "QueryBuilder":
            if not args:
                logger.warning(f"字段查询 {name} 缺少查询值")
                raise ArgumentError("need a field query value", {"field": name})
            return self.field_query(name, args[0], **kwargs)

        return shorthand

    def get_query(self) -> str:
        """获取完整查询表达式：自由文本在前，字段子句在后"""
        parts = [self._query] + list(self._field_queries.values())
        return " ".join(part for part in parts if part)

    def set_query(self, query: str) -> "QueryBuilder":
        """替换整个查询表达式，同时清除已有的字段子句"""
        self._query = strip_delimiter(query).strip()
        self._field_queries = {}
        return self

    def append_query(self, query: str) -> "QueryBuilder":
        """在自由文本表达式末尾追加片段"""
        fragment = strip_delimiter(query).strip()
        self._query = f"{self._query} {fragment}".strip()
        return self

    def escape_string(self, string: str) -> str:
        """转义查询语法的特殊字符"""
        return escape_string(string)

    # ------------------------------------------------------------------
    # 过滤条件
    # ------------------------------------------------------------------

    def set_filter(self, attribute: str, values, exclude: bool = False) -> "QueryBuilder":
        """
        设置值过滤：只匹配 attribute 值在（或不在）给定集合中的记录

        Args:
            attribute: 属性名
            values: 值集合
            exclude: 是否排除

        Raises:
            ValidationError: 值集合为空
        """
        if isinstance(values, (list, tuple, set, frozenset)):
            values = list(values)
        else:
            values = [values]

        if not values:
            logger.warning(f"属性 {attribute} 的过滤值集合为空")
            raise ValidationError("过滤值集合不能为空", {"attribute": attribute})

        marker = self.EXCLUDE_MARKER if exclude else ""
        self._filter.append(marker + ",".join([attribute] + [str(v) for v in values]))
        return self

    def set_filter_range(self, attribute: str, min_value: int, max_value: int,
                         exclude: bool = False) -> "QueryBuilder":
        """
        设置范围过滤：只匹配 attribute 值在 [min, max] 之间的记录

        Args:
            attribute: 属性名
            min_value: 最小值
            max_value: 最大值
            exclude: 是否排除
        """
        self._range.append(self._range_entry(attribute, min_value, max_value, exclude))
        return self

    def set_filter_float_range(self, attribute: str, min_value: float, max_value: float,
                               exclude: bool = False) -> "QueryBuilder":
        """
        设置浮点范围过滤，同一属性重复设置时覆盖

        Args:
            attribute: 属性名
            min_value: 最小值
            max_value: 最大值
            exclude: 是否排除
        """
        self._floatrange[attribute] = self._range_entry(attribute, min_value, max_value, exclude)
        return self

    def reset_filter_float_range(self, attribute: str) -> "QueryBuilder":
        """清空某个属性的浮点范围，渲染时跳过"""
        self._floatrange[attribute] = ""
        return self

    def reset_filters(self) -> "QueryBuilder":
        """清除所有过滤条件"""
        self._filter = []
        self._range = []
        self._floatrange = {}
        return self

    def _range_entry(self, attribute, min_value, max_value, exclude) -> str:
        marker = self.EXCLUDE_MARKER if exclude else ""
        return f"{marker}{attribute},{min_value},{max_value}"

    # ------------------------------------------------------------------
    # 分组
    # ------------------------------------------------------------------

    def set_group_by(self, attribute: str, func, group_sort: Optional[str] = None) -> "QueryBuilder":
        """
        设置分组属性和分组函数

        Args:
            attribute: 属性名
            func: 分组函数
            group_sort: 分组排序子句
        """
        if group_sort is None:
            group_sort = self.defaults.group_sort

        self._groupby = strip_delimiter(f"{option_value(func)}:{attribute}")
        self._groupsort = strip_delimiter(group_sort)
        return self

    def set_group_distinct(self, attribute: str) -> "QueryBuilder":
        """设置分组查询的去重计数属性"""
        self._distinct = attribute
        return self

    def reset_group_by(self) -> "QueryBuilder":
        """清除分组设置"""
        self._groupby = None
        self._groupsort = None
        self._distinct = None
        return self

    # ------------------------------------------------------------------
    # select 列表
    # ------------------------------------------------------------------

    def set_select(self, select: SelectInput) -> "QueryBuilder":
        """
        合并 select 表达式

        接受字符串、别名到表达式的映射，或二者组成的列表。
        表达式为 None 时移除对应别名；整体传入 None 时清空 select 列表。
        """
        if select is None:
            self._select = {}
            return self

        for alias, expr in self._select_items(select):
            if expr is None:
                self._select.pop(alias, None)
            else:
                self._select[alias] = strip_delimiter(expr)
        return self

    def _select_items(self, select: SelectInput) -> List[Tuple[str, Optional[str]]]:
        if isinstance(select, str):
            return [(select, select)]
        if isinstance(select, dict):
            return list(select.items())

        items = []
        for entry in select:
            if entry is None:
                logger.warning("select 列表中包含 None 表达式")
                raise ValidationError("select 列表项不能为 None，移除别名请使用 {alias: None}")
            items.extend(self._select_items(entry))
        return items

    def set_geo_anchor(self, lat_attr: str, lon_attr: str, lat: float, lon: float,
                       alias: Optional[str] = None) -> "QueryBuilder":
        """
        设置地理锚点，生成 GEODIST 表达式

        Args:
            lat_attr: 纬度属性
            lon_attr: 经度属性
            lat: 锚点纬度
            lon: 锚点经度
            alias: 距离别名
        """
        alias = alias or self.defaults.geo_alias
        expr = f"GEODIST({lat_attr}, {lon_attr}, {lat}, {lon}) AS {alias}"
        return self.set_select({alias: expr})

    def get_select(self) -> Dict[str, str]:
        """获取 select 列表（别名到表达式）"""
        return dict(self._select)

    # ------------------------------------------------------------------
    # 渲染
    # ------------------------------------------------------------------

    def _field_accessors(self) -> List[Tuple[str, Callable[[], Any]]]:
        """字段名与取值函数，顺序即输出顺序"""
        return [
            ("query", self.get_query),
            ("limit", lambda: self._limit),
            ("offset", lambda: self._offset),
            ("mode", lambda: self._mode),
            ("sort", lambda: self._sort),
            ("index", lambda: self._index),
            ("fieldweights", lambda: self._fieldweights),
            ("filter", lambda: self._filter),
            ("range", lambda: self._range),
            ("floatrange", lambda: list(self._floatrange.values())),
            ("groupby", lambda: self._groupby),
            ("groupsort", lambda: self._groupsort),
            ("distinct", lambda: self._distinct),
            ("host", lambda: self._host),
            ("port", lambda: self._port),
            ("ranker", lambda: self._ranker),
            ("maxmatches", lambda: self._maxmatches),
            ("cutoff", lambda: self._cutoff),
            ("maxquerytime", lambda: self._maxquerytime),
        ]

    @staticmethod
    def _is_empty(value: Any) -> bool:
        if value is None or value == "":
            return True
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value == 0
        return False

    def segments(self) -> List[Tuple[str, str]]:
        """
        按输出顺序列出非空字段

        Returns:
            (字段名, 值) 列表，多值字段每个值一项，值可能带排除标记
        """
        result = []

        select = ",".join(self._select.values())
        if select:
            result.append(("select", select))

        for name, accessor in self._field_accessors():
            value = accessor()
            values = value if isinstance(value, list) else [value]
            for item in values:
                if not self._is_empty(item):
                    result.append((name, str(item)))

        return result

    def to_query(self) -> str:
        """
        渲染查询字符串

        Returns:
            形如 ``select=...; name=value; !name=value;`` 的字符串
        """
        parts = []
        for name, value in self.segments():
            exclude = name in self.EXCLUDABLE_FIELDS and value.startswith(self.EXCLUDE_MARKER)
            if exclude:
                value = value.lstrip(self.EXCLUDE_MARKER)
                if not value:
                    continue
            marker = self.EXCLUDE_MARKER if exclude else ""
            parts.append(f"{marker}{name}={value};")

        query = " ".join(parts).strip()
        logger.debug(f"查询字符串渲染完成: {query}")
        return query

    def __str__(self) -> str:
        return self.to_query()
