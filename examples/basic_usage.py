"""
sphinxse 基本使用示例
"""

from sphinxse.core.config import load_config_from_env
from sphinxse.core.errors import ValidationError, ArgumentError
from sphinxse.query.builder import QueryBuilder
from sphinxse.query.constants import MatchMode, SortMode, RankMode, GroupFunc


def basic_example():
    """基本使用示例"""
    print("=== sphinxse 基本使用示例 ===\n")

    # 从环境变量读取服务器与默认值
    config = load_config_from_env()
    builder = QueryBuilder.from_config(config)

    # 1. 关键词
    print("1. 设置关键词...")
    builder.field_query(["title", "body"], "hello world")
    builder.author("Jane O'Neil")

    # 2. 匹配、排名与排序
    print("2. 设置匹配、排名与排序...")
    builder.set_match_mode(MatchMode.EXTENDED2)
    builder.set_ranking_mode(RankMode.EXPR, "sum(lcs*user_weight)*1000+bm25")
    builder.set_sort_mode(SortMode.EXTENDED, "@weight desc, price asc")
    builder.set_field_weights({"title": 10, "body": 1})

    # 3. 过滤条件
    print("3. 设置过滤条件...")
    builder.set_filter("category_id", [3, 7])
    builder.set_filter("status", [0], exclude=True)
    builder.set_filter_range("price", 10, 500)
    builder.set_geo_anchor("lat", "lon", 0.6544, 1.7855)
    builder.set_filter_float_range("geodist", 0.0, 5000.0)

    # 4. 分组与分页
    print("4. 设置分组与分页...")
    builder.set_group_by("brand_id", GroupFunc.ATTR)
    builder.set_group_distinct("seller_id")
    builder.set_limits(0, 20)

    print(f"\n查询字符串:\n{builder.to_query()}\n")

    # 5. 错误处理
    print("5. 错误处理...")
    try:
        builder.set_filter("tag", [])
    except ValidationError as e:
        print(f"ValidationError: {e}")

    try:
        builder.title()
    except ArgumentError as e:
        print(f"ArgumentError: {e}")


if __name__ == "__main__":
    basic_example()
