"""
查询预设测试模块
"""

import textwrap

import pytest

from sphinxse.core.errors import ValidationError
from sphinxse.query.builder import QueryBuilder
from sphinxse.query.presets import PresetManager

PRESETS_YAML = textwrap.dedent("""
    presets:
      products:
        index: products
        match_mode: extended2
        ranker: expr
        rank_expr: sum(lcs)
        field_weights:
          title: 10
          body: 1
        filters:
          - attribute: category_id
            values: [1, 2]
        float_ranges:
          - attribute: price
            min_value: 10
            max_value: 99.5
        group_by:
          attribute: brand_id
          func: attr
        select: ["id", "WEIGHT() AS w"]
        limit: 20
        offset: 40
      broken:
        index: broken_idx
        filters:
          - attribute: tag
            values: []
      remote:
        index: "${SPHINXSE_TEST_INDEX}"
""")


class TestPresetManager:
    """PresetManager 测试类"""

    @pytest.fixture
    def presets_path(self, tmp_path):
        """写入预设文件"""
        path = tmp_path / "presets.yaml"
        path.write_text(PRESETS_YAML, encoding="utf-8")
        return path

    @pytest.fixture
    def manager(self, presets_path, monkeypatch):
        """创建预设管理器"""
        monkeypatch.setenv("SPHINXSE_TEST_INDEX", "remote_idx")
        return PresetManager(str(presets_path))

    def test_list_presets(self, manager):
        """测试预设名称列表"""
        assert manager.list_presets() == ["products", "broken", "remote"]

    def test_apply(self, manager):
        """测试应用预设"""
        builder = manager.apply("products", QueryBuilder())

        assert builder.to_query() == (
            "select=id,WEIGHT() AS w; limit=20; offset=40; mode=extended2; index=products; "
            "fieldweights=title,10,body,1; filter=category_id,1,2; floatrange=price,10.0,99.5; "
            "groupby=attr:brand_id; groupsort=@group desc; ranker=expr:sum(lcs); maxmatches=1000;"
        )

    def test_apply_invalid_leaves_builder_untouched(self, manager):
        """测试预设校验失败时构建器不变"""
        builder = QueryBuilder({"index": "main"})

        with pytest.raises(ValidationError):
            manager.apply("broken", builder)

        assert builder.to_query() == "index=main;"

    def test_unknown_preset(self, manager):
        """测试预设不存在"""
        with pytest.raises(ValidationError):
            manager.get_preset("missing")

    def test_env_substitution(self, manager):
        """测试环境变量替换"""
        builder = manager.apply("remote", QueryBuilder())
        assert builder.to_query() == "index=remote_idx;"

    def test_malformed_file(self, tmp_path):
        """测试格式错误的预设文件"""
        path = tmp_path / "bad.yaml"
        path.write_text("presets:\n  x:\n    limit: abc\n", encoding="utf-8")

        with pytest.raises(ValidationError):
            PresetManager(str(path))

    def test_missing_file(self, tmp_path):
        """测试预设文件不存在"""
        with pytest.raises(FileNotFoundError):
            PresetManager(str(tmp_path / "missing.yaml"))

    def test_export_presets(self, manager, tmp_path):
        """测试导出后可重新加载"""
        export_path = tmp_path / "out" / "presets.yaml"
        manager.export_presets(str(export_path))

        reloaded = PresetManager(str(export_path))
        assert reloaded.list_presets() == manager.list_presets()
        assert reloaded.get_preset("products") == manager.get_preset("products")

    def test_apply_checks_against_target_state(self, tmp_path):
        """测试校验依赖目标构建器的当前状态，失败时目标不变"""
        path = tmp_path / "paging.yaml"
        path.write_text(textwrap.dedent("""
            presets:
              deep_page:
                index: deep_idx
                filters:
                  - attribute: cat
                    values: [1]
                offset: 150
        """), encoding="utf-8")
        manager = PresetManager(str(path))
        builder = QueryBuilder().set_limits(0, 10, 100)

        with pytest.raises(ValidationError):
            manager.apply("deep_page", builder)

        assert builder.to_query() == "limit=10; maxmatches=100;"

        builder.set_limits(0, 10, 1000)
        manager.apply("deep_page", builder)
        assert builder.to_query() == "limit=10; offset=150; index=deep_idx; filter=cat,1; maxmatches=1000;"

    def test_apply_max_matches_without_paging(self, tmp_path):
        """测试只设置 max_matches 的预设"""
        path = tmp_path / "max.yaml"
        path.write_text("presets:\n  wide:\n    max_matches: 5000\n", encoding="utf-8")
        manager = PresetManager(str(path))

        builder = manager.apply("wide", QueryBuilder())
        assert builder.to_query() == "maxmatches=5000;"
