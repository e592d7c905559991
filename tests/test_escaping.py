"""
转义模块测试
"""

import pytest

from sphinxse.query.builder import QueryBuilder
from sphinxse.query.escaping import escape_string, strip_delimiter, SPECIAL_CHARS


class TestEscaping:
    """escape_string / strip_delimiter 测试类"""

    @pytest.mark.parametrize("char", list(SPECIAL_CHARS))
    def test_special_char(self, char):
        """测试每个特殊字符前置一个反斜杠"""
        assert escape_string(char) == "\\" + char

    def test_all_special_chars(self):
        """测试包含全部特殊字符的字符串"""
        expected = "".join("\\" + char for char in SPECIAL_CHARS)
        assert escape_string(SPECIAL_CHARS) == expected

    def test_control_chars(self):
        """测试控制字符替换为字面转义序列"""
        assert escape_string("a\nb\rc\x00d\x1a") == "a\\nb\\rc\\0d\\Z"

    def test_plain_text_unchanged(self):
        """测试普通文本不变"""
        assert escape_string("hello world 123") == "hello world 123"

    def test_not_idempotent(self):
        """测试重复转义会再次转义反斜杠"""
        once = escape_string("-")
        assert once == "\\-"
        assert escape_string(once) == "\\\\\\-"

    def test_non_string_input(self):
        """测试非字符串输入先转为字符串"""
        assert escape_string(-5) == "\\-5"

    def test_strip_delimiter(self):
        """测试去掉分号"""
        assert strip_delimiter("a;b;") == "ab"

    def test_builder_delegates(self):
        """测试构建器的 escape_string 方法"""
        assert QueryBuilder().escape_string("@title") == "\\@title"
