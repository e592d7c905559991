"""
转义模块 - 处理查询语法中的特殊字符
"""

import re

# 查询语法中的运算符字符，转义时前置一个反斜杠
SPECIAL_CHARS = '\\()|-!@~"&/^$=;'

# 控制字符替换为字面转义序列
CONTROL_CHARS = {
    "\x00": "\\0",
    "\n": "\\n",
    "\r": "\\r",
    "\x1a": "\\Z",
}

FIELD_DELIMITER = ";"

_ESCAPE_PATTERN = re.compile(
    "[" + re.escape(SPECIAL_CHARS + "".join(CONTROL_CHARS)) + "]"
)


def _escape_char(match: re.Match) -> str:
    char = match.group(0)
    if char in CONTROL_CHARS:
        return CONTROL_CHARS[char]
    return "\\" + char


def escape_string(string: str) -> str:
    """
    转义查询解析器视为运算符的字符

    单次扫描完成替换，已插入的反斜杠不会被再次转义。

    Args:
        string: 未转义的字符串

    Returns:
        转义后的字符串
    """
    return _ESCAPE_PATTERN.sub(_escape_char, str(string))


def strip_delimiter(string: str) -> str:
    """去掉字段分隔符，查询片段内不能出现 ';'"""
    return str(string).replace(FIELD_DELIMITER, "")
