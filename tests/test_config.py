"""
配置模块测试
"""

import pytest

from sphinxse.core.config import Config, BuilderConfig, ServerConfig, load_config_from_env


class TestConfig:
    """Config 测试类"""

    def test_defaults(self):
        """测试默认值"""
        config = Config()

        assert config.builder.max_matches == 1000
        assert config.builder.quorum == 0.8
        assert config.builder.quorum_operator == "/"
        assert config.builder.group_sort == "@group desc"
        assert config.builder.geo_alias == "geodist"
        assert config.server.host is None
        assert config.server.port == 0

    def test_from_dict(self):
        """测试从字典创建配置"""
        config = Config.from_dict({
            "builder": {"max_matches": 5000},
            "server": {"host": "search01", "port": 9312},
        })

        assert config.builder.max_matches == 5000
        assert config.builder.quorum == 0.8
        assert config.server.host == "search01"
        assert config.server.port == 9312

    def test_save_and_load_file(self, tmp_path):
        """测试保存并重新加载配置文件"""
        config = Config(
            builder=BuilderConfig(quorum=0.6),
            server=ServerConfig(host="search01", index="main"),
        )
        config_path = tmp_path / "conf" / "sphinxse.yaml"
        config.save_to_file(str(config_path))

        loaded = Config.from_file(str(config_path))
        assert loaded.to_dict() == config.to_dict()

    def test_from_file_missing(self, tmp_path):
        """测试配置文件不存在"""
        with pytest.raises(FileNotFoundError):
            Config.from_file(str(tmp_path / "missing.yaml"))

    def test_from_empty_file(self, tmp_path):
        """测试空配置文件使用默认值"""
        config_path = tmp_path / "empty.yaml"
        config_path.write_text("", encoding="utf-8")

        assert Config.from_file(str(config_path)).to_dict() == Config().to_dict()

    def test_load_config_from_env(self, monkeypatch):
        """测试从环境变量加载配置"""
        monkeypatch.setenv("SPHINXSE_HOST", "search02")
        monkeypatch.setenv("SPHINXSE_PORT", "9306")
        monkeypatch.setenv("SPHINXSE_INDEX", "products")
        monkeypatch.setenv("SPHINXSE_MAX_MATCHES", "2000")
        monkeypatch.setenv("SPHINXSE_QUORUM", "0.5")

        config = load_config_from_env()

        assert config.server.host == "search02"
        assert config.server.port == 9306
        assert config.server.index == "products"
        assert config.builder.max_matches == 2000
        assert config.builder.quorum == 0.5
