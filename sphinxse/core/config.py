"""
配置管理模块
"""

import os
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict
from pathlib import Path
import yaml
from dotenv import load_dotenv

load_dotenv()


@dataclass
class BuilderConfig:
    """查询构建默认值"""
    # 结果集上限，offset 必须小于它
    max_matches: int = 1000

    # 字段查询的法定比例及其运算符
    quorum: float = 0.8
    quorum_operator: str = "/"

    # 分组排序子句
    group_sort: str = "@group desc"

    # 地理距离别名
    geo_alias: str = "geodist"


@dataclass
class ServerConfig:
    """searchd 连接目标（仅作为查询字段输出，本包不建立连接）"""
    host: Optional[str] = None
    port: int = 0
    index: Optional[str] = None


class Config:
    """主配置类"""

    def __init__(self,
                 builder: BuilderConfig = None,
                 server: ServerConfig = None):
        """初始化配置"""
        self.builder = builder or BuilderConfig()
        self.server = server or ServerConfig()

    @classmethod
    def from_file(cls, config_path: str) -> "Config":
        """从配置文件加载配置"""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"配置文件不存在: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> "Config":
        """从字典创建配置"""
        builder_config = BuilderConfig(**config_data.get("builder", {}))
        server_config = ServerConfig(**config_data.get("server", {}))

        return cls(builder=builder_config, server=server_config)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "builder": asdict(self.builder),
            "server": asdict(self.server)
        }

    def save_to_file(self, config_path: str):
        """保存配置到文件"""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, allow_unicode=True)


# 默认配置
DEFAULT_CONFIG = Config()

# 环境变量配置
def load_config_from_env() -> Config:
    """从环境变量加载配置"""
    config = Config()

    # 服务器配置
    if os.getenv("SPHINXSE_HOST"):
        config.server.host = os.getenv("SPHINXSE_HOST")
    if os.getenv("SPHINXSE_PORT"):
        config.server.port = int(os.getenv("SPHINXSE_PORT"))
    if os.getenv("SPHINXSE_INDEX"):
        config.server.index = os.getenv("SPHINXSE_INDEX")

    # 构建默认值
    if os.getenv("SPHINXSE_MAX_MATCHES"):
        config.builder.max_matches = int(os.getenv("SPHINXSE_MAX_MATCHES"))
    if os.getenv("SPHINXSE_QUORUM"):
        config.builder.quorum = float(os.getenv("SPHINXSE_QUORUM"))

    return config
