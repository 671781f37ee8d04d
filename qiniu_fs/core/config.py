import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings
from pydantic import field_validator

project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
env_path = os.path.join(project_root, '.env')
load_dotenv(env_path)

class Settings(BaseSettings):
    # 七牛云凭证
    QINIU_ACCESS_KEY: str = ""
    QINIU_SECRET_KEY: str = ""

    # 存储空间与公开访问域名（域名需已绑定到该存储空间）
    QINIU_BUCKET: str = ""
    QINIU_DOMAIN: str = ""
    QINIU_URL_SCHEME: str = "http"

    # 是否允许直接打开远程流（对应 read_stream）
    QINIU_ALLOW_REMOTE_STREAMS: bool = True

    # 列举文件时每页的最大条数，七牛云上限为1000
    QINIU_LIST_LIMIT: int = 1000

    # 日志配置
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    @field_validator("QINIU_DOMAIN", mode="before")
    @classmethod
    def strip_domain(cls, v: Optional[str]) -> str:
        # 允许配置成 "cdn.example.com/" 这样带尾部斜杠的形式
        if not v:
            return ""
        return str(v).strip().rstrip("/")

    @field_validator("LOG_LEVEL")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if not isinstance(logging.getLevelName(v), int):
            raise ValueError(f"未知的日志级别: {v}")
        return v

    @field_validator("QINIU_LIST_LIMIT")
    @classmethod
    def check_list_limit(cls, v: int) -> int:
        if v < 1 or v > 1000:
            raise ValueError("QINIU_LIST_LIMIT 必须在 1 到 1000 之间")
        return v

    class Config:
        case_sensitive = True
        env_file = ".env"
        extra = "ignore"


# 创建设置实例
settings = Settings()
