"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("CHAT_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
        Path(__file__).resolve().parents[1] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class ChatSettings(BaseSettings):
    """会话引擎配置（使用 Pydantic）。"""

    # ---- 接口相关配置 ----
    default_endpoint: str = Field(
        default="openai",
        description="默认使用的补全接口名称，由 registry 映射为 base_url",
    )
    chat_api_key: Optional[str] = Field(default=None, description="Bearer 凭证，仅保存在内存中")
    chat_base_url: Optional[str] = Field(
        default=None,
        description="补全接口基础URL，为空时使用 registry 中的默认值",
    )
    default_model: str = Field(default="gpt-3.5-turbo", description="请求使用的模型名")
    default_temperature: float = Field(default=0.0, ge=0.0, le=2.0, description="采样温度")
    request_timeout: int = Field(default=60, ge=30, le=120, description="HTTP 超时时间（秒）")
    user_role: str = Field(default="user", description="本地用户消息使用的 role")

    # ---- 存储与日志 ----
    storage_root: str = Field(default=".storage", description="存储根目录")
    settings_file: str = Field(default="chat_settings.json", description="会话状态文件名")
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("chat_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("user_role")
    @classmethod
    def validate_user_role(cls, v: str) -> str:
        return v.strip() or "user"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = ChatSettings()

# 类型别名，让外部代码可以使用 Settings 类型
Settings = ChatSettings
