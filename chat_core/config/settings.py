"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。
优先级：构造参数 > 环境变量 > .env > config.yaml。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """读取 CHAT_CORE_CONFIG_FILE 指定的 YAML，未指定时读取工作目录下的 config.yaml。"""
    path = Path(os.getenv("CHAT_CORE_CONFIG_FILE") or "config.yaml").expanduser()
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"Failed to read config file {path}: {exc}")
        return {}
    if not isinstance(data, dict):
        warnings.warn(f"Config file {path} is not a mapping, ignored")
        return {}
    return data


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Provider 选择 ----
    primary_provider: str = Field(
        default="mistral",
        description="主 Provider 名称，例如 mistral",
    )
    fallback_provider: str = Field(
        default="openassistant",
        description="备用 Provider 名称，留空表示不启用备用",
    )

    # Mistral
    mistral_api_key: Optional[str] = Field(default=None, description="Mistral API 密钥")
    mistral_base_url: str = Field(
        default="https://api.mistral.ai/v1",
        description="Mistral API 基础URL",
    )
    # OpenAssistant（Hugging Face Inference API）
    openassistant_api_key: Optional[str] = Field(default=None, description="Hugging Face API 密钥")
    openassistant_base_url: str = Field(
        default="https://api-inference.huggingface.co/models",
        description="Hugging Face Inference API 基础URL",
    )

    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")
    reference_timezone: str = Field(
        default="Asia/Bangkok",
        description="系统提示词中当前时间使用的参考时区",
    )
    validate_credentials: bool = Field(
        default=False,
        description="每次生成前是否先探测主 Provider 的密钥有效性（结果会被缓存）",
    )
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("mistral_api_key", "openassistant_api_key")
    @classmethod
    def blank_key_is_missing(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

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
            _load_config_from_yaml,
            file_secret_settings,
        )

    def credentials(self) -> Dict[str, str]:
        """把配置中的密钥整理成 provider -> key 的映射（缺失的不出现）。"""

        keys = {
            "mistral": self.mistral_api_key,
            "openassistant": self.openassistant_api_key,
        }
        return {name: key for name, key in keys.items() if key}


settings = Settings()
