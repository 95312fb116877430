"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口与公共 HTTP 实现 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供各厂商的具体实现 (mistral_client、openassistant_client)。
"""

from typing import Literal, Optional

from chat_core.config.settings import settings
from chat_core.credentials import CredentialGate
from chat_core.providers.base import HttpProviderAdapter, ProviderAdapter
from chat_core.providers.mistral_client import MistralClient
from chat_core.providers.openassistant_client import OpenAssistantClient


ADAPTERS = {
    "mistral": MistralClient,
    "openassistant": OpenAssistantClient,
}


def create_provider(name: Optional[str], gate: CredentialGate, cfg=None) -> ProviderAdapter:
    """根据名称创建 Provider 实例，默认取配置中的主 provider。"""

    cfg = cfg or settings
    provider_name = (name or getattr(cfg, "primary_provider", "mistral")).lower()
    try:
        adapter_cls = ADAPTERS[provider_name]
    except KeyError:
        raise KeyError(f"Unknown provider: {provider_name!r}") from None
    return adapter_cls(gate, cfg)


ProviderName = Literal["mistral", "openassistant"]

__all__ = [
    "ADAPTERS",
    "HttpProviderAdapter",
    "MistralClient",
    "OpenAssistantClient",
    "ProviderAdapter",
    "ProviderName",
    "create_provider",
]
