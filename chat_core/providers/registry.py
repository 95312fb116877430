"""Provider 与模型配置。

采样参数属于适配器级固定配置，调用方不能按请求调整：
每个 Provider 有一个用于正式回答的 chat 模型和一个用于密钥探测的最小成本模型。
"""

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class ModelConfig:
    """单个模型的配置。"""

    provider_model: str
    max_tokens: int
    temperature: float = 0.7
    top_p: float = 0.95
    # 重复控制参数，按各厂商字段名原样放入请求体
    repetition: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    chat: ModelConfig
    probe: ModelConfig


MISTRAL_CONFIG = ProviderConfig(
    name="mistral",
    base_url="https://api.mistral.ai/v1",
    chat=ModelConfig(
        provider_model="mistral-large-latest",
        max_tokens=1000,
        repetition={"presence_penalty": 0.5, "frequency_penalty": 0.5},
    ),
    probe=ModelConfig(provider_model="mistral-tiny", max_tokens=1),
)

# Hugging Face 上托管的 OpenAssistant 模型，作为备用 Provider
OPENASSISTANT_CONFIG = ProviderConfig(
    name="openassistant",
    base_url="https://api-inference.huggingface.co/models",
    chat=ModelConfig(
        provider_model="OpenAssistant/oasst-sft-4-pythia-12b-epoch-3.5",
        max_tokens=1000,
        repetition={"repetition_penalty": 1.2},
    ),
    probe=ModelConfig(
        provider_model="OpenAssistant/oasst-sft-4-pythia-12b-epoch-3.5",
        max_tokens=1,
    ),
)

