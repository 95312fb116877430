"""Mistral Provider 适配器。

接口风格与 OpenAI 相同，使用 chat/completions 端点：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

本实现只依赖公共字段：model/messages/temperature/max_tokens/top_p 以及重复惩罚参数。
"""

from typing import Any, Dict, List, Optional

from chat_core.domain.models import ConversationTurn
from chat_core.providers.base import HttpProviderAdapter
from chat_core.providers.registry import MISTRAL_CONFIG


class MistralClient(HttpProviderAdapter):
    """Mistral 客户端实现，默认作为主 Provider。"""

    name = "mistral"
    config = MISTRAL_CONFIG

    def _endpoint(self, model: str) -> str:
        return f"{self._base_url()}/chat/completions"

    def _build_payload(self, turns: List[ConversationTurn]) -> Dict[str, Any]:
        model_cfg = self.config.chat
        return {
            "model": model_cfg.provider_model,
            "messages": [{"role": t.role, "content": t.content} for t in turns],
            "temperature": model_cfg.temperature,
            "max_tokens": model_cfg.max_tokens,
            "top_p": model_cfg.top_p,
            **model_cfg.repetition,
        }

    def _extract_text(self, data: Any) -> Optional[str]:
        if not isinstance(data, dict):
            return None
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return None
        message = choices[0].get("message")
        if not isinstance(message, dict):
            return None
        return message.get("content")

    def _probe_payload(self) -> Dict[str, Any]:
        return {
            "model": self.config.probe.provider_model,
            "messages": [{"role": "user", "content": "Test"}],
            "max_tokens": self.config.probe.max_tokens,
        }
