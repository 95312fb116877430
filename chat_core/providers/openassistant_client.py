"""OpenAssistant Provider 适配器（Hugging Face Inference API）。

与 chat/completions 不同，这里是纯文本生成接口：
- URL: {base_url}/{model}
- 请求体: {"inputs": <prompt>, "parameters": {...}}
- 响应体: [{"generated_text": "..."}]，出错时为 {"error": "..."}

对话需要按 OpenAssistant 的特殊标记拼成单个 prompt：
<|system|>...<|endoftext|><|prompter|>...<|endoftext|><|assistant|>
"""

from typing import Any, Dict, List, Optional

from chat_core.domain.models import ConversationTurn
from chat_core.providers.base import HttpProviderAdapter
from chat_core.providers.registry import OPENASSISTANT_CONFIG


ROLE_TOKENS = {
    "system": "<|system|>",
    "user": "<|prompter|>",
    "assistant": "<|assistant|>",
}
END_TOKEN = "<|endoftext|>"

# 模型冷启动时 Inference API 返回 503 + 这段文字
MODEL_LOADING_MARKER = "currently loading"


def build_prompt(turns: List[ConversationTurn]) -> str:
    parts = [f"{ROLE_TOKENS[t.role]}{t.content}{END_TOKEN}" for t in turns]
    parts.append(ROLE_TOKENS["assistant"])
    return "".join(parts)


class OpenAssistantClient(HttpProviderAdapter):
    """OpenAssistant 客户端实现，默认作为备用 Provider。"""

    name = "openassistant"
    config = OPENASSISTANT_CONFIG

    def _endpoint(self, model: str) -> str:
        return f"{self._base_url()}/{model}"

    def _build_payload(self, turns: List[ConversationTurn]) -> Dict[str, Any]:
        model_cfg = self.config.chat
        return {
            "inputs": build_prompt(turns),
            "parameters": {
                "temperature": model_cfg.temperature,
                "top_p": model_cfg.top_p,
                "max_new_tokens": model_cfg.max_tokens,
                "return_full_text": False,
                **model_cfg.repetition,
            },
        }

    def _extract_text(self, data: Any) -> Optional[str]:
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict):
            return None
        text = data.get("generated_text")
        if isinstance(text, str):
            # 部分模型会把结束标记原样带回
            text = text.split(END_TOKEN, 1)[0]
        return text

    def _probe_payload(self) -> Dict[str, Any]:
        return {
            "inputs": "Test",
            "parameters": {"max_new_tokens": self.config.probe.max_tokens, "return_full_text": False},
        }

    def _probe_accepts(self, resp) -> bool:
        # 503 "Model is currently loading" 说明密钥已通过鉴权，只是模型还在预热
        if resp.status_code == 503:
            data = self._json_body(resp)
            error = self._error_message(data) or ""
            return MODEL_LOADING_MARKER in error.lower()
        return resp.status_code < 400
