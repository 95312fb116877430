"""Chat Core 顶层包。

该包提供聊天客户端的响应编排核心：语言检测、凭据校验、
多 Provider 调用与回退、模型输出清洗与安全渲染。
"""

from chat_core.domain.models import ConversationTurn, Failed, FailureKind, Language, Rendered
from chat_core.flows import ResponseOrchestrator, build_orchestrator

__all__ = [
    "ConversationTurn",
    "Failed",
    "FailureKind",
    "Language",
    "Rendered",
    "ResponseOrchestrator",
    "build_orchestrator",
]
