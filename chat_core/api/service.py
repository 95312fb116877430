"""对外 API 服务模块。

提供简化的函数接口供宿主应用（Web 服务、CLI 等）调用。
"""

from typing import Any, Dict, Iterable, Mapping, Optional, Union

from chat_core.credentials import SettingsPromptGuard
from chat_core.domain.models import ConversationTurn, to_payload
from chat_core.flows import ResponseOrchestrator, build_orchestrator
from chat_core.infrastructure.logging.logger import logger


_guard: Optional[SettingsPromptGuard] = None
_orchestrator: Optional[ResponseOrchestrator] = None


def get_settings_guard() -> SettingsPromptGuard:
    """宿主应用通过该守卫订阅「需要打开 API 设置」事件。"""
    global _guard
    if _guard is None:
        _guard = SettingsPromptGuard()
    return _guard


def get_default_orchestrator() -> ResponseOrchestrator:
    """获取默认的编排器实例（单例，按配置构建）。"""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = build_orchestrator(guard=get_settings_guard())
    return _orchestrator


async def generate_reply(
    history: Iterable[Union[ConversationTurn, Mapping[str, Any]]],
) -> Dict[str, Any]:
    """生成一次回复。

    Args:
        history: 有序对话历史，元素为 ConversationTurn 或 {"role", "content"} 字典

    Returns:
        成功时 {"ok": True, "html", "provider", "language"}；
        失败时 {"ok": False, "kind", "error", "language"}，error 已按对话语言本地化
    """
    result = await get_default_orchestrator().generate(list(history))
    if not result.ok:
        logger.info("service.generate_failed", extra={"extra": {"kind": result.kind.value}})
    return to_payload(result)
