"""失败提示的本地化文本。

只有编排器会调用 localize()：Provider 层的失败不会直接展示给最终用户。
"""

from typing import Dict, Optional

from chat_core.domain.models import FailureKind, Language


_MESSAGES: Dict[Language, Dict[FailureKind, str]] = {
    Language.EN: {
        FailureKind.EMPTY_INPUT: "No messages provided",
        FailureKind.MISSING_CREDENTIAL: "Please set up your API keys first",
        FailureKind.INVALID_CREDENTIAL: "Your API keys are invalid, please update them in settings",
        FailureKind.NETWORK_FAILURE: "Network error, please check your connection",
        FailureKind.PROVIDER_REJECTED: "The AI service rejected the request",
        FailureKind.MALFORMED_RESPONSE: "Invalid response from the AI service",
        FailureKind.ALL_PROVIDERS_EXHAUSTED: "Error getting AI response",
        FailureKind.UNEXPECTED: "Error getting AI response",
    },
    Language.ZH: {
        FailureKind.EMPTY_INPUT: "没有可发送的消息",
        FailureKind.MISSING_CREDENTIAL: "请先设置 API 密钥",
        FailureKind.INVALID_CREDENTIAL: "API 密钥无效，请在设置中更新",
        FailureKind.NETWORK_FAILURE: "网络错误，请检查网络连接",
        FailureKind.PROVIDER_REJECTED: "AI 服务拒绝了本次请求",
        FailureKind.MALFORMED_RESPONSE: "AI 服务返回了无效的响应",
        FailureKind.ALL_PROVIDERS_EXHAUSTED: "获取AI响应时出错",
        FailureKind.UNEXPECTED: "获取AI响应时出错",
    },
}

# 这些类型的提示会附带底层错误详情，其余只给固定文案
_WITH_DETAIL = {FailureKind.ALL_PROVIDERS_EXHAUSTED, FailureKind.UNEXPECTED}


def localize(kind: FailureKind, language: Language, detail: Optional[str] = None) -> str:
    """返回 kind 在 language 下的用户提示。

    >>> localize(FailureKind.ALL_PROVIDERS_EXHAUSTED, Language.ZH, "timeout")
    '获取AI响应时出错：timeout'
    """

    text = _MESSAGES[language][kind]
    if detail and kind in _WITH_DETAIL:
        sep = "：" if language is Language.ZH else ": "
        return f"{text}{sep}{detail}"
    return text
