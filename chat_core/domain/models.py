"""统一的对话与结果数据模型。

本模块定义了编排核心在各组件之间共享的标准数据结构：

- ConversationTurn: 一条对话消息（system/user/assistant）。
- Language: 检测得到的工作语言。
- ProviderSuccess / ProviderFailure: 单个 Provider 的调用结果，只在编排器内部流转。
- Rendered / Failed: 编排器返回给调用方的唯一结果类型。

所有 Provider 适配器都只依赖这些模型，并负责在各自的 API JSON 与这些模型之间做转换。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional, Union


# 对话角色（与 OpenAI / Mistral 等厂商的 role 字段对应）
Role = Literal["system", "user", "assistant"]

ROLES = ("system", "user", "assistant")


class Language(str, Enum):
    """对话工作语言。EN 为基础语言，ZH 为 CJK 语言。"""

    EN = "en"
    ZH = "zh"

    @property
    def locale(self) -> str:
        return "zh-CN" if self is Language.ZH else "en-US"


class FailureKind(str, Enum):
    """失败类型，调用方可以据此分支处理。"""

    EMPTY_INPUT = "empty_input"
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    NETWORK_FAILURE = "network_failure"
    PROVIDER_REJECTED = "provider_rejected"
    MALFORMED_RESPONSE = "malformed_response"
    ALL_PROVIDERS_EXHAUSTED = "all_providers_exhausted"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class ConversationTurn:
    """一条对话消息。

    - role: 消息角色，如 system/user/assistant。
    - content: 纯文本内容。
    """

    role: Role
    content: str

    @classmethod
    def coerce(cls, item: Union["ConversationTurn", Mapping[str, Any]]) -> "ConversationTurn":
        """把宿主应用传入的 dict 转成 ConversationTurn。"""

        if isinstance(item, ConversationTurn):
            return item
        role = str(item.get("role") or "user")
        if role not in ROLES:
            raise ValueError(f"Unsupported role: {role!r}")
        return cls(role=role, content=str(item.get("content") or ""))  # type: ignore[arg-type]


# ---- Provider 结果（不跨越编排器边界） ----


@dataclass
class ProviderSuccess:
    provider: str
    text: str

    ok: bool = field(default=True, init=False)


@dataclass
class ProviderFailure:
    provider: str
    kind: FailureKind
    message: str
    http_status: Optional[int] = None

    ok: bool = field(default=False, init=False)


ProviderResult = Union[ProviderSuccess, ProviderFailure]


# ---- 编排器结果 ----


@dataclass
class Rendered:
    """成功结果：已清洗并渲染为白名单 HTML 的回答。

    - trace: 本次调用经过的状态序列，便于日志与测试观察。
    """

    html: str
    language: Language
    provider: str
    trace: List[str] = field(default_factory=list)

    ok: bool = field(default=True, init=False)


@dataclass
class Failed:
    """失败结果：kind 为机器可读类型，message 已按检测语言本地化。

    cause 记录最后一个被尝试的 Provider 的失败类型（ALL_PROVIDERS_EXHAUSTED 时有值）。
    """

    kind: FailureKind
    message: str
    language: Language
    cause: Optional[FailureKind] = None
    trace: List[str] = field(default_factory=list)

    ok: bool = field(default=False, init=False)


OrchestratorResult = Union[Rendered, Failed]


# ---- 凭据校验结果 ----


@dataclass(frozen=True)
class CredentialsValid:
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class CredentialsInvalid:
    provider_id: str
    kind: FailureKind

    ok: bool = field(default=False, init=False)


ValidationOutcome = Union[CredentialsValid, CredentialsInvalid]


def to_payload(result: OrchestratorResult) -> Dict[str, Any]:
    """把编排结果转换为可 JSON 序列化的 dict，供 API 层使用。"""

    if isinstance(result, Rendered):
        return {
            "ok": True,
            "html": result.html,
            "provider": result.provider,
            "language": result.language.value,
        }
    return {
        "ok": False,
        "kind": result.kind.value,
        "error": result.message,
        "language": result.language.value,
    }
