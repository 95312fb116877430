"""Provider 抽象接口。

编排器不直接依赖具体厂商的 HTTP 细节，而是依赖此协议：

- 每个厂商实现一个 ProviderAdapter（如 MistralClient）。
- 负责：把对话历史 + 系统指令转成具体 API 请求，并把响应 JSON 解析为 ProviderResult。
- complete() 永不抛出业务异常：所有失败都折叠成 ProviderFailure。

这样可以在不改编排器代码的前提下接入更多厂商。
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx

from chat_core.config.settings import settings as default_settings
from chat_core.credentials import CredentialGate
from chat_core.domain.exceptions import (
    BusinessError,
    InvalidCredentialError,
    MalformedResponseError,
    MissingCredentialError,
    NetworkError,
    ProviderRejectedError,
)
from chat_core.domain.models import (
    ConversationTurn,
    Language,
    ProviderFailure,
    ProviderResult,
    ProviderSuccess,
)
from chat_core.infrastructure.logging.logger import logger
from chat_core.prompts import build_system_prompt
from chat_core.providers.registry import ProviderConfig


class ProviderAdapter(Protocol):
    """LLM Provider 适配器协议。

    实现者需要提供：
    - name: Provider 名称，同时作为凭据查找的 key。
    - complete(history, language): 执行一次非流式调用，返回 ProviderResult。
    - probe(key): 用最小成本请求判断密钥是否被直接拒绝；
      True 表示接受，False 表示拒绝，None 表示网络原因无法判断。
    """

    name: str

    async def complete(self, history: Sequence[ConversationTurn], language: Language) -> ProviderResult:
        ...

    async def probe(self, key: str) -> Optional[bool]:
        ...


class HttpProviderAdapter:
    """基于 httpx.AsyncClient 的适配器公共实现。

    子类只需实现：_endpoint / _build_payload / _extract_text / _probe_payload，
    以及按需覆盖 _error_message / _probe_accepts。
    """

    name = "base"
    config: ProviderConfig

    def __init__(self, gate: CredentialGate, cfg=None, clock=None):
        self._gate = gate
        self._settings = cfg or default_settings
        self._clock = clock

    # ---- 对外接口 ----

    async def complete(self, history: Sequence[ConversationTurn], language: Language) -> ProviderResult:
        try:
            text = await self._complete(history, language)
        except BusinessError as e:
            logger.warning(
                "provider.failed",
                extra={"extra": {"provider": self.name, "code": e.code, "kind": e.kind.value}},
            )
            return ProviderFailure(
                provider=self.name,
                kind=e.kind,
                message=e.message,
                http_status=e.extra.get("status"),
            )
        return ProviderSuccess(provider=self.name, text=text)

    async def probe(self, key: str) -> Optional[bool]:
        """发送一次最小请求；密钥未被直接拒绝即视为有效。不重试。

        网络错误时返回 None：这次探测无法说明密钥是否有效。
        """

        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(
                    self._endpoint(self.config.probe.provider_model),
                    json=self._probe_payload(),
                    headers=self._headers(key),
                )
        except httpx.RequestError as e:
            logger.warning("provider.probe_network_error", extra={"extra": {"provider": self.name, "error": str(e)}})
            return None
        accepted = self._probe_accepts(resp)
        logger.info(
            "provider.probe",
            extra={"extra": {"provider": self.name, "status": resp.status_code, "accepted": accepted}},
        )
        return accepted

    # ---- 主流程 ----

    async def _complete(self, history: Sequence[ConversationTurn], language: Language) -> str:
        key = await self._gate.resolve(self.name)
        if not key:
            # 缺少密钥时不发起任何网络请求
            raise MissingCredentialError(code="MISSING_API_KEY", message=f"{self.name} API key not set")

        turns = self._with_system_prompt(history, language)
        payload = self._build_payload(turns)
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(
                    self._endpoint(self.config.chat.provider_model),
                    json=payload,
                    headers=self._headers(key),
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)

        data = self._json_body(resp)
        if resp.status_code in (401, 403):
            raise InvalidCredentialError(
                code="INVALID_API_KEY",
                message=self._error_message(data) or f"{self.name} rejected the API key",
                status=resp.status_code,
            )
        if resp.status_code >= 400:
            raise ProviderRejectedError(
                code="API_ERROR",
                message=self._error_message(data) or f"{self.name} API error: HTTP {resp.status_code}",
                status=resp.status_code,
            )
        if data is None:
            raise MalformedResponseError(code="MALFORMED_RESPONSE", message=f"Invalid response from {self.name}")
        error = self._error_message(data)
        if error:
            raise ProviderRejectedError(code="API_ERROR", message=error, status=resp.status_code)

        try:
            text = self._extract_text(data)
        except (LookupError, AttributeError, TypeError, ValueError) as e:
            # 结构与预期不符的 2xx 响应一律按 MALFORMED_RESPONSE 处理
            logger.warning("provider.extract_failed", extra={"extra": {"provider": self.name, "error": repr(e)}})
            text = None
        if not isinstance(text, str) or not text.strip():
            raise MalformedResponseError(code="MALFORMED_RESPONSE", message=f"Invalid response from {self.name}")
        return text

    def _with_system_prompt(self, history: Sequence[ConversationTurn], language: Language) -> List[ConversationTurn]:
        now = self._clock() if self._clock else None
        system = build_system_prompt(language, now=now, timezone=self._settings.reference_timezone)
        return [ConversationTurn(role="system", content=system), *history]

    # ---- 辅助方法 ----

    def _base_url(self) -> str:
        return getattr(self._settings, f"{self.name}_base_url", None) or self.config.base_url

    def _headers(self, key: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _json_body(resp) -> Optional[Any]:
        try:
            return resp.json()
        except ValueError:
            return None

    @staticmethod
    def _error_message(data: Any) -> Optional[str]:
        """从错误响应中提取可读信息，兼容 {"error": "..."} 与 {"error": {"message": "..."}}。"""

        if not isinstance(data, dict):
            return None
        error = data.get("error")
        if isinstance(error, dict):
            return error.get("message") or None
        if isinstance(error, str) and error:
            return error
        if data.get("object") == "error" and data.get("message"):
            return str(data["message"])
        return None

    def _probe_accepts(self, resp) -> bool:
        return resp.status_code < 400

    def _endpoint(self, model: str) -> str:
        raise NotImplementedError

    def _build_payload(self, turns: List[ConversationTurn]) -> Dict[str, Any]:
        raise NotImplementedError

    def _extract_text(self, data: Any) -> Optional[str]:
        raise NotImplementedError

    def _probe_payload(self) -> Dict[str, Any]:
        raise NotImplementedError
