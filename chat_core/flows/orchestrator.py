"""响应编排器：整个核心对外的唯一入口。

generate(history) 的职责：
1. 校验输入非空；
2. 检测语言 -> 检查主 Provider 凭据 -> 调用主 Provider -> 失败则调用备用 Provider；
3. 对最后一次成功的原始文本做一次清洗 + 渲染；
4. 把任何失败折叠成带本地化提示的 Failed，不让异常逃逸到调用方。

状态机本身由 flows.graph 中的 LangGraph 图实现。
"""

from typing import Any, Iterable, Mapping, Optional, Union
from uuid import uuid4

from chat_core.config.settings import settings as default_settings
from chat_core.credentials import CredentialGate
from chat_core.domain.messages import localize
from chat_core.domain.models import (
    ConversationTurn,
    Failed,
    FailureKind,
    Language,
    OrchestratorResult,
)
from chat_core.flows.graph import build_graph
from chat_core.flows.state import GenerationState, OrchestratorState
from chat_core.infrastructure.logging.logger import logger
from chat_core.language import LanguageDetector
from chat_core.providers.base import ProviderAdapter
from chat_core.rendering import ContentSanitizer


class ResponseOrchestrator:
    def __init__(
        self,
        gate: CredentialGate,
        primary: ProviderAdapter,
        fallback: Optional[ProviderAdapter] = None,
        detector: Optional[LanguageDetector] = None,
        sanitizer: Optional[ContentSanitizer] = None,
        validate_credentials: Optional[bool] = None,
    ):
        self.gate = gate
        self.primary = primary
        self.fallback = fallback
        self.detector = detector or LanguageDetector()
        self.sanitizer = sanitizer or ContentSanitizer()
        if validate_credentials is None:
            validate_credentials = default_settings.validate_credentials
        self.validate_credentials = validate_credentials

        for adapter in (primary, fallback):
            probe = getattr(adapter, "probe", None)
            if adapter is not None and probe is not None:
                gate.register_probe(adapter.name, probe)

        self._graph = build_graph(self)

    async def generate(
        self, history: Iterable[Union[ConversationTurn, Mapping[str, Any]]]
    ) -> OrchestratorResult:
        """执行一次完整的生成流程，返回 Rendered 或 Failed。"""

        trace_id = f"tr-{uuid4().hex}"
        trace = [OrchestratorState.IDLE.value]
        turns = []
        # 图每走完一步的完整状态；出现意外异常时用它保留已经过的状态
        last: GenerationState = {"trace": trace}
        try:
            turns = [ConversationTurn.coerce(item) for item in (history or [])]
            if not turns:
                logger.info("orchestrator.empty_input", extra={"extra": {"trace_id": trace_id}})
                return self._failed(FailureKind.EMPTY_INPUT, self.detector.base, trace)

            state: GenerationState = {
                "trace_id": trace_id,
                "history": turns,
                "trace": trace,
                "raw_text": None,
                "provider": None,
                "primary_failure": None,
                "failure": None,
                "terminal_kind": None,
                "result": None,
            }
            async for snapshot in self._graph.astream(state, stream_mode="values"):
                last = snapshot
            result = last["result"]
        except Exception as exc:
            logger.exception("orchestrator.unexpected", extra={"extra": {"trace_id": trace_id}})
            language = last.get("language") or self.detector.detect_history(turns)
            return self._failed(
                FailureKind.UNEXPECTED,
                language,
                last.get("trace", trace),
                detail=str(exc) or type(exc).__name__,
            )

        logger.info(
            "orchestrator.finished",
            extra={
                "extra": {
                    "trace_id": trace_id,
                    "ok": result.ok,
                    "trace": result.trace,
                    "kind": None if result.ok else result.kind.value,
                }
            },
        )
        return result

    @staticmethod
    def _failed(kind: FailureKind, language: Language, trace, detail: Optional[str] = None) -> Failed:
        return Failed(
            kind=kind,
            message=localize(kind, language, detail),
            language=language,
            trace=[*trace, OrchestratorState.FAILED.value],
        )
