"""LangGraph construction and node implementations for the orchestrator.

图结构（单次线性尝试，不重试，主备严格串行）::

    detect -> validate -> call_primary -> sanitize -> END
                 |             |
                 |             +-> call_fallback -> sanitize -> END
                 |                      |
                 +-> fail <-------------+
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from chat_core.domain.messages import localize
from chat_core.domain.models import (
    CredentialsInvalid,
    Failed,
    FailureKind,
    ProviderFailure,
    Rendered,
)
from chat_core.flows.state import GenerationState, OrchestratorState
from chat_core.infrastructure.logging.logger import logger

if TYPE_CHECKING:
    from chat_core.flows.orchestrator import ResponseOrchestrator


def _enter(state: GenerationState, step: OrchestratorState) -> Dict[str, Any]:
    logger.info(
        f"orchestrator.{step.value}",
        extra={"extra": {"trace_id": state.get("trace_id")}},
    )
    return {"trace": [*state.get("trace", []), step.value]}


async def detect_node(state: GenerationState, orch: "ResponseOrchestrator") -> Dict[str, Any]:
    update = _enter(state, OrchestratorState.DETECTING)
    update["language"] = orch.detector.detect_history(state["history"])
    return update


async def validate_node(state: GenerationState, orch: "ResponseOrchestrator") -> Dict[str, Any]:
    update = _enter(state, OrchestratorState.VALIDATING_CREDENTIALS)
    primary = orch.primary.name

    # 只检查主 Provider；备用 Provider 的凭据在真正调用时才检查
    if not await orch.gate.resolve(primary):
        orch.gate.notify(CredentialsInvalid(provider_id=primary, kind=FailureKind.MISSING_CREDENTIAL))
        update["terminal_kind"] = FailureKind.MISSING_CREDENTIAL
        update["failure"] = ProviderFailure(
            provider=primary,
            kind=FailureKind.MISSING_CREDENTIAL,
            message=f"{primary} API key not set",
        )
        return update

    if orch.validate_credentials:
        outcome = await orch.gate.ensure_valid([primary])
        if isinstance(outcome, CredentialsInvalid):
            update["terminal_kind"] = outcome.kind
            update["failure"] = ProviderFailure(
                provider=outcome.provider_id,
                kind=outcome.kind,
                message=f"{outcome.provider_id} credential check failed",
            )
    return update


async def call_primary_node(state: GenerationState, orch: "ResponseOrchestrator") -> Dict[str, Any]:
    update = _enter(state, OrchestratorState.CALLING_PRIMARY)
    result = await orch.primary.complete(state["history"], state["language"])
    if result.ok:
        update.update(raw_text=result.text, provider=result.provider)
        return update

    logger.warning(
        "orchestrator.primary_failed",
        extra={
            "extra": {
                "trace_id": state.get("trace_id"),
                "provider": result.provider,
                "kind": result.kind.value,
                "error": result.message,
            }
        },
    )
    update["primary_failure"] = result
    return update


async def call_fallback_node(state: GenerationState, orch: "ResponseOrchestrator") -> Dict[str, Any]:
    update = _enter(state, OrchestratorState.CALLING_FALLBACK)
    if orch.fallback is None:
        update["terminal_kind"] = FailureKind.ALL_PROVIDERS_EXHAUSTED
        update["failure"] = state["primary_failure"]
        return update

    result = await orch.fallback.complete(state["history"], state["language"])
    if result.ok:
        update.update(raw_text=result.text, provider=result.provider)
        return update

    if result.kind is FailureKind.MISSING_CREDENTIAL:
        orch.gate.notify(CredentialsInvalid(provider_id=result.provider, kind=result.kind))
    logger.warning(
        "orchestrator.fallback_failed",
        extra={
            "extra": {
                "trace_id": state.get("trace_id"),
                "provider": result.provider,
                "kind": result.kind.value,
                "error": result.message,
            }
        },
    )
    update["terminal_kind"] = FailureKind.ALL_PROVIDERS_EXHAUSTED
    update["failure"] = result
    return update


async def sanitize_node(state: GenerationState, orch: "ResponseOrchestrator") -> Dict[str, Any]:
    update = _enter(state, OrchestratorState.SANITIZING)
    html = orch.sanitizer.process(state["raw_text"])
    trace = [*update["trace"], OrchestratorState.DONE.value]
    update["trace"] = trace
    update["result"] = Rendered(
        html=html,
        language=state["language"],
        provider=state["provider"],
        trace=trace,
    )
    return update


async def fail_node(state: GenerationState, orch: "ResponseOrchestrator") -> Dict[str, Any]:
    update = _enter(state, OrchestratorState.FAILED)
    kind = state["terminal_kind"]
    failure = state.get("failure")
    cause = failure.kind if failure and kind is FailureKind.ALL_PROVIDERS_EXHAUSTED else None
    update["result"] = Failed(
        kind=kind,
        message=localize(kind, state["language"], failure.message if failure else None),
        language=state["language"],
        cause=cause,
        trace=update["trace"],
    )
    return update


def after_validate(state: GenerationState) -> str:
    return "fail" if state.get("terminal_kind") else "call_primary"


def after_primary(state: GenerationState) -> str:
    return "sanitize" if state.get("raw_text") is not None else "call_fallback"


def after_fallback(state: GenerationState) -> str:
    return "sanitize" if state.get("raw_text") is not None else "fail"


def build_graph(orch: "ResponseOrchestrator") -> CompiledStateGraph:
    async def detect(s):
        return await detect_node(s, orch)

    async def validate(s):
        return await validate_node(s, orch)

    async def call_primary(s):
        return await call_primary_node(s, orch)

    async def call_fallback(s):
        return await call_fallback_node(s, orch)

    async def sanitize(s):
        return await sanitize_node(s, orch)

    async def fail(s):
        return await fail_node(s, orch)

    graph = StateGraph(GenerationState)
    graph.add_node("detect", detect)
    graph.add_node("validate", validate)
    graph.add_node("call_primary", call_primary)
    graph.add_node("call_fallback", call_fallback)
    graph.add_node("sanitize", sanitize)
    graph.add_node("fail", fail)
    graph.set_entry_point("detect")
    graph.add_edge("detect", "validate")
    graph.add_conditional_edges("validate", after_validate, {"call_primary": "call_primary", "fail": "fail"})
    graph.add_conditional_edges(
        "call_primary", after_primary, {"sanitize": "sanitize", "call_fallback": "call_fallback"}
    )
    graph.add_conditional_edges("call_fallback", after_fallback, {"sanitize": "sanitize", "fail": "fail"})
    graph.add_edge("sanitize", END)
    graph.add_edge("fail", END)
    return graph.compile()
