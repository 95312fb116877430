"""State definition for the response-orchestration graph."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, TypedDict

from chat_core.domain.models import (
    ConversationTurn,
    FailureKind,
    Language,
    OrchestratorResult,
    ProviderFailure,
)


class OrchestratorState(str, Enum):
    """编排器状态机的各个状态，按出现顺序记录到结果的 trace 中。"""

    IDLE = "idle"
    DETECTING = "detecting"
    VALIDATING_CREDENTIALS = "validating_credentials"
    CALLING_PRIMARY = "calling_primary"
    CALLING_FALLBACK = "calling_fallback"
    SANITIZING = "sanitizing"
    DONE = "done"
    FAILED = "failed"


class GenerationState(TypedDict, total=False):
    """State shared across graph nodes for one generate() call."""

    trace_id: str
    history: List[ConversationTurn]
    language: Language
    trace: List[str]
    raw_text: Optional[str]
    provider: Optional[str]
    primary_failure: Optional[ProviderFailure]
    failure: Optional[ProviderFailure]
    terminal_kind: Optional[FailureKind]
    result: Optional[OrchestratorResult]
