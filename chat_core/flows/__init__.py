"""响应编排流程：状态定义、LangGraph 图与编排器入口。"""

from chat_core.flows.orchestrator import ResponseOrchestrator
from chat_core.flows.runner import build_orchestrator
from chat_core.flows.state import OrchestratorState

__all__ = ["OrchestratorState", "ResponseOrchestrator", "build_orchestrator"]
