"""Host-facing function facade."""

from chat_core.api.service import generate_reply, get_default_orchestrator, get_settings_guard

__all__ = ["generate_reply", "get_default_orchestrator", "get_settings_guard"]
