"""High-level wiring: build a ResponseOrchestrator from settings."""

from __future__ import annotations

from typing import Optional

from chat_core.config.settings import settings
from chat_core.credentials import CredentialGate, CredentialLookup, SettingsPromptGuard
from chat_core.flows.orchestrator import ResponseOrchestrator
from chat_core.providers import create_provider


def build_orchestrator(
    lookup: Optional[CredentialLookup] = None,
    guard: Optional[SettingsPromptGuard] = None,
    cfg=None,
) -> ResponseOrchestrator:
    """Create the primary/fallback adapters named in settings and wire them up.

    Args:
        lookup: 凭据查找；默认每次从配置中读取密钥
        guard: 设置提示守卫，由宿主应用持有并订阅
        cfg: 配置对象（测试时可传入 stub）
    """

    cfg = cfg or settings
    if lookup is None:

        def lookup(provider_id: str) -> Optional[str]:
            return cfg.credentials().get(provider_id)

    gate = CredentialGate(lookup, guard)
    primary = create_provider(cfg.primary_provider, gate, cfg)
    fallback = None
    fallback_name = (cfg.fallback_provider or "").strip()
    if fallback_name and fallback_name.lower() != primary.name:
        fallback = create_provider(fallback_name, gate, cfg)
    return ResponseOrchestrator(
        gate=gate,
        primary=primary,
        fallback=fallback,
        validate_credentials=cfg.validate_credentials,
    )
