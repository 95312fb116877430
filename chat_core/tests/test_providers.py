import pytest

from chat_core.credentials import CredentialGate
from chat_core.flows import build_orchestrator
from chat_core.providers import create_provider
from chat_core.providers.mistral_client import MistralClient
from chat_core.providers.openassistant_client import OpenAssistantClient


class DummySettings:
    primary_provider = "mistral"
    fallback_provider = "openassistant"
    mistral_api_key = "m"
    mistral_base_url = "https://api.mistral.ai/v1"
    openassistant_api_key = None
    openassistant_base_url = "https://api-inference.huggingface.co/models"
    http_timeout = 1.0
    reference_timezone = "Asia/Bangkok"
    validate_credentials = False

    def credentials(self):
        return {"mistral": self.mistral_api_key} if self.mistral_api_key else {}


def test_create_provider_default():
    provider = create_provider(None, CredentialGate({}), DummySettings())
    assert isinstance(provider, MistralClient)


def test_create_provider_explicit_is_case_insensitive():
    provider = create_provider("OpenAssistant", CredentialGate({}), DummySettings())
    assert isinstance(provider, OpenAssistantClient)
    assert provider.name == "openassistant"


def test_create_provider_unknown():
    with pytest.raises(KeyError):
        create_provider("glm", CredentialGate({}), DummySettings())


def test_build_orchestrator_wires_primary_and_fallback():
    orch = build_orchestrator(cfg=DummySettings())
    assert isinstance(orch.primary, MistralClient)
    assert isinstance(orch.fallback, OpenAssistantClient)
    assert orch.validate_credentials is False


@pytest.mark.asyncio
async def test_build_orchestrator_reads_keys_from_settings():
    cfg = DummySettings()
    orch = build_orchestrator(cfg=cfg)
    assert await orch.gate.resolve("mistral") == "m"
    assert await orch.gate.resolve("openassistant") is None

    # 每次查询都重新读取配置
    cfg.mistral_api_key = "rotated"
    assert await orch.gate.resolve("mistral") == "rotated"


@pytest.mark.parametrize("fallback", ["", "  ", "mistral"])
def test_build_orchestrator_without_fallback(fallback):
    cfg = DummySettings()
    cfg.fallback_provider = fallback
    orch = build_orchestrator(cfg=cfg)
    assert orch.fallback is None
