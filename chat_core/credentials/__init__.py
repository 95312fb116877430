"""凭据解析、校验与缺失提示。

- CredentialGate: 按 provider 查找密钥，single-flight 地执行有效性探测。
- SettingsPromptGuard: 缺失/无效密钥时通知宿主应用弹出设置界面（同一时间只弹一次）。
"""

from chat_core.credentials.gate import CredentialGate, CredentialLookup
from chat_core.credentials.guard import SettingsPromptEvent, SettingsPromptGuard

__all__ = ["CredentialGate", "CredentialLookup", "SettingsPromptEvent", "SettingsPromptGuard"]
