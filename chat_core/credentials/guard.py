"""设置提示守卫。

宿主应用通过 subscribe() 订阅事件，在收到事件时打开 API 设置界面。
守卫对象由调用方创建并注入编排器，不依赖进程级全局状态。
"""

import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from chat_core.infrastructure.logging.logger import logger


REASON_MISSING = "missing_keys"
REASON_INVALID = "invalid_keys"


@dataclass(frozen=True)
class SettingsPromptEvent:
    reason: str
    provider_id: Optional[str] = None


Listener = Callable[[SettingsPromptEvent], None]


class SettingsPromptGuard:
    """保证同一时间最多只有一个设置提示处于打开状态。"""

    def __init__(self):
        self._listeners: List[Listener] = []
        self._open = False
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._open

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """注册监听器，返回取消订阅的函数。"""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def request(self, reason: str, provider_id: Optional[str] = None) -> bool:
        """请求打开设置提示；已打开时不重复通知，返回是否真正发出了事件。"""

        with self._lock:
            if self._open:
                return False
            self._open = True
        event = SettingsPromptEvent(reason=reason, provider_id=provider_id)
        logger.info("settings_prompt.requested", extra={"extra": {"reason": reason, "provider": provider_id}})
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("settings_prompt.listener_failed", extra={"extra": {"reason": reason}})
        return True

    def close(self) -> None:
        """宿主在用户关闭设置界面后调用。"""

        with self._lock:
            self._open = False
