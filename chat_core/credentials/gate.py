"""凭据闸门。

- resolve(): 每次都向调用方提供的 lookup 查询，不在请求之外缓存密钥本身。
- ensure_valid(): 先检查缺失，再对每个 provider 做一次探测；
  并发调用共享同一个进行中的探测任务（single-flight），结果按密钥指纹缓存
  （只缓存确定的结论：接受或明确拒绝；网络原因无法判断的探测不缓存）。

缺失与被拒绝是两种不同的失败类型，宿主据此提示用户「补充密钥」或「修正密钥」。
"""

import asyncio
import hashlib
import inspect
from typing import Awaitable, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

from chat_core.credentials.guard import REASON_INVALID, REASON_MISSING, SettingsPromptGuard
from chat_core.domain.models import CredentialsInvalid, CredentialsValid, FailureKind, ValidationOutcome
from chat_core.infrastructure.logging.logger import logger


CredentialLookup = Union[
    Mapping[str, str],
    Callable[[str], Optional[str]],
    Callable[[str], Awaitable[Optional[str]]],
]

# 探测结果：True 接受，False 拒绝，None 无法判断（网络错误）
Probe = Callable[[str], Awaitable[Optional[bool]]]

_MemoKey = Tuple[Tuple[str, ...], str]


def _fingerprint(keys: Mapping[str, str]) -> str:
    digest = hashlib.sha256()
    for pid in sorted(keys):
        digest.update(f"{pid}={keys[pid]}\n".encode("utf-8"))
    return digest.hexdigest()


class CredentialGate:
    def __init__(self, lookup: CredentialLookup, guard: Optional[SettingsPromptGuard] = None):
        self._lookup = lookup
        self.guard = guard or SettingsPromptGuard()
        self._probes: Dict[str, Probe] = {}
        self._memo: Dict[_MemoKey, ValidationOutcome] = {}
        self._inflight: Dict[_MemoKey, "asyncio.Task[ValidationOutcome]"] = {}
        self._lock = asyncio.Lock()
        self._last_invalid: Optional[CredentialsInvalid] = None

    def register_probe(self, provider_id: str, probe: Probe) -> None:
        self._probes[provider_id] = probe

    async def resolve(self, provider_id: str) -> Optional[str]:
        if isinstance(self._lookup, Mapping):
            value = self._lookup.get(provider_id)
        else:
            value = self._lookup(provider_id)
            if inspect.isawaitable(value):
                value = await value
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    async def ensure_valid(self, provider_ids: Iterable[str]) -> ValidationOutcome:
        ids = tuple(provider_ids)
        # 设置界面已打开：不再重复探测，直接沿用上一次的结论
        if self.guard.is_open and self._last_invalid is not None:
            return self._last_invalid

        keys: Dict[str, str] = {}
        for pid in ids:
            key = await self.resolve(pid)
            if not key:
                return self.notify(CredentialsInvalid(provider_id=pid, kind=FailureKind.MISSING_CREDENTIAL))
            keys[pid] = key

        memo_key = (ids, _fingerprint(keys))
        async with self._lock:
            cached = self._memo.get(memo_key)
            task = self._inflight.get(memo_key)
            if cached is None and task is None:
                task = asyncio.ensure_future(self._validate(memo_key, keys))
                self._inflight[memo_key] = task
        if cached is not None:
            return self.notify(cached)
        # 某个调用方被取消时，不影响其他等待同一探测的调用方
        outcome = await asyncio.shield(task)
        return self.notify(outcome)

    def notify(self, outcome: ValidationOutcome) -> ValidationOutcome:
        """失败结论通过 guard 发出设置提示，返回原结论。"""

        if isinstance(outcome, CredentialsInvalid):
            self._last_invalid = outcome
            reason = REASON_MISSING if outcome.kind is FailureKind.MISSING_CREDENTIAL else REASON_INVALID
            self.guard.request(reason, outcome.provider_id)
        else:
            self._last_invalid = None
        return outcome

    def reset(self) -> None:
        self._memo.clear()
        self._last_invalid = None

    async def _validate(self, memo_key: _MemoKey, keys: Dict[str, str]) -> ValidationOutcome:
        try:
            ids = [pid for pid in keys if pid in self._probes]
            logger.info("credentials.validate", extra={"extra": {"providers": ids}})
            results = await asyncio.gather(*(self._probes[pid](keys[pid]) for pid in ids))
            outcome: ValidationOutcome = CredentialsValid()
            inconclusive = [pid for pid, accepted in zip(ids, results) if accepted is None]
            for pid, accepted in zip(ids, results):
                if accepted is False:
                    outcome = CredentialsInvalid(provider_id=pid, kind=FailureKind.INVALID_CREDENTIAL)
                    break
            # 无法判断的探测不算拒绝，也不缓存，下次调用重新探测
            if isinstance(outcome, CredentialsInvalid) or not inconclusive:
                self._memo[memo_key] = outcome
            else:
                logger.warning("credentials.validate_inconclusive", extra={"extra": {"providers": inconclusive}})
            return outcome
        finally:
            self._inflight.pop(memo_key, None)
