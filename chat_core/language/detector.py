"""根据最新一条用户消息判断对话的工作语言。

判定顺序：
1. 显式语言指令优先（"reply in english"、"请用中文回答" 等），直接返回对应语言。
2. 否则统计 CJK 字符在「非空白、非标点」字符中的占比，超过 0.30 判为中文。
3. 分母为 0（全是空白/标点）时回退到基础语言。

detect() 永不抛异常，总是返回一个具体的 Language。
"""

import re
import unicodedata
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple

from chat_core.domain.models import ConversationTurn, Language


CJK_RATIO_THRESHOLD = 0.30

# CJK 统一表意文字及其扩展区、兼容区
CJK_RANGES: Sequence[Tuple[int, int]] = (
    (0x4E00, 0x9FFF),
    (0x3400, 0x4DBF),
    (0x20000, 0x2A6DF),
    (0x2A700, 0x2B73F),
    (0x2B740, 0x2B81F),
    (0x2B820, 0x2CEAF),
    (0xF900, 0xFAFF),
    (0x3300, 0x33FF),
    (0xFE30, 0xFE4F),
    (0x2F800, 0x2FA1F),
)

_VERBS = r"(?:reply|respond|answer|speak|write|talk)"
_NATIVE_VERBS = r"(?:用|说|回复|回答)"

_LANGUAGE_NAMES = {
    Language.EN: (r"english", r"英文", r"英语"),
    Language.ZH: (r"chinese", r"mandarin", r"中文", r"汉语", r"普通话"),
}


def _directive_pattern(names: Iterable[str], native: bool = False) -> Pattern[str]:
    names = tuple(names)
    alias = "|".join(names)
    pattern = rf"{_VERBS}.*(?:in|using)\s+(?:{alias})"
    if native:
        local = "|".join(n for n in names if not n.isascii())
        pattern += rf"|{_NATIVE_VERBS}.*(?:{local})"
    return re.compile(pattern, re.IGNORECASE)


# 基础语言排在前面：两种指令同时出现时以基础语言为准。
# 「用…英文」这类母语句式不算英文指令，"请用中文回答，不要用英文" 仍是中文。
DIRECTIVES: List[Tuple[Language, Pattern[str]]] = [
    (Language.EN, _directive_pattern(_LANGUAGE_NAMES[Language.EN])),
    (Language.ZH, _directive_pattern(_LANGUAGE_NAMES[Language.ZH], native=True)),
]


def is_cjk(ch: str) -> bool:
    cp = ord(ch)
    return any(lo <= cp <= hi for lo, hi in CJK_RANGES)


def _counts(text: str) -> Tuple[int, int]:
    """返回 (CJK 字符数, 非空白非标点字符数)。"""

    cjk = 0
    total = 0
    for ch in text:
        if ch.isspace() or unicodedata.category(ch).startswith("P"):
            continue
        total += 1
        if is_cjk(ch):
            cjk += 1
    return cjk, total


class LanguageDetector:
    """语言检测器，无外部依赖。"""

    def __init__(self, base: Language = Language.EN, threshold: float = CJK_RATIO_THRESHOLD):
        self.base = base
        self.threshold = threshold

    def detect(self, text: Optional[str]) -> Language:
        if not isinstance(text, str) or not text:
            return self.base

        for lang, pattern in DIRECTIVES:
            if pattern.search(text):
                return lang

        cjk, total = _counts(text)
        if total == 0:
            return self.base
        return Language.ZH if cjk / total > self.threshold else self.base

    def detect_history(self, turns: Sequence[ConversationTurn]) -> Language:
        """以最近一条 user 消息为准；没有 user 消息时取最后一条。"""

        for turn in reversed(turns):
            if turn.role == "user":
                return self.detect(turn.content)
        return self.detect(turns[-1].content) if turns else self.base


def detect_language(text: Optional[str]) -> Language:
    return LanguageDetector().detect(text)
