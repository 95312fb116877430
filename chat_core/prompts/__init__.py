"""系统提示词构造工具。

按语言从 prompts/<lang> 目录读取 system prompt 模板，并填入参考时区下的当前时间，
用于构造 ConversationTurn(role="system")，让回答语言、语气与时间保持一致。
"""

from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from chat_core.domain.models import Language


PROMPTS_DIR = Path(__file__).resolve().parent

DEFAULT_TIMEZONE = "Asia/Bangkok"

# 不依赖进程 locale
_EN_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


@lru_cache(maxsize=None)
def load_template(language: Language) -> str:
    fname = PROMPTS_DIR / language.value / "system.md"
    return fname.read_text(encoding="utf-8").strip()


def format_timestamp(moment: datetime, language: Language) -> str:
    """按语言习惯格式化时间（24 小时制）。

    - zh-CN: 2024年3月5日 14:07
    - en-US: March 5, 2024 at 14:07
    """

    if language is Language.ZH:
        return f"{moment.year}年{moment.month}月{moment.day}日 {moment:%H:%M}"
    return f"{_EN_MONTHS[moment.month - 1]} {moment.day}, {moment.year} at {moment:%H:%M}"


def build_system_prompt(
    language: Language,
    now: Optional[datetime] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> str:
    """生成固定语言与语气、带当前时间的系统指令。"""

    tz = ZoneInfo(timezone)
    moment = now.astimezone(tz) if now else datetime.now(tz)
    return load_template(language).format(current_time=format_timestamp(moment, language))
