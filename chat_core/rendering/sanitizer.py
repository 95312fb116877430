"""模型输出清洗与安全渲染。

两段式处理，缺一不可：

1. sanitize(): 纯文本规范化（折叠多余换行、去除控制/格式字符、折叠重复标点与代码围栏）。
2. render(): Markdown -> HTML，再用 bleach 按白名单清洗；所有链接强制
   target="_blank" rel="noopener noreferrer"。

sanitize() 是幂等的：sanitize(sanitize(x)) == sanitize(x)。
"""

import re
import unicodedata
from typing import Dict, List, Optional, Tuple

import bleach
import markdown
from bleach.linkifier import Linker


ALLOWED_TAGS = frozenset({
    "p", "br", "strong", "em", "code", "pre", "blockquote",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "ul", "ol", "li", "a", "hr",
})
ALLOWED_ATTRIBUTES: Dict[str, List[str]] = {
    "a": ["href", "title", "target", "rel"],
}
ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto"})

MARKDOWN_EXTENSIONS = ["extra", "nl2br", "sane_lists"]

_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_REPEATED_TERMINAL = re.compile(r"([!?.！？。])\1{3,}")
_REPEATED_FENCE = re.compile(r"([`~])\1{3,}")

# 允许保留的不可见字符；其余 Unicode C* 类别（控制、格式、私用、未分配）一律剔除
_KEPT_CONTROLS = frozenset("\n\t")


def _is_allowed(ch: str) -> bool:
    return ch in _KEPT_CONTROLS or not unicodedata.category(ch).startswith("C")


def _collapse_newlines(text: str) -> str:
    return _EXCESS_NEWLINES.sub("\n\n", text)


def sanitize(raw: Optional[str]) -> str:
    if not raw:
        return ""
    text = raw.replace("\r\n", "\n")
    text = _collapse_newlines(text)
    text = "".join(ch for ch in text if _is_allowed(ch))
    # 剔除字符后可能拼出新的连续换行
    text = _collapse_newlines(text)
    text = _REPEATED_TERMINAL.sub(r"\1\1\1", text)
    text = _REPEATED_FENCE.sub(r"\1\1\1", text)
    return text.strip()


def _force_new_tab(attrs: Dict[Tuple[Optional[str], str], str], new: bool = False):
    attrs[(None, "target")] = "_blank"
    attrs[(None, "rel")] = "noopener noreferrer"
    return attrs


class ContentSanitizer:
    """清洗 + 渲染管线，编排器在最后一次成功调用之后只调用一次 process()。"""

    def __init__(self):
        self._cleaner = bleach.Cleaner(
            tags=ALLOWED_TAGS,
            attributes=ALLOWED_ATTRIBUTES,
            protocols=ALLOWED_PROTOCOLS,
            strip=True,
            strip_comments=True,
        )
        # 已有的 <a> 与裸 URL 生成的链接都会经过 _force_new_tab
        self._linker = Linker(callbacks=[_force_new_tab], skip_tags={"pre", "code"}, parse_email=False)

    def sanitize(self, raw: Optional[str]) -> str:
        return sanitize(raw)

    def render(self, safe_text: str) -> str:
        if not safe_text:
            return ""
        html = markdown.markdown(safe_text, extensions=MARKDOWN_EXTENSIONS, output_format="html")
        cleaned = self._cleaner.clean(html)
        return self._linker.linkify(cleaned)

    def process(self, raw: Optional[str]) -> str:
        return self.render(self.sanitize(raw))


_default = ContentSanitizer()


def render(safe_text: str) -> str:
    return _default.render(safe_text)
