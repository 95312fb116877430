"""模型输出的清洗与渲染。"""

from chat_core.rendering.sanitizer import ContentSanitizer, render, sanitize

__all__ = ["ContentSanitizer", "render", "sanitize"]
