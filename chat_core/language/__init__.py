"""对话语言检测。"""

from chat_core.language.detector import LanguageDetector, detect_language

__all__ = ["LanguageDetector", "detect_language"]
