"""Language registry: tên ngôn ngữ <-> language_id của Judge0.

- `id_for` chặt chẽ: tên không hỗ trợ trả None, caller phải từ chối request.
- `name_for` dễ dãi: id lạ trả "Unknown" (chỉ dùng để hiển thị).
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

UNKNOWN_LANGUAGE = "Unknown"


@dataclass(frozen=True)
class Language:
    key: str
    judge_id: int
    display_name: str


class LanguageRegistry:
    """Read-only mapping built once from a fixed list of languages."""

    def __init__(self, languages: Iterable[Language]):
        by_key: Dict[str, Language] = {}
        by_id: Dict[int, Language] = {}
        for lang in languages:
            by_key[lang.key.upper()] = lang
            by_id[lang.judge_id] = lang
        self._by_key: Mapping[str, Language] = MappingProxyType(by_key)
        self._by_id: Mapping[int, Language] = MappingProxyType(by_id)

    def id_for(self, name: Optional[str]) -> Optional[int]:
        if not name:
            return None
        lang = self._by_key.get(str(name).strip().upper())
        return lang.judge_id if lang else None

    def name_for(self, language_id) -> str:
        try:
            lang = self._by_id.get(int(language_id))
        except (TypeError, ValueError):
            lang = None
        return lang.display_name if lang else UNKNOWN_LANGUAGE

    def is_supported(self, language_id) -> bool:
        return self.name_for(language_id) != UNKNOWN_LANGUAGE

    def languages(self):
        return list(self._by_id.values())


JUDGE0_LANGUAGES = (
    Language("PYTHON", 71, "Python"),
    Language("JAVA", 62, "Java"),
    Language("JAVASCRIPT", 63, "JavaScript"),
    Language("TYPESCRIPT", 74, "TypeScript"),
)

default_registry = LanguageRegistry(JUDGE0_LANGUAGES)


__all__ = ["Language", "LanguageRegistry", "JUDGE0_LANGUAGES", "default_registry", "UNKNOWN_LANGUAGE"]
