"""
Localized text bundles.

A bundle is either a plain string (same text in every language) or a
mapping from language tag to text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Union

FALLBACK_LANGUAGE = "en-US"

_LANGUAGE_SEPARATOR = re.compile(r"[-_]")
_PLACEHOLDER = re.compile(r"@(\d+)")


@dataclass(frozen=True, eq=False)
class LocalizedText:
    content: Union[str, Mapping[str, str]]

    def __post_init__(self):
        if not isinstance(self.content, str):
            # private read-only copy; keeps insertion order
            object.__setattr__(self, "content", MappingProxyType(dict(self.content)))

    def __eq__(self, other):
        if not isinstance(other, LocalizedText):
            return NotImplemented
        if isinstance(self.content, str) or isinstance(other.content, str):
            return self.content == other.content
        return dict(self.content) == dict(other.content)

    def __hash__(self):
        if isinstance(self.content, str):
            return hash(self.content)
        return hash(frozenset(self.content.items()))

    def __repr__(self):
        content = self.content if isinstance(self.content, str) else dict(self.content)
        return f"LocalizedText({content!r})"

    @property
    def languages(self) -> list[str]:
        return [] if isinstance(self.content, str) else list(self.content)

    def localize(self, *languages: str) -> str:
        return localize(self.content, *languages)

    @classmethod
    def parametrized(cls, template: Mapping[str, str], *params: Union[str, "LocalizedText"]) -> "LocalizedText":
        """
        Fill `@0`, `@1`, ... placeholders in every language of the template.
        Parameters that are LocalizedText are localized into the same language.
        Example: parametrized({"en": "Take @0"}, "Aspirin") -> {"en": "Take Aspirin"}
        """
        filled = {}
        for language, text in template.items():
            values = [
                param.localize(language) if isinstance(param, LocalizedText) else param
                for param in params
            ]
            filled[language] = _fill_placeholders(text, values)
        return cls(filled)


def localize(text: Union[str, Mapping[str, str], LocalizedText], *languages: str) -> str:
    """
    Pick the best text for the preferred languages.

    Candidates are the given languages followed by en-US. For each, try the
    exact tag, then the part before the first '-' or '_'. If nothing
    matches, fall back to the first text in the bundle ('' if empty).
    """
    if isinstance(text, LocalizedText):
        text = text.content
    if isinstance(text, str):
        return text

    for language in (*languages, FALLBACK_LANGUAGE):
        exact_match = text.get(language)
        if exact_match:
            return exact_match

        prefix = _LANGUAGE_SEPARATOR.split(language, maxsplit=1)[0]
        if prefix:
            prefix_match = text.get(prefix)
            if prefix_match:
                return prefix_match

    return next(iter(text.values()), "")


def _fill_placeholders(text: str, values: list[str]) -> str:
    # one pass, so '@1' never matches inside '@10'; only the first '@N' of each index is filled
    filled: set[int] = set()

    def _replace(match: re.Match) -> str:
        index = int(match.group(1))
        if index >= len(values) or index in filled:
            return match.group(0)
        filled.add(index)
        return values[index]

    return _PLACEHOLDER.sub(_replace, text)
