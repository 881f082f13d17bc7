"""Locale tags, fallback chains and system locale detection."""

from __future__ import annotations

import locale as _stdlib_locale
import logging
import os
from dataclasses import dataclass
from typing import Mapping

logger = logging.getLogger("tscatalog.locale")

DEFAULT_LOCALE = "en"


@dataclass(frozen=True)
class LocaleInfo:
    """A parsed language/region tag.

    Tags are accepted in POSIX (``ja_JP``) or BCP 47 (``ja-JP``) form and
    normalized to ``language_REGION``. Encodings and modifiers
    (``ja_JP.UTF-8@euro``) are discarded.
    """

    language: str
    region: str = ""

    @classmethod
    def parse(cls, tag: str) -> "LocaleInfo":
        raw = (tag or "").strip()
        raw = raw.split(".", 1)[0].split("@", 1)[0]
        parts = [p for p in raw.replace("-", "_").split("_") if p]
        if not parts:
            raise ValueError(f"Invalid locale tag: {tag!r}")

        language = parts[0].lower()
        region = ""
        # Skip a script subtag such as zh_Hant_TW
        for part in parts[1:]:
            if len(part) in (2, 3) and (part.isalpha() or part.isdigit()):
                region = part.upper()
                break
        return cls(language=language, region=region)

    @property
    def code(self) -> str:
        if self.region:
            return f"{self.language}_{self.region}"
        return self.language

    def fallback_chain(self) -> list[str]:
        """Codes to try in order, most specific first.

        ``ja_JP`` -> ``["ja_JP", "ja"]``. The chain never crosses into another
        language; an untranslated string falls back to its source text instead.
        """
        chain = [self.code]
        if self.region:
            chain.append(self.language)
        return chain

    def __str__(self) -> str:
        return self.code


def normalize_locale(tag: str) -> str:
    """Normalize a locale tag to ``language_REGION`` form."""
    return LocaleInfo.parse(tag).code


def detect_system_locale(environ: Mapping[str, str] | None = None) -> str:
    """Guess the UI locale from the environment.

    Checks ``LC_ALL``, ``LC_MESSAGES`` and ``LANG``, then the ``LANGUAGE``
    priority list, then the ``locale`` module. Falls back to ``en``.
    """
    env = os.environ if environ is None else environ

    for key in ("LC_ALL", "LC_MESSAGES", "LANG", "LANGUAGE"):
        value = env.get(key, "")
        # LANGUAGE may hold a colon-separated priority list
        for candidate in value.split(":"):
            candidate = candidate.strip()
            if not candidate or candidate in ("C", "POSIX") or candidate.startswith("C."):
                continue
            try:
                return normalize_locale(candidate)
            except ValueError:
                continue

    try:
        system_locale = _stdlib_locale.getlocale()[0]
    except ValueError:
        system_locale = None
    if system_locale and system_locale not in ("C", "POSIX"):
        try:
            return normalize_locale(system_locale)
        except ValueError:
            logger.debug("Ignoring unparsable system locale %r", system_locale)

    return DEFAULT_LOCALE
