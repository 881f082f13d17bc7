"""Numerus rules for selecting plural variants.

Each locale's rule maps a non-negative count to the index of the numerus
form to use. The rules and the order of their forms follow the table Qt
Linguist uses when it writes ``<numerusform>`` elements, so a catalog
produced by Linguist lines up with the rule for its language.

Example:
    from tscatalog.plurals import get_numerus_rule

    rule = get_numerus_rule("ru")
    rule.form_count      # 3
    rule.classify(1)     # 0
    rule.classify(3)     # 1
    rule.classify(5)     # 2
    rule.category(5)     # PluralCategory.MANY
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable

from tscatalog.exceptions import IntegrityError, InvalidArgument
from tscatalog.locale import LocaleInfo

if TYPE_CHECKING:
    from tscatalog.catalog import CatalogEntry, TranslationVariant

logger = logging.getLogger("tscatalog.plurals")


class PluralCategory(Enum):
    """CLDR plural categories, used as labels for numerus forms."""

    ZERO = "zero"
    ONE = "one"
    TWO = "two"
    FEW = "few"
    MANY = "many"
    OTHER = "other"


# Maps a validated, non-negative count to a form index
PluralClassifier = Callable[[int], int]


def validate_count(count: object) -> int:
    """Check that ``count`` is a usable quantity.

    Raises:
        InvalidArgument: If ``count`` is not an integer or is negative.
    """
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidArgument(f"Count must be an integer, got {type(count).__name__}")
    if count < 0:
        raise InvalidArgument(f"Count must be non-negative, got {count}")
    return count


@dataclass(frozen=True)
class NumerusRule:
    """Plural rule of a language.

    Attributes:
        name: Rule family name (e.g. "russian").
        forms: Category label of each numerus form, in catalog order.
        classifier: Function selecting the form index for a count.
    """

    name: str
    forms: tuple[PluralCategory, ...]
    classifier: PluralClassifier

    @property
    def form_count(self) -> int:
        return len(self.forms)

    def classify(self, count: int) -> int:
        """Return the numerus form index for ``count``.

        Raises:
            InvalidArgument: If ``count`` is negative or not an integer.
        """
        index = self.classifier(validate_count(count))
        if not 0 <= index < self.form_count:
            raise IntegrityError(
                f"Rule {self.name!r} produced form {index} outside [0, {self.form_count})"
            )
        return index

    def category(self, count: int) -> PluralCategory:
        return self.forms[self.classify(count)]


class PluralRuleTable:
    """Locale to numerus rule lookup.

    The table is locale data, independent of any message catalog. Rules are
    looked up by language; ``pt_BR`` is the one region with its own rule.
    Languages without a registered rule use the English rule.
    """

    def __init__(self) -> None:
        self._rules: dict[str, NumerusRule] = {}
        self._by_language: dict[str, str] = {}
        self._lock = threading.RLock()
        self._register_rules()

    def _register_rules(self) -> None:
        """Register the built-in rules."""
        P = PluralCategory

        # Japanese, Chinese, Korean, Vietnamese, Thai, Turkish, ... (no plurals)
        def japanese(n: int) -> int:
            return 0

        self.register_rule(
            NumerusRule("japanese", (P.OTHER,), japanese),
            ["bo", "dz", "fa", "fj", "gn", "hu", "id", "ja", "jv", "ko", "ms", "my",
             "na", "om", "su", "th", "tr", "tt", "vi", "yo", "za", "zh"],
        )

        # English, German, Dutch, Spanish, Italian, ...
        def english(n: int) -> int:
            return 0 if n == 1 else 1

        self.register_rule(
            NumerusRule("english", (P.ONE, P.OTHER), english),
            ["af", "bg", "bn", "ca", "da", "de", "el", "en", "eo", "es", "et", "eu",
             "fi", "fo", "fy", "gl", "gu", "he", "hi", "it", "kn", "ku", "lb", "ml",
             "mn", "mr", "nb", "ne", "nl", "nn", "no", "pa", "ps", "pt", "sq", "sv",
             "sw", "ta", "te", "ur", "zu"],
        )

        # French, Brazilian Portuguese, Armenian, ...
        def french(n: int) -> int:
            return 0 if n <= 1 else 1

        self.register_rule(
            NumerusRule("french", (P.ONE, P.OTHER), french),
            ["ak", "am", "br", "fr", "hy", "ln", "mg", "oc", "pt_BR", "ti", "wa"],
        )

        # Latvian: singular, plural, nullar
        def latvian(n: int) -> int:
            if n % 10 == 1 and n % 100 != 11:
                return 0
            if n != 0:
                return 1
            return 2

        self.register_rule(NumerusRule("latvian", (P.ONE, P.OTHER, P.ZERO), latvian), ["lv"])

        def icelandic(n: int) -> int:
            return 0 if n % 10 == 1 and n % 100 != 11 else 1

        self.register_rule(NumerusRule("icelandic", (P.ONE, P.OTHER), icelandic), ["is"])

        # Irish: singular, dual, plural
        def irish(n: int) -> int:
            if n == 1:
                return 0
            if n == 2:
                return 1
            return 2

        self.register_rule(NumerusRule("irish", (P.ONE, P.TWO, P.OTHER), irish), ["ga"])

        # Scottish Gaelic: singular, dual, few, plural
        def gaelic(n: int) -> int:
            if n in (1, 11):
                return 0
            if n in (2, 12):
                return 1
            if 3 <= n <= 19:
                return 2
            return 3

        self.register_rule(
            NumerusRule("gaelic", (P.ONE, P.TWO, P.FEW, P.OTHER), gaelic), ["gd"]
        )

        # Slovak, Czech: singular, paucal, plural
        def slovak(n: int) -> int:
            if n == 1:
                return 0
            if 2 <= n <= 4:
                return 1
            return 2

        self.register_rule(
            NumerusRule("slovak", (P.ONE, P.FEW, P.OTHER), slovak), ["cs", "sk"]
        )

        def macedonian(n: int) -> int:
            if n % 10 == 1:
                return 0
            if n % 10 == 2:
                return 1
            return 2

        self.register_rule(
            NumerusRule("macedonian", (P.ONE, P.TWO, P.OTHER), macedonian), ["mk"]
        )

        def lithuanian(n: int) -> int:
            if n % 10 == 1 and n % 100 != 11:
                return 0
            if n % 10 != 0 and not 10 <= n % 100 <= 19:
                return 1
            return 2

        self.register_rule(
            NumerusRule("lithuanian", (P.ONE, P.FEW, P.MANY), lithuanian), ["lt"]
        )

        # Russian, Ukrainian, Belarusian, Serbian, Croatian, Bosnian
        def russian(n: int) -> int:
            if n % 10 == 1 and n % 100 != 11:
                return 0
            if 2 <= n % 10 <= 4 and not 10 <= n % 100 <= 19:
                return 1
            return 2

        self.register_rule(
            NumerusRule("russian", (P.ONE, P.FEW, P.MANY), russian),
            ["be", "bs", "hr", "ru", "sr", "uk"],
        )

        def polish(n: int) -> int:
            if n == 1:
                return 0
            if 2 <= n % 10 <= 4 and not 10 <= n % 100 <= 19:
                return 1
            return 2

        self.register_rule(NumerusRule("polish", (P.ONE, P.FEW, P.MANY), polish), ["pl"])

        def romanian(n: int) -> int:
            if n == 1:
                return 0
            if n == 0 or 1 <= n % 100 <= 19:
                return 1
            return 2

        self.register_rule(
            NumerusRule("romanian", (P.ONE, P.FEW, P.OTHER), romanian), ["ro"]
        )

        # Slovenian: singular, dual, trial, plural
        def slovenian(n: int) -> int:
            if n % 100 == 1:
                return 0
            if n % 100 == 2:
                return 1
            if 3 <= n % 100 <= 4:
                return 2
            return 3

        self.register_rule(
            NumerusRule("slovenian", (P.ONE, P.TWO, P.FEW, P.OTHER), slovenian), ["sl"]
        )

        def maltese(n: int) -> int:
            if n == 1:
                return 0
            if n == 0 or 1 <= n % 100 <= 10:
                return 1
            if 11 <= n % 100 <= 19:
                return 2
            return 3

        self.register_rule(
            NumerusRule("maltese", (P.ONE, P.FEW, P.MANY, P.OTHER), maltese), ["mt"]
        )

        # Welsh: nullar, singular, dual, sexal, plural
        def welsh(n: int) -> int:
            if n == 0:
                return 0
            if n == 1:
                return 1
            if 2 <= n <= 5:
                return 2
            if n == 6:
                return 3
            return 4

        self.register_rule(
            NumerusRule("welsh", (P.ZERO, P.ONE, P.TWO, P.FEW, P.OTHER), welsh), ["cy"]
        )

        # Arabic: nullar, singular, dual, minority plural, majority plural, plural
        def arabic(n: int) -> int:
            if n == 0:
                return 0
            if n == 1:
                return 1
            if n == 2:
                return 2
            if 3 <= n % 100 <= 10:
                return 3
            if n % 100 >= 11:
                return 4
            return 5

        self.register_rule(
            NumerusRule("arabic", (P.ZERO, P.ONE, P.TWO, P.FEW, P.MANY, P.OTHER), arabic),
            ["ar"],
        )

    def register_rule(self, rule: NumerusRule, languages: list[str]) -> None:
        """Register ``rule`` for each language (or ``language_REGION``) code."""
        with self._lock:
            self._rules[rule.name] = rule
            for code in languages:
                self._by_language[code] = rule.name

    def rule_for(self, locale: str) -> NumerusRule:
        """Get the numerus rule for a locale tag.

        Args:
            locale: Locale tag such as "ja", "pt_BR" or "sr-Latn-RS".

        Returns:
            The registered rule, or the English rule for unknown languages.
        """
        info = LocaleInfo.parse(locale)
        name = self._by_language.get(info.code) or self._by_language.get(info.language)
        if name is None:
            logger.warning(
                "No numerus rule for locale %r, using the English rule", locale
            )
            name = "english"
        return self._rules[name]

    def has_rule(self, locale: str) -> bool:
        info = LocaleInfo.parse(locale)
        return info.code in self._by_language or info.language in self._by_language

    def get_supported_languages(self) -> list[str]:
        return sorted(self._by_language)

    def get_rule(self, name: str) -> NumerusRule:
        return self._rules[name]


def select_variant(
    entry: CatalogEntry,
    count: int,
    rule: NumerusRule,
) -> TranslationVariant:
    """Pick the variant of a plural-sensitive entry for ``count``.

    Raises:
        InvalidArgument: If ``count`` is negative.
        IntegrityError: If the entry's variants do not match the rule.
    """
    index = rule.classify(count)
    if len(entry.variants) != rule.form_count:
        raise IntegrityError(
            f"Entry has {len(entry.variants)} numerus forms, "
            f"rule {rule.name!r} requires {rule.form_count}",
            context=entry.context,
            source_key=entry.source_key,
        )
    return entry.variants[index]


# Global instance
_table = PluralRuleTable()


def get_plural_rules() -> PluralRuleTable:
    """Get the shared rule table."""
    return _table


def get_numerus_rule(locale: str) -> NumerusRule:
    """Get the numerus rule for a locale from the shared table."""
    return _table.rule_for(locale)


def get_plural_category(count: int, locale: str) -> PluralCategory:
    """Get the category label of the form ``count`` selects in ``locale``.

    Example:
        get_plural_category(1, "en")  # ONE
        get_plural_category(5, "ru")  # MANY
        get_plural_category(5, "ja")  # OTHER
    """
    return _table.rule_for(locale).category(count)
