"""Translation lookup with fallback and atomic locale switching.

:class:`Translator` is the entry point the GUI layer calls. It owns an
:class:`ActiveCatalog`, the one mutable reference in the library, which
is swapped as a whole when the locale changes. Each translate call reads
that reference once, so a concurrent switch is never observed half done.

Example:
    translator = Translator()
    translator.load_locale("ja", Path("locale"), domain="dash")

    translator.translate("AddressBookPage", "&Copy")
    # -> "コピー(&C)"
    translator.translate("BitcoinGUI", "Processed %n block(s) of transaction history.", count=3)
    # -> "3 ブロックのトランザクション履歴を処理"
    translator.translate("UnknownContext", "Hello %1", args=["World"])
    # -> "Hello World"
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Sequence

from tscatalog.catalog import CatalogEntry, CatalogStore
from tscatalog.exceptions import InvalidArgument
from tscatalog.formatting import PlaceholderFormatter
from tscatalog.loader import CatalogLoader
from tscatalog.locale import DEFAULT_LOCALE, normalize_locale
from tscatalog.plurals import (
    NumerusRule,
    PluralRuleTable,
    get_plural_rules,
    select_variant,
    validate_count,
)

if TYPE_CHECKING:
    from tscatalog.config import TranslatorConfig

logger = logging.getLogger("tscatalog.translator")


@dataclass(frozen=True)
class LocaleCatalog:
    """Everything needed to translate into one locale.

    Attributes:
        locale: Normalized locale code.
        rule: Numerus rule of the locale.
        stores: Catalogs searched in order, region-specific first.
    """

    locale: str
    rule: NumerusRule
    stores: tuple[CatalogStore, ...] = ()

    @classmethod
    def create(
        cls,
        locale: str,
        stores: Sequence[CatalogStore] = (),
        rules: PluralRuleTable | None = None,
    ) -> "LocaleCatalog":
        code = normalize_locale(locale)
        rule = (rules or get_plural_rules()).rule_for(code)
        return cls(locale=code, rule=rule, stores=tuple(stores))

    def lookup(
        self,
        context: str,
        source_key: str,
        disambiguation: str = "",
    ) -> CatalogEntry | None:
        for store in self.stores:
            entry = store.lookup(context, source_key, disambiguation)
            if entry is not None:
                return entry
        return None

    def __len__(self) -> int:
        return sum(len(s) for s in self.stores)


class ActiveCatalog:
    """Swappable reference to the current :class:`LocaleCatalog`.

    Readers call :meth:`get` without locking; a reference read is atomic.
    Writers serialize on a lock so ``swap`` can report what it replaced.
    """

    def __init__(self, initial: LocaleCatalog) -> None:
        self._current = initial
        self._write_lock = threading.Lock()

    def get(self) -> LocaleCatalog:
        return self._current

    def swap(self, catalog: LocaleCatalog) -> LocaleCatalog:
        """Install ``catalog`` and return the one it replaced."""
        with self._write_lock:
            previous = self._current
            self._current = catalog
        return previous


class Translator:
    """Resolves, pluralizes and formats UI messages.

    Args:
        catalog: Initial locale catalog. Defaults to an empty catalog for
            the source language, which translates every message to itself.
        formatter: Placeholder formatter.
        loader: Loader used by :meth:`load_locale`.
        rules: Plural rule table.
    """

    def __init__(
        self,
        catalog: LocaleCatalog | None = None,
        *,
        formatter: PlaceholderFormatter | None = None,
        loader: CatalogLoader | None = None,
        rules: PluralRuleTable | None = None,
    ) -> None:
        self._rules = rules or get_plural_rules()
        self._formatter = formatter or PlaceholderFormatter()
        self._loader = loader or CatalogLoader(self._rules)
        self._active = ActiveCatalog(
            catalog or LocaleCatalog.create(DEFAULT_LOCALE, rules=self._rules)
        )

    @classmethod
    def from_config(cls, config: TranslatorConfig) -> "Translator":
        """Build a translator and load the configured locale."""
        rules = get_plural_rules()
        translator = cls(
            formatter=PlaceholderFormatter(strict=config.strict_placeholders),
            loader=CatalogLoader(
                rules,
                integrity_policy=config.integrity_policy,
                include_unfinished=config.include_unfinished,
            ),
            rules=rules,
        )
        if config.catalog_dirs:
            translator.load_locale(config.locale, *config.catalog_dirs, domain=config.domain)
        else:
            translator.activate(LocaleCatalog.create(config.locale, rules=rules))
        return translator

    @property
    def locale(self) -> str:
        return self._active.get().locale

    @property
    def catalog(self) -> LocaleCatalog:
        return self._active.get()

    @property
    def formatter(self) -> PlaceholderFormatter:
        return self._formatter

    # -------------------------------------------------------------------------
    # Locale switching
    # -------------------------------------------------------------------------

    def activate(self, catalog: LocaleCatalog) -> LocaleCatalog:
        """Make ``catalog`` current and return the previous one."""
        previous = self._active.swap(catalog)
        logger.info(
            "Activated locale %s (%d messages, was %s)",
            catalog.locale, len(catalog), previous.locale,
        )
        return previous

    def load_locale(
        self,
        locale: str,
        *directories: Path | str,
        domain: str | None = None,
    ) -> LocaleCatalog:
        """Load a locale's catalogs and activate them.

        Catalogs are searched in each directory in turn; within a directory
        the region-specific file comes before the base-language file. The
        switch happens only after every file loaded, so on error the
        previously active locale stays in place.

        Raises:
            ParseError: If a catalog file is malformed.
            IntegrityError: If a catalog fails its integrity check.
        """
        stores: list[CatalogStore] = []
        for directory in directories:
            stores.extend(self._loader.load_locale(directory, locale, domain))
        catalog = LocaleCatalog.create(locale, stores, rules=self._rules)
        self.activate(catalog)
        return catalog

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def translate(
        self,
        context: str,
        source_key: str,
        count: int | None = None,
        args: Sequence[Any] = (),
        *,
        disambiguation: str = "",
    ) -> str:
        """Translate a message.

        Args:
            context: UI context the message belongs to.
            source_key: Source text, matched exactly.
            count: Quantity for plural-sensitive messages and ``%n``.
            args: Values for ``%1``, ``%2``, ...
            disambiguation: Comment distinguishing identical sources.

        Returns:
            The translated text with placeholders substituted, or the
            substituted source text when there is no translation.

        Raises:
            InvalidArgument: If ``count`` is negative, or missing for a
                plural-sensitive message.
            MissingArgument: If the formatter is strict and ``args`` is short.
        """
        if count is not None:
            validate_count(count)

        catalog = self._active.get()
        entry = catalog.lookup(context, source_key, disambiguation)

        if entry is None:
            return self._formatter.format(source_key, args, count)

        if not entry.is_plural:
            return self._formatter.format(entry.text, args, count)

        if count is None:
            raise InvalidArgument(
                f"Message {source_key!r} in context {context!r} is plural-sensitive "
                "and requires a count"
            )
        variant = select_variant(entry, count, catalog.rule)
        return self._formatter.format(variant.text, args, count)

    tr = translate

    def is_translated(
        self,
        context: str,
        source_key: str,
        disambiguation: str = "",
    ) -> bool:
        """Check whether the active locale has a translation for a message."""
        return self._active.get().lookup(context, source_key, disambiguation) is not None
