"""Catalog loading from Qt Linguist TS files, JSON and YAML.

TS layout (as written by ``lupdate`` and Qt Linguist)::

    <TS version="2.1" language="ja">
    <context>
        <name>BitcoinGUI</name>
        <message numerus="yes">
            <source>Processed %n block(s) of transaction history.</source>
            <translation><numerusform>%n ブロックのトランザクション履歴を処理</numerusform></translation>
        </message>
    </context>
    </TS>

JSON and YAML files use the layout produced by
:meth:`tscatalog.catalog.CatalogStore.to_dict`.

Every numerus message is checked against the plural rule of the catalog's
language. What happens to an entry that does not match is decided by the
loader's :class:`IntegrityPolicy`.

Example:
    loader = CatalogLoader()
    store = loader.load_file(Path("locale/dash_ja.ts"))

    # Region-specific file first, then the base-language file
    stores = loader.load_locale(Path("locale"), "ja_JP", domain="dash")
"""

from __future__ import annotations

import json
import logging
import re
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping
from xml.etree import ElementTree as ET

import yaml

from tscatalog.catalog import CatalogBuilder, CatalogEntry, CatalogStore
from tscatalog.exceptions import IntegrityError, ParseError
from tscatalog.locale import LocaleInfo
from tscatalog.plurals import PluralRuleTable, get_plural_rules

logger = logging.getLogger("tscatalog.loader")

CATALOG_EXTENSIONS = (".ts", ".json", ".yaml", ".yml")

_FORMATS = {
    ".ts": "ts",
    ".xml": "ts",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}

# Message states that are not part of the current UI
_SKIPPED_TYPES = ("vanished", "obsolete")


class IntegrityPolicy(str, Enum):
    """What to do with an entry that violates a catalog invariant."""

    STRICT = "strict"  # reject the whole catalog
    DROP = "drop"  # drop the entry, keep loading

    @classmethod
    def from_string(cls, value: "str | IntegrityPolicy") -> "IntegrityPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown integrity policy {value!r} (expected one of: {valid})")


class CatalogLoader:
    """Parses serialized catalogs into :class:`CatalogStore` objects.

    Args:
        rules: Plural rule table used to check numerus form counts.
        integrity_policy: STRICT raises on the first integrity error;
            DROP logs it and leaves the entry out.
        include_unfinished: Keep translations marked ``type="unfinished"``,
            as ``lrelease`` does unless given ``-nounfinished``.
        on_drop: Called with each integrity error the DROP policy skips.
    """

    def __init__(
        self,
        rules: PluralRuleTable | None = None,
        *,
        integrity_policy: IntegrityPolicy | str = IntegrityPolicy.STRICT,
        include_unfinished: bool = True,
        on_drop: Callable[[IntegrityError], None] | None = None,
    ) -> None:
        self._rules = rules or get_plural_rules()
        self._policy = IntegrityPolicy.from_string(integrity_policy)
        self._include_unfinished = include_unfinished
        self._on_drop = on_drop

    @property
    def integrity_policy(self) -> IntegrityPolicy:
        return self._policy

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def load_file(self, path: Path | str, *, language: str | None = None) -> CatalogStore:
        """Load a catalog file, picking the format from its suffix.

        Args:
            path: ``.ts``, ``.xml``, ``.json``, ``.yaml`` or ``.yml`` file.
            language: Override for the language the file declares.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ParseError: If the file is malformed or of unknown format.
            IntegrityError: Under the STRICT policy, for an invalid entry.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Catalog file not found: {path}")

        fmt = _FORMATS.get(path.suffix.lower())
        if fmt is None:
            raise ParseError(f"Unsupported catalog format: {path.suffix}", source=str(path))

        store = self.load_string(
            path.read_bytes(), format=fmt, language=language, source=str(path)
        )
        logger.info(
            "Loaded %d messages (%s) from %s", len(store), store.language, path
        )
        return store

    def load_string(
        self,
        content: str | bytes,
        *,
        format: str = "ts",
        language: str | None = None,
        source: str | None = None,
    ) -> CatalogStore:
        """Load a catalog from serialized content.

        Args:
            content: Serialized catalog.
            format: "ts", "json" or "yaml".
            language: Override for the declared language.
            source: Label used in error messages and logs.
        """
        if format == "ts":
            builder = self._parse_ts(content, language=language, source=source)
        elif format == "json":
            try:
                data = json.loads(content)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise ParseError(f"Invalid JSON: {e}", source=source) from e
            return self.load_data(data, language=language, source=source)
        elif format == "yaml":
            try:
                data = yaml.safe_load(content)
            except yaml.YAMLError as e:
                line = None
                mark = getattr(e, "problem_mark", None)
                if mark is not None:
                    line = mark.line + 1
                raise ParseError(f"Invalid YAML: {e}", source=source, line=line) from e
            return self.load_data(data, language=language, source=source)
        else:
            raise ParseError(f"Unsupported catalog format: {format}", source=source)

        self._check_numerus_forms(builder, source)
        return builder.build()

    def load_data(
        self,
        data: Mapping[str, Any],
        *,
        language: str | None = None,
        source: str | None = None,
    ) -> CatalogStore:
        """Load a catalog from an already parsed JSON/YAML document."""
        try:
            store = CatalogStore.from_dict(
                data,
                language=language,
                source=source,
                include_unfinished=self._include_unfinished,
                on_integrity_error=None if self._policy is IntegrityPolicy.STRICT else self._drop,
            )
        except IntegrityError as e:
            self._reject(e, source)
            raise
        builder = CatalogBuilder.from_store(store)
        self._check_numerus_forms(builder, source)
        return builder.build()

    # -------------------------------------------------------------------------
    # Locale resolution
    # -------------------------------------------------------------------------

    def find_catalog_files(
        self,
        directory: Path | str,
        locale: str,
        domain: str | None = None,
    ) -> list[Path]:
        """Catalog files for ``locale`` in ``directory``, most specific first.

        With ``domain="dash"`` and ``locale="ja_JP"`` the candidates are
        ``dash_ja_JP.*`` then ``dash_ja.*``. At most one file per locale code
        is returned; ``.ts`` wins over JSON and YAML.
        """
        directory = Path(directory)
        found: list[Path] = []
        for code in LocaleInfo.parse(locale).fallback_chain():
            stem = f"{domain}_{code}" if domain else code
            for ext in CATALOG_EXTENSIONS:
                candidate = directory / f"{stem}{ext}"
                if candidate.is_file():
                    found.append(candidate)
                    break
        return found

    def load_locale(
        self,
        directory: Path | str,
        locale: str,
        domain: str | None = None,
    ) -> list[CatalogStore]:
        """Load every catalog file of a locale's fallback chain.

        Returns:
            Stores in lookup order. Empty when no file exists, in which case
            every message falls back to its source text.
        """
        files = self.find_catalog_files(directory, locale, domain)
        if not files:
            logger.warning("No catalog for locale %s in %s", locale, directory)
        return [self.load_file(path) for path in files]

    # -------------------------------------------------------------------------
    # TS parsing
    # -------------------------------------------------------------------------

    def _parse_ts(
        self,
        content: str | bytes,
        *,
        language: str | None,
        source: str | None,
    ) -> CatalogBuilder:
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            line = e.position[0] if e.position else None
            raise ParseError(f"Malformed TS document: {e}", source=source, line=line) from e

        if root.tag != "TS":
            raise ParseError(f"Expected <TS> root element, found <{root.tag}>", source=source)

        declared = root.get("language") or ""
        if language and declared and LocaleInfo.parse(declared) != LocaleInfo.parse(language):
            logger.warning(
                "%s declares language %s, loading it as %s",
                source or "<string>", declared, language,
            )
        lang = language or declared
        if not lang:
            raise ParseError("Catalog does not declare a target language", source=source)

        builder = CatalogBuilder(
            language=lang,
            source_language=root.get("sourcelanguage") or "",
            metadata={
                "version": root.get("version") or "",
                **({"source": source} if source else {}),
            },
        )

        for context_elem in root.iter("context"):
            name_elem = context_elem.find("name")
            if name_elem is None:
                raise ParseError("<context> without <name>", source=source)
            context = _text_of(name_elem, source)

            for message_elem in context_elem.findall("message"):
                try:
                    entry = self._parse_message(context, message_elem, source)
                    if entry is not None:
                        builder.add(entry)
                except IntegrityError as e:
                    if self._policy is IntegrityPolicy.STRICT:
                        self._reject(e, source)
                        raise
                    self._drop(e)

        return builder

    def _parse_message(
        self,
        context: str,
        elem: ET.Element,
        source: str | None,
    ) -> CatalogEntry | None:
        source_elem = elem.find("source")
        if source_elem is None:
            raise ParseError(f"<message> without <source> in context {context!r}", source=source)
        source_key = _text_of(source_elem, source)

        translation_elem = elem.find("translation")
        if translation_elem is None:
            raise ParseError(
                f"Message {source_key!r} in context {context!r} has no <translation>",
                source=source,
            )

        kind = translation_elem.get("type") or ""
        if kind in _SKIPPED_TYPES:
            return None
        unfinished = kind == "unfinished"
        if unfinished and not self._include_unfinished:
            return None

        comment_elem = elem.find("comment")
        disambiguation = _text_of(comment_elem, source) if comment_elem is not None else ""

        if elem.get("numerus") == "yes":
            form_elems = translation_elem.findall("numerusform")
            if not form_elems:
                if unfinished and not _text_of(translation_elem, source).strip():
                    return None
                raise ParseError(
                    f"Numerus message {source_key!r} in context {context!r} "
                    "has no <numerusform>",
                    source=source,
                )
            forms = [_variant_text(f, source) for f in form_elems]
            if not any(forms):
                return None
            if not all(forms):
                raise IntegrityError(
                    f"Numerus message {source_key!r} has empty forms",
                    context=context,
                    source_key=source_key,
                )
            return CatalogEntry.plural(
                context, source_key, forms,
                disambiguation=disambiguation, unfinished=unfinished,
            )

        text = _variant_text(translation_elem, source)
        if not text:
            return None
        return CatalogEntry.simple(
            context, source_key, text,
            disambiguation=disambiguation, unfinished=unfinished,
        )

    # -------------------------------------------------------------------------
    # Integrity
    # -------------------------------------------------------------------------

    def _check_numerus_forms(self, builder: CatalogBuilder, source: str | None) -> None:
        rule = self._rules.rule_for(builder.language)
        for entry in builder:
            if not entry.is_plural or len(entry.variants) == rule.form_count:
                continue
            error = IntegrityError(
                f"Message {entry.source_key!r} in context {entry.context!r} has "
                f"{len(entry.variants)} numerus forms, {builder.language} "
                f"requires {rule.form_count}",
                context=entry.context,
                source_key=entry.source_key,
            )
            if self._policy is IntegrityPolicy.STRICT:
                self._reject(error, source)
                raise error
            builder.discard(entry.key)
            self._drop(error)

    def _reject(self, error: IntegrityError, source: str | None) -> None:
        logger.error("Rejecting catalog %s: %s", source or "<string>", error)

    def _drop(self, error: IntegrityError) -> None:
        logger.warning("Dropping catalog entry: %s", error)
        if self._on_drop is not None:
            self._on_drop(error)


# -----------------------------------------------------------------------------
# XML helpers
# -----------------------------------------------------------------------------


def _byte_char(value: str, source: str | None) -> str:
    # Qt writes non-printable characters as <byte value="x1b"/>
    try:
        if value[:1] in ("x", "X"):
            return chr(int(value[1:], 16))
        return chr(int(value, 10))
    except (ValueError, OverflowError) as e:
        raise ParseError(f"Invalid <byte value={value!r}>", source=source) from e


def _text_of(elem: ET.Element, source: str | None) -> str:
    parts = [elem.text or ""]
    for child in elem:
        if child.tag == "byte":
            parts.append(_byte_char(child.get("value", ""), source))
        parts.append(child.tail or "")
    return "".join(parts)


def _variant_text(elem: ET.Element, source: str | None) -> str:
    # Length variants are ordered longest first; use the first one
    first = elem.find("lengthvariant")
    if first is not None:
        return _text_of(first, source)
    return _text_of(elem, source)


_LOCALE_FILE = re.compile(r"^(?:.+_)?(?P<locale>[a-z]{2,3}(?:_(?:[A-Z]{2}|[0-9]{3}))?)$")


def available_locales(directory: Path | str, domain: str | None = None) -> list[str]:
    """List locale codes that have a catalog file in ``directory``."""
    directory = Path(directory)
    if not directory.is_dir():
        raise NotADirectoryError(f"Not a directory: {directory}")

    locales: set[str] = set()
    for path in directory.iterdir():
        if path.suffix.lower() not in CATALOG_EXTENSIONS or not path.is_file():
            continue
        stem = path.stem
        if domain:
            prefix = f"{domain}_"
            if not stem.startswith(prefix):
                continue
            stem = stem[len(prefix):]
        else:
            match = _LOCALE_FILE.match(stem)
            if not match:
                continue
            stem = match.group("locale")
        try:
            locales.add(LocaleInfo.parse(stem).code)
        except ValueError:
            continue
    return sorted(locales)


def load_catalog(
    path: Path | str,
    *,
    language: str | None = None,
    integrity_policy: IntegrityPolicy | str = IntegrityPolicy.STRICT,
    include_unfinished: bool = True,
) -> CatalogStore:
    """Load a single catalog file.

    Example:
        store = load_catalog("locale/dash_ja.ts")
    """
    loader = CatalogLoader(
        integrity_policy=integrity_policy,
        include_unfinished=include_unfinished,
    )
    return loader.load_file(path, language=language)


def loads_catalog(
    content: str | bytes,
    *,
    format: str = "ts",
    language: str | None = None,
    integrity_policy: IntegrityPolicy | str = IntegrityPolicy.STRICT,
) -> CatalogStore:
    """Load a catalog from serialized content."""
    loader = CatalogLoader(integrity_policy=integrity_policy)
    return loader.load_string(content, format=format, language=language)
