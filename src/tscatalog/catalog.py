"""Immutable message catalog keyed by context and source text.

A catalog holds every translated message of one locale as a flat mapping
from :class:`MessageKey` to :class:`CatalogEntry`. Contexts are plain key
components, not types; the same source text may appear in several
contexts with different translations.

Example:
    builder = CatalogBuilder(language="ja")
    builder.add(CatalogEntry.simple("AddressBookPage", "&Copy", "コピー(&C)"))
    store = builder.build()

    entry = store.lookup("AddressBookPage", "&Copy")
    entry.variants[0].text  # "コピー(&C)"
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping

from tscatalog.exceptions import IntegrityError, ParseError


@dataclass(frozen=True)
class TranslationVariant:
    """One numerus form of a translation.

    Attributes:
        plural_index: Position among the locale's numerus forms.
        text: Localized text, possibly containing placeholder tokens.
    """

    plural_index: int
    text: str


@dataclass(frozen=True)
class MessageKey:
    """Lookup key of a catalog entry."""

    context: str
    source: str
    disambiguation: str = ""


@dataclass(frozen=True)
class CatalogEntry:
    """A translated message.

    Attributes:
        context: UI component the message belongs to.
        source_key: Original-language text, matched byte for byte.
        variants: One variant for simple messages, one per numerus form
            for plural-sensitive messages.
        is_plural: Whether the message takes a count.
        disambiguation: Comment distinguishing identical sources within a
            context, empty when absent.
        unfinished: The translator has not marked the translation done.
    """

    context: str
    source_key: str
    variants: tuple[TranslationVariant, ...]
    is_plural: bool = False
    disambiguation: str = ""
    unfinished: bool = False

    def __post_init__(self) -> None:
        if not self.variants:
            raise IntegrityError(
                "Catalog entry has no translation variants",
                context=self.context,
                source_key=self.source_key,
            )
        if not self.is_plural and len(self.variants) != 1:
            raise IntegrityError(
                f"Non-plural entry carries {len(self.variants)} variants",
                context=self.context,
                source_key=self.source_key,
            )

    @classmethod
    def simple(
        cls,
        context: str,
        source_key: str,
        text: str,
        *,
        disambiguation: str = "",
        unfinished: bool = False,
    ) -> "CatalogEntry":
        """Create a single-variant entry."""
        return cls(
            context=context,
            source_key=source_key,
            variants=(TranslationVariant(0, text),),
            disambiguation=disambiguation,
            unfinished=unfinished,
        )

    @classmethod
    def plural(
        cls,
        context: str,
        source_key: str,
        forms: list[str] | tuple[str, ...],
        *,
        disambiguation: str = "",
        unfinished: bool = False,
    ) -> "CatalogEntry":
        """Create a plural-sensitive entry from its numerus forms in order."""
        return cls(
            context=context,
            source_key=source_key,
            variants=tuple(TranslationVariant(i, text) for i, text in enumerate(forms)),
            is_plural=True,
            disambiguation=disambiguation,
            unfinished=unfinished,
        )

    @property
    def key(self) -> MessageKey:
        return MessageKey(self.context, self.source_key, self.disambiguation)

    @property
    def text(self) -> str:
        """Text of the first variant."""
        return self.variants[0].text

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"source": self.source_key}
        if self.disambiguation:
            data["comment"] = self.disambiguation
        if self.is_plural:
            data["numerus"] = True
            data["translations"] = [v.text for v in self.variants]
        else:
            data["translation"] = self.text
        if self.unfinished:
            data["unfinished"] = True
        return data


class CatalogStore:
    """Read-only catalog of one locale.

    Built once by a loader or :class:`CatalogBuilder` and never mutated
    afterwards, so a store can be shared by any number of threads.
    """

    __slots__ = ("_language", "_source_language", "_entries", "_contexts", "_metadata")

    def __init__(
        self,
        language: str,
        entries: Mapping[MessageKey, CatalogEntry],
        *,
        source_language: str = "",
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        contexts: dict[str, list[CatalogEntry]] = {}
        for entry in entries.values():
            contexts.setdefault(entry.context, []).append(entry)

        self._language = language
        self._source_language = source_language
        self._entries = MappingProxyType(dict(entries))
        self._contexts = MappingProxyType({k: tuple(v) for k, v in contexts.items()})
        self._metadata = MappingProxyType(dict(metadata or {}))

    @property
    def language(self) -> str:
        """Target locale code declared by the catalog."""
        return self._language

    @property
    def source_language(self) -> str:
        return self._source_language

    @property
    def metadata(self) -> Mapping[str, Any]:
        return self._metadata

    def lookup(
        self,
        context: str,
        source_key: str,
        disambiguation: str = "",
    ) -> CatalogEntry | None:
        """Find an entry by exact context and source text.

        When a disambiguation is given but no entry carries it, the entry
        without disambiguation is returned instead.

        Returns:
            The entry, or None when the message is not translated.
        """
        entry = self._entries.get(MessageKey(context, source_key, disambiguation))
        if entry is None and disambiguation:
            entry = self._entries.get(MessageKey(context, source_key, ""))
        return entry

    def contexts(self) -> list[str]:
        """Context names in load order."""
        return list(self._contexts)

    def entries_for(self, context: str) -> tuple[CatalogEntry, ...]:
        return self._contexts.get(context, ())

    def plural_entries(self) -> list[CatalogEntry]:
        return [e for e in self._entries.values() if e.is_plural]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries.values())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __repr__(self) -> str:
        return f"CatalogStore(language={self._language!r}, entries={len(self._entries)})"

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON/YAML catalog layout."""
        data: dict[str, Any] = {"language": self._language}
        if self._source_language:
            data["source_language"] = self._source_language
        data["contexts"] = [
            {"name": name, "messages": [e.to_dict() for e in entries]}
            for name, entries in self._contexts.items()
        ]
        return data

    def to_json(self, path: Path) -> None:
        """Save to a JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        *,
        language: str | None = None,
        source: str | None = None,
        include_unfinished: bool = True,
        on_integrity_error: Callable[[IntegrityError], None] | None = None,
    ) -> "CatalogStore":
        """Build a store from the JSON/YAML catalog layout.

        This performs structural parsing only. Numerus form counts are
        checked by :class:`tscatalog.loader.CatalogLoader`, which knows the
        locale's plural rule.

        Args:
            data: Parsed catalog document.
            language: Override for the declared target language.
            source: Label used in error messages.
            include_unfinished: Keep messages marked unfinished.
            on_integrity_error: Called with each integrity error instead of
                raising it; the offending message is dropped.

        Raises:
            ParseError: If the layout is malformed.
            IntegrityError: If a message is inconsistent and no
                ``on_integrity_error`` handler is given.
        """
        if not isinstance(data, Mapping):
            raise ParseError("Catalog root must be a mapping", source=source)

        lang = language or data.get("language")
        if not lang or not isinstance(lang, str):
            raise ParseError("Catalog does not declare a target language", source=source)

        contexts = data.get("contexts")
        if not isinstance(contexts, list):
            raise ParseError("'contexts' must be a list", source=source)

        builder = CatalogBuilder(
            language=lang,
            source_language=str(data.get("source_language") or ""),
            metadata={"source": source} if source else None,
        )
        for ctx in contexts:
            if not isinstance(ctx, Mapping) or not isinstance(ctx.get("name"), str):
                raise ParseError("Context without a 'name'", source=source)
            name = ctx["name"]
            messages = ctx.get("messages", [])
            if not isinstance(messages, list):
                raise ParseError(f"Messages of context {name!r} must be a list", source=source)

            for message in messages:
                try:
                    entry = _entry_from_dict(name, message, source)
                    if entry is None or (entry.unfinished and not include_unfinished):
                        continue
                    builder.add(entry)
                except IntegrityError as e:
                    if on_integrity_error is None:
                        raise
                    on_integrity_error(e)

        return builder.build()


def _entry_from_dict(
    context: str,
    message: Any,
    source: str | None,
) -> CatalogEntry | None:
    if not isinstance(message, Mapping) or not isinstance(message.get("source"), str):
        raise ParseError(f"Message in context {context!r} has no 'source'", source=source)

    source_key = message["source"]
    comment = message.get("comment") or ""
    unfinished = bool(message.get("unfinished", False))

    if message.get("numerus"):
        forms = message.get("translations")
        if not isinstance(forms, list) or not forms or not all(isinstance(f, str) for f in forms):
            raise ParseError(
                f"Numerus message {source_key!r} needs a non-empty 'translations' list",
                source=source,
            )
        if not any(forms):
            return None
        if not all(forms):
            raise IntegrityError(
                f"Numerus message {source_key!r} has empty forms",
                context=context,
                source_key=source_key,
            )
        return CatalogEntry.plural(
            context, source_key, forms, disambiguation=comment, unfinished=unfinished
        )

    text = message.get("translation")
    if not isinstance(text, str):
        raise ParseError(f"Message {source_key!r} has no 'translation'", source=source)
    if not text:
        return None
    return CatalogEntry.simple(
        context, source_key, text, disambiguation=comment, unfinished=unfinished
    )


@dataclass
class CatalogBuilder:
    """Mutable staging area for a :class:`CatalogStore`."""

    language: str
    source_language: str = ""
    metadata: dict[str, Any] | None = None
    _entries: dict[MessageKey, CatalogEntry] = field(default_factory=dict, repr=False)

    @classmethod
    def from_store(cls, store: CatalogStore) -> "CatalogBuilder":
        """Start a builder holding a copy of ``store``'s entries."""
        builder = cls(
            language=store.language,
            source_language=store.source_language,
            metadata=dict(store.metadata),
        )
        for entry in store:
            builder.add(entry)
        return builder

    def add(self, entry: CatalogEntry) -> None:
        """Stage an entry.

        Raises:
            IntegrityError: If an entry with the same key is already staged.
        """
        if entry.key in self._entries:
            raise IntegrityError(
                f"Duplicate message {entry.source_key!r} in context {entry.context!r}",
                context=entry.context,
                source_key=entry.source_key,
            )
        self._entries[entry.key] = entry

    def discard(self, key: MessageKey) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(list(self._entries.values()))

    def build(self) -> CatalogStore:
        return CatalogStore(
            self.language,
            self._entries,
            source_language=self.source_language,
            metadata=self.metadata,
        )
