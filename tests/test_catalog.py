"""Tests for the catalog data model.

Tests cover:
- Entry construction and invariants
- Store lookup, disambiguation fallback and read helpers
- The builder
- JSON/YAML layout conversion
"""

from __future__ import annotations

import json
from types import MappingProxyType

import pytest

from tscatalog.catalog import (
    CatalogBuilder,
    CatalogEntry,
    CatalogStore,
    MessageKey,
    TranslationVariant,
)
from tscatalog.exceptions import IntegrityError, ParseError


@pytest.fixture
def store() -> CatalogStore:
    builder = CatalogBuilder(language="ja", source_language="en")
    builder.add(CatalogEntry.simple("AddressBookPage", "&Copy", "コピー(&C)"))
    builder.add(CatalogEntry.simple("CoinControlDialog", "Amount", "金額"))
    builder.add(CatalogEntry.simple("QObject", "Amount", "総額"))
    builder.add(CatalogEntry.simple("BitcoinGUI", "Open", "開く", disambiguation="verb"))
    builder.add(CatalogEntry.simple("BitcoinGUI", "Open", "オープン"))
    builder.add(CatalogEntry.plural(
        "BitcoinGUI",
        "Processed %n block(s) of transaction history.",
        ["%n ブロックのトランザクション履歴を処理"],
    ))
    return builder.build()


# =============================================================================
# CatalogEntry
# =============================================================================


class TestCatalogEntry:
    """Tests for CatalogEntry."""

    def test_simple(self):
        entry = CatalogEntry.simple("AddressBookPage", "&New", "新規(&N)")
        assert entry.variants == (TranslationVariant(0, "新規(&N)"),)
        assert entry.is_plural is False
        assert entry.text == "新規(&N)"
        assert entry.key == MessageKey("AddressBookPage", "&New", "")

    def test_plural_indexes_forms(self):
        entry = CatalogEntry.plural("Test", "%n file(s)", ["%n файл", "%n файла", "%n файлов"])
        assert entry.is_plural
        assert [v.plural_index for v in entry.variants] == [0, 1, 2]
        assert entry.variants[2].text == "%n файлов"

    def test_empty_variants_rejected(self):
        with pytest.raises(IntegrityError) as exc_info:
            CatalogEntry("Test", "Hello", ())
        assert exc_info.value.context == "Test"
        assert exc_info.value.source_key == "Hello"

    def test_simple_entry_with_several_variants_rejected(self):
        variants = (TranslationVariant(0, "a"), TranslationVariant(1, "b"))
        with pytest.raises(IntegrityError):
            CatalogEntry("Test", "Hello", variants, is_plural=False)

    def test_frozen(self):
        entry = CatalogEntry.simple("Test", "Hello", "こんにちは")
        with pytest.raises(AttributeError):
            entry.source_key = "Bye"  # type: ignore[misc]

    def test_to_dict(self):
        entry = CatalogEntry.plural(
            "Test", "%n file(s)", ["%n ファイル"], disambiguation="files", unfinished=True
        )
        assert entry.to_dict() == {
            "source": "%n file(s)",
            "comment": "files",
            "numerus": True,
            "translations": ["%n ファイル"],
            "unfinished": True,
        }


# =============================================================================
# CatalogStore
# =============================================================================


class TestCatalogStore:
    """Tests for CatalogStore lookup and helpers."""

    def test_lookup_exact(self, store):
        entry = store.lookup("AddressBookPage", "&Copy")
        assert entry is not None
        assert entry.text == "コピー(&C)"

    def test_lookup_absent(self, store):
        assert store.lookup("AddressBookPage", "&Paste") is None
        assert store.lookup("UnknownContext", "&Copy") is None

    def test_lookup_is_exact_match(self, store):
        assert store.lookup("AddressBookPage", "&copy") is None
        assert store.lookup("AddressBookPage", "&Copy ") is None
        assert store.lookup("addressbookpage", "&Copy") is None

    def test_same_source_in_different_contexts(self, store):
        assert store.lookup("CoinControlDialog", "Amount").text == "金額"
        assert store.lookup("QObject", "Amount").text == "総額"

    def test_disambiguation(self, store):
        assert store.lookup("BitcoinGUI", "Open", "verb").text == "開く"
        assert store.lookup("BitcoinGUI", "Open").text == "オープン"

    def test_unknown_disambiguation_falls_back_to_plain_entry(self, store):
        assert store.lookup("BitcoinGUI", "Open", "noun").text == "オープン"

    def test_len_iter_contains(self, store):
        assert len(store) == 6
        assert len(list(store)) == 6
        assert MessageKey("QObject", "Amount") in store
        assert MessageKey("QObject", "Missing") not in store

    def test_contexts_in_load_order(self, store):
        assert store.contexts() == [
            "AddressBookPage", "CoinControlDialog", "QObject", "BitcoinGUI",
        ]
        assert len(store.entries_for("BitcoinGUI")) == 3
        assert store.entries_for("Nope") == ()

    def test_plural_entries(self, store):
        assert [e.source_key for e in store.plural_entries()] == [
            "Processed %n block(s) of transaction history.",
        ]

    def test_properties(self, store):
        assert store.language == "ja"
        assert store.source_language == "en"
        assert isinstance(store.metadata, MappingProxyType)
        assert "ja" in repr(store)

    def test_store_is_read_only(self, store):
        with pytest.raises(AttributeError):
            store.extra = 1  # type: ignore[attr-defined]


# =============================================================================
# CatalogBuilder
# =============================================================================


class TestCatalogBuilder:
    """Tests for CatalogBuilder."""

    def test_duplicate_key_rejected(self):
        builder = CatalogBuilder(language="ja")
        builder.add(CatalogEntry.simple("Test", "Hello", "こんにちは"))
        with pytest.raises(IntegrityError, match="Duplicate"):
            builder.add(CatalogEntry.simple("Test", "Hello", "やあ"))

    def test_same_source_different_comment_allowed(self):
        builder = CatalogBuilder(language="ja")
        builder.add(CatalogEntry.simple("Test", "Open", "開く", disambiguation="verb"))
        builder.add(CatalogEntry.simple("Test", "Open", "未確定", disambiguation="adjective"))
        assert len(builder) == 2

    def test_discard(self):
        builder = CatalogBuilder(language="ja")
        entry = CatalogEntry.simple("Test", "Hello", "こんにちは")
        builder.add(entry)
        builder.discard(entry.key)
        builder.discard(entry.key)
        assert len(builder) == 0

    def test_build_is_independent_of_builder(self):
        builder = CatalogBuilder(language="ja")
        builder.add(CatalogEntry.simple("Test", "Hello", "こんにちは"))
        store = builder.build()
        builder.add(CatalogEntry.simple("Test", "Bye", "さようなら"))
        assert len(store) == 1

    def test_from_store(self, store):
        builder = CatalogBuilder.from_store(store)
        assert builder.language == "ja"
        assert len(builder) == len(store)


# =============================================================================
# Dictionary layout
# =============================================================================


class TestDictLayout:
    """Tests for to_dict / from_dict."""

    def test_round_trip_preserves_lookups(self, store):
        restored = CatalogStore.from_dict(json.loads(json.dumps(store.to_dict())))
        assert len(restored) == len(store)
        assert restored.lookup("QObject", "Amount").text == "総額"
        assert restored.lookup("BitcoinGUI", "Open", "verb").text == "開く"
        entry = restored.lookup("BitcoinGUI", "Processed %n block(s) of transaction history.")
        assert entry.is_plural

    def test_to_json(self, store, tmp_path):
        path = tmp_path / "ja.json"
        store.to_json(path)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["language"] == "ja"
        assert "コピー(&C)" in path.read_text(encoding="utf-8")

    def test_empty_translation_skipped(self):
        store = CatalogStore.from_dict({
            "language": "ja",
            "contexts": [{"name": "Test", "messages": [
                {"source": "Hello", "translation": ""},
                {"source": "%n item(s)", "numerus": True, "translations": [""]},
            ]}],
        })
        assert len(store) == 0

    def test_unfinished_filter(self):
        data = {
            "language": "ja",
            "contexts": [{"name": "Test", "messages": [
                {"source": "Wallet", "translation": "ウォレット", "unfinished": True},
            ]}],
        }
        assert len(CatalogStore.from_dict(data)) == 1
        assert len(CatalogStore.from_dict(data, include_unfinished=False)) == 0

    def test_language_override(self):
        store = CatalogStore.from_dict({"language": "ja", "contexts": []}, language="ja_JP")
        assert store.language == "ja_JP"

    @pytest.mark.parametrize(
        "data",
        [
            [],
            {"contexts": []},
            {"language": "ja"},
            {"language": "ja", "contexts": [{"messages": []}]},
            {"language": "ja", "contexts": [{"name": "T", "messages": {}}]},
            {"language": "ja", "contexts": [{"name": "T", "messages": [{"translation": "x"}]}]},
            {"language": "ja", "contexts": [{"name": "T", "messages": [{"source": "x"}]}]},
            {"language": "ja", "contexts": [{"name": "T", "messages": [
                {"source": "x", "numerus": True, "translations": []},
            ]}]},
        ],
    )
    def test_malformed_layout(self, data):
        with pytest.raises(ParseError):
            CatalogStore.from_dict(data, source="bad.json")

    def test_partially_empty_numerus_forms(self):
        data = {"language": "ru", "contexts": [{"name": "T", "messages": [
            {"source": "%n file(s)", "numerus": True, "translations": ["%n файл", "", ""]},
        ]}]}
        with pytest.raises(IntegrityError):
            CatalogStore.from_dict(data)

    def test_integrity_handler_drops_entry(self):
        data = {"language": "ja", "contexts": [{"name": "T", "messages": [
            {"source": "Hello", "translation": "こんにちは"},
            {"source": "Hello", "translation": "やあ"},
        ]}]}
        errors: list[IntegrityError] = []
        store = CatalogStore.from_dict(data, on_integrity_error=errors.append)
        assert len(store) == 1
        assert store.lookup("T", "Hello").text == "こんにちは"
        assert len(errors) == 1
