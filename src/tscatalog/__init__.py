"""tscatalog - Qt translation catalog resolution and formatting.

This package loads Qt Linguist ``.ts`` catalogs (and their JSON/YAML
equivalents) and resolves UI messages at runtime with:
- Exact (context, source text) lookup with fallback to the source text
- Numerus form selection following Qt Linguist's plural rules
- ``%1``/``%n``/``%%`` placeholder substitution
- Atomic switching of the active locale

Example:
    from tscatalog import Translator

    translator = Translator()
    translator.load_locale("ja", "src/qt/locale", domain="dash")

    translator.translate("AddressBookPage", "&Copy")  # "コピー(&C)"
    translator.translate(
        "BitcoinGUI", "Processed %n block(s) of transaction history.", count=3
    )  # "3 ブロックのトランザクション履歴を処理"
"""

from tscatalog.catalog import (
    CatalogBuilder,
    CatalogEntry,
    CatalogStore,
    MessageKey,
    TranslationVariant,
)
from tscatalog.config import TranslatorConfig, load_config
from tscatalog.exceptions import (
    CatalogError,
    ConfigError,
    IntegrityError,
    InvalidArgument,
    MissingArgument,
    ParseError,
)
from tscatalog.formatting import (
    FormatDiagnostic,
    FormatResult,
    PlaceholderFormatter,
    format_message,
    placeholders,
)
from tscatalog.loader import (
    CatalogLoader,
    IntegrityPolicy,
    available_locales,
    load_catalog,
    loads_catalog,
)
from tscatalog.locale import LocaleInfo, detect_system_locale, normalize_locale
from tscatalog.log import configure_logging
from tscatalog.plurals import (
    NumerusRule,
    PluralCategory,
    PluralRuleTable,
    get_numerus_rule,
    get_plural_category,
    get_plural_rules,
    select_variant,
)
from tscatalog.translator import ActiveCatalog, LocaleCatalog, Translator
from tscatalog.validation import (
    CatalogIssue,
    CatalogStats,
    IssueSeverity,
    catalog_stats,
    check_catalog,
)

__version__ = "0.1.0"

__all__ = [
    # Catalog
    "CatalogBuilder",
    "CatalogEntry",
    "CatalogStore",
    "MessageKey",
    "TranslationVariant",
    # Loading
    "CatalogLoader",
    "IntegrityPolicy",
    "available_locales",
    "load_catalog",
    "loads_catalog",
    # Plurals
    "NumerusRule",
    "PluralCategory",
    "PluralRuleTable",
    "get_numerus_rule",
    "get_plural_category",
    "get_plural_rules",
    "select_variant",
    # Formatting
    "FormatDiagnostic",
    "FormatResult",
    "PlaceholderFormatter",
    "format_message",
    "placeholders",
    # Lookup
    "ActiveCatalog",
    "LocaleCatalog",
    "Translator",
    # Locale
    "LocaleInfo",
    "detect_system_locale",
    "normalize_locale",
    # Checks
    "CatalogIssue",
    "CatalogStats",
    "IssueSeverity",
    "catalog_stats",
    "check_catalog",
    # Configuration and logging
    "TranslatorConfig",
    "load_config",
    "configure_logging",
    # Errors
    "CatalogError",
    "ConfigError",
    "IntegrityError",
    "InvalidArgument",
    "MissingArgument",
    "ParseError",
]
