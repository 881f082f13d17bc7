"""Consistency checks for loaded catalogs.

These are the checks Qt Linguist shows translators, run over a whole
catalog so release tooling can gate on them:

- placeholders: a translation must use the same ``%1``..``%N`` tokens as
  its source, and a plural message must use ``%n`` somewhere
- accelerators: a source with a keyboard accelerator (``&Copy``) needs one
  in the translation, and the other way round
- numerus forms: a plural message must have as many forms as the
  locale's rule requires

Example:
    issues = check_catalog(store)
    for issue in issues:
        print(issue.severity.value, issue.context, issue.message)
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from tscatalog.catalog import CatalogEntry, CatalogStore
from tscatalog.formatting import placeholders
from tscatalog.plurals import NumerusRule, get_numerus_rule


class IssueSeverity(Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueCode(Enum):
    PLACEHOLDER_MISSING = "placeholder-missing"
    PLACEHOLDER_EXTRA = "placeholder-extra"
    COUNT_UNUSED = "count-unused"
    ACCELERATOR_MISSING = "accelerator-missing"
    ACCELERATOR_EXTRA = "accelerator-extra"
    NUMERUS_FORMS = "numerus-forms"


@dataclass(frozen=True)
class CatalogIssue:
    """A problem found in one catalog entry."""

    code: IssueCode
    severity: IssueSeverity
    context: str
    source_key: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "code": self.code.value,
            "severity": self.severity.value,
            "context": self.context,
            "source": self.source_key,
            "message": self.message,
        }


@dataclass
class CatalogStats:
    """Counts describing a catalog."""

    language: str
    contexts: int = 0
    messages: int = 0
    plural_messages: int = 0
    unfinished: int = 0
    per_context: dict[str, int] = field(default_factory=dict)

    @property
    def finished(self) -> int:
        return self.messages - self.unfinished

    def to_dict(self) -> dict[str, object]:
        return {
            "language": self.language,
            "contexts": self.contexts,
            "messages": self.messages,
            "plural_messages": self.plural_messages,
            "unfinished": self.unfinished,
            "finished": self.finished,
            "per_context": dict(self.per_context),
        }


# "&" followed by a letter or digit, but not "&&" (a literal ampersand)
# and not an HTML entity such as "&nbsp;"
_ACCELERATOR = re.compile(r"(?<!&)&(?!&)(?![A-Za-z]+;|#\d+;)[^\W_]")


def has_accelerator(text: str) -> bool:
    """Check whether a UI string carries a keyboard accelerator marker."""
    return _ACCELERATOR.search(text.replace("&&", "")) is not None


def _check_placeholders(entry: CatalogEntry) -> list[CatalogIssue]:
    issues: list[CatalogIssue] = []
    expected = {t for t in placeholders(entry.source_key) if t != "%n"}

    for variant in entry.variants:
        found = {t for t in placeholders(variant.text) if t != "%n"}
        label = f" (form {variant.plural_index})" if entry.is_plural else ""
        for token in sorted(expected - found):
            issues.append(CatalogIssue(
                IssueCode.PLACEHOLDER_MISSING, IssueSeverity.ERROR,
                entry.context, entry.source_key,
                f"Translation{label} does not use {token}",
            ))
        for token in sorted(found - expected):
            issues.append(CatalogIssue(
                IssueCode.PLACEHOLDER_EXTRA, IssueSeverity.ERROR,
                entry.context, entry.source_key,
                f"Translation{label} uses {token}, which the source does not define",
            ))

    if entry.is_plural and "%n" in placeholders(entry.source_key):
        if not any("%n" in placeholders(v.text) for v in entry.variants):
            issues.append(CatalogIssue(
                IssueCode.COUNT_UNUSED, IssueSeverity.WARNING,
                entry.context, entry.source_key,
                "No numerus form uses %n",
            ))
    return issues


def _check_accelerator(entry: CatalogEntry) -> list[CatalogIssue]:
    source_has = has_accelerator(entry.source_key)
    issues: list[CatalogIssue] = []
    for variant in entry.variants:
        translation_has = has_accelerator(variant.text)
        if source_has and not translation_has:
            issues.append(CatalogIssue(
                IssueCode.ACCELERATOR_MISSING, IssueSeverity.WARNING,
                entry.context, entry.source_key,
                "Source has an accelerator, translation does not",
            ))
        elif translation_has and not source_has:
            issues.append(CatalogIssue(
                IssueCode.ACCELERATOR_EXTRA, IssueSeverity.WARNING,
                entry.context, entry.source_key,
                "Translation has an accelerator, source does not",
            ))
    return issues


def _check_numerus(entry: CatalogEntry, rule: NumerusRule) -> list[CatalogIssue]:
    if not entry.is_plural or len(entry.variants) == rule.form_count:
        return []
    return [CatalogIssue(
        IssueCode.NUMERUS_FORMS, IssueSeverity.ERROR,
        entry.context, entry.source_key,
        f"{len(entry.variants)} numerus forms, rule {rule.name!r} needs {rule.form_count}",
    )]


def check_entry(entry: CatalogEntry, rule: NumerusRule) -> list[CatalogIssue]:
    """Run every check on one entry."""
    return [
        *_check_numerus(entry, rule),
        *_check_placeholders(entry),
        *_check_accelerator(entry),
    ]


def check_catalog(
    store: CatalogStore,
    rule: NumerusRule | None = None,
) -> list[CatalogIssue]:
    """Run every check on every entry of a catalog.

    Args:
        store: Catalog to check.
        rule: Numerus rule; defaults to the rule of the catalog's language.

    Returns:
        Issues in catalog order.
    """
    rule = rule or get_numerus_rule(store.language)
    issues: list[CatalogIssue] = []
    for entry in store:
        issues.extend(check_entry(entry, rule))
    return issues


def catalog_stats(store: CatalogStore) -> CatalogStats:
    """Count the contexts and messages of a catalog."""
    per_context = Counter(entry.context for entry in store)
    return CatalogStats(
        language=store.language,
        contexts=len(per_context),
        messages=len(store),
        plural_messages=sum(1 for e in store if e.is_plural),
        unfinished=sum(1 for e in store if e.unfinished),
        per_context=dict(per_context),
    )
