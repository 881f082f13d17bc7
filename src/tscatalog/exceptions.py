"""Exception hierarchy for catalog loading and message resolution.

Load-time errors (``ParseError``, ``IntegrityError``) abort activation of a
locale. Call-time errors (``InvalidArgument``, ``MissingArgument``) are
reported to the immediate caller of ``Translator.translate``.
"""

from __future__ import annotations

from typing import Any


class CatalogError(Exception):
    """Base error for everything raised by tscatalog."""

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ParseError(CatalogError):
    """A serialized catalog is malformed.

    Attributes:
        source: Path or label of the resource being parsed.
        line: Line number of the offending markup, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        line: int | None = None,
    ) -> None:
        location = source or "<string>"
        if line is not None:
            location = f"{location}:{line}"
        super().__init__(f"{location}: {message}", source=source, line=line)
        self.source = source
        self.line = line


class IntegrityError(CatalogError):
    """An entry violates a catalog invariant.

    Raised for a numerus form count that does not match the locale's plural
    rule, partially empty numerus forms, or a duplicated message key.
    """

    def __init__(
        self,
        message: str,
        *,
        context: str | None = None,
        source_key: str | None = None,
    ) -> None:
        super().__init__(message, context=context, source_key=source_key)
        self.context = context
        self.source_key = source_key


class InvalidArgument(CatalogError, ValueError):
    """A translate call received an unusable count."""


class MissingArgument(CatalogError, LookupError):
    """A positional placeholder references an argument that was not supplied."""

    def __init__(self, position: int | str, supplied: int, template: str) -> None:
        super().__init__(
            f"Placeholder %{position} references argument {position} "
            f"but only {supplied} supplied",
            position=position,
            supplied=supplied,
        )
        self.position = position
        self.supplied = supplied
        self.template = template


class ConfigError(CatalogError):
    """Invalid configuration value or unreadable configuration file."""
