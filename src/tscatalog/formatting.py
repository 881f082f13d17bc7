"""Placeholder substitution for resolved translations.

Only three token forms are expanded:

- ``%1``, ``%2``, ... ``%10`` ...: positional arguments, 1-based
- ``%n``: the plural count
- ``%%``: a literal percent sign

Everything else, including ``%s``, ``%d``, ``%u``, ``%i``, ``%p`` and
``%L1``, is copied through for a lower-level formatter to handle. Markup
in the text is opaque. Substitution is a single left-to-right pass;
substituted values are never rescanned.

Example:
    formatter = PlaceholderFormatter()
    formatter.format("%1 of %2 (%n%%)", ["3", "10"], count=30)
    # -> "3 of 10 (30%)"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Sequence

from tscatalog.exceptions import MissingArgument

logger = logging.getLogger("tscatalog.formatting")


@dataclass(frozen=True)
class FormatDiagnostic:
    """A problem found while formatting that did not abort the render."""

    template: str
    position: int | str
    message: str


@dataclass
class FormatResult:
    """Formatted text plus any diagnostics recorded on the way."""

    text: str
    diagnostics: list[FormatDiagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics


class PlaceholderFormatter:
    """Expands ``%<digits>``, ``%n`` and ``%%`` tokens.

    Args:
        strict: Raise :class:`MissingArgument` for a positional reference
            beyond the supplied arguments. When False (the default), the
            reference is replaced by an empty string and a warning is logged.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict
        self._type_formatters: dict[type, Callable[[Any], str]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        self._type_formatters[datetime] = lambda d: d.isoformat(sep=" ", timespec="seconds")
        self._type_formatters[Path] = str

    def register_formatter(self, type_: type, formatter: Callable[[Any], str]) -> None:
        """Register how values of ``type_`` are rendered into text."""
        self._type_formatters[type_] = formatter

    def stringify(self, value: Any) -> str:
        if isinstance(value, str):
            return value
        type_formatter = self._type_formatters.get(type(value))
        if type_formatter is not None:
            return type_formatter(value)
        return str(value)

    def format(
        self,
        template: str,
        args: Sequence[Any] = (),
        count: int | None = None,
    ) -> str:
        """Substitute tokens in ``template``.

        Args:
            template: Resolved translation or source text.
            args: Values for ``%1``, ``%2``, ...
            count: Value for ``%n``; ``%n`` is left as is when None.

        Returns:
            The substituted text.

        Raises:
            MissingArgument: In strict mode, for a reference past ``args``.
        """
        return self.format_with_diagnostics(template, args, count).text

    def format_with_diagnostics(
        self,
        template: str,
        args: Sequence[Any] = (),
        count: int | None = None,
    ) -> FormatResult:
        """Like :meth:`format` but also return recorded diagnostics."""
        if "%" not in template:
            return FormatResult(template)

        values = [self.stringify(a) for a in args]
        diagnostics: list[FormatDiagnostic] = []
        out: list[str] = []
        length = len(template)
        start = 0
        i = template.find("%")

        while i != -1:
            out.append(template[start:i])
            j = i + 1
            nxt = template[j] if j < length else ""

            if nxt == "%":
                out.append("%")
                start = j + 1
            elif nxt == "n":
                out.append(template[i : j + 1] if count is None else str(count))
                start = j + 1
            elif "1" <= nxt <= "9":
                end = j + 1
                while end < length and "0" <= template[end] <= "9":
                    end += 1
                digits = template[j:end]
                # Too many digits to name a supplied argument
                position: int | str = (
                    int(digits) if len(digits) <= len(str(len(values))) else digits
                )
                if isinstance(position, int) and position <= len(values):
                    out.append(values[position - 1])
                else:
                    if self.strict:
                        raise MissingArgument(position, len(values), template)
                    diagnostic = FormatDiagnostic(
                        template,
                        position,
                        f"%{position} has no argument ({len(values)} supplied)",
                    )
                    logger.warning("Missing argument: %s in %r", diagnostic.message, template)
                    diagnostics.append(diagnostic)
                start = end
            else:
                # Not ours: "%s", "%p", "%0", a trailing "%" ...
                out.append("%")
                start = j

            i = template.find("%", start)

        out.append(template[start:])
        return FormatResult("".join(out), diagnostics)


def placeholders(template: str) -> set[str]:
    """Collect the substitutable tokens a text uses.

    Returns:
        Tokens such as ``{"%1", "%2", "%n"}``; ``%%`` escapes are not
        reported.
    """
    found: set[str] = set()
    length = len(template)
    i = template.find("%")
    while i != -1:
        j = i + 1
        nxt = template[j] if j < length else ""
        if nxt == "%":
            j += 1
        elif nxt == "n":
            found.add("%n")
            j += 1
        elif "1" <= nxt <= "9":
            end = j + 1
            while end < length and "0" <= template[end] <= "9":
                end += 1
            found.add(f"%{template[j:end]}")
            j = end
        i = template.find("%", j)
    return found


_default_formatter = PlaceholderFormatter()


def format_message(
    template: str,
    args: Sequence[Any] = (),
    count: int | None = None,
) -> str:
    """Substitute tokens using a shared lenient formatter."""
    return _default_formatter.format(template, args, count)
