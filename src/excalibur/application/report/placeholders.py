"""
Placeholder resolution for template cells.

A cell is resolved by the first strategy that applies:

1. FieldReferenceStrategy - the whole cell is exactly one `{{ .Field }}`
   reference to a fetched field. The raw value is returned so numbers, dates
   and booleans keep their native type in the output cell.
2. TemplateStrategy - anything else is rendered as a Jinja2 template against
   the fetched row with strict undefined handling. The result is always text.

Go-style leading-dot references (`{{ .Region }}`) are accepted by both
strategies; the template strategy rewrites them to plain names before
compiling, so `{{ .Total | round(1) }} ({{ .Region }})` works as expected.
"""

from __future__ import annotations

import functools
import re
from typing import Any, List, Mapping, Optional, Protocol, Sequence

from jinja2 import StrictUndefined, Template
from jinja2.sandbox import SandboxedEnvironment

from excalibur.domain.errors import PlaceholderError

PLACEHOLDER_MARKER = "{{"

# Exactly one field reference with optional surrounding whitespace: {{ .key }} / {{.key}}
SIMPLE_FIELD_RE = re.compile(r"^\s*\{\{\s*\.\s*([a-zA-Z0-9_]+)\s*\}\}\s*$")

# Expression and statement tags; the body is group 2.
_TAG_RE = re.compile(r"(\{\{-?|\{%-?)(.*?)(-?\}\}|-?%\})", re.DOTALL)

# Inside a tag body: a string literal (kept verbatim), or a dot that starts a
# field reference (not part of a number, attribute chain, call result or
# string literal boundary).
_BODY_TOKEN_RE = re.compile(
    r"""(?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")"""
    r"""|(?<![\w.)\]'"])\.\s*(?=[A-Za-z_])""",
    re.DOTALL,
)

# Compiled cell templates kept per strategy
TEMPLATE_CACHE_SIZE = 1024


def has_placeholder(text: str) -> bool:
    """Cheap pre-check before any parsing."""
    return PLACEHOLDER_MARKER in text


def translate_field_references(text: str) -> str:
    """Rewrite `.Field` references inside template tags to `Field`."""

    def _token(match: re.Match) -> str:
        return match.group("string") or ""

    def _rewrite(match: re.Match) -> str:
        opening, body, closing = match.groups()
        return opening + _BODY_TOKEN_RE.sub(_token, body) + closing

    return _TAG_RE.sub(_rewrite, text)


class PlaceholderStrategy(Protocol):
    """One way of turning cell text into a value."""

    def applies(self, text: str, fields: Mapping[str, Any]) -> bool:
        ...

    def resolve(self, text: str, fields: Mapping[str, Any]) -> Any:
        ...


class FieldReferenceStrategy:
    """Type-preserving substitution of a cell that is a single field reference."""

    def field_name(self, text: str) -> Optional[str]:
        match = SIMPLE_FIELD_RE.match(text)
        return match.group(1) if match else None

    def applies(self, text: str, fields: Mapping[str, Any]) -> bool:
        name = self.field_name(text)
        return name is not None and name in fields

    def resolve(self, text: str, fields: Mapping[str, Any]) -> Any:
        name = self.field_name(text)
        if name is None or name not in fields:
            raise PlaceholderError(f"cell is not a reference to a fetched field: {text!r}")
        return fields[name]


class TemplateStrategy:
    """
    General template evaluation with Jinja2.

    Undefined fields raise instead of rendering as empty text, so a typo in a
    template never produces a silently blank cell.
    """

    def __init__(self, cache_size: int = TEMPLATE_CACHE_SIZE) -> None:
        self._env = SandboxedEnvironment(
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )
        # Compiled templates keyed by original cell text, least recently used evicted first
        self._compile = functools.lru_cache(maxsize=cache_size)(self._compile_template)

    def applies(self, text: str, fields: Mapping[str, Any]) -> bool:
        return True

    def _compile_template(self, text: str) -> Template:
        return self._env.from_string(translate_field_references(text))

    def resolve(self, text: str, fields: Mapping[str, Any]) -> str:
        try:
            template = self._compile(text)
        except Exception as e:
            raise PlaceholderError(f"parse cell template: {e}") from e

        try:
            return template.render(dict(fields))
        except Exception as e:
            raise PlaceholderError(f"execute cell template: {e}") from e


class PlaceholderResolver:
    """Dispatches cell text to the first applicable strategy."""

    def __init__(self, strategies: Optional[Sequence[PlaceholderStrategy]] = None) -> None:
        self.strategies: List[PlaceholderStrategy] = list(
            strategies if strategies is not None else (FieldReferenceStrategy(), TemplateStrategy())
        )

    def resolve(self, text: str, fields: Mapping[str, Any]) -> Any:
        """
        Evaluate a cell's text against a fetched row.

        Args:
            text: Original cell text containing a placeholder
            fields: Fetched row

        Returns:
            Raw field value (single reference) or rendered text

        Raises:
            PlaceholderError: If no strategy can produce a value
        """
        for strategy in self.strategies:
            if strategy.applies(text, fields):
                return strategy.resolve(text, fields)
        raise PlaceholderError(f"no placeholder strategy applies to {text!r}")
