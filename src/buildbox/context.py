"""Context expansion for configuration strings.

Configuration values may reference context variables with ``$#[NAME]``
tokens. The context is an ordered name -> value mapping assembled from
workspace settings, the selected build config and ``KEY=VALUE`` pairs from
the command line.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping

from .errors import ContextExpansionError, ValidationError

TOKEN_PATTERN = re.compile(r"\$#\[([^\[\]]*)\]")


def parse_key_values(items: Iterable[str], what: str = "KEY=VALUE") -> dict[str, str]:
    """Parse ``KEY=VALUE`` strings into an ordered dict.

    The value is everything after the first ``=`` and may be empty.
    Later duplicates win.

    Raises:
        ValidationError: An item has no ``=`` or an empty key.
    """
    pairs: dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValidationError(f"Invalid {what} pair '{item}'")
        pairs[key] = value
    return pairs


class Context(Mapping[str, str]):
    """Read-only ordered variable mapping used for token substitution."""

    def __init__(self, variables: Mapping[str, str] | None = None) -> None:
        self._variables: dict[str, str] = dict(variables or {})

    @classmethod
    def layered(cls, *sources: Mapping[str, str]) -> Context:
        """Build a context where later sources override earlier ones."""
        merged: dict[str, str] = {}
        for source in sources:
            merged.update(source)
        return cls(merged)

    def __getitem__(self, key: str) -> str:
        return self._variables[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._variables)

    def __len__(self) -> int:
        return len(self._variables)

    def __repr__(self) -> str:
        return f"Context({self._variables!r})"

    def expand(self, template: str) -> str:
        return expand(template, self)


def expand(template: str, context: Mapping[str, str]) -> str:
    """Replace every ``$#[NAME]`` token in ``template``.

    Substituted values are not scanned again, so a value containing a token
    is inserted literally.

    Raises:
        ContextExpansionError: A token names a variable missing from the context.
    """

    def _resolve(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in context:
            raise ContextExpansionError(
                f"Unresolved context variable '{name}' in '{template}'"
            )
        return context[name]

    return TOKEN_PATTERN.sub(_resolve, template)
