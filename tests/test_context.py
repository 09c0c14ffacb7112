"""Tests for buildbox.context module."""

from __future__ import annotations

import pytest

from buildbox.context import Context, expand, parse_key_values
from buildbox.errors import ContextExpansionError, ValidationError


class TestParseKeyValues:
    """Tests for parse_key_values function."""

    def test_pairs(self) -> None:
        """Pairs split on the first '='."""
        assert parse_key_values(["A=1", "B=x=y", "C="]) == {"A": "1", "B": "x=y", "C": ""}

    def test_later_duplicate_wins(self) -> None:
        """Repeating a key keeps the last value."""
        assert parse_key_values(["A=1", "A=2"]) == {"A": "2"}

    @pytest.mark.parametrize("item", ["NOVALUE", "=value", " =value"])
    def test_malformed(self, item: str) -> None:
        """Missing '=' or an empty key is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            parse_key_values([item], "context")
        assert "context" in str(exc_info.value)


class TestContext:
    """Tests for the Context mapping."""

    def test_layered_later_wins(self) -> None:
        """Later sources override earlier ones."""
        ctx = Context.layered({"A": "1", "B": "1"}, {"B": "2"}, {"C": "3"})
        assert dict(ctx) == {"A": "1", "B": "2", "C": "3"}

    def test_mapping_protocol(self) -> None:
        """Context behaves as a read-only mapping."""
        ctx = Context({"A": "1"})
        assert "A" in ctx
        assert len(ctx) == 1
        assert ctx["A"] == "1"


class TestExpand:
    """Tests for expand function."""

    def test_replaces_tokens(self) -> None:
        """Every token is substituted."""
        ctx = Context({"OUT": "/b", "V": "eng"})
        assert ctx.expand("make O=$#[OUT] V=$#[V] $#[V]") == "make O=/b V=eng eng"

    def test_no_tokens(self) -> None:
        """Strings without tokens come back unchanged."""
        assert expand("make -j8 $HOME #[x]", {}) == "make -j8 $HOME #[x]"

    def test_unresolved(self) -> None:
        """An unknown name raises ContextExpansionError naming it."""
        with pytest.raises(ContextExpansionError) as exc_info:
            expand("cd $#[NOPE]", {"A": "1"})
        assert "NOPE" in str(exc_info.value)

    def test_not_recursive(self) -> None:
        """A substituted value containing a token is inserted literally."""
        assert expand("$#[A]", {"A": "$#[B]", "B": "x"}) == "$#[B]"

    def test_empty_value(self) -> None:
        """Empty values substitute as empty strings."""
        assert expand("a$#[E]b", {"E": ""}) == "ab"
