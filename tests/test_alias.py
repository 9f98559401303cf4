"""Tests for macro.alias (AliasTable, Alias, parse_definition)."""

from __future__ import annotations

import pytest

from macro.alias import (
    Alias,
    AliasTable,
    AliasTableFullError,
    AliasUsageError,
    DuplicatePolicy,
    MalformedAliasError,
    UnknownAliasError,
)
from macro.alias.table import parse_definition


# ---------------------------------------------------------------------------
# parse_definition
# ---------------------------------------------------------------------------


class TestParseDefinition:
    def test_basic(self) -> None:
        assert parse_definition("l=ls -la") == Alias(name="l", expansion="ls -la")

    def test_spaces_around_equals_trimmed(self) -> None:
        alias = parse_definition("l   =   ls -la")
        assert alias.name == "l"
        assert alias.expansion == "ls -la"

    def test_trailing_spaces_in_expansion_kept(self) -> None:
        assert parse_definition("l=ls  ").expansion == "ls  "

    def test_only_first_equals_splits(self) -> None:
        alias = parse_definition("set=x=1")
        assert alias.name == "set"
        assert alias.expansion == "x=1"

    def test_missing_equals(self) -> None:
        with pytest.raises(MalformedAliasError, match="no = found"):
            parse_definition("ls")

    def test_empty_name(self) -> None:
        with pytest.raises(MalformedAliasError, match="before ="):
            parse_definition("   =ls")

    def test_empty_expansion(self) -> None:
        with pytest.raises(MalformedAliasError, match="after ="):
            parse_definition("l=   ")

    def test_str_renders_definition(self) -> None:
        assert str(Alias(name="l", expansion="ls -la")) == "l=ls -la"


# ---------------------------------------------------------------------------
# AliasTable: define / find / list
# ---------------------------------------------------------------------------


class TestAliasTableDefine:
    def test_define_then_list(self) -> None:
        table = AliasTable()
        table.define("foo=bar baz")
        assert "foo=bar baz" in [str(a) for a in table.entries()]

    def test_find(self) -> None:
        table = AliasTable()
        table.define("l=ls -la")
        assert table.find("l") == "ls -la"

    def test_find_unknown(self) -> None:
        table = AliasTable()
        table.define("l=ls -la")
        assert table.find("ls") is None

    def test_find_is_case_sensitive(self) -> None:
        table = AliasTable()
        table.define("l=ls")
        assert table.find("L") is None

    def test_insertion_order(self) -> None:
        table = AliasTable()
        for name in ("c", "a", "b"):
            table.define(f"{name}=x")
        assert [a.name for a in table.entries()] == ["c", "a", "b"]

    def test_malformed_does_not_mutate(self) -> None:
        table = AliasTable()
        with pytest.raises(MalformedAliasError):
            table.define("nothing here")
        assert len(table) == 0

    def test_add_empty_lists(self) -> None:
        table = AliasTable()
        assert table.add("") == []
        table.add("a=b")
        assert table.add("") == [Alias("a", "b")]

    def test_add_defines(self) -> None:
        table = AliasTable()
        assert table.add("a=b") == Alias("a", "b")

    def test_entries_is_a_copy(self) -> None:
        table = AliasTable()
        table.define("a=b")
        table.entries().clear()
        assert len(table) == 1

    def test_contains(self) -> None:
        table = AliasTable()
        table.define("a=b")
        assert "a" in table
        assert "b" not in table


# ---------------------------------------------------------------------------
# AliasTable: duplicate names
# ---------------------------------------------------------------------------


class TestAliasTableDuplicates:
    def test_replace_is_default(self) -> None:
        assert AliasTable().duplicates is DuplicatePolicy.REPLACE

    def test_replace_rewrites_in_place(self) -> None:
        table = AliasTable()
        table.define("a=1")
        table.define("b=2")
        table.define("a=3")
        assert [str(x) for x in table.entries()] == ["a=3", "b=2"]
        assert table.find("a") == "3"

    def test_shadow_keeps_first(self) -> None:
        table = AliasTable(duplicates=DuplicatePolicy.SHADOW)
        table.define("a=1")
        table.define("a=2")
        assert len(table) == 2
        assert table.find("a") == "1"

    def test_shadow_unalias_reveals_next(self) -> None:
        table = AliasTable(duplicates="shadow")
        table.define("a=1")
        table.define("a=2")
        table.remove("a")
        assert table.find("a") == "2"

    def test_replace_allowed_when_full(self) -> None:
        table = AliasTable(capacity=1)
        table.define("a=1")
        table.define("a=2")
        assert table.find("a") == "2"


# ---------------------------------------------------------------------------
# AliasTable: capacity
# ---------------------------------------------------------------------------


class TestAliasTableCapacity:
    def test_full(self) -> None:
        table = AliasTable(capacity=2)
        table.define("a=1")
        table.define("b=2")
        with pytest.raises(AliasTableFullError, match="max number=2"):
            table.define("c=3")
        assert len(table) == 2
        assert table.find("c") is None

    def test_shadow_duplicate_counts_against_capacity(self) -> None:
        table = AliasTable(capacity=1, duplicates=DuplicatePolicy.SHADOW)
        table.define("a=1")
        with pytest.raises(AliasTableFullError):
            table.define("a=2")

    def test_invalid_capacity(self) -> None:
        with pytest.raises(ValueError):
            AliasTable(capacity=0)


# ---------------------------------------------------------------------------
# AliasTable: remove
# ---------------------------------------------------------------------------


class TestAliasTableRemove:
    def test_remove(self) -> None:
        table = AliasTable()
        table.define("foo=bar")
        removed = table.remove("foo")
        assert removed == Alias("foo", "bar")
        assert "foo" not in table

    def test_remove_twice_reports_unknown(self) -> None:
        table = AliasTable()
        table.define("foo=bar")
        table.remove("foo")
        with pytest.raises(UnknownAliasError, match='no such alias "foo"'):
            table.remove("foo")

    def test_remove_preserves_order(self) -> None:
        table = AliasTable()
        for name in ("a", "b", "c", "d"):
            table.define(f"{name}=x")
        table.remove("b")
        assert [a.name for a in table.entries()] == ["a", "c", "d"]

    def test_remove_last(self) -> None:
        table = AliasTable()
        table.define("a=1")
        table.define("b=2")
        table.remove("b")
        assert [a.name for a in table.entries()] == ["a"]

    def test_remove_uses_first_word(self) -> None:
        table = AliasTable()
        table.define("a=1")
        table.remove("a trailing words")
        assert len(table) == 0

    def test_remove_empty_name(self) -> None:
        table = AliasTable()
        table.define("a=1")
        with pytest.raises(AliasUsageError):
            table.remove("")
        assert len(table) == 1

    def test_remove_removes_only_one(self) -> None:
        table = AliasTable(duplicates=DuplicatePolicy.SHADOW)
        table.define("a=1")
        table.define("a=2")
        table.remove("a")
        assert len(table) == 1
