"""Alias table: user-defined shorthands substituted for command tokens."""

from macro.alias.table import (
    Alias,
    AliasError,
    AliasTable,
    AliasTableFullError,
    AliasUsageError,
    DuplicatePolicy,
    MalformedAliasError,
    UnknownAliasError,
)

__all__ = [
    "Alias",
    "AliasError",
    "AliasTable",
    "AliasTableFullError",
    "AliasUsageError",
    "DuplicatePolicy",
    "MalformedAliasError",
    "UnknownAliasError",
]
