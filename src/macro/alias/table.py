"""Alias table: ordered name -> expansion mapping with a capacity bound."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

USAGE = "usage: alias NAME=EXPAND"


class DuplicatePolicy(enum.StrEnum):
    """What defining an already-known name does."""

    REPLACE = "replace"  # Rewrite the existing entry in place
    SHADOW = "shadow"  # Append; the older entry keeps winning lookups


class AliasError(Exception):
    """A user-level alias problem. Reported, never fatal."""


class MalformedAliasError(AliasError):
    """Definition is missing '=', a name, or an expansion."""


class AliasTableFullError(AliasError):
    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        super().__init__(f"alias table is full (max number={capacity})")


class AliasUsageError(AliasError):
    def __init__(self) -> None:
        super().__init__("usage: unalias NAME")


class UnknownAliasError(AliasError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'no such alias "{name}"')


@dataclass(frozen=True)
class Alias:
    """A single alias definition."""

    name: str
    expansion: str

    def __str__(self) -> str:
        return f"{self.name}={self.expansion}"


def parse_definition(definition: str) -> Alias:
    """Split ``NAME=EXPANSION`` into an Alias.

    Spaces before '=' are trimmed from the name and spaces after it are
    trimmed from the expansion. Only the first '=' separates the two, so
    expansions may themselves contain '='.
    """
    name, sep, expansion = definition.partition("=")
    if not sep:
        raise MalformedAliasError(f"no = found in alias definition\n{USAGE}")
    name = name.rstrip(" ")
    if not name:
        raise MalformedAliasError(
            f"no string found before = in alias definition\n{USAGE}"
        )
    expansion = expansion.lstrip(" ")
    if not expansion:
        raise MalformedAliasError(
            f"no string found after = in alias definition\n{USAGE}"
        )
    return Alias(name=name, expansion=expansion)


class AliasTable:
    """Insertion-ordered alias table.

    Lookups are exact-match and case-sensitive; the first matching entry
    wins. The table is small (bounded by ``capacity``) so every operation
    is a linear scan over a plain list, which also keeps the SHADOW
    policy's duplicate entries in definition order.
    """

    def __init__(
        self,
        capacity: int = 1024,
        duplicates: DuplicatePolicy = DuplicatePolicy.REPLACE,
    ) -> None:
        if capacity < 1:
            raise ValueError("alias table capacity must be at least 1")
        self._entries: list[Alias] = []
        self._capacity = capacity
        self._duplicates = DuplicatePolicy(duplicates)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def duplicates(self) -> DuplicatePolicy:
        return self._duplicates

    def add(self, definition: str) -> Alias | list[Alias]:
        """Combined entry point of the ``alias`` command.

        An empty definition lists the table; anything else defines an alias.
        """
        if not definition:
            return self.entries()
        return self.define(definition)

    def define(self, definition: str) -> Alias:
        """Parse and insert a definition. Raises AliasError, never mutating on error."""
        alias = parse_definition(definition)

        if self._duplicates is DuplicatePolicy.REPLACE:
            for i, existing in enumerate(self._entries):
                if existing.name == alias.name:
                    self._entries[i] = alias
                    logger.debug(
                        'Replaced alias "%s": "%s" -> "%s"',
                        alias.name,
                        existing.expansion,
                        alias.expansion,
                    )
                    return alias

        if len(self._entries) >= self._capacity:
            raise AliasTableFullError(self._capacity)

        self._entries.append(alias)
        logger.debug('Added alias "%s" to mean "%s"', alias.name, alias.expansion)
        return alias

    def remove(self, name: str) -> Alias:
        """Remove the first entry named by the first word of ``name``.

        Remaining entries keep their relative order.
        """
        name = name.split(" ", 1)[0]
        if not name:
            raise AliasUsageError()
        for i, alias in enumerate(self._entries):
            if alias.name == name:
                del self._entries[i]
                logger.debug('Removed alias "%s"', name)
                return alias
        raise UnknownAliasError(name)

    def find(self, command: str) -> str | None:
        """Return the expansion for ``command``, or None."""
        for alias in self._entries:
            if alias.name == command:
                return alias.expansion
        return None

    def entries(self) -> list[Alias]:
        """All entries in table order."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return any(alias.name == name for alias in self._entries)
