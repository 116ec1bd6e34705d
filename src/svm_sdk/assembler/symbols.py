"""
Assembler Symbol Table
======================

Maps label names to 16-bit byte addresses. The table is filled during the
first pass and only read during the second.

Redefining a label is an error: the first definition is reported in the
hint so the user can pick which one to rename.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from svm_sdk.errors import (
    DuplicateSymbolError,
    SourceLocation,
    SymbolTableOverflowError,
)


MAX_SYMBOLS = 256


@dataclass(frozen=True)
class Symbol:
    """
    Symbol table entry.

    Attributes:
        name: Label name as written in source
        address: Byte address of the labeled instruction
        location: Where the label was defined
    """
    name: str
    address: int
    location: Optional[SourceLocation] = None


class SymbolTable:
    """
    Fixed-capacity label table.

    Example:
        >>> table = SymbolTable()
        >>> table.define("LOOP", 0x0004)
        >>> table.lookup("LOOP")
        4
    """

    def __init__(self, capacity: int = MAX_SYMBOLS):
        self._capacity = capacity
        self._symbols: dict[str, Symbol] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    def define(
        self,
        name: str,
        address: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> Symbol:
        """
        Add a label.

        Raises:
            DuplicateSymbolError: If the label is already defined
            SymbolTableOverflowError: If the table is full
        """
        existing = self._symbols.get(name)
        if existing is not None:
            raise DuplicateSymbolError(
                name,
                location=location,
                original_location=existing.location,
                source_line=source_line,
            )

        if len(self._symbols) >= self._capacity:
            raise SymbolTableOverflowError(
                self._capacity,
                location=location,
                source_line=source_line,
            )

        symbol = Symbol(name, address, location)
        self._symbols[name] = symbol
        return symbol

    def lookup(self, name: str) -> Optional[int]:
        """Return the address of a label, or None if undefined."""
        symbol = self._symbols.get(name)
        return symbol.address if symbol is not None else None

    def get(self, name: str) -> Optional[Symbol]:
        return self._symbols.get(name)

    def similar(self, name: str, limit: int = 3) -> list[str]:
        """
        Find labels with similar names for error hints.

        Matches case differences and simple typos (edit distance of at
        most 2 between names whose lengths differ by at most 1).
        """
        name_lower = name.lower()
        similar = []

        for sym in self._symbols:
            sym_lower = sym.lower()
            if (
                sym_lower == name_lower or
                abs(len(sym) - len(name)) <= 1 and
                _edit_distance(name_lower, sym_lower) <= 2
            ):
                similar.append(sym)

        return similar[:limit]

    def as_dict(self) -> dict[str, int]:
        return {name: sym.address for name, sym in self._symbols.items()}

    def clear(self) -> None:
        self._symbols.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._symbols

    def __len__(self) -> int:
        return len(self._symbols)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())


def _edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = range(len(s2) + 1)
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(1 + min((
                    distances[j],
                    distances[j + 1],
                    new_distances[-1]
                )))
        distances = new_distances

    return distances[-1]
