"""
Acquaintance Set

A set of participant handles stored as the bits of a single int. Bit `i`
is set when participant handle `i` is a member. Every membership and
conflict test in the solver goes through this type, so the operations are
plain integer arithmetic with no hashing or list iteration.

Python ints are unbounded, so `capacity` is a logical bound (normally the
population size) rather than a machine word width.
"""

from __future__ import annotations

from typing import Iterator

from .schedule_types import ParticipantHandle


class AcquaintanceSet:
    __slots__ = ("_bits", "capacity")

    def __init__(self, capacity: int, bits: int = 0) -> None:
        assert capacity >= 0, "capacity must be non-negative"
        assert bits >> capacity == 0, "bits outside capacity"
        self.capacity = capacity
        self._bits = bits

    # ------------------------------------------------------------------
    # Single-member operations
    # ------------------------------------------------------------------

    def _mask(self, hp: ParticipantHandle) -> int:
        assert 0 <= hp < self.capacity, f"participant {hp} outside set capacity {self.capacity}"
        return 1 << hp

    def insert(self, hp: ParticipantHandle) -> None:
        self._bits |= self._mask(hp)

    def remove(self, hp: ParticipantHandle) -> None:
        mask = self._mask(hp)
        assert self._bits & mask, f"participant {hp} is not in the set"
        self._bits ^= mask

    def contains(self, hp: ParticipantHandle) -> bool:
        if hp < 0 or hp >= self.capacity:
            return False
        return bool(self._bits & (1 << hp))

    def single_member(self) -> ParticipantHandle:
        """Return the only member. Only defined when cardinality() == 1."""
        assert self.cardinality() == 1, "single_member() needs exactly one member"
        return self._bits.bit_length() - 1

    # ------------------------------------------------------------------
    # Whole-set operations
    # ------------------------------------------------------------------

    def union_with(self, other: "AcquaintanceSet") -> None:
        self._bits |= other._bits

    def subtract(self, other: "AcquaintanceSet") -> None:
        self._bits &= ~other._bits

    def intersection(self, other: "AcquaintanceSet") -> "AcquaintanceSet":
        return AcquaintanceSet(self.capacity, self._bits & other._bits)

    def intersection_count(self, other: "AcquaintanceSet") -> int:
        return (self._bits & other._bits).bit_count()

    def has_common(self, other: "AcquaintanceSet") -> bool:
        return (self._bits & other._bits) != 0

    def cardinality(self) -> int:
        return self._bits.bit_count()

    def clear(self) -> None:
        self._bits = 0

    def copy(self) -> "AcquaintanceSet":
        return AcquaintanceSet(self.capacity, self._bits)

    # ------------------------------------------------------------------
    # Python protocol
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[ParticipantHandle]:
        # Ascending handle order.
        bits = self._bits
        while bits:
            low = bits & -bits
            yield low.bit_length() - 1
            bits ^= low

    def __len__(self) -> int:
        return self.cardinality()

    def __contains__(self, hp: object) -> bool:
        return isinstance(hp, int) and self.contains(hp)

    def __bool__(self) -> bool:
        return self._bits != 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AcquaintanceSet):
            return NotImplemented
        return self._bits == other._bits

    def __repr__(self) -> str:
        return f"AcquaintanceSet({sorted(self)!r})"
