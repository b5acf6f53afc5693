"""
Overlap Engine.

Decides whether two Patterns can decode the same 32-bit word and, if so,
how their word sets relate. Everything reduces to one fact: two patterns
intersect iff they agree wherever both fix a bit,

    ((a.match ^ b.match) & (a.mask & b.mask)) == 0

Classification, in decision order (first match wins, overlap already true):

    IDENTICAL                     same match and same mask
    PROPOSED_SUBSET_OF_EXISTING   S(proposed) is inside S(existing)
    EXISTING_SUBSET_OF_PROPOSED   S(existing) is inside S(proposed)
    PARTIAL_OVERLAP               neither contains the other

The enum values double as report priority (lower sorts first).
"""

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Optional

from .pattern import Pattern

__all__ = [
    'ConflictKind', 'Overlap', 'overlaps', 'is_subset', 'classify',
    'common_mask', 'witness', 'compare',
]


class ConflictKind(enum.Enum):
    IDENTICAL = 0
    PROPOSED_SUBSET_OF_EXISTING = 1
    EXISTING_SUBSET_OF_PROPOSED = 2
    PARTIAL_OVERLAP = 3

    @property
    def priority(self) -> int:
        return self.value


@dataclass(frozen=True)
class Overlap:
    """Result of comparing a proposed pattern against one existing pattern."""
    kind: ConflictKind
    common_mask: int
    witness: int


def common_mask(a: Pattern, b: Pattern) -> int:
    """Bit positions both patterns constrain."""
    return a.mask & b.mask


def overlaps(a: Pattern, b: Pattern) -> bool:
    """True if some word decodes as both a and b."""
    return ((a.match ^ b.match) & a.mask & b.mask) == 0


def is_subset(a: Pattern, b: Pattern) -> bool:
    """True if every word matching a also matches b.

    b must not fix anything a leaves free, and on b's fixed bits the
    required values must agree. Only meaningful once overlaps(a, b) holds.
    """
    return (b.mask & ~a.mask) == 0 and ((a.match ^ b.match) & b.mask) == 0


def classify(proposed: Pattern, existing: Pattern) -> Optional[ConflictKind]:
    """ConflictKind for an overlapping pair, None if the sets are disjoint."""
    if not overlaps(proposed, existing):
        return None
    if proposed == existing:
        return ConflictKind.IDENTICAL
    if is_subset(proposed, existing):
        return ConflictKind.PROPOSED_SUBSET_OF_EXISTING
    if is_subset(existing, proposed):
        return ConflictKind.EXISTING_SUBSET_OF_PROPOSED
    return ConflictKind.PARTIAL_OVERLAP


def witness(a: Pattern, b: Pattern) -> int:
    """A word in S(a) and S(b), assuming they overlap.

    a's required bits, plus whatever b additionally fixes; every remaining
    don't-care bit is 0.
    """
    return (a.match & a.mask) | (b.match & (b.mask & ~a.mask))


def compare(proposed: Pattern, existing: Pattern) -> Optional[Overlap]:
    """Full comparison: kind, common mask and witness, or None if disjoint."""
    kind = classify(proposed, existing)
    if kind is None:
        return None
    return Overlap(
        kind=kind,
        common_mask=common_mask(proposed, existing),
        witness=witness(proposed, existing),
    )
