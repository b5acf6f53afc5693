"""
Pattern value type for the instruction-encoding conflict validator.

A Pattern is a (match, mask) pair over the 32-bit instruction word:

    mask bit = 1   position is fixed, match holds the required value
    mask bit = 0   don't-care, match is always 0 there

It stands for the set of words  S = { w : (w & mask) == (match & mask) }.
Every algorithm in overlap.py is defined against that set.
"""

from __future__ import annotations
from dataclasses import dataclass

from .config import WORD_BITS, WORD_MASK

__all__ = ['Pattern']


@dataclass(frozen=True)
class Pattern:
    """Immutable 32-bit encoding pattern.

    Build these through normalizer.normalize() / token_to_pattern() for user
    input. Direct construction with a match bit outside the mask is a
    programming error and raises ValueError.
    """
    match: int
    mask: int

    def __post_init__(self):
        for name in ('match', 'mask'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"Pattern.{name} must be an int, got {type(value).__name__}")
            if value < 0 or value > WORD_MASK:
                raise ValueError(f"Pattern.{name} {value:#x} is outside the {WORD_BITS}-bit word")
        if self.match & ~self.mask:
            raise ValueError(
                f"Pattern match {self.match:#010x} sets bits outside mask {self.mask:#010x}"
            )

    @property
    def fixed_bits(self) -> int:
        """Number of constrained bit positions."""
        return bin(self.mask).count("1")

    @property
    def dont_care_bits(self) -> int:
        return WORD_BITS - self.fixed_bits

    def contains(self, word: int) -> bool:
        """True if `word` decodes as this pattern."""
        return (word & self.mask) == self.match

    def __repr__(self) -> str:
        return f"Pattern(match={self.match:#010x}, mask={self.mask:#010x})"
