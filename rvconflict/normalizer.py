"""
Pattern Normalizer.

Converts between the human-facing 32-character token string and the
canonical (match, mask) pair, parses match/mask hex text, and cross-checks
a token against explicitly supplied match/mask values.

Token format (MSB first, character i is bit 31 - i):

    "0010000----------010-----0110011"      SH1ADD
     ^ bit 31                       ^ bit 0

    '0'  fixed, must be 0      mask=1 match=0
    '1'  fixed, must be 1      mask=1 match=1
    '-'  don't-care            mask=0 match=0

Whitespace anywhere in a token is ignored, so tokens may be grouped by
field ("0010000 ----- ----- 010 ----- 0110011").

Nothing in here logs or guesses: malformed input raises a specific
NormalizationError subclass and the caller decides how to surface it.
"""

from __future__ import annotations
import re
from typing import Optional, Union

from .config import DONT_CARE, TOKEN_ALPHABET, WORD_BITS, WORD_MASK
from .pattern import Pattern

__all__ = [
    'NormalizationError', 'LengthError', 'AlphabetError', 'HexParseError',
    'IllegalMatchError', 'ConsistencyError', 'IncompleteEncodingError',
    'token_to_pattern', 'pattern_to_token', 'hex_to_u32', 'parse_optional_hex',
    'pattern_from_match_mask', 'normalize', 'format_hex',
]

HexInput = Union[str, int, None]

_HEX_DIGITS = re.compile(r'[0-9a-fA-F]+')


# ──────────────────────────────────────────────
# Errors
# ──────────────────────────────────────────────

class NormalizationError(ValueError):
    """Base class for every recoverable input-validation failure."""


class LengthError(NormalizationError):
    """Token is not exactly WORD_BITS characters (after whitespace removal)."""
    def __init__(self, got: int, expected: int = WORD_BITS):
        self.got = got
        self.expected = expected
        super().__init__(f"Encoding must be {expected} characters, got {got}")


class AlphabetError(NormalizationError):
    """Token contains a character outside '0', '1', '-'."""
    def __init__(self, char: str, index: int):
        self.char = char
        self.index = index
        super().__init__(
            f"Invalid character {char!r} at position {index} "
            f"(bit {WORD_BITS - 1 - index}); allowed: {', '.join(TOKEN_ALPHABET)}"
        )


class HexParseError(NormalizationError):
    def __init__(self, text: str, reason: str = "not a valid hexadecimal value"):
        self.text = text
        super().__init__(f"{text!r}: {reason}")


class IllegalMatchError(NormalizationError):
    """Match has a required bit at a position the mask leaves free."""
    def __init__(self, match: int, mask: int):
        self.match = match
        self.mask = mask
        self.stray_bits = match & ~mask & WORD_MASK
        super().__init__(
            f"Match {format_hex(match)} sets bits outside mask {format_hex(mask)} "
            f"(stray bits {format_hex(self.stray_bits)})"
        )


class ConsistencyError(NormalizationError):
    """Token-derived match/mask disagree with the explicitly supplied values.

    `fields` lists the disagreeing field names ('match', 'mask'); a supplied
    value of None means that field was not given and was not compared.
    """
    def __init__(self, derived: Pattern, supplied_match: Optional[int],
                 supplied_mask: Optional[int]):
        self.derived = derived
        self.supplied_match = supplied_match
        self.supplied_mask = supplied_mask
        self.fields = tuple(
            name for name, want, got in (
                ('match', derived.match, supplied_match),
                ('mask', derived.mask, supplied_mask),
            )
            if got is not None and got != want
        )
        details = []
        for name in self.fields:
            want = getattr(derived, name)
            got = supplied_match if name == 'match' else supplied_mask
            details.append(f"{name} from encoding {format_hex(want)} vs supplied {format_hex(got)}")
        super().__init__("Encoding disagrees with supplied values: " + "; ".join(details))


class IncompleteEncodingError(NormalizationError):
    """Neither a token nor a complete match/mask pair was supplied."""


# ──────────────────────────────────────────────
# Token <-> Pattern
# ──────────────────────────────────────────────

def token_to_pattern(token: str) -> Pattern:
    """Parse a token string into a Pattern.

    Raises LengthError if the whitespace-stripped token is not 32 characters,
    AlphabetError on the first character outside '0', '1', '-'.
    """
    if not isinstance(token, str):
        raise NormalizationError(f"Encoding must be a string, got {type(token).__name__}")
    bits = "".join(token.split())
    if len(bits) != WORD_BITS:
        raise LengthError(len(bits))

    match = 0
    mask = 0
    for i, ch in enumerate(bits):
        bit = WORD_BITS - 1 - i
        if ch == DONT_CARE:
            continue
        if ch not in ('0', '1'):
            raise AlphabetError(ch, i)
        mask |= 1 << bit
        if ch == '1':
            match |= 1 << bit
    return Pattern(match, mask)


def pattern_to_token(pattern: Pattern) -> str:
    """Render a Pattern as a 32-character token. Never fails."""
    chars = []
    for bit in range(WORD_BITS - 1, -1, -1):
        if not (pattern.mask >> bit) & 1:
            chars.append(DONT_CARE)
        else:
            chars.append('1' if (pattern.match >> bit) & 1 else '0')
    return "".join(chars)


# ──────────────────────────────────────────────
# Hex values
# ──────────────────────────────────────────────

def format_hex(value: int) -> str:
    """0x-prefixed, 8 lower-case digits ('0x0000707f')."""
    return f"0x{value:08x}"


def hex_to_u32(text: str) -> int:
    """Parse hex text with an optional 0x/0X prefix, truncated to 32 bits.

    Empty text is an error here; use parse_optional_hex() where "absent"
    is a legitimate state.
    """
    s = text.strip()
    digits = s[2:] if s[:2].lower() == '0x' else s
    if not digits:
        raise HexParseError(text, "empty value")
    if not _HEX_DIGITS.fullmatch(digits):
        raise HexParseError(text)
    return int(digits, 16) & WORD_MASK


def parse_optional_hex(value: HexInput) -> Optional[int]:
    """Like hex_to_u32, but None / blank text means "not supplied" (None)."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise HexParseError(repr(value), "expected hex text or an integer")
    if isinstance(value, int):
        if value < 0 or value > WORD_MASK:
            raise HexParseError(str(value), f"outside the {WORD_BITS}-bit range")
        return value
    if not isinstance(value, str):
        raise HexParseError(repr(value), "expected hex text or an integer")
    if not value.strip():
        return None
    return hex_to_u32(value)


# ──────────────────────────────────────────────
# Match/mask pairs and cross-validation
# ──────────────────────────────────────────────

def pattern_from_match_mask(match: int, mask: int) -> Pattern:
    """Build a Pattern from explicit values, rejecting stray match bits."""
    if match & ~mask & WORD_MASK:
        raise IllegalMatchError(match, mask)
    return Pattern(match, mask)


def normalize(token: Optional[str] = None, match: HexInput = None,
              mask: HexInput = None) -> Pattern:
    """Produce one canonical Pattern from whatever the caller supplied.

    - token only           -> token_to_pattern(token)
    - match + mask only    -> pattern_from_match_mask(match, mask)
    - token + match/mask   -> token wins only if every supplied value agrees,
                              otherwise ConsistencyError
    - anything else        -> IncompleteEncodingError

    match/mask may be ints or hex text; blank text counts as not supplied.
    """
    match_value = parse_optional_hex(match)
    mask_value = parse_optional_hex(mask)
    has_token = token is not None and (not isinstance(token, str) or token.strip() != "")

    if has_token:
        derived = token_to_pattern(token)
        if ((match_value is not None and match_value != derived.match)
                or (mask_value is not None and mask_value != derived.mask)):
            raise ConsistencyError(derived, match_value, mask_value)
        return derived

    if match_value is None or mask_value is None:
        missing = [name for name, v in (('match', match_value), ('mask', mask_value)) if v is None]
        raise IncompleteEncodingError(
            "Need an encoding string or both match and mask "
            f"(missing: {', '.join(missing)})"
        )
    return pattern_from_match_mask(match_value, mask_value)
