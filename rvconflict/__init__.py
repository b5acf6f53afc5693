"""
rvconflict — Instruction Encoding Conflict Validator
====================================================
Checks a proposed fixed-width instruction encoding against a catalog of
existing encodings and reports every entry whose decode space overlaps it.

Architecture:
    ┌────────────┐    ┌────────────┐    ┌────────────┐    ┌────────────┐
    │ token /    │───>│ Normalizer │───>│  Overlap   │───>│  Conflict  │
    │ match+mask │    │ (Pattern)  │    │  Engine    │    │  Report    │
    └────────────┘    └────────────┘    └────────────┘    └────────────┘
                                              ^
                                        ┌─────┴──────┐
                                        │  Catalog   │
                                        │ (snapshot) │
                                        └────────────┘

    - pattern.py:    (match, mask) value type over the 32-bit word
    - normalizer.py: token <-> Pattern, hex parsing, cross-validation
    - catalog.py:    immutable catalog snapshot + JSON loaders
    - overlap.py:    overlap / subset tests, classification, witness word
    - report.py:     validate() over a whole catalog, ordered conflicts
"""

__version__ = "0.1.0"

from typing import Iterable, Optional

from .pattern import Pattern
from .normalizer import (
    NormalizationError, LengthError, AlphabetError, HexParseError,
    IllegalMatchError, ConsistencyError, IncompleteEncodingError,
    token_to_pattern, pattern_to_token, hex_to_u32, parse_optional_hex,
    pattern_from_match_mask, normalize, format_hex,
)
from .catalog import (
    InstructionRef, CatalogEntry, Catalog, CatalogError,
    load_instr_dict, load_extension_catalog, load_catalog,
)
from .overlap import ConflictKind, overlaps, is_subset, classify, witness, compare
from .report import Conflict, ConflictReport, validate


def check_encoding(catalog: Iterable[CatalogEntry], *, encoding: Optional[str] = None,
                   match=None, mask=None, workers: int = 1) -> ConflictReport:
    """Normalize a proposed encoding and validate it against `catalog`.

    Full pipeline: normalize() -> validate(). Raises a NormalizationError
    subclass if the proposal itself is malformed.

    Args:
        catalog: Catalog (or any iterable of CatalogEntry).
        encoding: 32-character token string ('0', '1', '-').
        match: Match value (int or hex text), cross-checked against encoding.
        mask: Mask value (int or hex text), cross-checked against encoding.
        workers: Thread count for large catalogs.
    """
    proposed = normalize(token=encoding, match=match, mask=mask)
    return validate(proposed, catalog, workers=workers)
