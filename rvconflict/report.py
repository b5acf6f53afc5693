"""
Conflict Report.

validate() runs the overlap engine for a proposed Pattern against every
catalog entry and returns the overlapping entries, most severe first:

    IDENTICAL < PROPOSED_SUBSET_OF_EXISTING < EXISTING_SUBSET_OF_PROPOSED < PARTIAL_OVERLAP

Entries of the same kind keep catalog order. The work is pure, so the
per-entry comparisons can be spread over worker threads; the merge sorts
on (kind priority, catalog index) either way, which makes the threaded
result identical to the sequential one.
"""

from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Sequence, Tuple

from .catalog import CatalogEntry
from .config import PARALLEL_THRESHOLD
from .normalizer import format_hex, pattern_to_token
from .overlap import ConflictKind, compare
from .pattern import Pattern

__all__ = ['Conflict', 'ConflictReport', 'validate']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conflict:
    """One catalog entry whose decode space overlaps the proposal."""
    other: CatalogEntry
    kind: ConflictKind
    common_mask: int
    witness: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'identifier': str(self.other.identifier),
            'kind': self.kind.name,
            'encoding': pattern_to_token(self.other.pattern),
            'match': format_hex(self.other.pattern.match),
            'mask': format_hex(self.other.pattern.mask),
            'common_mask': format_hex(self.common_mask),
            'witness': format_hex(self.witness),
        }


@dataclass(frozen=True)
class ConflictReport:
    proposed: Pattern
    conflicts: Tuple[Conflict, ...] = field(default_factory=tuple)
    checked: int = 0

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def by_kind(self, kind: ConflictKind) -> List[Conflict]:
        return [c for c in self.conflicts if c.kind is kind]

    def __iter__(self) -> Iterator[Conflict]:
        return iter(self.conflicts)

    def __len__(self) -> int:
        return len(self.conflicts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'proposed': {
                'encoding': pattern_to_token(self.proposed),
                'match': format_hex(self.proposed.match),
                'mask': format_hex(self.proposed.mask),
            },
            'checked': self.checked,
            'conflicts': [c.to_dict() for c in self.conflicts],
        }


# ──────────────────────────────────────────────
# Validation
# ──────────────────────────────────────────────

# (catalog index, conflict) -- the index is the tie-breaker for the stable order
_Indexed = Tuple[int, Conflict]


def _scan(proposed: Pattern, entries: Sequence[CatalogEntry], start: int) -> List[_Indexed]:
    found: List[_Indexed] = []
    for offset, entry in enumerate(entries):
        result = compare(proposed, entry.pattern)
        if result is None:
            continue
        found.append((start + offset, Conflict(
            other=entry,
            kind=result.kind,
            common_mask=result.common_mask,
            witness=result.witness,
        )))
    return found


def _scan_parallel(proposed: Pattern, entries: Sequence[CatalogEntry],
                   workers: int) -> List[_Indexed]:
    chunk = -(-len(entries) // workers)   # ceil
    starts = range(0, len(entries), chunk)
    found: List[_Indexed] = []
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(_scan, proposed, entries[s:s + chunk], s) for s in starts]
        for future in futures:
            found.extend(future.result())
    return found


def validate(proposed: Pattern, catalog: Iterable[CatalogEntry],
             workers: int = 1) -> ConflictReport:
    """Check `proposed` against every catalog entry.

    An empty conflict list is a successful result. `workers` > 1 fans the
    comparisons out over threads once the catalog reaches PARALLEL_THRESHOLD
    entries; the returned order does not depend on it.
    """
    if not isinstance(proposed, Pattern):
        raise TypeError(f"validate() needs a Pattern, got {type(proposed).__name__}")
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")

    entries = tuple(catalog)
    if workers > 1 and entries and len(entries) >= PARALLEL_THRESHOLD:
        found = _scan_parallel(proposed, entries, workers)
    else:
        found = _scan(proposed, entries, 0)

    found.sort(key=lambda item: (item[1].kind.priority, item[0]))
    conflicts = tuple(conflict for _, conflict in found)

    logger.debug(
        f"validate {pattern_to_token(proposed)}: {len(conflicts)} conflict(s) "
        f"in {len(entries)} entries"
    )
    return ConflictReport(proposed=proposed, conflicts=conflicts, checked=len(entries))
