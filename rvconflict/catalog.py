"""
Pattern Catalog.

An immutable, ordered snapshot of named Patterns that a proposed encoding
is checked against. The catalog is built once (from an instruction
database file or any iterable of sources) and then passed into
report.validate() as many times as needed.

Supported file shapes:

  instr_dict.json (riscv-opcodes):
      { "sh1add": { "encoding": "0010000----------010-----0110011",
                    "extension": ["rv_zba"],
                    "match": "0x20002033", "mask": "0xfe00707f" }, ... }

  Grouped extension catalog:
      { "z_bit": [ { "id": "Zba",
                     "instructions": { "SH1ADD": { "encoding": ..., "match": ..., "mask": ... } } } ],
        ... }

Entries whose encoding data cannot be normalized are skipped with a
warning; the validator core only ever sees valid Patterns.
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Mapping, NamedTuple, Set, Tuple, Union

from .normalizer import ConsistencyError, NormalizationError, normalize
from .pattern import Pattern

__all__ = [
    'InstructionRef', 'CatalogEntry', 'Catalog', 'CatalogError',
    'load_instr_dict', 'load_extension_catalog', 'load_catalog',
]

logger = logging.getLogger(__name__)

EncodingSource = Union[str, Tuple[Any, Any], Mapping[str, Any], Pattern]


class CatalogError(ValueError):
    """Catalog file is unreadable or does not have a known shape."""


class InstructionRef(NamedTuple):
    """Identifier of a catalog entry: (extension, mnemonic)."""
    extension: str
    mnemonic: str

    def __str__(self) -> str:
        return f"{self.extension}:{self.mnemonic}" if self.extension else self.mnemonic


@dataclass(frozen=True)
class CatalogEntry:
    identifier: Any
    pattern: Pattern


def _mapping_to_pattern(identifier: Any, source: Mapping[str, Any]) -> Pattern:
    """Pattern for an {encoding, match, mask} record.

    The full cross-checked form is tried first. If it fails for any reason
    other than the two forms disagreeing, the encoding alone and then the
    match/mask pair alone are tried; the entry is dropped only when both
    are missing or invalid.
    """
    token = source.get('encoding')
    match = source.get('match')
    mask = source.get('mask')
    try:
        return normalize(token=token, match=match, mask=mask)
    except ConsistencyError:
        raise
    except NormalizationError as strict_error:
        for label, fallback in (('encoding', lambda: normalize(token=token)),
                                ('match/mask', lambda: normalize(match=match, mask=mask))):
            try:
                pattern = fallback()
            except NormalizationError:
                continue
            logger.warning(f"{identifier}: {strict_error}; using {label} only")
            return pattern
        raise strict_error


def _source_to_pattern(identifier: Any, source: EncodingSource) -> Pattern:
    """Normalize one encoding source (token, (match, mask), mapping or Pattern)."""
    if isinstance(source, Pattern):
        return source
    if isinstance(source, str):
        return normalize(token=source)
    if isinstance(source, Mapping):
        return _mapping_to_pattern(identifier, source)
    if isinstance(source, tuple) and len(source) == 2:
        return normalize(match=source[0], mask=source[1])
    raise NormalizationError(f"Unsupported encoding source type {type(source).__name__}")


class Catalog:
    """Read-only, ordered collection of CatalogEntry values."""

    def __init__(self, entries: Iterable[CatalogEntry] = ()):
        self._entries: Tuple[CatalogEntry, ...] = tuple(entries)

    @classmethod
    def from_sources(cls, sources: Iterable[Tuple[Any, EncodingSource]]) -> "Catalog":
        """Build a catalog from (identifier, encoding source) pairs.

        Sources that fail normalization are logged and left out.
        """
        entries: List[CatalogEntry] = []
        skipped = 0
        for identifier, source in sources:
            try:
                pattern = _source_to_pattern(identifier, source)
            except NormalizationError as e:
                skipped += 1
                logger.warning(f"Skipping {identifier}: {e}")
                continue
            entries.append(CatalogEntry(identifier, pattern))
        if skipped:
            logger.info(f"Catalog built with {len(entries)} entries ({skipped} skipped)")
        else:
            logger.debug(f"Catalog built with {len(entries)} entries")
        return cls(entries)

    @property
    def entries(self) -> Tuple[CatalogEntry, ...]:
        return self._entries

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> CatalogEntry:
        return self._entries[index]

    def __repr__(self) -> str:
        return f"Catalog({len(self._entries)} entries)"


# ──────────────────────────────────────────────
# File loaders
# ──────────────────────────────────────────────

def _read_json(path: Union[str, Path]) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise CatalogError(f"Cannot read catalog {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise CatalogError(f"Catalog {path} is not valid JSON: {e}") from e


def _mnemonic_from_key(key: str) -> str:
    """instr_dict keys are lower-case with '_' for '.', e.g. 'sc_w' -> 'SC.W'."""
    return key.strip().upper().replace('_', '.')


def _instr_dict_sources(data: Mapping[str, Any]) -> Iterator[Tuple[InstructionRef, Any]]:
    for key, details in data.items():
        if not isinstance(details, Mapping):
            logger.warning(f"Skipping {key}: instruction details are not an object")
            continue
        extensions = details.get('extension') or []
        if isinstance(extensions, str):
            extensions = [extensions]
        ref = InstructionRef("/".join(str(e) for e in extensions), _mnemonic_from_key(key))
        yield ref, details


def _extension_catalog_sources(data: Mapping[str, Any]) -> Iterator[Tuple[InstructionRef, Any]]:
    seen: Set[str] = set()
    for category, exts in data.items():
        if not isinstance(exts, list):
            continue
        for ext in exts:
            if not isinstance(ext, Mapping) or not ext.get('id'):
                continue
            ext_id = str(ext['id'])
            # The same extension may be listed under several categories.
            if ext_id in seen:
                continue
            seen.add(ext_id)
            instructions = ext.get('instructions') or {}
            if not isinstance(instructions, Mapping):
                logger.warning(f"Skipping {category}/{ext_id}: 'instructions' is not an object")
                continue
            for mnemonic, details in instructions.items():
                ref = InstructionRef(ext_id, str(mnemonic).strip().upper())
                if not isinstance(details, Mapping):
                    logger.warning(f"Skipping {ref}: instruction details are not an object")
                    continue
                yield ref, details


def _is_extension_catalog(data: Mapping[str, Any]) -> bool:
    return any(isinstance(v, list) for v in data.values())


def _build(data: Mapping[str, Any], sources, path: Union[str, Path]) -> Catalog:
    catalog = Catalog.from_sources(sources(data))
    logger.info(f"Loaded {len(catalog)} instructions from {path}")
    return catalog


def load_instr_dict(path: Union[str, Path]) -> Catalog:
    """Load a riscv-opcodes style instr_dict.json."""
    data = _read_json(path)
    if not isinstance(data, dict):
        raise CatalogError(f"{path}: expected a JSON object of instructions")
    return _build(data, _instr_dict_sources, path)


def load_extension_catalog(path: Union[str, Path]) -> Catalog:
    """Load a grouped extension catalog (category -> [extension, ...])."""
    data = _read_json(path)
    if not isinstance(data, dict) or not _is_extension_catalog(data):
        raise CatalogError(f"{path}: expected a JSON object of extension lists")
    return _build(data, _extension_catalog_sources, path)


def load_catalog(path: Union[str, Path]) -> Catalog:
    """Load either file shape, detected from the top-level values."""
    data = _read_json(path)
    if not isinstance(data, dict):
        raise CatalogError(f"{path}: expected a JSON object at top level")
    if _is_extension_catalog(data):
        return _build(data, _extension_catalog_sources, path)
    return _build(data, _instr_dict_sources, path)
