"""
Catalog Tests.

Building catalog snapshots from encoding sources and from the two JSON
file shapes (riscv-opcodes instr_dict.json and the grouped extension
catalog). Malformed entries must be dropped, never guessed.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json
import logging

import pytest
from rvconflict.catalog import (
    Catalog, CatalogEntry, CatalogError, InstructionRef,
    load_catalog, load_extension_catalog, load_instr_dict,
)
from rvconflict.pattern import Pattern


SAMPLE_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
                           "examples", "riscv_sample.json")


def _write(tmp_path, name, data):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


INSTR_DICT = {
    "sh1add": {
        "encoding": "0010000----------010-----0110011",
        "extension": ["rv_zba"],
        "match": "0x20002033",
        "mask": "0xfe00707f",
    },
    "sc_w": {"extension": ["rv_a"], "match": "0x1800202f", "mask": "0xf800707f"},
    "andn": {"encoding": "0100000----------111-----0110011", "extension": ["rv_zbb", "rv_zbkb"]},
    "short": {"encoding": "0010000----------010-----011001", "extension": ["rv_x"]},
    "mismatch": {
        "encoding": "0000000----------000-----0110011",
        "extension": ["rv_x"],
        "match": "0x33",
        "mask": "0xfe00007f",
    },
    "illegal": {"extension": ["rv_x"], "match": "0x3", "mask": "0x1"},
    "empty": {"extension": ["rv_x"]},
    "badhex": {"extension": ["rv_x"], "match": "0xzz", "mask": "0xff"},
    "notadict": "0010000----------010-----0110011",
}


class TestFromSources:

    def test_source_types(self):
        catalog = Catalog.from_sources([
            ("token", "0010000----------010-----0110011"),
            ("pair", (0x1800202f, 0xf800707f)),
            ("hexpair", ("0x33", "0xfe00707f")),
            ("mapping", {"encoding": "-----------------000-----0010011", "match": "0x13"}),
            ("pattern", Pattern(0x73, 0xffffffff)),
        ])
        assert [e.identifier for e in catalog] == ["token", "pair", "hexpair", "mapping", "pattern"]
        assert catalog[0].pattern == Pattern(0x20002033, 0xfe00707f)
        assert catalog[1].pattern == Pattern(0x1800202f, 0xf800707f)
        assert catalog[2].pattern == Pattern(0x33, 0xfe00707f)
        assert catalog[3].pattern == Pattern(0x13, 0x707f)

    def test_malformed_sources_skipped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="rvconflict.catalog"):
            catalog = Catalog.from_sources([
                ("ok", "0010000----------010-----0110011"),
                ("short", "0" * 31),
                ("alphabet", "x" * 32),
                ("illegal", (0x3, 0x1)),
                ("number", 42),
                ("token-not-str", {"encoding": 12345}),
            ])
        assert [e.identifier for e in catalog] == ["ok"]
        skipped = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
        assert len(skipped) == 5
        assert any("short" in m for m in skipped)

    def test_bad_encoding_falls_back_to_match_mask(self, caplog):
        with caplog.at_level(logging.WARNING, logger="rvconflict.catalog"):
            catalog = Catalog.from_sources([
                ("short_token", {"encoding": "0010000----------010-----011001",
                                 "match": "0x20002033", "mask": "0xfe00707f"}),
                ("bad_char", {"encoding": "x" * 32, "match": "0x33", "mask": "0xfe00707f"}),
            ])
        assert [e.identifier for e in catalog] == ["short_token", "bad_char"]
        assert catalog[0].pattern == Pattern(0x20002033, 0xfe00707f)
        assert catalog[1].pattern == Pattern(0x33, 0xfe00707f)
        assert any("using match/mask only" in r.getMessage() for r in caplog.records)

    def test_bad_hex_falls_back_to_encoding(self):
        catalog = Catalog.from_sources([
            ("bad_match", {"encoding": "0010000----------010-----0110011",
                           "match": "0xzz", "mask": "0xfe00707f"}),
            ("half_pair", {"encoding": "-----------------000-----0010011", "mask": "nothex"}),
        ])
        assert [e.pattern for e in catalog] == [
            Pattern(0x20002033, 0xfe00707f),
            Pattern(0x13, 0x707f),
        ]

    def test_dropped_only_when_both_forms_fail(self, caplog):
        with caplog.at_level(logging.WARNING, logger="rvconflict.catalog"):
            catalog = Catalog.from_sources([
                ("both_bad", {"encoding": "0" * 31, "match": "0xzz", "mask": "0xff"}),
                ("token_bad_no_pair", {"encoding": "0" * 31}),
                ("pair_incomplete", {"match": "0x33"}),
                ("ok", {"encoding": "0" * 31, "match": "0x33", "mask": "0xff"}),
            ])
        assert [e.identifier for e in catalog] == ["ok"]
        skipped = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Skipping")]
        assert len(skipped) == 3
        assert any(m.startswith("Skipping both_bad: ") for m in skipped)

    def test_disagreeing_forms_are_skipped(self):
        catalog = Catalog.from_sources([
            ("mismatch", {"encoding": "0000000----------000-----0110011",
                          "match": "0x33", "mask": "0xfe00007f"}),
        ])
        assert len(catalog) == 0

    def test_snapshot_is_immutable(self):
        entries = [CatalogEntry("a", Pattern(0, 0))]
        catalog = Catalog(entries)
        entries.append(CatalogEntry("b", Pattern(0, 0)))
        assert len(catalog) == 1
        assert isinstance(catalog.entries, tuple)
        with pytest.raises(AttributeError):
            catalog[0].pattern = Pattern(1, 1)


class TestInstrDict:

    def test_load(self, tmp_path, caplog):
        path = _write(tmp_path, "instr_dict.json", INSTR_DICT)
        with caplog.at_level(logging.WARNING, logger="rvconflict.catalog"):
            catalog = load_instr_dict(path)
        assert [e.identifier for e in catalog] == [
            InstructionRef("rv_zba", "SH1ADD"),
            InstructionRef("rv_a", "SC.W"),
            InstructionRef("rv_zbb/rv_zbkb", "ANDN"),
        ]
        warned = " ".join(r.getMessage() for r in caplog.records)
        for name in ("SHORT", "MISMATCH", "ILLEGAL", "EMPTY", "BADHEX", "notadict"):
            assert name in warned

    def test_identifier_str(self):
        assert str(InstructionRef("rv_a", "SC.W")) == "rv_a:SC.W"
        assert str(InstructionRef("", "SC.W")) == "SC.W"

    def test_sample_file(self):
        catalog = load_instr_dict(SAMPLE_PATH)
        assert len(catalog) == 14
        by_name = {e.identifier.mnemonic: e.pattern for e in catalog}
        assert by_name["SH1ADD"] == Pattern(0x20002033, 0xfe00707f)
        assert by_name["LR.W"] == Pattern(0x1000202f, 0xf9f0707f)

    def test_wrong_top_level(self, tmp_path):
        path = _write(tmp_path, "list.json", [1, 2, 3])
        with pytest.raises(CatalogError):
            load_instr_dict(path)


class TestExtensionCatalog:

    DATA = {
        "z_bit": [
            {"id": "Zba", "name": "Zba", "instructions": {
                "SH1ADD": {"encoding": "0010000----------010-----0110011"},
                "SH2ADD": {"encoding": "0010000----------100-----0110011"},
            }},
            {"id": "Zbb", "name": "Zbb"},
        ],
        "standard": [
            {"id": "A", "instructions": {
                "sc.w": {"match": "0x1800202f", "mask": "0xf800707f"},
                "BROKEN": {"encoding": "nope"},
            }},
        ],
        "profiles_view": [
            {"id": "Zba", "instructions": {
                "SH1ADD": {"encoding": "0010000----------010-----0110011"},
            }},
        ],
        "meta": {"version": 1},
    }

    def test_load(self, tmp_path):
        path = _write(tmp_path, "riscv_extensions.json", self.DATA)
        catalog = load_extension_catalog(path)
        assert [e.identifier for e in catalog] == [
            InstructionRef("Zba", "SH1ADD"),
            InstructionRef("Zba", "SH2ADD"),
            InstructionRef("A", "SC.W"),
        ]

    def test_rejects_instr_dict_shape(self, tmp_path):
        path = _write(tmp_path, "instr_dict.json", {"add": {"encoding": "-" * 32}})
        with pytest.raises(CatalogError):
            load_extension_catalog(path)


class TestLoadCatalog:

    def test_detects_instr_dict(self, tmp_path):
        path = _write(tmp_path, "a.json", INSTR_DICT)
        assert len(load_catalog(path)) == 3

    def test_detects_extension_catalog(self, tmp_path):
        path = _write(tmp_path, "b.json", TestExtensionCatalog.DATA)
        assert len(load_catalog(path)) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError):
            load_catalog(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{ not json", encoding="utf-8")
        with pytest.raises(CatalogError):
            load_catalog(path)

    def test_not_an_object(self, tmp_path):
        path = _write(tmp_path, "c.json", "just a string")
        with pytest.raises(CatalogError):
            load_catalog(path)
