"""Tests for group records: JSON conversion, legacy migration, storage.

Validates:
  - group_to_dict / parse_group round trip (including reference point)
  - Legacy reduced-form records ({X, Y, Z} + spacing sign) are migrated
  - Records without a unit: caller's default, else inches when they carry
    standard_spacing and millimetres otherwise
  - SessionGroupStore writes GroupData_{id}.json into a session folder
    and the engine reloads an equivalent group from it
"""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from musicarch.engine import (
    AdvanceDir, Group, PlacementEngine, RotationAxis,
    group_to_dict, group_to_json, parse_group,
)
from musicarch.engine.serialization import group_snapshot, is_legacy_record, record_unit
from musicarch.hosts import SessionGroupStore
from musicarch.session import create_session, list_sessions, load_session


def _group(**overrides) -> Group:
    fields = dict(
        id=4, length=2400.0, width=120.0, height=1800.0, base_spacing=-2400.0,
        advance_dir=AdvanceDir.Y_NEG, rotation_axis=RotationAxis.X,
        reference_point=(150.0, -75.5, 12.0),
        standard_length=1200.0, standard_width=120.0,
        standard_height=1800.0, standard_spacing=2400.0,
    )
    fields.update(overrides)
    return Group(**fields)


class TestGroupRecords(unittest.TestCase):

    def test_round_trip(self):
        g = _group()
        self.assertEqual(parse_group(group_to_dict(g)), g)
        self.assertEqual(parse_group(group_to_json(g)), g)

    def test_record_shape(self):
        data = group_to_dict(_group())
        self.assertEqual(data["format"], 2)
        self.assertEqual(data["advance_dir"], "Y-")
        self.assertEqual(data["rotation_axis"], "X")
        self.assertEqual(data["reference_point"], [150.0, -75.5, 12.0])
        json.dumps(data)  # must be JSON-safe

    def test_missing_standard_fields_default_to_current(self):
        g = parse_group({
            "format": 2, "id": 1, "length": 800, "width": 40, "height": 600,
            "base_spacing": -500, "advance_dir": "X-", "rotation_axis": "Y",
            "reference_point": [0, 0, 0],
        })
        self.assertEqual(g.standard_length, 800.0)
        self.assertEqual(g.standard_spacing, 500.0)

    def test_unknown_direction_rejected(self):
        with self.assertRaises(ValueError):
            parse_group({"format": 2, "id": 1, "length": 1, "width": 1,
                         "height": 1, "base_spacing": 1, "advance_dir": "W+"})


class TestLegacyRecords(unittest.TestCase):

    def test_detection_rules(self):
        self.assertFalse(is_legacy_record({"format": 2, "advance_dir": "X"}))
        self.assertTrue(is_legacy_record({"advance_dir": "X"}))
        self.assertTrue(is_legacy_record({"advance_dir": "y"}))
        self.assertTrue(is_legacy_record({"advance_dir": "Z"}))
        self.assertFalse(is_legacy_record({"advance_dir": "Z", "standard_spacing": 3}))
        self.assertFalse(is_legacy_record({"advance_dir": "X+"}))

    def test_negative_spacing_picks_negative_direction(self):
        g = parse_group({
            "id": 3, "length": 3000, "width": 100, "height": 3000,
            "base_spacing": -3000, "advance_dir": "X", "rotation_axis": "Z",
            "reference_point": [0, 0, 0],
        })
        self.assertIs(g.advance_dir, AdvanceDir.X_NEG)
        self.assertEqual(g.base_spacing, -3000.0)
        self.assertEqual(g.standard_spacing, 3000.0)

    def test_legacy_vertical(self):
        g = parse_group({
            "id": 1, "length": 10, "width": 1, "height": 10,
            "base_spacing": -10, "advance_dir": "Z", "rotation_axis": "Z",
        })
        self.assertIs(g.advance_dir, AdvanceDir.Z_NEG)
        self.assertEqual(g.reference_point, (0.0, 0.0, 0.0))

    def test_untagged_inch_records(self):
        g = parse_group({
            "id": 2, "length": 10, "width": 1, "height": 5,
            "base_spacing": 10, "advance_dir": "Y+", "rotation_axis": "Z",
            "reference_point": [1, 0, 0],
        }, default_unit="inch")
        self.assertAlmostEqual(g.length, 254.0)
        self.assertAlmostEqual(g.reference_point[0], 25.4)

    def test_unit_inference(self):
        self.assertEqual(record_unit({"unit": "inch", "format": 2}), "inch")
        self.assertEqual(record_unit({"format": 2, "standard_spacing": 1}), "mm")
        self.assertEqual(record_unit({"advance_dir": "X"}), "mm")
        self.assertEqual(record_unit({"advance_dir": "X+"}), "mm")
        self.assertEqual(record_unit({"advance_dir": "X+", "standard_spacing": 1}), "inch")
        self.assertEqual(record_unit({"advance_dir": "X+", "standard_spacing": 1},
                                     default_unit="mm"), "mm")

    def test_stepped_records_are_inches(self):
        g = parse_group({
            "id": 6, "length": 100, "width": 5, "height": 50,
            "base_spacing": -100, "advance_dir": "Z", "rotation_axis": "Y",
            "reference_point": [0, 10, 0],
            "standard_length": 50, "standard_width": 5,
            "standard_height": 50, "standard_spacing": 100,
        })
        self.assertIs(g.advance_dir, AdvanceDir.Z_POS)
        self.assertAlmostEqual(g.length, 2540.0)
        self.assertAlmostEqual(g.base_spacing, -2540.0)
        self.assertAlmostEqual(g.standard_length, 1270.0)
        self.assertAlmostEqual(g.reference_point[1], 254.0)


class TestSnapshot(unittest.TestCase):

    def test_group_fields(self):
        snap = group_snapshot(_group())
        self.assertEqual(snap["group_id"], "Group 4")
        self.assertEqual(snap["spacing"], -2400)
        self.assertEqual((snap["ref_x"], snap["ref_y"], snap["ref_z"]), (150, -76, 12))

    def test_empty_panel(self):
        snap = group_snapshot(None)
        self.assertEqual(snap["group_id"], "No group")
        self.assertEqual(snap["width"], 100)
        self.assertEqual(snap["advance_dir"], "X+")
        self.assertEqual(snap["rotation_axis"], "Z")


class TestSessionGroupStore(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.base = Path(self._tmp.name)
        self.session = create_session("test", base_dir=self.base)
        self.store = SessionGroupStore(self.session)

    def tearDown(self):
        self._tmp.cleanup()

    def test_files_follow_naming_convention(self):
        self.store.save_group_record(5, group_to_json(_group(id=5)))
        self.assertTrue((self.session.path / "groups" / "GroupData_5.json").exists())
        self.store.delete_group_record(5)
        self.assertEqual(self.store.load_all_group_records(), [])

    def test_unreadable_records_skipped(self):
        self.session.write_text("groups/GroupData_9.json", "{not json")
        self.store.save_group_record(1, group_to_json(_group(id=1)))
        self.assertEqual(len(self.store.load_all_group_records()), 1)

    def test_engine_round_trip(self):
        engine = PlacementEngine(persistence=self.store)
        engine.create_group(length=2000, width=80, height=1000,
                            spacing=1000, advance_dir="Y+", rotation_axis="Y")
        engine.set_reference_point(100, 250, 0)
        engine.place_note("g")
        saved = [Group(**vars(g)) for g in engine.groups]

        reopened = load_session(self.session.id, base_dir=self.base)
        fresh = PlacementEngine(persistence=SessionGroupStore(reopened))
        fresh.load_groups()
        self.assertEqual(fresh.groups, saved)
        self.assertEqual(fresh.reference_point(), (100.0, 750.0, 0.0))

    def test_session_listing(self):
        sessions = list_sessions(base_dir=self.base)
        self.assertEqual([s["id"] for s in sessions], [self.session.id])
        self.assertIsNone(load_session("missing", base_dir=self.base))


if __name__ == "__main__":
    unittest.main()
