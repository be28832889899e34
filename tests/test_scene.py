"""Tests for the in-memory scene host and its wiring to the engine.

Validates:
  - Box prototypes and instance footprints (shapely)
  - Pre-rotation turns X-travel notes across the travel axis
  - Erased instances make undo a no-op on the reference point
  - Single-selection rule for reading a reference point
  - Group highlighting and the guide line
"""

from __future__ import annotations

import unittest

from musicarch.engine import PlacementEngine, SelectionError
from musicarch.hosts import InMemoryScene


class TestScenePrimitives(unittest.TestCase):

    def setUp(self):
        self.scene = InMemoryScene()
        self.scene.create_box_prototype("FN_1", 3000, 100, 3000)

    def test_unrotated_footprint(self):
        h = self.scene.create_instance("FN_1", (0.0, 0.0, 0.0))
        fp = self.scene.footprint(h)
        self.assertAlmostEqual(fp.area, 3000 * 100)
        self.assertEqual(fp.bounds, (-1500.0, -50.0, 1500.0, 50.0))

    def test_quarter_turn_swaps_footprint_axes(self):
        h = self.scene.create_instance("FN_1", (10.0, 20.0, 0.0))
        self.scene.rotate_instance(h, (10.0, 20.0, 0.0), "Z", 90)
        minx, miny, maxx, maxy = self.scene.footprint(h).bounds
        self.assertAlmostEqual(maxx - minx, 100.0)
        self.assertAlmostEqual(maxy - miny, 3000.0)
        origin = self.scene.instance_origin(h)
        self.assertAlmostEqual(origin[0], 10.0)
        self.assertAlmostEqual(origin[1], 20.0)

    def test_overlapping_notes_counted_once(self):
        self.scene.create_instance("FN_1", (0.0, 0.0, 0.0))
        self.scene.create_instance("FN_1", (1500.0, 0.0, 0.0))
        self.assertAlmostEqual(self.scene.plan_area(), 4500 * 100)

    def test_delete_instance(self):
        h = self.scene.create_instance("FN_1", (0.0, 0.0, 0.0))
        self.assertTrue(self.scene.delete_instance(h))
        self.assertFalse(self.scene.delete_instance(h))
        self.assertFalse(self.scene.delete_instance(999))

    def test_clear_prototype_keeps_name(self):
        self.scene.clear_prototype("FN_1")
        proto = self.scene.prototypes["FN_1"]
        self.assertEqual((proto.length, proto.width, proto.height), (0.0, 0.0, 0.0))

    def test_unknown_prototype(self):
        with self.assertRaises(KeyError):
            self.scene.create_instance("HN_9", (0.0, 0.0, 0.0))

    def test_selection_rules(self):
        a = self.scene.create_instance("FN_1", (5.0, 6.0, 7.0))
        b = self.scene.create_instance("FN_1", (0.0, 0.0, 0.0))
        with self.assertRaises(SelectionError):
            self.scene.get_single_selected_object_origin()
        self.scene.select(a, b)
        with self.assertRaises(SelectionError):
            self.scene.get_single_selected_object_origin()
        self.scene.select(a)
        self.assertEqual(self.scene.get_single_selected_object_origin(), (5.0, 6.0, 7.0))


class TestEngineOnScene(unittest.TestCase):

    def setUp(self):
        self.scene = InMemoryScene()
        self.engine = PlacementEngine(geometry=self.scene, selection=self.scene)
        self.engine.create_group()  # 3000 x 100 x 3000, spacing 3000, X+

    def test_x_travel_notes_stand_across_the_path(self):
        record = self.engine.place_note("z")
        self.assertEqual(self.scene.instance_origin(record.handle)[0], 1500.0)
        minx, miny, maxx, maxy = self.scene.footprint(record.handle).bounds
        # Half note: 1500 long, turned a quarter about Z.
        self.assertAlmostEqual(maxx - minx, 100.0)
        self.assertAlmostEqual(maxy - miny, 1500.0)

    def test_y_travel_notes_keep_orientation(self):
        self.engine.update_group(advance_dir="Y+")
        record = self.engine.place_note("z")
        minx, miny, maxx, maxy = self.scene.footprint(record.handle).bounds
        self.assertAlmostEqual(maxx - minx, 1500.0)
        self.assertAlmostEqual(maxy - miny, 100.0)

    def test_undo_after_manual_erase_keeps_point(self):
        record = self.engine.place_note("z")
        self.scene.delete_instance(record.handle)
        self.assertIsNone(self.engine.undo_last_placement())
        self.assertEqual(self.engine.reference_point(), (1500.0, 0.0, 0.0))
        self.assertEqual(self.engine.state.history, [])

    def test_reference_from_selected_note(self):
        record = self.engine.place_note("g")
        self.engine.set_reference_point(0, 0, 0)
        self.scene.select(record.handle)
        self.engine.set_reference_point_from_selection()
        self.assertEqual(self.engine.reference_point(), (1500.0, 0.0, 0.0))

    def test_highlight_follows_selected_group(self):
        self.engine.create_group()
        self.assertTrue(self.scene.prototypes["HN_2"].highlighted)
        self.assertFalse(self.scene.prototypes["HN_1"].highlighted)
        self.engine.switch_group("prev")
        self.assertTrue(self.scene.prototypes["HN_1"].highlighted)
        self.assertFalse(self.scene.prototypes["HN_2"].highlighted)

    def test_delete_group_removes_its_notes(self):
        self.engine.place_note("z")
        self.engine.place_note("s")
        self.assertEqual(len(self.scene.instances_of(1)), 2)
        self.engine.delete_current_group()
        self.assertEqual(self.scene.instances, {})
        self.assertNotIn("FN_1", self.scene.prototypes)

    def test_guide_line(self):
        self.engine.set_note_duration("1")
        self.assertEqual(list(self.scene.guide.coords),
                         [(0.0, 0.0, 0.0), (3000.0, 0.0, 0.0)])
        self.engine.delete_current_group()
        self.assertIsNone(self.scene.guide)


if __name__ == "__main__":
    unittest.main()
