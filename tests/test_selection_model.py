from __future__ import annotations

import unittest

from core.errors import DegenerateSelection
from core.geometry import Point, Rect, display_to_raster
from core.selection import SelectionModel


class SelectionModelTests(unittest.TestCase):
    def test_normalizes_any_drag_direction(self) -> None:
        sel = SelectionModel()
        sel.begin(Point(7.6, 9.2))
        sel.update(Point(2.4, 1.5))
        self.assertEqual(sel.normalized_rect(), Rect(2, 1, 8, 10))

        sel.begin(Point(2.4, 9.2))
        sel.update(Point(7.6, 1.5))
        self.assertEqual(sel.normalized_rect(), Rect(2, 1, 8, 10))

    def test_begin_sets_both_points(self) -> None:
        sel = SelectionModel()
        sel.begin(Point(3, 4))
        self.assertEqual(sel.start, Point(3, 4))
        self.assertEqual(sel.end, Point(3, 4))
        self.assertTrue(sel.is_dragging)

    def test_update_moves_only_end(self) -> None:
        sel = SelectionModel()
        sel.begin(Point(1, 1))
        sel.update(Point(5, 6))
        sel.update(Point(4, 3))
        self.assertEqual(sel.start, Point(1, 1))
        self.assertEqual(sel.end, Point(4, 3))

    def test_update_without_selection_is_noop(self) -> None:
        sel = SelectionModel()
        sel.update(Point(5, 5))
        self.assertFalse(sel.is_active)
        self.assertIsNone(sel.end)

    def test_end_drag_keeps_points(self) -> None:
        sel = SelectionModel()
        sel.begin(Point(1, 1))
        sel.update(Point(3, 3))
        sel.end_drag()
        self.assertFalse(sel.is_dragging)
        self.assertTrue(sel.is_active)
        self.assertEqual(sel.normalized_rect(), Rect(1, 1, 3, 3))

    def test_identical_points_are_degenerate(self) -> None:
        sel = SelectionModel()
        sel.begin(Point(2, 2))
        with self.assertRaises(DegenerateSelection):
            sel.normalized_rect()

    def test_fractional_point_spans_one_pixel(self) -> None:
        sel = SelectionModel()
        sel.begin(Point(2.5, 2.5))
        self.assertEqual(sel.normalized_rect(), Rect(2, 2, 3, 3))

    def test_zero_height_is_degenerate(self) -> None:
        sel = SelectionModel()
        sel.begin(Point(1, 4))
        sel.update(Point(9, 4))
        with self.assertRaises(DegenerateSelection):
            sel.normalized_rect()

    def test_clamps_to_bounds(self) -> None:
        sel = SelectionModel()
        sel.begin(Point(-3, -2))
        sel.update(Point(40, 2.2))
        self.assertEqual(sel.normalized_rect((10, 8)), Rect(0, 0, 10, 3))

    def test_outside_bounds_is_degenerate(self) -> None:
        sel = SelectionModel()
        sel.begin(Point(20, 20))
        sel.update(Point(30, 30))
        with self.assertRaises(DegenerateSelection):
            sel.normalized_rect((10, 10))

    def test_rect_or_full_falls_back_to_whole_image(self) -> None:
        sel = SelectionModel()
        self.assertEqual(sel.rect_or_full(6, 4), Rect(0, 0, 6, 4))
        sel.begin(Point(2, 2))
        self.assertEqual(sel.rect_or_full(6, 4), Rect(0, 0, 6, 4))
        sel.update(Point(4, 3))
        self.assertEqual(sel.rect_or_full(6, 4), Rect(2, 2, 4, 3))

    def test_clear(self) -> None:
        sel = SelectionModel()
        sel.begin(Point(1, 1))
        sel.clear()
        self.assertFalse(sel.is_active)
        self.assertIsNone(sel.overlay_rect())

    def test_overlay_rect_is_unrounded(self) -> None:
        sel = SelectionModel()
        sel.begin(Point(5.5, 1.25))
        sel.update(Point(2.0, 3.75))
        self.assertEqual(sel.overlay_rect(), (2.0, 1.25, 3.5, 2.5))


class DisplayMappingTests(unittest.TestCase):
    def test_scales_by_raster_to_display_ratio(self) -> None:
        pt = display_to_raster((60, 30), (10, 10), (100, 50), (200, 100))
        self.assertEqual(pt, Point(100.0, 40.0))

    def test_clamps_to_raster(self) -> None:
        pt = display_to_raster((500, -20), (0, 0), (100, 100), (50, 50))
        self.assertEqual(pt, Point(50.0, 0.0))
        pt = display_to_raster((500, -20), (0, 0), (100, 100), (50, 50), clamp=False)
        self.assertEqual(pt, Point(250.0, -10.0))

    def test_zero_display_size(self) -> None:
        self.assertIsNone(display_to_raster((1, 1), (0, 0), (0, 10), (10, 10)))


class RectTests(unittest.TestCase):
    def test_as_xywh(self) -> None:
        self.assertEqual(Rect(3, 4, 8, 10).as_xywh(), (3, 4, 5, 6))

    def test_clamp(self) -> None:
        self.assertEqual(Rect(-2, 1, 9, 9).clamp(5, 5), Rect(0, 1, 5, 5))
        self.assertTrue(Rect(7, 7, 9, 9).clamp(5, 5).is_empty)
        self.assertTrue(Rect(4, 4, 2, 2).clamp(5, 5).is_empty)


if __name__ == "__main__":
    unittest.main()
