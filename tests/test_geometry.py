import unittest

from tests._test_path import SRC  # noqa: F401

from passportsheet.core.errors import InvalidGeometry
from passportsheet.core.geometry import resolve_crop
from passportsheet.core.models import CropWindow, ViewTransform

WINDOW = CropWindow().size  # 280 x 360
CONTAINER = (800.0, 500.0)


class TestResolveCrop(unittest.TestCase):
    def test_window_matching_rendered_image_is_full_frame(self):
        crop = resolve_crop((280, 360), ViewTransform(zoom=1.0), WINDOW, CONTAINER)
        self.assertAlmostEqual(crop.x, 0.0)
        self.assertAlmostEqual(crop.y, 0.0)
        self.assertAlmostEqual(crop.width, 280.0)
        self.assertAlmostEqual(crop.height, 360.0)
        self.assertFalse(crop.requires_transform)

    def test_doubling_zoom_halves_the_rectangle(self):
        a = resolve_crop((2000, 3000), ViewTransform(zoom=0.5), WINDOW, CONTAINER)
        b = resolve_crop((2000, 3000), ViewTransform(zoom=1.0), WINDOW, CONTAINER)
        self.assertAlmostEqual(b.width, a.width / 2.0)
        self.assertAlmostEqual(b.height, a.height / 2.0)

    def test_portrait_scenario(self):
        zoom = 1.5
        crop = resolve_crop((2000, 3000), ViewTransform(zoom=zoom, pan_y=-50), WINDOW, CONTAINER)
        self.assertAlmostEqual(crop.width / crop.height, 35.0 / 45.0, places=9)
        self.assertAlmostEqual(crop.width * crop.height, WINDOW[0] * WINDOW[1] / zoom ** 2, places=6)
        self.assertAlmostEqual(crop.x, 1360.0 / 1.5, places=9)
        self.assertAlmostEqual(crop.y, 2120.0 / 1.5, places=9)

    def test_panning_right_moves_the_crop_left(self):
        base = resolve_crop((1000, 1000), ViewTransform(zoom=1.0), WINDOW, CONTAINER)
        moved = resolve_crop((1000, 1000), ViewTransform(zoom=1.0, pan_x=30), WINDOW, CONTAINER)
        self.assertAlmostEqual(base.x - moved.x, 30.0)
        self.assertAlmostEqual(base.y, moved.y)

    def test_origin_and_size_are_clamped(self):
        # Image pushed far right: window starts left of the image.
        crop = resolve_crop((300, 400), ViewTransform(zoom=1.0, pan_x=100, pan_y=60), WINDOW, CONTAINER)
        self.assertEqual(crop.x, 0.0)
        self.assertEqual(crop.y, 0.0)
        self.assertLessEqual(crop.x + crop.width, 300.0)
        self.assertLessEqual(crop.y + crop.height, 400.0)

        # Image pushed left: window runs past the right edge.
        crop = resolve_crop((300, 400), ViewTransform(zoom=1.0, pan_x=-100), WINDOW, CONTAINER)
        self.assertAlmostEqual(crop.x, 110.0)
        self.assertAlmostEqual(crop.width, 190.0)

    def test_rotation_requires_transform(self):
        view = ViewTransform(zoom=1.2, rotation_degrees=7.5, pan_x=3, pan_y=-4)
        crop = resolve_crop((1200, 1600), view, WINDOW, CONTAINER)
        self.assertTrue(crop.requires_transform)
        self.assertEqual(crop.rotation_degrees, 7.5)
        self.assertEqual(crop.view, view)
        self.assertEqual(crop.crop_window_size, WINDOW)

    def test_rotated_window_off_the_image_has_empty_rect(self):
        view = ViewTransform(zoom=1.0, rotation_degrees=5.0, pan_x=-2000)
        crop = resolve_crop((300, 400), view, WINDOW, CONTAINER)
        self.assertTrue(crop.requires_transform)
        self.assertAlmostEqual(crop.x, 2010.0)
        self.assertEqual(crop.width, 0.0)
        self.assertGreaterEqual(crop.height, 0.0)

    def test_degenerate_inputs(self):
        for zoom in (0.0, -1.0):
            with self.assertRaises(InvalidGeometry):
                resolve_crop((100, 100), ViewTransform(zoom=zoom), WINDOW, CONTAINER)
        with self.assertRaises(InvalidGeometry):
            resolve_crop((100, 100), ViewTransform(), (0, 360), CONTAINER)
        with self.assertRaises(InvalidGeometry):
            resolve_crop((0, 100), ViewTransform(), WINDOW, CONTAINER)

    def test_window_outside_image(self):
        with self.assertRaises(InvalidGeometry):
            resolve_crop((100, 100), ViewTransform(pan_x=-2000), WINDOW, CONTAINER)
