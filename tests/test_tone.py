import unittest

import numpy as np

from tests._test_path import SRC  # noqa: F401

from passportsheet.core.models import CurvePoint as P, CurveSettings
from passportsheet.core.raster import RasterImage
from passportsheet.core.tone import apply_curves


def _random_image(seed: int = 0) -> RasterImage:
    rng = np.random.default_rng(seed)
    return RasterImage(rng.integers(0, 256, size=(12, 9, 4), dtype=np.uint8))


class TestApplyCurves(unittest.TestCase):
    def test_identity_curves_leave_pixels_unchanged(self):
        img = _random_image()
        out = apply_curves(img, CurveSettings())
        self.assertIsNot(out, img)
        self.assertTrue(np.array_equal(out.pixels, img.pixels))

    def test_inverting_master_keeps_alpha(self):
        img = _random_image(1)
        inv = (P(0, 255), P(255, 0))
        out = apply_curves(img, CurveSettings(master=inv))
        self.assertTrue(np.array_equal(out.pixels[:, :, :3], 255 - img.pixels[:, :, :3]))
        self.assertTrue(np.array_equal(out.pixels[:, :, 3], img.pixels[:, :, 3]))

    def test_channel_curve_feeds_master_curve(self):
        img = _random_image(2)
        settings = CurveSettings(
            red=(P(0, 200), P(255, 200)),
            master=(P(0, 0), P(200, 100), P(255, 255)),
        )
        out = apply_curves(img, settings)
        # red -> 200 -> master[200] == 100; the other channels only see the master curve
        self.assertTrue(np.all(out.pixels[:, :, 0] == 100))
        self.assertFalse(np.all(out.pixels[:, :, 1] == 100))

    def test_source_is_untouched(self):
        img = _random_image(3)
        before = np.array(img.pixels)
        apply_curves(img, CurveSettings(green=(P(0, 255), P(255, 255))))
        self.assertTrue(np.array_equal(img.pixels, before))
