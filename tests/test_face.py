import sys
import unittest
from unittest.mock import patch

import numpy as np

from tests._test_path import SRC  # noqa: F401

from passportsheet.core.errors import FaceNotFound, InvalidGeometry
from passportsheet.core.face import FaceLandmarks, LandmarkPx, detect_face_landmarks, suggest_view
from passportsheet.core.geometry import resolve_crop
from passportsheet.core.models import CropWindow
from passportsheet.core.raster import RasterImage


def _landmarks(nose=(500, 400), forehead=(500, 300), chin=(500, 500)) -> FaceLandmarks:
    return FaceLandmarks(LandmarkPx(*nose), LandmarkPx(*forehead), LandmarkPx(*chin))


class TestSuggestView(unittest.TestCase):
    def test_face_lands_in_the_middle_of_the_window(self):
        window = CropWindow()
        view = suggest_view((1000, 1000), _landmarks(), window, face_ratio=0.55)
        self.assertAlmostEqual(view.zoom, 0.55 * 360 / 200)
        self.assertEqual(view.rotation_degrees, 0.0)

        crop = resolve_crop((1000, 1000), view, window.size, (800, 500))
        self.assertAlmostEqual(crop.x + crop.width / 2, 500.0, places=6)
        self.assertAlmostEqual(crop.y + crop.height / 2, 400.0, places=6)
        # forehead-to-chin span is face_ratio of the crop height
        self.assertAlmostEqual(200.0 / crop.height, 0.55, places=6)

    def test_off_centre_face(self):
        view = suggest_view((1000, 800), _landmarks(nose=(700, 300), forehead=(690, 250), chin=(710, 350)), CropWindow())
        crop = resolve_crop((1000, 800), view, CropWindow().size, (800, 500))
        self.assertAlmostEqual(crop.x + crop.width / 2, 700.0, places=6)

    def test_rejects_bad_input(self):
        with self.assertRaises(FaceNotFound):
            suggest_view((100, 100), _landmarks(forehead=(50, 60), chin=(50, 40)), CropWindow())
        with self.assertRaises(InvalidGeometry):
            suggest_view((1000, 1000), _landmarks(), CropWindow(), face_ratio=0.0)


class TestDetectFaceLandmarks(unittest.TestCase):
    def test_missing_mediapipe(self):
        img = RasterImage.from_array(np.zeros((10, 10, 3), dtype=np.uint8))
        with patch.dict(sys.modules, {"mediapipe": None}):
            with self.assertRaises(FaceNotFound):
                detect_face_landmarks(img)
