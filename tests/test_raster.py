import io
import tempfile
import unittest
from pathlib import Path

import numpy as np
from PIL import Image

from tests._test_path import SRC  # noqa: F401

from passportsheet.core.errors import DecodeError, RasterUnavailable
from passportsheet.core.raster import RasterImage, downscale_to_fit, encode_image, new_canvas


def _png_bytes(w: int, h: int, color=(10, 20, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (w, h), color).save(buf, format="PNG")
    return buf.getvalue()


class TestRasterImage(unittest.TestCase):
    def test_decode_bytes_and_path(self):
        data = _png_bytes(7, 5)
        img = RasterImage.decode(data)
        self.assertEqual(img.size, (7, 5))
        self.assertEqual(img.pixels[0, 0].tolist(), [10, 20, 30, 255])

        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "in.png"
            p.write_bytes(data)
            self.assertEqual(RasterImage.decode(p).size, (7, 5))
            self.assertEqual(RasterImage.decode(str(p)).size, (7, 5))

    def test_decode_failures(self):
        with self.assertRaises(DecodeError):
            RasterImage.decode(b"definitely not an image")
        with self.assertRaises(DecodeError):
            RasterImage.decode("/nonexistent/photo.jpg")

    def test_pixels_are_read_only(self):
        img = RasterImage.from_array(np.zeros((3, 3, 3), dtype=np.uint8))
        self.assertEqual(img.pixels[0, 0, 3], 255)
        with self.assertRaises(ValueError):
            img.pixels[0, 0, 0] = 1

    def test_rejects_bad_arrays(self):
        with self.assertRaises(ValueError):
            RasterImage(np.zeros((0, 3, 4), dtype=np.uint8))
        with self.assertRaises(ValueError):
            RasterImage(np.zeros((3, 3, 3), dtype=np.uint8))
        with self.assertRaises(ValueError):
            RasterImage(np.zeros((3, 3, 4), dtype=np.float32))

    def test_pil_roundtrip(self):
        rng = np.random.default_rng(0)
        img = RasterImage(rng.integers(0, 256, size=(4, 6, 4), dtype=np.uint8))
        back = RasterImage.from_pil(img.to_pil())
        self.assertTrue(np.array_equal(back.pixels, img.pixels))


class TestEncoding(unittest.TestCase):
    def setUp(self):
        arr = np.zeros((32, 32, 4), dtype=np.uint8)
        arr[:, :, 0] = 200
        arr[:, :16, 3] = 255  # right half transparent
        self.img = RasterImage(arr)

    def test_png_is_lossless(self):
        back = RasterImage.decode(encode_image(self.img, "PNG"))
        self.assertTrue(np.array_equal(back.pixels, self.img.pixels))

    def test_jpeg_flattens_alpha_onto_white(self):
        data = encode_image(self.img, "jpg", quality=0.9)
        self.assertTrue(data.startswith(b"\xff\xd8"))
        back = RasterImage.decode(data)
        self.assertTrue(np.all(back.pixels[16, 30, :3] > 240))

    def test_quality_and_format_validation(self):
        with self.assertRaises(ValueError):
            encode_image(self.img, "JPEG", quality=1.5)
        with self.assertRaises(ValueError):
            encode_image(self.img, "GIF")


class TestHelpers(unittest.TestCase):
    def test_downscale_to_fit(self):
        img = RasterImage.from_array(np.zeros((1000, 3000, 3), dtype=np.uint8))
        small = downscale_to_fit(img, 1500)
        self.assertEqual(small.size, (1500, 500))
        self.assertIs(downscale_to_fit(small, 2048), small)

    def test_new_canvas(self):
        c = new_canvas(4, 3, (1, 2, 3))
        self.assertEqual(c.shape, (3, 4, 4))
        self.assertEqual(c[0, 0].tolist(), [1, 2, 3, 255])
        with self.assertRaises(RasterUnavailable):
            new_canvas(0, 3)
