from __future__ import annotations

from typing import List

import numpy as np

from passportsheet.core.raster import RasterImage, resize_rgba

HISTOGRAM_SAMPLE_SIZE = 256


def _sample(image: RasterImage, max_size: int) -> np.ndarray:
    w, h = image.size
    longest = max(w, h)
    if longest <= max_size:
        return image.pixels
    new_w = max(1, int(w * max_size / longest))
    new_h = max(1, int(h * max_size / longest))
    return resize_rgba(image.pixels, new_w, new_h)


def luminance_counts(image: RasterImage, max_size: int = HISTOGRAM_SAMPLE_SIZE) -> np.ndarray:
    """Raw 256-bucket luma counts over the (possibly downscaled) sample."""
    px = _sample(image, max_size).astype(np.float64)
    luma = 0.299 * px[:, :, 0] + 0.587 * px[:, :, 1] + 0.114 * px[:, :, 2]
    buckets = np.clip(np.floor(luma + 0.5), 0, 255).astype(np.int64)
    return np.bincount(buckets.ravel(), minlength=256)


def compute_histogram(image: RasterImage, max_size: int = HISTOGRAM_SAMPLE_SIZE) -> List[float]:
    """
    Luminance histogram normalised so the tallest bucket is 1.0.

    Large images are downscaled to ``max_size`` on the long edge first; the result
    is a preview approximation.
    """
    counts = luminance_counts(image, max_size)
    peak = float(counts.max())
    return [float(c) / peak for c in counts]
