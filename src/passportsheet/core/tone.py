from __future__ import annotations

import numpy as np

from passportsheet.core.lut import build_lut
from passportsheet.core.models import CurveSettings
from passportsheet.core.raster import RasterImage


def apply_curves(image: RasterImage, settings: CurveSettings) -> RasterImage:
    """
    Apply the per-channel curves, then the master curve, to every pixel.
    Alpha is copied through untouched.
    """
    lut_master = build_lut(settings.master)
    lut_r = build_lut(settings.red)
    lut_g = build_lut(settings.green)
    lut_b = build_lut(settings.blue)

    src = image.pixels
    out = np.empty_like(src)
    out[:, :, 0] = lut_master[lut_r[src[:, :, 0]]]
    out[:, :, 1] = lut_master[lut_g[src[:, :, 1]]]
    out[:, :, 2] = lut_master[lut_b[src[:, :, 2]]]
    out[:, :, 3] = src[:, :, 3]
    return RasterImage(out)
