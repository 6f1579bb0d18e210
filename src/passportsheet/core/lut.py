from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from passportsheet.core.errors import EmptyCurve
from passportsheet.core.models import CurvePoint


def _clamp_byte(v: float) -> int:
    # Half-up rounding keeps the identity and inversion curves exact.
    return int(min(255, max(0, math.floor(v + 0.5))))


def build_lut(points: Sequence[CurvePoint]) -> np.ndarray:
    """
    Build a 256-entry uint8 lookup table from sparse control points by
    piecewise-linear interpolation.

    Inputs left of the first point take the first point's y, inputs right of
    the last point take the last point's y. Where two points share an x, the
    first of the pair wins.
    """
    if not points:
        raise EmptyCurve("Cannot build a LUT from an empty set of control points.")

    pts = sorted(points, key=lambda p: p.x)
    first, last = pts[0], pts[-1]
    lut = np.zeros(256, dtype=np.uint8)

    for i in range(256):
        if i < first.x:
            lut[i] = _clamp_byte(first.y)
            continue
        if i > last.x:
            lut[i] = _clamp_byte(last.y)
            continue

        p1, p2 = first, last
        for a, b in zip(pts, pts[1:]):
            if a.x <= i <= b.x:
                p1, p2 = a, b
                break

        if p1.x == p2.x:
            lut[i] = _clamp_byte(p1.y)
        else:
            t = (i - p1.x) / (p2.x - p1.x)
            lut[i] = _clamp_byte(p1.y + t * (p2.y - p1.y))
    return lut
