from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Tuple

MM_PER_INCH = 25.4


@dataclass(frozen=True)
class CurvePoint:
    x: float
    y: float


def _identity_curve() -> Tuple[CurvePoint, ...]:
    return (CurvePoint(0, 0), CurvePoint(255, 255))


def _points(raw: Sequence[Any]) -> Tuple[CurvePoint, ...]:
    pts = []
    for p in raw:
        if isinstance(p, CurvePoint):
            pts.append(p)
            continue
        try:
            if isinstance(p, Mapping):
                pts.append(CurvePoint(float(p["x"]), float(p["y"])))
            else:
                pts.append(CurvePoint(float(p[0]), float(p[1])))
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError(f"Invalid curve point: {p!r}") from e
    return tuple(pts)


@dataclass(frozen=True)
class CurveSettings:
    """
    Four independent tone curves.

    master:
        Applied after the per-channel curve (channel output feeds the master curve).
    red / green / blue:
        Per-channel curves. Each should contain the x=0 and x=255 endpoints.
    """
    master: Tuple[CurvePoint, ...] = field(default_factory=_identity_curve)
    red: Tuple[CurvePoint, ...] = field(default_factory=_identity_curve)
    green: Tuple[CurvePoint, ...] = field(default_factory=_identity_curve)
    blue: Tuple[CurvePoint, ...] = field(default_factory=_identity_curve)

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "CurveSettings":
        """
        Build from a mapping such as ``{"all": [[0, 0], [128, 150], [255, 255]], "red": ...}``.
        ``all`` is accepted as an alias for ``master``; missing channels are identity.
        """
        kwargs = {}
        for name in ("master", "red", "green", "blue"):
            key = "all" if name == "master" and "all" in data else name
            if key in data:
                kwargs[name] = _points(data[key])
        return CurveSettings(**kwargs)

    @staticmethod
    def load(path: str | Path) -> "CurveSettings":
        with open(path, "r", encoding="utf-8") as f:
            return CurveSettings.from_dict(json.load(f))


@dataclass(frozen=True)
class ViewTransform:
    """How the source image sits under the stationary crop window (screen pixels)."""
    zoom: float = 1.0
    rotation_degrees: float = 0.0
    pan_x: float = 0.0
    pan_y: float = 0.0


@dataclass(frozen=True)
class CropWindow:
    """
    Fixed-aspect on-screen crop window. Only the image moves beneath it.

    The default 35:45 window is 360 px tall on screen (280 x 360).
    """
    aspect_width: float = 35.0
    aspect_height: float = 45.0
    height: float = 360.0

    @property
    def width(self) -> float:
        return self.height * self.aspect_width / self.aspect_height

    @property
    def size(self) -> Tuple[float, float]:
        return (self.width, self.height)


@dataclass(frozen=True)
class ResolvedCrop:
    """
    Source-pixel rectangle that maps onto the crop window.

    When the view is rotated no axis-aligned rectangle exists; ``requires_transform``
    is then set and ``view`` / ``crop_window_size`` carry what transform mode needs.
    """
    x: float
    y: float
    width: float
    height: float
    rotation_degrees: float = 0.0
    requires_transform: bool = False
    view: Optional[ViewTransform] = None
    crop_window_size: Optional[Tuple[float, float]] = None


@dataclass(frozen=True)
class CropPolicy:
    """
    Crop stage output policy.

    max_dimension:
        Cap for the longer side of a rectangle-mode crop (1024..2048 is typical).
    quality:
        Encoder quality scalar in [0, 1]; only lossy formats use it.
    output_format:
        Intermediate encoding handed to the normalization service.
    transform_upscale:
        Output canvas size / on-screen crop window size in transform mode.
    """
    max_dimension: int = 2048
    quality: float = 0.95
    output_format: str = "JPEG"
    transform_upscale: float = 3.75
    preview_max_size: int = 2048


@dataclass(frozen=True)
class SheetSpec:
    """Physical print constants. Defaults: 6x4 in at 300 DPI, 35x45 mm photos, 3 mm gap, 4x2 grid."""
    sheet_width_in: float = 6.0
    sheet_height_in: float = 4.0
    dpi: int = 300
    photo_width_mm: float = 35.0
    photo_height_mm: float = 45.0
    gap_mm: float = 3.0
    columns: int = 4
    rows: int = 2
    guide_color: Tuple[int, int, int] = (204, 204, 204)
    background: Tuple[int, int, int] = (255, 255, 255)
    sheet_border: bool = False

    def mm_to_px(self, mm: float) -> float:
        return (mm / MM_PER_INCH) * self.dpi

    @property
    def sheet_size_px(self) -> Tuple[int, int]:
        return (int(round(self.sheet_width_in * self.dpi)), int(round(self.sheet_height_in * self.dpi)))


@dataclass(frozen=True)
class SheetLayout:
    """Float device-pixel layout of the sheet; cells are (x, y, w, h) in row-major order."""
    sheet_width: int
    sheet_height: int
    cell_width: float
    cell_height: float
    gap: float
    block_width: float
    block_height: float
    margin_x: float
    margin_y: float
    cells: Tuple[Tuple[float, float, float, float], ...]
