from __future__ import annotations

import math
from typing import Tuple

import cv2
import numpy as np

from passportsheet.core.errors import InvalidGeometry, RasterUnavailable
from passportsheet.core.models import ResolvedCrop, ViewTransform
from passportsheet.core.raster import RasterImage, as_rgba, new_canvas, resize_rgba

TRANSPARENT = (0, 0, 0, 0)


def capped_output_size(width: float, height: float, max_dimension: int) -> Tuple[int, int]:
    """Scale (width, height) so the longer side is at most ``max_dimension``, keeping aspect."""
    if width <= 0 or height <= 0:
        raise InvalidGeometry(f"Output size must be positive, got {width}x{height}.")
    scale = min(1.0, max_dimension / float(max(width, height)))
    return max(1, int(round(width * scale))), max(1, int(round(height * scale)))


def transform_output_size(crop_window_size: Tuple[float, float], upscale: float = 3.75) -> Tuple[int, int]:
    """Output canvas for transform mode; 280x360 on screen at 3.75 gives 1050x1350."""
    w, h = crop_window_size
    return max(1, int(round(w * upscale))), max(1, int(round(h * upscale)))


def _read_rect_with_padding(
    src: np.ndarray,
    left: int,
    top: int,
    right: int,
    bottom: int,
    fill: Tuple[int, ...],
) -> np.ndarray:
    """
    Copy src[top:bottom, left:right]; parts outside the source are filled with ``fill``.
    """
    h, w = src.shape[:2]
    out = new_canvas(right - left, bottom - top, fill)

    cols = slice(max(left, 0), min(right, w))
    rows = slice(max(top, 0), min(bottom, h))
    if cols.start < cols.stop and rows.start < rows.stop:
        out[rows.start - top:rows.stop - top, cols.start - left:cols.stop - left] = src[rows, cols]
    return out


def crop_rectangle(
    image: RasterImage,
    crop: ResolvedCrop,
    max_dimension: int = 2048,
    fill: Tuple[int, ...] = TRANSPARENT,
) -> RasterImage:
    """
    Read the resolved source rectangle and scale it to the capped output size.

    Edges are rounded to whole source pixels. Shrinking uses area resampling so the
    background-replacement step never sees aliasing.
    """
    if crop.requires_transform:
        raise InvalidGeometry("Rotated crops must be rendered with render_transformed().")

    out_w, out_h = capped_output_size(crop.width, crop.height, max_dimension)

    left = int(round(crop.x))
    top = int(round(crop.y))
    right = max(left + 1, int(round(crop.x + crop.width)))
    bottom = max(top + 1, int(round(crop.y + crop.height)))

    region = _read_rect_with_padding(image.pixels, left, top, right, bottom, fill)
    return RasterImage(resize_rgba(region, out_w, out_h))


def _translate(tx: float, ty: float) -> np.ndarray:
    return np.array([[1.0, 0.0, tx], [0.0, 1.0, ty], [0.0, 0.0, 1.0]])


def _scale(sx: float, sy: float) -> np.ndarray:
    return np.array([[sx, 0.0, 0.0], [0.0, sy, 0.0], [0.0, 0.0, 1.0]])


def _rotate(degrees: float) -> np.ndarray:
    # y points down, so positive angles turn clockwise on screen
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def compose_view_matrix(
    natural_size: Tuple[float, float],
    view: ViewTransform,
    crop_window_size: Tuple[float, float],
    output_size: Tuple[int, int],
) -> np.ndarray:
    """
    3x3 matrix taking source coordinates to output-canvas coordinates.

    Order (outermost first): translate to canvas centre, scale window->output,
    translate by pan, rotate, scale by zoom, translate by -natural/2.
    """
    nat_w, nat_h = natural_size
    box_w, box_h = crop_window_size
    out_w, out_h = output_size
    if box_w <= 0 or box_h <= 0:
        raise InvalidGeometry(f"Crop window size must be positive, got {box_w}x{box_h}.")
    if view.zoom <= 0:
        raise InvalidGeometry(f"Zoom must be positive, got {view.zoom}.")

    return (
        _translate(out_w / 2.0, out_h / 2.0)
        @ _scale(out_w / float(box_w), out_h / float(box_h))
        @ _translate(view.pan_x, view.pan_y)
        @ _rotate(view.rotation_degrees)
        @ _scale(view.zoom, view.zoom)
        @ _translate(-nat_w / 2.0, -nat_h / 2.0)
    )


def _to_pixel_index_space(m: np.ndarray) -> np.ndarray:
    # OpenCV addresses pixel centres at integers; the composition above uses continuous coordinates.
    return _translate(-0.5, -0.5) @ m @ _translate(0.5, 0.5)


def render_transformed(
    image: RasterImage,
    view: ViewTransform,
    crop_window_size: Tuple[float, float],
    output_size: Tuple[int, int],
    fill: Tuple[int, ...] = TRANSPARENT,
) -> RasterImage:
    """
    Draw the whole source through the view transform onto an ``output_size`` canvas,
    reproducing what the interactive preview shows inside the crop window.
    """
    out_w, out_h = int(output_size[0]), int(output_size[1])
    canvas = new_canvas(out_w, out_h, fill)

    src = image.pixels
    nat_w, nat_h = image.size
    m = compose_view_matrix((nat_w, nat_h), view, crop_window_size, (out_w, out_h))

    # Pre-reduce heavy downscales; warpAffine alone would alias.
    overall = view.zoom * min(out_w / float(crop_window_size[0]), out_h / float(crop_window_size[1]))
    if overall < 0.5:
        red_w = max(1, int(round(nat_w * overall)))
        red_h = max(1, int(round(nat_h * overall)))
        src = resize_rgba(src, red_w, red_h)
        m = m @ _scale(nat_w / float(red_w), nat_h / float(red_h))

    affine = _to_pixel_index_space(m)[:2, :]
    try:
        canvas = cv2.warpAffine(
            np.ascontiguousarray(src),
            affine,
            (out_w, out_h),
            dst=canvas,
            flags=cv2.INTER_CUBIC,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=as_rgba(fill),
        )
    except (cv2.error, MemoryError) as e:
        raise RasterUnavailable(f"Transform render failed: {e}") from e
    return RasterImage(canvas)
