from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import cv2
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from passportsheet.core.errors import DecodeError, RasterUnavailable

ImageSource = Union[str, Path, bytes, bytearray]


@dataclass(frozen=True, eq=False)
class RasterImage:
    """
    Immutable RGBA raster (uint8, shape HxWx4).

    The pixel buffer is marked read-only; every transform builds a new RasterImage.
    """
    pixels: np.ndarray

    def __post_init__(self) -> None:
        arr = self.pixels
        if arr.dtype != np.uint8 or arr.ndim != 3 or arr.shape[2] != 4:
            raise ValueError(f"expected uint8 HxWx4 array, got {arr.dtype} {arr.shape}")
        if arr.shape[0] <= 0 or arr.shape[1] <= 0:
            raise ValueError(f"raster dimensions must be positive, got {arr.shape[1]}x{arr.shape[0]}")
        arr.flags.writeable = False

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @staticmethod
    def from_array(arr: np.ndarray) -> "RasterImage":
        """Accepts gray (HxW), RGB (HxWx3) or RGBA (HxWx4) uint8 arrays. Always copies."""
        arr = np.asarray(arr)
        if arr.ndim == 2:
            arr = np.stack([arr, arr, arr], axis=-1)
        if arr.ndim == 3 and arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr.astype(np.uint8), alpha], axis=-1)
        return RasterImage(np.array(arr, dtype=np.uint8, copy=True))

    @staticmethod
    def from_pil(img: Image.Image) -> "RasterImage":
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        return RasterImage(np.array(img, dtype=np.uint8))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.array(self.pixels))

    @staticmethod
    def decode(source: ImageSource) -> "RasterImage":
        """Decode a path or encoded bytes, honouring EXIF orientation."""
        try:
            if isinstance(source, (bytes, bytearray)):
                img = Image.open(io.BytesIO(bytes(source)))
            else:
                img = Image.open(source)
            img.load()
            img = ImageOps.exif_transpose(img)
            return RasterImage.from_pil(img)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as e:
            raise DecodeError(f"Could not decode image: {e}") from e


def as_rgba(fill: Tuple[int, ...]) -> Tuple[int, ...]:
    """Extend an RGB fill to opaque RGBA."""
    return tuple(fill) if len(fill) == 4 else tuple(fill) + (255,)


def new_canvas(width: int, height: int, fill: Tuple[int, ...] = (0, 0, 0, 0)) -> np.ndarray:
    """Allocate a writable HxWx4 buffer filled with ``fill`` (RGB or RGBA)."""
    if width <= 0 or height <= 0:
        raise RasterUnavailable(f"Cannot allocate a {width}x{height} surface.")
    rgba = as_rgba(fill)
    try:
        return np.full((int(height), int(width), 4), rgba, dtype=np.uint8)
    except MemoryError as e:
        raise RasterUnavailable(f"Out of memory allocating a {width}x{height} surface.") from e


def resize_rgba(arr: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resize with area resampling when shrinking and Lanczos when enlarging."""
    h, w = arr.shape[:2]
    if (w, h) == (width, height):
        return np.array(arr, copy=True)
    shrinking = width <= w and height <= h
    interp = cv2.INTER_AREA if shrinking else cv2.INTER_LANCZOS4
    try:
        return cv2.resize(np.ascontiguousarray(arr), (int(width), int(height)), interpolation=interp)
    except (cv2.error, MemoryError) as e:
        raise RasterUnavailable(f"Resize to {width}x{height} failed: {e}") from e


def downscale_to_fit(image: RasterImage, max_size: int = 2048) -> RasterImage:
    """Shrink so the longer edge is at most ``max_size``; smaller images are returned as-is."""
    w, h = image.size
    longest = max(w, h)
    if longest <= max_size:
        return image
    scale = max_size / float(longest)
    new_w = max(1, int(round(w * scale)))
    new_h = max(1, int(round(h * scale)))
    return RasterImage(resize_rgba(image.pixels, new_w, new_h))


def flatten_onto(image: RasterImage, rgb: Tuple[int, int, int] = (255, 255, 255)) -> np.ndarray:
    """Alpha-composite onto a solid colour, returning an HxWx3 uint8 array."""
    px = image.pixels.astype(np.float32)
    alpha = px[:, :, 3:4] / 255.0
    bg = np.array(rgb, dtype=np.float32).reshape(1, 1, 3)
    out = px[:, :, :3] * alpha + bg * (1.0 - alpha)
    return np.clip(np.rint(out), 0, 255).astype(np.uint8)


def encode_image(image: RasterImage, fmt: str = "PNG", quality: float = 1.0) -> bytes:
    """
    Encode to bytes.

    fmt:
        "PNG" (lossless, quality ignored) or "JPEG" (alpha flattened onto white).
    quality:
        Scalar in [0, 1]; JPEG maps it onto Pillow's 1..100 scale.
    """
    fmt = fmt.upper()
    if fmt == "JPG":
        fmt = "JPEG"
    if not (0.0 <= quality <= 1.0):
        raise ValueError(f"quality must be within [0, 1], got {quality}")

    buf = io.BytesIO()
    if fmt == "PNG":
        image.to_pil().save(buf, format="PNG")
    elif fmt == "JPEG":
        q = max(1, min(100, int(round(quality * 100))))
        Image.fromarray(flatten_onto(image)).save(buf, format="JPEG", quality=q, optimize=True)
    else:
        raise ValueError(f"Unsupported output format: {fmt}")
    return buf.getvalue()
