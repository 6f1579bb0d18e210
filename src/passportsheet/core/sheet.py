from __future__ import annotations

from typing import Dict, Tuple

import cv2
import numpy as np

from passportsheet.core.errors import InvalidGeometry, RasterUnavailable
from passportsheet.core.models import SheetLayout, SheetSpec
from passportsheet.core.raster import RasterImage, new_canvas, resize_rgba


def compute_sheet_layout(sheet: SheetSpec = SheetSpec()) -> SheetLayout:
    """
    Lay out ``columns x rows`` photo cells, separated by the gap, as one block
    centred on the sheet. Values are float device pixels.
    """
    sheet_w, sheet_h = sheet.sheet_size_px
    cell_w = sheet.mm_to_px(sheet.photo_width_mm)
    cell_h = sheet.mm_to_px(sheet.photo_height_mm)
    gap = sheet.mm_to_px(sheet.gap_mm)

    block_w = sheet.columns * cell_w + (sheet.columns - 1) * gap
    block_h = sheet.rows * cell_h + (sheet.rows - 1) * gap
    if block_w > sheet_w or block_h > sheet_h:
        raise InvalidGeometry(
            f"{sheet.columns}x{sheet.rows} grid ({block_w:.1f}x{block_h:.1f}px) does not fit a {sheet_w}x{sheet_h}px sheet."
        )

    margin_x = (sheet_w - block_w) / 2.0
    margin_y = (sheet_h - block_h) / 2.0

    cells = []
    for row in range(sheet.rows):
        for col in range(sheet.columns):
            x = margin_x + col * (cell_w + gap)
            y = margin_y + row * (cell_h + gap)
            cells.append((x, y, cell_w, cell_h))

    return SheetLayout(
        sheet_width=sheet_w,
        sheet_height=sheet_h,
        cell_width=cell_w,
        cell_height=cell_h,
        gap=gap,
        block_width=block_w,
        block_height=block_h,
        margin_x=margin_x,
        margin_y=margin_y,
        cells=tuple(cells),
    )


def cell_pixel_box(cell: Tuple[float, float, float, float]) -> Tuple[int, int, int, int]:
    """Round a float cell to device pixels: (left, top, right, bottom), right/bottom exclusive."""
    x, y, w, h = cell
    return int(round(x)), int(round(y)), int(round(x + w)), int(round(y + h))


def _paste_over(canvas: np.ndarray, tile: np.ndarray, left: int, top: int) -> None:
    h, w = tile.shape[:2]
    region = canvas[top:top + h, left:left + w].astype(np.float32)
    src = tile.astype(np.float32)
    alpha = src[:, :, 3:4] / 255.0
    region[:, :, :3] = src[:, :, :3] * alpha + region[:, :, :3] * (1.0 - alpha)
    canvas[top:top + h, left:left + w] = np.clip(np.rint(region), 0, 255).astype(np.uint8)


def compose_sheet(photo: RasterImage, sheet: SheetSpec = SheetSpec()) -> RasterImage:
    """
    Tile the photo into every cell of the print sheet.

    Each copy is stretched to fill its cell exactly (the crop stage already fixed the
    aspect ratio) and outlined with a 1px guide for cutting. The sheet is opaque.
    """
    layout = compute_sheet_layout(sheet)
    canvas = new_canvas(layout.sheet_width, layout.sheet_height, sheet.background)
    guide = tuple(sheet.guide_color) + (255,)

    tiles: Dict[Tuple[int, int], np.ndarray] = {}
    try:
        for cell in layout.cells:
            left, top, right, bottom = cell_pixel_box(cell)
            size = (right - left, bottom - top)
            if size not in tiles:
                tiles[size] = resize_rgba(photo.pixels, size[0], size[1])
            _paste_over(canvas, tiles[size], left, top)
            cv2.rectangle(canvas, (left, top), (right - 1, bottom - 1), guide, 1)

        if sheet.sheet_border:
            cv2.rectangle(canvas, (0, 0), (layout.sheet_width - 1, layout.sheet_height - 1), guide, 1)
    except (cv2.error, MemoryError) as e:
        raise RasterUnavailable(f"Sheet composition failed: {e}") from e

    return RasterImage(canvas)
