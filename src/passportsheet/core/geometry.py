from __future__ import annotations

from typing import Tuple

from passportsheet.core.errors import InvalidGeometry
from passportsheet.core.models import ResolvedCrop, ViewTransform

Size = Tuple[float, float]


def resolve_crop(
    natural_size: Size,
    view: ViewTransform,
    crop_window_size: Size,
    container_size: Size,
) -> ResolvedCrop:
    """
    Map the on-screen crop window back onto source-image pixels.

    The image is drawn centred in the container, scaled by ``view.zoom`` and
    shifted by the pan offset; the crop window stays centred in the container.

    Args:
      natural_size: (width, height) of the decoded source image
      view: zoom / rotation / pan of the image under the window
      crop_window_size: (width, height) of the crop window on screen
      container_size: (width, height) of the on-screen viewport

    A rotated view has no axis-aligned source rectangle; the result then has
    ``requires_transform`` set and must go through transform mode.
    """
    nat_w, nat_h = float(natural_size[0]), float(natural_size[1])
    box_w, box_h = float(crop_window_size[0]), float(crop_window_size[1])
    cont_w, cont_h = float(container_size[0]), float(container_size[1])

    if nat_w <= 0 or nat_h <= 0:
        raise InvalidGeometry(f"Image size must be positive, got {nat_w}x{nat_h}.")
    if box_w <= 0 or box_h <= 0:
        raise InvalidGeometry(f"Crop window size must be positive, got {box_w}x{box_h}.")

    rendered_w = nat_w * view.zoom
    rendered_h = nat_h * view.zoom
    if rendered_w <= 0 or rendered_h <= 0:
        raise InvalidGeometry(f"Zoom must be positive, got {view.zoom}.")

    img_left = (cont_w - rendered_w) / 2.0 + view.pan_x
    img_top = (cont_h - rendered_h) / 2.0 + view.pan_y

    box_left = (cont_w - box_w) / 2.0
    box_top = (cont_h - box_h) / 2.0

    offset_x = box_left - img_left
    offset_y = box_top - img_top

    scale = nat_w / rendered_w

    x = max(0.0, offset_x * scale)
    y = max(0.0, offset_y * scale)
    width = max(0.0, min(nat_w - x, box_w * scale))
    height = max(0.0, min(nat_h - y, box_h * scale))

    if view.rotation_degrees != 0:
        return ResolvedCrop(
            x=x,
            y=y,
            width=width,
            height=height,
            rotation_degrees=view.rotation_degrees,
            requires_transform=True,
            view=view,
            crop_window_size=(box_w, box_h),
        )
    if width <= 0 or height <= 0:
        raise InvalidGeometry("Crop window does not overlap the image.")
    return ResolvedCrop(x=x, y=y, width=width, height=height)
