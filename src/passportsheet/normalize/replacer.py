from __future__ import annotations

from typing import Protocol

from passportsheet.core.raster import RasterImage
from passportsheet.normalize.options import BackgroundColor, ClothingOption


class BackgroundReplacer(Protocol):
    """Returns the same subject on a new background (and optionally a new outfit), or raises NormalizationError."""

    def replace_background(
        self,
        image: RasterImage,
        color: BackgroundColor,
        clothing: ClothingOption = ClothingOption.NONE,
    ) -> RasterImage:
        ...
