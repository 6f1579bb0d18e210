from __future__ import annotations

import io

from loguru import logger
from PIL import Image

from passportsheet.core.raster import RasterImage
from passportsheet.normalize.errors import NormalizationError
from passportsheet.normalize.options import BackgroundColor, ClothingOption


class RembgReplacer:
    """
    Local background replacement: cut the subject out with rembg and composite it
    onto a solid colour. Outfits cannot be changed locally.
    """

    def replace_background(
        self,
        image: RasterImage,
        color: BackgroundColor,
        clothing: ClothingOption = ClothingOption.NONE,
    ) -> RasterImage:
        try:
            from rembg import remove  # type: ignore
        except ImportError as e:
            raise NormalizationError("rembg is not installed; install the 'rembg' extra.") from e

        if clothing is not ClothingOption.NONE:
            logger.warning("Outfit replacement ({}) needs the Gemini backend; keeping original clothes.", clothing.value)

        try:
            # rembg works well with PIL; it returns an RGBA image (usually)
            cut = remove(image.to_pil())
            if isinstance(cut, bytes):
                cut = Image.open(io.BytesIO(cut))
            cut = cut.convert("RGBA")
        except Exception as e:
            raise NormalizationError(f"Background removal failed: {e}") from e

        bg = Image.new("RGBA", cut.size, color.rgb + (255,))
        comp = Image.alpha_composite(bg, cut)
        logger.debug("rembg composited {}x{} onto {}", comp.width, comp.height, color.value)
        return RasterImage.from_pil(comp)
