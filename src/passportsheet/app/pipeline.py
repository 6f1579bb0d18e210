from __future__ import annotations

import time
from typing import Callable, Optional, Tuple

from loguru import logger

from passportsheet.app.config import PipelineConfig
from passportsheet.app.state import SessionStage, SessionState
from passportsheet.core.errors import PassportSheetError
from passportsheet.core.geometry import resolve_crop
from passportsheet.core.models import CropWindow, CurveSettings, ViewTransform
from passportsheet.core.raster import ImageSource, RasterImage, downscale_to_fit, encode_image
from passportsheet.core.rasterizer import crop_rectangle, render_transformed, transform_output_size
from passportsheet.core.sheet import compose_sheet
from passportsheet.core.tone import apply_curves
from passportsheet.normalize.errors import NormalizationError
from passportsheet.normalize.gemini_backend import GeminiReplacer
from passportsheet.normalize.rembg_backend import RembgReplacer
from passportsheet.normalize.replacer import BackgroundReplacer
from passportsheet.normalize.retry import call_with_retry

DEFAULT_CONTAINER = (800.0, 500.0)
FALLBACK_WARNING = "AI processing failed. Using original photo."


class PipelineError(PassportSheetError):
    """A stage was invoked before the stage it depends on."""


def make_replacer(config: PipelineConfig) -> Optional[BackgroundReplacer]:
    if config.backend == "gemini":
        return GeminiReplacer(config.api_key, model=config.model)
    if config.backend == "rembg":
        return RembgReplacer()
    return None


class PassportSheetPipeline:
    """
    Upload -> crop -> normalize -> sheet, one session at a time.

    Each stage reads the previous stage's output from ``state`` and publishes its
    own result only on success.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        replacer: Optional[BackgroundReplacer] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config or PipelineConfig()
        self.replacer = replacer
        self._sleep = sleep
        self.state = SessionState(background=self.config.background, clothing=self.config.clothing)

    def load(self, source: ImageSource) -> RasterImage:
        image = RasterImage.decode(source)
        preview = downscale_to_fit(image, self.config.crop.preview_max_size)
        logger.info("Loaded {}x{} image (working copy {}x{})", image.width, image.height, preview.width, preview.height)

        self.state.original = preview
        self.state.clear_after_upload()
        self.state.stage = SessionStage.CROP
        return preview

    def crop(
        self,
        view: ViewTransform,
        crop_window: CropWindow = CropWindow(),
        container_size: Tuple[float, float] = DEFAULT_CONTAINER,
    ) -> RasterImage:
        original = self.state.original
        if original is None:
            raise PipelineError("Upload a photo before cropping.")

        policy = self.config.crop
        resolved = resolve_crop(original.size, view, crop_window.size, container_size)
        if resolved.requires_transform:
            out_size = transform_output_size(crop_window.size, policy.transform_upscale)
            logger.debug("Rotated crop ({} deg) rendered through transform at {}x{}", view.rotation_degrees, *out_size)
            cropped = render_transformed(original, view, crop_window.size, out_size)
        else:
            logger.debug(
                "Crop rect x={:.1f} y={:.1f} w={:.1f} h={:.1f}",
                resolved.x, resolved.y, resolved.width, resolved.height,
            )
            cropped = crop_rectangle(original, resolved, policy.max_dimension)

        self.state.view = view
        self.state.cropped = cropped
        self.state.processed = None
        self.state.sheet = None
        self.state.warning = None
        self.state.stage = SessionStage.PROCESS
        return cropped

    def encoded_crop(self) -> bytes:
        if self.state.cropped is None:
            raise PipelineError("Nothing has been cropped yet.")
        policy = self.config.crop
        return encode_image(self.state.cropped, policy.output_format, policy.quality)

    def normalize(self) -> RasterImage:
        """
        Replace background / outfit. If the service fails the raw crop is used and
        ``state.warning`` explains why.
        """
        cropped = self.state.cropped
        if cropped is None:
            raise PipelineError("Crop the photo before processing it.")

        warning = None
        if self.replacer is None:
            logger.info("No background service configured; using the crop as-is")
            processed = cropped
        else:
            replacer = self.replacer
            color, clothing = self.state.background, self.state.clothing
            try:
                processed = call_with_retry(
                    lambda: replacer.replace_background(cropped, color, clothing),
                    self.config.retry,
                    sleep=self._sleep,
                )
            except NormalizationError as e:
                logger.warning("Background replacement failed ({}); falling back to the crop", e)
                processed = cropped
                warning = FALLBACK_WARNING

        self.state.processed = processed
        self.state.warning = warning
        self.state.sheet = None
        return processed

    def apply_curves(self, curves: CurveSettings) -> RasterImage:
        if self.state.processed is None:
            raise PipelineError("Process the photo before adjusting tone.")
        adjusted = apply_curves(self.state.processed, curves)
        self.state.processed = adjusted
        self.state.sheet = None
        return adjusted

    def compose(self) -> RasterImage:
        if self.state.processed is None:
            raise PipelineError("Process the photo before building the sheet.")
        sheet = compose_sheet(self.state.processed, self.config.sheet)
        logger.info("Composed {}x{} print sheet", sheet.width, sheet.height)
        self.state.sheet = sheet
        self.state.stage = SessionStage.PREVIEW
        return sheet

    def sheet_png(self) -> bytes:
        if self.state.sheet is None:
            raise PipelineError("No sheet has been composed yet.")
        return encode_image(self.state.sheet, "PNG", 1.0)

    def run(
        self,
        source: ImageSource,
        view: ViewTransform,
        crop_window: CropWindow = CropWindow(),
        container_size: Tuple[float, float] = DEFAULT_CONTAINER,
        curves: Optional[CurveSettings] = None,
    ) -> SessionState:
        self.load(source)
        self.crop(view, crop_window, container_size)
        self.normalize()
        if curves is not None:
            self.apply_curves(curves)
        self.compose()
        return self.state

    def reset(self) -> None:
        self.state.reset()
