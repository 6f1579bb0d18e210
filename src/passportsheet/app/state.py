from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from passportsheet.core.models import ViewTransform
from passportsheet.core.raster import RasterImage
from passportsheet.normalize.options import BackgroundColor, ClothingOption


class SessionStage(Enum):
    UPLOAD = "UPLOAD"
    CROP = "CROP"
    PROCESS = "PROCESS"
    PREVIEW = "PREVIEW"


@dataclass
class SessionState:
    """
    Mutable state for one photo session.

    The pipeline writes each stage's output here only after that stage succeeded,
    so a failed step never leaves a half-updated session.
    """
    stage: SessionStage = SessionStage.UPLOAD

    # Input
    original: Optional[RasterImage] = None

    # Crop
    view: ViewTransform = field(default_factory=ViewTransform)
    cropped: Optional[RasterImage] = None

    # Normalization
    background: BackgroundColor = BackgroundColor.WHITE
    clothing: ClothingOption = ClothingOption.NONE
    processed: Optional[RasterImage] = None
    warning: Optional[str] = None

    # Output
    sheet: Optional[RasterImage] = None

    def clear_after_upload(self) -> None:
        """A new upload invalidates everything downstream."""
        self.view = ViewTransform()
        self.cropped = None
        self.processed = None
        self.sheet = None
        self.warning = None

    def reset(self) -> None:
        """Clear all session state (Start Over)."""
        self.stage = SessionStage.UPLOAD
        self.original = None
        self.clear_after_upload()
        self.clothing = ClothingOption.NONE
