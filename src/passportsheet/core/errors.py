from __future__ import annotations


class PassportSheetError(Exception):
    """Base class for every error raised by passportsheet."""


class DecodeError(PassportSheetError):
    """The source image could not be read."""


class RasterUnavailable(PassportSheetError):
    """A drawing surface could not be allocated."""


class InvalidGeometry(PassportSheetError):
    """Degenerate zoom, image or viewport dimensions."""


class EmptyCurve(PassportSheetError):
    """A LUT was requested from an empty set of control points."""


class FaceNotFound(PassportSheetError):
    """No usable face landmarks were found (advisory framing only)."""
