#!/usr/bin/env python3
"""
Build a 6x4" print sheet of eight 35x45mm passport photos from a portrait.

Usage:
  passportsheet --input in.jpg --output sheet.png --zoom 0.2 --pan-y -40
  passportsheet -i in.jpg -o sheet.png --auto-frame --backend rembg --background blue
  passportsheet -i in.jpg -o sheet.png --rotation 4 --backend none --cropped-output crop.jpg

The crop is described the way the on-screen cropper sees it: the image is zoomed
and panned (in screen pixels) under a fixed 35:45 window centred in the viewport.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Tuple

from loguru import logger

from passportsheet.app.config import BACKENDS, PipelineConfig, load_config
from passportsheet.app.pipeline import PassportSheetPipeline, make_replacer
from passportsheet.core.errors import PassportSheetError
from passportsheet.core.face import detect_face_landmarks, suggest_view
from passportsheet.core.histogram import compute_histogram
from passportsheet.core.models import CropWindow, CurveSettings, ViewTransform
from passportsheet.logger import configure_logging
from passportsheet.normalize.options import BackgroundColor, ClothingOption


def _parse_size(text: str) -> Tuple[float, float]:
    try:
        w, h = text.lower().split("x")
        return float(w), float(h)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {text!r}") from None


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Generate a 6x4 inch sheet of 35x45 mm passport photos.")
    p.add_argument("--input", "-i", required=True, help="Path to input image (jpg/png/heic converted, etc.)")
    p.add_argument("--output", "-o", required=True, help="Path to the PNG print sheet")
    p.add_argument("--cropped-output", help="Also save the crop sent to the background service")
    p.add_argument("--processed-output", help="Also save the single processed photo (PNG)")
    p.add_argument("--histogram", help="Write the processed photo's luminance histogram as JSON")

    g = p.add_argument_group("crop")
    g.add_argument("--zoom", type=float, default=1.0, help="Image zoom under the crop window (default: 1.0)")
    g.add_argument("--pan-x", type=float, default=0.0, help="Horizontal pan in screen pixels")
    g.add_argument("--pan-y", type=float, default=0.0, help="Vertical pan in screen pixels")
    g.add_argument("--rotation", type=float, default=0.0, help="Rotation in degrees, clockwise")
    g.add_argument("--auto-frame", action="store_true", help="Suggest zoom/pan from face landmarks (needs mediapipe)")
    g.add_argument("--crop-height", type=float, default=360.0, help="On-screen crop window height (default: 360)")
    g.add_argument("--container", type=_parse_size, default=(800.0, 500.0), help="On-screen viewport WxH (default: 800x500)")

    g = p.add_argument_group("background")
    g.add_argument("--background", choices=[c.name.lower() for c in BackgroundColor], help="Background colour")
    g.add_argument("--clothing", choices=[c.name.lower().replace("_", "-") for c in ClothingOption], help="Outfit")
    g.add_argument("--backend", choices=BACKENDS, help="Background service (default: gemini)")

    p.add_argument("--curves", help="JSON file with tone curves (keys: all/master, red, green, blue)")
    p.add_argument("--config", help="JSON config file")
    p.add_argument("--log-level", default="INFO", help="Console log level (default: INFO)")
    p.add_argument("--log-file", help="Also write a DEBUG log to this file")
    return p


def _apply_overrides(config: PipelineConfig, args: argparse.Namespace) -> PipelineConfig:
    if args.background:
        config = replace(config, background=BackgroundColor[args.background.upper()])
    if args.clothing:
        config = replace(config, clothing=ClothingOption.parse(args.clothing))
    if args.backend:
        config = replace(config, backend=args.backend)
    return config


def run(args: argparse.Namespace) -> PassportSheetPipeline:
    config = _apply_overrides(load_config(args.config), args)
    pipeline = PassportSheetPipeline(config, replacer=make_replacer(config))

    original = pipeline.load(args.input)
    window = CropWindow(height=args.crop_height)

    if args.auto_frame:
        view = suggest_view(original.size, detect_face_landmarks(original), window)
        if args.rotation:
            view = ViewTransform(view.zoom, args.rotation, view.pan_x, view.pan_y)
    else:
        view = ViewTransform(zoom=args.zoom, rotation_degrees=args.rotation, pan_x=args.pan_x, pan_y=args.pan_y)

    pipeline.crop(view, window, args.container)
    if args.cropped_output:
        Path(args.cropped_output).write_bytes(pipeline.encoded_crop())

    pipeline.normalize()
    if pipeline.state.warning:
        logger.warning(pipeline.state.warning)

    if args.curves:
        pipeline.apply_curves(CurveSettings.load(args.curves))

    processed = pipeline.state.processed
    if args.processed_output and processed is not None:
        processed.to_pil().save(args.processed_output, format="PNG")
    if args.histogram and processed is not None:
        Path(args.histogram).write_text(json.dumps(compute_histogram(processed)), encoding="utf-8")

    pipeline.compose()
    Path(args.output).write_bytes(pipeline.sheet_png())
    return pipeline


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    try:
        run(args)
    except (PassportSheetError, OSError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    print(f"Saved: {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
