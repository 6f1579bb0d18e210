from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from loguru import logger

from passportsheet.core.errors import FaceNotFound, InvalidGeometry
from passportsheet.core.models import CropWindow, ViewTransform
from passportsheet.core.raster import RasterImage


@dataclass(frozen=True)
class LandmarkPx:
    x: float
    y: float


@dataclass(frozen=True)
class FaceLandmarks:
    nose_tip: LandmarkPx
    forehead: LandmarkPx
    chin: LandmarkPx

    @property
    def face_height(self) -> float:
        return self.chin.y - self.forehead.y


def detect_face_landmarks(image: RasterImage) -> FaceLandmarks:
    """
    Detect face mesh landmarks and return nose tip, forehead top and chin in pixels.

    Uses MediaPipe FaceMesh landmark indices:
      - nose tip: 1
      - forehead/top: 10  (approx top of forehead)
      - chin: 152
    """
    try:
        import mediapipe as mp  # type: ignore
    except ImportError as e:
        raise FaceNotFound("MediaPipe is not installed; install the 'face' extra for auto framing.") from e

    rgb = np.ascontiguousarray(image.pixels[:, :, :3])

    with mp.solutions.face_mesh.FaceMesh(
        static_image_mode=True,
        refine_landmarks=True,
        max_num_faces=1,
        min_detection_confidence=0.5,
        min_tracking_confidence=0.5,
    ) as face_mesh:
        results = face_mesh.process(rgb)

    if not results.multi_face_landmarks:
        raise FaceNotFound("No face detected. Try a clearer, front-facing photo with good lighting.")

    h, w = rgb.shape[:2]
    lm = results.multi_face_landmarks[0].landmark

    def to_px(i: int) -> LandmarkPx:
        return LandmarkPx(x=lm[i].x * w, y=lm[i].y * h)

    found = FaceLandmarks(nose_tip=to_px(1), forehead=to_px(10), chin=to_px(152))

    # Basic sanity: chin below forehead
    if found.face_height <= 0:
        raise FaceNotFound("Face landmarks looked inconsistent. Try a different image.")

    return found


def suggest_view(
    natural_size: Tuple[float, float],
    landmarks: FaceLandmarks,
    crop_window: CropWindow,
    face_ratio: float = 0.55,
) -> ViewTransform:
    """
    Propose an initial zoom/pan that centres the face in the crop window with the
    forehead-to-chin span at ``face_ratio`` of the window height.

    Only a starting point for the user; nothing downstream depends on it.
    """
    if landmarks.face_height <= 0:
        raise FaceNotFound("Face landmarks looked inconsistent. Try a different image.")
    if not (0.0 < face_ratio <= 1.0):
        raise InvalidGeometry(f"face_ratio must be in (0, 1], got {face_ratio}")

    nat_w, nat_h = natural_size
    zoom = face_ratio * crop_window.height / landmarks.face_height

    # Horizontal anchor: nose tip. Vertical anchor: midpoint of forehead and chin.
    anchor_x = landmarks.nose_tip.x
    anchor_y = (landmarks.forehead.y + landmarks.chin.y) / 2.0

    # A source point p is drawn at container_centre + pan + (p - natural/2) * zoom.
    pan_x = -(anchor_x - nat_w / 2.0) * zoom
    pan_y = -(anchor_y - nat_h / 2.0) * zoom

    logger.debug("Suggested view zoom={:.3f} pan=({:.1f}, {:.1f})", zoom, pan_x, pan_y)
    return ViewTransform(zoom=zoom, rotation_degrees=0.0, pan_x=pan_x, pan_y=pan_y)
