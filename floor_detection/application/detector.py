"""Application layer: the stateful floor object detector."""
from __future__ import annotations

import logging
import math
from typing import Any, Optional, Sequence

from exceptions.exceptions import PreconditionViolation
from floor_detection.domain.gate import FrameGate
from floor_detection.domain.model import (
    DetectionStatus,
    Frame,
    FrameInspection,
    ImageSize,
    Intrinsics,
    OutputFormat,
)
from floor_detection.domain.services import FloorObjectDetectionService
from floor_detection.infrastructure.flat_output import encode
from floor_detection.ports import DepthImageBackend


class FloorObjectDetector:
    """One detector instance: a rate gate in front of the detection service.

    The gate's last accepted timestamp is the only state carried between
    calls. Instances are not reentrant; callers serialize access.

    Two flat-array entry points are exposed:
    - `process_depth_and_color`: independent depth/color intrinsics, corners output.
    - `process_shared_intrinsics`: one resolution + intrinsics, rect_min_depth output.
    """

    def __init__(
        self,
        *,
        service: FloorObjectDetectionService,
        backend: DepthImageBackend,
        target_fps: float,
        legacy_fx: float = 1521.046710,
        legacy_fy: float = 1518.999642,
    ) -> None:
        self._service = service
        self._backend = backend
        self._gate = FrameGate(target_fps)
        self._legacy_fx = float(legacy_fx)
        self._legacy_fy = float(legacy_fy)

    @property
    def previous_accepted_timestamp(self) -> float:
        return self._gate.previous_accepted_timestamp

    def reset(self) -> None:
        """Forget the last accepted timestamp so the next frame is always admitted."""
        self._gate.reset()

    # -------------------------------------------------------------------------
    # Typed API
    # -------------------------------------------------------------------------

    def process(self, frame: Frame, color_to_depth_ratio: int = 1) -> FrameInspection:
        """Validate, gate and inspect one frame."""
        self._validate(frame)
        if not self._gate.admit(frame.timestamp):
            logging.debug("Frame %.3f: rate limited", frame.timestamp)
            return FrameInspection(timestamp=frame.timestamp, status=DetectionStatus.RATE_LIMITED)
        if color_to_depth_ratio != 1:
            logging.debug("Frame %.3f: color/depth ratio %d unsupported", frame.timestamp, color_to_depth_ratio)
            return FrameInspection(timestamp=frame.timestamp, status=DetectionStatus.UNSUPPORTED_RATIO)
        return self._service.inspect(frame)

    # -------------------------------------------------------------------------
    # Flat-array entry points
    # -------------------------------------------------------------------------

    def process_depth_and_color(
        self,
        timestamp: float,
        depth_image: Any,
        color_image: Any,
        depth_size: Sequence[int],
        color_size: Sequence[int],
        depth_intrinsics: Sequence[float],
        color_intrinsics: Sequence[float],
    ):
        """Return [K, X1, Y1, Z1, X2, Y2, Z2, ...] as float32, or None when there is no result."""
        frame = Frame(
            timestamp=timestamp,
            depth=depth_image,
            color=color_image,
            depth_size=_size(depth_size),
            color_size=_size(color_size),
            depth_intrinsics=_intrinsics(depth_intrinsics),
            color_intrinsics=_intrinsics(color_intrinsics),
        )
        return encode(self.process(frame), OutputFormat.CORNERS)

    def process_shared_intrinsics(
        self,
        timestamp: float,
        depth: Any,
        color: Any,
        width: int,
        height: int,
        color_to_depth_ratio: int,
        intrinsics: Optional[Sequence[float]] = None,
    ):
        """Return [K, tlX, tlY, brX, brY, minDepth, ...] as float32, or None when there is no result.

        Without explicit intrinsics the configured focal lengths are used with the
        principal point at (width // 2, height // 2).
        """
        if color_to_depth_ratio is None or color_to_depth_ratio < 1:
            raise PreconditionViolation(
                "BAD_SIZE", f"color_to_depth_ratio must be >= 1, got {color_to_depth_ratio}"
            )
        size = _size((width, height))
        if intrinsics is None:
            shared = Intrinsics(
                fx=self._legacy_fx,
                fy=self._legacy_fy,
                cx=float(size.width // 2),
                cy=float(size.height // 2),
            )
        else:
            shared = _intrinsics(intrinsics)
        frame = Frame(
            timestamp=timestamp,
            depth=depth,
            color=color,
            depth_size=size,
            color_size=size,
            depth_intrinsics=shared,
            color_intrinsics=shared,
        )
        return encode(self.process(frame, color_to_depth_ratio), OutputFormat.RECT_MIN_DEPTH)

    # -------------------------------------------------------------------------
    # Preconditions
    # -------------------------------------------------------------------------

    def _validate(self, frame: Frame) -> None:
        if frame.timestamp is None or not math.isfinite(frame.timestamp) or frame.timestamp <= 0:
            raise PreconditionViolation("BAD_TIMESTAMP", f"timestamp must be > 0, got {frame.timestamp}")
        for name, size in (("depth", frame.depth_size), ("color", frame.color_size)):
            if size.width <= 0 or size.height <= 0:
                raise PreconditionViolation(
                    "BAD_SIZE", f"{name} size must be positive, got {size.width}x{size.height}"
                )
        for name, k in (("depth", frame.depth_intrinsics), ("color", frame.color_intrinsics)):
            if not k.is_valid():
                raise PreconditionViolation("BAD_INTRINSICS", f"{name} intrinsics must be positive", context=str(k))
        if frame.depth is None:
            raise PreconditionViolation("MISSING_BUFFER", "depth buffer is missing")
        if frame.color is None:
            raise PreconditionViolation("MISSING_BUFFER", "color buffer is missing")

        expected_depth = frame.depth_size.width * frame.depth_size.height
        got_depth = self._backend.element_count(buffer=frame.depth)
        if got_depth != expected_depth:
            raise PreconditionViolation(
                "BUFFER_LENGTH", f"depth buffer has {got_depth} values, expected {expected_depth}"
            )
        # Planar 4:2:0 layout: full-resolution luma plus half-resolution interleaved chroma
        expected_color = frame.color_size.width * frame.color_size.height * 3 // 2
        got_color = self._backend.element_count(buffer=frame.color)
        if got_color != expected_color:
            raise PreconditionViolation(
                "BUFFER_LENGTH", f"color buffer has {got_color} bytes, expected {expected_color}"
            )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _size(values: Sequence[int]) -> ImageSize:
    if values is None or len(values) != 2:
        raise PreconditionViolation("BAD_SIZE", f"image size must be [width, height], got {values}")
    width, height = (int(v) for v in values)
    return ImageSize(width=width, height=height)


def _intrinsics(values: Sequence[float]) -> Intrinsics:
    if values is None or len(values) != 4:
        raise PreconditionViolation("BAD_INTRINSICS", f"intrinsics must be [fx, fy, cx, cy], got {values}")
    return Intrinsics.from_sequence(values)
