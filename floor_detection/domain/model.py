from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple


Point3 = Tuple[float, float, float]


@dataclass(frozen=True)
class Intrinsics:
    """Pinhole intrinsics mapping pixels to normalized camera rays."""

    fx: float
    fy: float
    cx: float
    cy: float

    @classmethod
    def from_sequence(cls, values) -> "Intrinsics":
        fx, fy, cx, cy = (float(v) for v in values)
        return cls(fx=fx, fy=fy, cx=cx, cy=cy)

    def is_valid(self) -> bool:
        return all(math.isfinite(v) and v > 0 for v in (self.fx, self.fy, self.cx, self.cy))

    def ray(self, px: float, py: float) -> Tuple[float, float]:
        return (px - self.cx) / self.fx, (py - self.cy) / self.fy


@dataclass(frozen=True)
class ImageSize:
    width: int
    height: int


@dataclass(frozen=True)
class Frame:
    """One synchronized depth + color capture.

    Notes:
    - `depth` and `color` stay owned by the caller; strategies copy before mutating.
    - Buffers are typed as `Any` to keep the domain free of NumPy types.
    """

    timestamp: float
    depth: Any
    color: Any
    depth_size: ImageSize
    color_size: ImageSize
    depth_intrinsics: Intrinsics
    color_intrinsics: Intrinsics


@dataclass(frozen=True)
class FilteredDepth:
    """Depth image (H, W) in meters with 0 marking invalid pixels."""

    image: Any
    size: ImageSize


@dataclass(frozen=True)
class FloorSamples:
    """Design matrix rows (X, Y, 1) and the observed depth of each row."""

    directions: Any
    depths: Any
    lines_used: int

    def __len__(self) -> int:
        return len(self.depths)


@dataclass(frozen=True)
class PlaneModel:
    """Floor plane: depth = a * X + b * Y + c, with X, Y in camera meters."""

    a: float
    b: float
    c: float

    @property
    def normal_norm(self) -> float:
        return math.sqrt(self.a * self.a + self.b * self.b + 1.0)

    def as_list(self) -> List[float]:
        return [self.a, self.b, self.c]


@dataclass(frozen=True)
class ResidualMap:
    residuals: Any
    valid_mask: Any


@dataclass(frozen=True)
class BoundingRect:
    """Axis-aligned rect in depth pixels; `br` is exclusive like an OpenCV Rect."""

    x: int
    y: int
    width: int
    height: int

    @property
    def tl(self) -> Tuple[int, int]:
        return self.x, self.y

    @property
    def br(self) -> Tuple[int, int]:
        return self.x + self.width, self.y + self.height

    @property
    def tr(self) -> Tuple[int, int]:
        return self.x + self.width, self.y


@dataclass(frozen=True)
class DetectedObject:
    rect: BoundingRect
    top_right: Point3
    bottom_right: Point3
    min_depth: float


class DetectionStatus(str, Enum):
    OK = "ok"
    RATE_LIMITED = "rate_limited"
    UNSUPPORTED_RATIO = "unsupported_ratio"
    INSUFFICIENT_EVIDENCE = "insufficient_evidence"
    DEGENERATE_PLANE = "degenerate_plane"
    DEGENERATE_PROJECTION = "degenerate_projection"


class OutputFormat(str, Enum):
    CORNERS = "corners"
    RECT_MIN_DEPTH = "rect_min_depth"


@dataclass(frozen=True)
class SamplingOutcome:
    status: DetectionStatus
    data: Optional[FloorSamples] = None


@dataclass(frozen=True)
class PlaneOutcome:
    status: DetectionStatus
    data: Optional[PlaneModel] = None


@dataclass(frozen=True)
class ProjectionOutcome:
    status: DetectionStatus
    data: List[DetectedObject] = field(default_factory=list)


@dataclass(frozen=True)
class FrameInspection:
    timestamp: float
    status: DetectionStatus
    intrinsics: Optional[Intrinsics] = None
    plane: Optional[PlaneModel] = None
    sample_count: int = 0
    objects: List[DetectedObject] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is DetectionStatus.OK
