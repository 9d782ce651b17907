"""Flat float encodings of detection results for native-style callers.

Two layouts exist:
- corners:        [K, X1, Y1, Z1, X2, Y2, Z2, ...]   (top-right, bottom-right in camera meters)
- rect_min_depth: [K, tlX, tlY, brX, brY, minDepth, ...]
  (rect corners on the unit-depth image plane, minimum nonzero depth in the rect)
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from floor_detection.domain.model import FrameInspection, OutputFormat, Point3


CORNERS_STRIDE = 6
RECT_MIN_DEPTH_STRIDE = 5


# ---------------------------------------------------------------------------
# Encoders
# ---------------------------------------------------------------------------


def encode_corners(inspection: FrameInspection) -> np.ndarray:
    out = np.zeros(1 + CORNERS_STRIDE * len(inspection.objects), dtype=np.float32)
    out[0] = len(inspection.objects)
    for j, obj in enumerate(inspection.objects):
        base = CORNERS_STRIDE * j + 1
        out[base:base + 3] = obj.top_right
        out[base + 3:base + 6] = obj.bottom_right
    return out


def encode_rect_min_depth(inspection: FrameInspection) -> np.ndarray:
    k = inspection.intrinsics
    if k is None:
        raise ValueError("rect_min_depth encoding needs the inspection intrinsics")
    out = np.zeros(1 + RECT_MIN_DEPTH_STRIDE * len(inspection.objects), dtype=np.float32)
    out[0] = len(inspection.objects)
    for j, obj in enumerate(inspection.objects):
        base = RECT_MIN_DEPTH_STRIDE * j + 1
        out[base:base + 2] = k.ray(*obj.rect.tl)
        out[base + 2:base + 4] = k.ray(*obj.rect.br)
        out[base + 4] = obj.min_depth
    return out


def encode(inspection: FrameInspection, output_format: OutputFormat) -> Optional[np.ndarray]:
    """Encode an inspection; None when the frame produced no result."""
    if not inspection.ok:
        return None
    if output_format is OutputFormat.RECT_MIN_DEPTH:
        return encode_rect_min_depth(inspection)
    return encode_corners(inspection)


# ---------------------------------------------------------------------------
# Decoders
# ---------------------------------------------------------------------------


def _split(flat: Any, stride: int) -> np.ndarray:
    arr = np.asarray(flat, dtype=np.float64).reshape(-1)
    if arr.size == 0:
        raise ValueError("Empty detection array")
    count = int(arr[0])
    if count < 0 or arr.size != 1 + stride * count:
        raise ValueError(f"Expected {1 + stride * max(count, 0)} values for {count} object(s), got {arr.size}")
    return arr[1:].reshape(count, stride)


def decode_corners(flat: Any) -> List[Tuple[Point3, Point3]]:
    """Split a corners array into (top_right, bottom_right) pairs."""
    rows = _split(flat, CORNERS_STRIDE)
    return [(tuple(row[:3].tolist()), tuple(row[3:].tolist())) for row in rows]


def decode_rect_min_depth(flat: Any) -> List[Tuple[Tuple[float, float], Tuple[float, float], float]]:
    """Split a rect_min_depth array into ((tlX, tlY), (brX, brY), min_depth) triples."""
    rows = _split(flat, RECT_MIN_DEPTH_STRIDE)
    return [((row[0], row[1]), (row[2], row[3]), row[4]) for row in rows.tolist()]


# ---------------------------------------------------------------------------
# Serialization Helpers
# ---------------------------------------------------------------------------


def inspection_to_dict(inspection: FrameInspection) -> Dict[str, Any]:
    """Convert a FrameInspection to a JSON-serializable dictionary."""
    return {
        "timestamp": inspection.timestamp,
        "status": inspection.status.value,
        "sample_count": inspection.sample_count,
        "plane": inspection.plane.as_list() if inspection.plane is not None else None,
        "objects": [
            {
                "rect": [o.rect.x, o.rect.y, o.rect.width, o.rect.height],
                "top_right": list(o.top_right),
                "bottom_right": list(o.bottom_right),
                "min_depth": o.min_depth,
            }
            for o in inspection.objects
        ],
    }
