# test_utilities/synthetic.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from floor_detection.domain.model import Frame, ImageSize, Intrinsics


# ---------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class SyntheticCamera:
    """Pinhole camera used to render synthetic depth frames."""
    width: int = 320
    height: int = 240
    fx: float = 500.0
    fy: float = 500.0
    cx: float = 160.0
    cy: float = 120.0

    @property
    def size(self) -> ImageSize:
        return ImageSize(width=self.width, height=self.height)

    @property
    def intrinsics(self) -> Intrinsics:
        return Intrinsics(fx=self.fx, fy=self.fy, cx=self.cx, cy=self.cy)

    def as_list(self) -> list:
        return [self.fx, self.fy, self.cx, self.cy]

    def rays(self) -> Tuple[np.ndarray, np.ndarray]:
        """Per-pixel normalized ray components (x_ray, y_ray), each (H, W)."""
        xs = (np.arange(self.width, dtype=np.float64) - self.cx) / self.fx
        ys = (np.arange(self.height, dtype=np.float64) - self.cy) / self.fy
        return np.meshgrid(xs, ys)


# Floor seen from a forward-looking camera: depth shrinks toward the bottom rows.
FLOOR_PLANE: Tuple[float, float, float] = (0.0, -1.0, 1.0)


def _rng(seed: Optional[int] = None) -> np.random.Generator:
    return np.random.default_rng(None if seed is None else int(seed))


def _plane_denominator(camera: SyntheticCamera, plane: Tuple[float, float, float]) -> np.ndarray:
    a, b, _ = plane
    x_ray, y_ray = camera.rays()
    return 1.0 - a * x_ray - b * y_ray


# ---------------------------------------------------------------------
# 1) Flat floor
# ---------------------------------------------------------------------

def generate_floor_depth(
    camera: SyntheticCamera = SyntheticCamera(),
    plane: Tuple[float, float, float] = FLOOR_PLANE,
    noise: float = 0.0,
    seed: Optional[int] = None,
) -> np.ndarray:
    """
    Render the depth image of a plane `depth = a*X + b*Y + c`.

    Returns
    -------
    depth : (H, W) float32
        Depth in meters. Pixels whose ray never meets the plane in front of the
        camera are 0 (invalid).

    Notes
    -----
    - `noise` adds zero-mean Gaussian noise (meters) to every valid pixel.
    """
    c = plane[2]
    denom = _plane_denominator(camera, plane)
    with np.errstate(divide="ignore", invalid="ignore"):
        depth = np.where(denom > 0, c / denom, 0.0)
    depth[~np.isfinite(depth) | (depth < 0)] = 0.0

    if noise > 0:
        g = _rng(seed)
        valid = depth > 0
        depth[valid] += g.normal(0.0, noise, size=int(valid.sum()))
    return depth.astype(np.float32)


# ---------------------------------------------------------------------
# 2) Raised objects
# ---------------------------------------------------------------------

def add_raised_block(
    depth: np.ndarray,
    camera: SyntheticCamera,
    rect: Tuple[int, int, int, int],
    height: float = 0.1,
    plane: Tuple[float, float, float] = FLOOR_PLANE,
) -> np.ndarray:
    """
    Return a copy of `depth` with a box of `height` meters standing on the plane.

    The pixels of rect (x, y, w, h) are moved so their perpendicular distance to
    the plane is exactly `height` (positive = toward the camera).
    """
    a, b, c = plane
    x, y, w, h = rect
    out = np.array(depth, dtype=np.float32, copy=True)
    denom = _plane_denominator(camera, plane)[y:y + h, x:x + w]
    n_norm = np.sqrt(a * a + b * b + 1.0)
    out[y:y + h, x:x + w] = ((c - height * n_norm) / denom).astype(np.float32)
    return out


def carve_invalid(depth: np.ndarray, rect: Tuple[int, int, int, int]) -> np.ndarray:
    """Return a copy of `depth` with rect (x, y, w, h) set to 0 (sensor dropout)."""
    x, y, w, h = rect
    out = np.array(depth, copy=True)
    out[y:y + h, x:x + w] = 0.0
    return out


# ---------------------------------------------------------------------
# 3) Frames
# ---------------------------------------------------------------------

def color_buffer(camera: SyntheticCamera = SyntheticCamera()) -> np.ndarray:
    """Mid-gray planar 4:2:0 color buffer (w * h * 1.5 bytes)."""
    return np.full(camera.width * camera.height * 3 // 2, 128, dtype=np.uint8)


def make_frame(
    depth: np.ndarray,
    camera: SyntheticCamera = SyntheticCamera(),
    timestamp: float = 1.0,
) -> Frame:
    """Wrap a rendered depth image as a Frame with shared depth/color intrinsics."""
    return Frame(
        timestamp=timestamp,
        depth=depth.reshape(-1),
        color=color_buffer(camera),
        depth_size=camera.size,
        color_size=camera.size,
        depth_intrinsics=camera.intrinsics,
        color_intrinsics=camera.intrinsics,
    )


def floor_with_block_frame(
    camera: SyntheticCamera = SyntheticCamera(),
    rect: Tuple[int, int, int, int] = (100, 100, 40, 40),
    height: float = 0.1,
    timestamp: float = 1.0,
) -> Frame:
    """Flat floor plus one raised block: the canonical end-to-end scene."""
    depth = add_raised_block(generate_floor_depth(camera), camera, rect, height)
    return make_frame(depth, camera, timestamp)
