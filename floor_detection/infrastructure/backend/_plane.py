"""Floor plane fitting and plane residuals."""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np


def floor_samples(
    pixels: Sequence[Tuple[int, int]],
    depths: Sequence[float],
    fx: float,
    fy: float,
    cx: float,
    cy: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """Build the design matrix rows (x_ray * d, y_ray * d, 1) and the depth column.

    `pixels` holds (px, py) image coordinates, `depths` the observed depth at each.
    """
    if len(pixels) == 0:
        return np.zeros((0, 3), dtype=np.float64), np.zeros((0,), dtype=np.float64)
    px = np.asarray(pixels, dtype=np.float64)
    d = np.asarray(depths, dtype=np.float64)
    directions = np.column_stack([
        (px[:, 0] - cx) * d / fx,
        (px[:, 1] - cy) * d / fy,
        np.ones_like(d),
    ])
    return directions, d


def solve_least_squares(
    lhs: np.ndarray,
    rhs: np.ndarray,
    max_condition: float = 1e12,
) -> Tuple[Optional[List[float]], bool]:
    """Solve the normal equations (A^T A) x = A^T b.

    Returns (coeffs, ok). ok is False when A^T A is singular or too badly
    conditioned to trust, or when the solution is not finite.
    """
    a = np.asarray(lhs, dtype=np.float64)
    b = np.asarray(rhs, dtype=np.float64).reshape(-1)
    if a.ndim != 2 or a.shape[0] < a.shape[1] or a.shape[0] != b.shape[0]:
        return None, False

    ata = a.T @ a
    atb = a.T @ b
    if not np.all(np.isfinite(ata)) or np.linalg.cond(ata) > max_condition:
        return None, False
    try:
        coeffs = np.linalg.solve(ata, atb)
    except np.linalg.LinAlgError:
        return None, False
    if not np.all(np.isfinite(coeffs)):
        return None, False
    return [float(v) for v in coeffs], True


def residual_map(
    depth: np.ndarray,
    plane: Sequence[float],
    fx: float,
    fy: float,
    cx: float,
    cy: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """Signed perpendicular distance of each depth pixel to the plane.

    Positive where the pixel is closer to the camera than the floor. Pixels with
    zero depth get residual 0 and are False in the returned validity mask.
    """
    a, b, c = (float(v) for v in plane)
    h, w = depth.shape
    xs = ((np.arange(w, dtype=np.float64) - cx) / fx)[None, :]
    ys = ((np.arange(h, dtype=np.float64) - cy) / fy)[:, None]
    d = depth.astype(np.float64, copy=False)
    n_norm = np.sqrt(a * a + b * b + 1.0)
    residuals = (a * xs * d + b * ys * d + c - d) / n_norm
    valid = d > 0
    residuals[~valid] = 0.0
    return residuals, valid
