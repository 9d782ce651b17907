"""Depth buffer preparation and line access."""
from __future__ import annotations

import numpy as np


def prepare_depth(depth, width: int, height: int) -> np.ndarray:
    """Copy a flat or shaped depth buffer into an (H, W) float32 image.

    The caller's buffer is never written to. NaN/Inf become 0 (invalid).
    """
    image = np.array(depth, dtype=np.float32, copy=True).reshape(height, width)
    image[~np.isfinite(image)] = 0.0
    return image


def zero_border(image: np.ndarray, edge_height: int, edge_width: int) -> np.ndarray:
    """Zero the top/bottom `edge_height` rows and left/right `edge_width` columns in place."""
    h, w = image.shape
    if edge_height > 0:
        image[:edge_height, :] = 0.0
        image[max(h - edge_height, 0):, :] = 0.0
    if edge_width > 0:
        image[:, :edge_width] = 0.0
        image[:, max(w - edge_width, 0):] = 0.0
    return image


def threshold_to_zero_above(image: np.ndarray, max_value: float) -> np.ndarray:
    """Same as cv2.THRESH_TOZERO_INV: values > max_value become 0, others pass through."""
    image[image > max_value] = 0.0
    return image


def scan_line(image: np.ndarray, index: int, orientation: str) -> np.ndarray:
    if orientation == "columns":
        return image[:, index]
    if orientation == "rows":
        return image[index, :]
    raise ValueError(f"Unknown orientation '{orientation}'")
