"""Raised-region segmentation primitives (OpenCV contours)."""
from __future__ import annotations

from typing import List, Tuple

import cv2
import numpy as np


def threshold_mask(residuals: np.ndarray, threshold: float) -> np.ndarray:
    """uint8 mask, 255 where residual > threshold."""
    return np.where(np.asarray(residuals) > threshold, 255, 0).astype(np.uint8)


def find_external_contours(mask: np.ndarray) -> List[np.ndarray]:
    """Outer boundaries of the 8-connected mask components, in OpenCV discovery order."""
    if not np.any(mask):
        return []
    contours, _ = cv2.findContours(
        np.ascontiguousarray(mask, dtype=np.uint8), cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE
    )
    return list(contours)


def contour_pixel_area(contour: np.ndarray, mask: np.ndarray) -> int:
    """Count mask pixels inside the filled contour.

    Uses pixel count rather than cv2.contourArea, which measures the polygon
    through boundary pixel centers and reports 0 for one-pixel-wide blobs.
    """
    x, y, w, h = cv2.boundingRect(contour)
    filled = np.zeros((h, w), dtype=np.uint8)
    cv2.drawContours(filled, [contour], -1, 255, thickness=cv2.FILLED, offset=(-x, -y))
    roi = mask[y:y + h, x:x + w]
    return int(np.count_nonzero((filled > 0) & (roi > 0)))


def bounding_rect(contour: np.ndarray) -> Tuple[int, int, int, int]:
    x, y, w, h = cv2.boundingRect(contour)
    return int(x), int(y), int(w), int(h)


def min_nonzero_in_rect(image: np.ndarray, rect: Tuple[int, int, int, int]) -> float:
    """Smallest nonzero value inside rect (x, y, w, h), clipped to the image; 0.0 if none."""
    x, y, w, h = rect
    roi = image[max(y, 0):max(y + h, 0), max(x, 0):max(x + w, 0)]
    nonzero = roi[roi > 0]
    if nonzero.size == 0:
        return 0.0
    return float(nonzero.min())
