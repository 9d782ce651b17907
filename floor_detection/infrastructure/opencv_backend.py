"""Infrastructure adapter implementing the DepthImageBackend port."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from floor_detection.domain.model import ImageSize, Intrinsics, PlaneModel
from floor_detection.ports import DepthImageBackend


@dataclass(frozen=True)
class OpenCvDepthBackend(DepthImageBackend):
    """Concrete DepthImageBackend using NumPy and OpenCV."""

    # -------------------------------------------------------------------------
    # Buffers
    # -------------------------------------------------------------------------

    def element_count(self, *, buffer: Any) -> int:
        import numpy as np

        return int(np.asarray(buffer).size)

    def prepare_depth(self, *, depth: Any, size: ImageSize) -> Any:
        from floor_detection.infrastructure.backend import prepare_depth

        return prepare_depth(depth, size.width, size.height)

    # -------------------------------------------------------------------------
    # Preprocessing
    # -------------------------------------------------------------------------

    def zero_border(self, *, image: Any, edge_height: int, edge_width: int) -> Any:
        from floor_detection.infrastructure.backend import zero_border

        return zero_border(image, edge_height, edge_width)

    def threshold_to_zero_above(self, *, image: Any, max_value: float) -> Any:
        from floor_detection.infrastructure.backend import threshold_to_zero_above

        return threshold_to_zero_above(image, max_value)

    # -------------------------------------------------------------------------
    # Floor Band
    # -------------------------------------------------------------------------

    def scan_line(self, *, image: Any, index: int, orientation: str) -> Any:
        from floor_detection.infrastructure.backend import scan_line

        return scan_line(image, index, orientation)

    def label_runs(
        self,
        *,
        line: Any,
        min_depth: float,
        smoothness: float,
    ) -> List[Tuple[int, int]]:
        from floor_detection.infrastructure.backend import label_runs, runs_from_labels

        labels, counts = label_runs(line, min_depth, smoothness)
        return runs_from_labels(labels, counts)

    def floor_samples(
        self,
        *,
        pixels: Sequence[Tuple[int, int]],
        depths: Sequence[float],
        intrinsics: Intrinsics,
    ) -> Tuple[Any, Any]:
        from floor_detection.infrastructure.backend import floor_samples

        return floor_samples(
            pixels, depths, intrinsics.fx, intrinsics.fy, intrinsics.cx, intrinsics.cy
        )

    # -------------------------------------------------------------------------
    # Plane Estimation
    # -------------------------------------------------------------------------

    def solve_least_squares(
        self,
        *,
        lhs: Any,
        rhs: Any,
        max_condition: float,
    ) -> Tuple[Optional[List[float]], bool]:
        from floor_detection.infrastructure.backend import solve_least_squares

        return solve_least_squares(lhs, rhs, max_condition=max_condition)

    def residual_map(
        self,
        *,
        image: Any,
        plane: PlaneModel,
        intrinsics: Intrinsics,
    ) -> Tuple[Any, Any]:
        from floor_detection.infrastructure.backend import residual_map

        return residual_map(
            image, plane.as_list(), intrinsics.fx, intrinsics.fy, intrinsics.cx, intrinsics.cy
        )

    # -------------------------------------------------------------------------
    # Segmentation
    # -------------------------------------------------------------------------

    def threshold_mask(self, *, residuals: Any, threshold: float) -> Any:
        from floor_detection.infrastructure.backend import threshold_mask

        return threshold_mask(residuals, threshold)

    def find_external_contours(self, *, mask: Any) -> List[Any]:
        from floor_detection.infrastructure.backend import find_external_contours

        return find_external_contours(mask)

    def contour_pixel_area(self, *, contour: Any, mask: Any) -> int:
        from floor_detection.infrastructure.backend import contour_pixel_area

        return contour_pixel_area(contour, mask)

    def bounding_rect(self, *, contour: Any) -> Tuple[int, int, int, int]:
        from floor_detection.infrastructure.backend import bounding_rect

        return bounding_rect(contour)

    def min_nonzero_in_rect(
        self,
        *,
        image: Any,
        rect: Tuple[int, int, int, int],
    ) -> float:
        from floor_detection.infrastructure.backend import min_nonzero_in_rect

        return min_nonzero_in_rect(image, rect)
