"""Low-level depth image processing utilities (NumPy / OpenCV)."""
from floor_detection.infrastructure.backend._depth import (
    prepare_depth,
    zero_border,
    threshold_to_zero_above,
    scan_line,
)
from floor_detection.infrastructure.backend._runs import (
    label_runs,
    runs_from_labels,
)
from floor_detection.infrastructure.backend._plane import (
    floor_samples,
    solve_least_squares,
    residual_map,
)
from floor_detection.infrastructure.backend._contours import (
    threshold_mask,
    find_external_contours,
    contour_pixel_area,
    bounding_rect,
    min_nonzero_in_rect,
)

__all__ = [
    "prepare_depth",
    "zero_border",
    "threshold_to_zero_above",
    "scan_line",
    "label_runs",
    "runs_from_labels",
    "floor_samples",
    "solve_least_squares",
    "residual_map",
    "threshold_mask",
    "find_external_contours",
    "contour_pixel_area",
    "bounding_rect",
    "min_nonzero_in_rect",
]
