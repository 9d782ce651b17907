"""Ports (Protocol interfaces) for floor object detection.

These define the contracts that infrastructure adapters must implement.
The domain layer depends on these abstractions, not concrete implementations.
"""
from __future__ import annotations

from typing import Any, List, Optional, Protocol, Sequence, Tuple

from floor_detection.domain.model import ImageSize, Intrinsics, PlaneModel


# ---------------------------------------------------------------------------
# Depth Image Backend Port
# ---------------------------------------------------------------------------


class DepthImageBackend(Protocol):
    """Port: dense image / linear-algebra backend.

    Isolates the domain from concrete libraries (NumPy/OpenCV). Arrays cross
    this boundary typed as `Any`.
    """

    # Buffers
    def element_count(self, *, buffer: Any) -> int:
        """Return the number of elements in a flat or shaped buffer."""
        ...

    def prepare_depth(self, *, depth: Any, size: ImageSize) -> Any:
        """Copy a depth buffer into an (H, W) float image; non-finite values become 0."""
        ...

    # Preprocessing
    def zero_border(self, *, image: Any, edge_height: int, edge_width: int) -> Any:
        """Zero `edge_height` rows at top/bottom and `edge_width` columns at left/right."""
        ...

    def threshold_to_zero_above(self, *, image: Any, max_value: float) -> Any:
        """Set every value greater than `max_value` to 0."""
        ...

    # Floor band
    def scan_line(self, *, image: Any, index: int, orientation: str) -> Any:
        """Return column `index` (orientation "columns") or row `index` ("rows")."""
        ...

    def label_runs(
        self,
        *,
        line: Any,
        min_depth: float,
        smoothness: float,
    ) -> List[Tuple[int, int]]:
        """Run-length label a 1D line; return runs as (start, length) in label order."""
        ...

    def floor_samples(
        self,
        *,
        pixels: Sequence[Tuple[int, int]],
        depths: Sequence[float],
        intrinsics: Intrinsics,
    ) -> Tuple[Any, Any]:
        """Build (directions (N,3) = (x_ray*d, y_ray*d, 1), depths (N,)) from pixel samples."""
        ...

    # Plane estimation
    def solve_least_squares(
        self,
        *,
        lhs: Any,
        rhs: Any,
        max_condition: float,
    ) -> Tuple[Optional[List[float]], bool]:
        """Solve (A^T A)^-1 A^T b; return (coeffs, ok). ok is False when A^T A is singular."""
        ...

    def residual_map(
        self,
        *,
        image: Any,
        plane: PlaneModel,
        intrinsics: Intrinsics,
    ) -> Tuple[Any, Any]:
        """Signed perpendicular distance to the plane per pixel; return (residuals, valid_mask)."""
        ...

    # Segmentation
    def threshold_mask(self, *, residuals: Any, threshold: float) -> Any:
        """Binary uint8 mask (0/255) of residuals strictly above `threshold`."""
        ...

    def find_external_contours(self, *, mask: Any) -> List[Any]:
        """External boundary contours of the mask components, in discovery order."""
        ...

    def contour_pixel_area(self, *, contour: Any, mask: Any) -> int:
        """Number of mask pixels enclosed by the contour."""
        ...

    def bounding_rect(self, *, contour: Any) -> Tuple[int, int, int, int]:
        """Axis-aligned bounding rect (x, y, width, height) of a contour."""
        ...

    def min_nonzero_in_rect(
        self,
        *,
        image: Any,
        rect: Tuple[int, int, int, int],
    ) -> float:
        """Smallest nonzero value inside rect (x, y, width, height); 0.0 when none."""
        ...


# ---------------------------------------------------------------------------
# Collaborator Ports
# ---------------------------------------------------------------------------


class CostMapInflator(Protocol):
    """Port: navigation-layer costmap inflation (implemented outside this package).

    Obstacle cells propagate a decaying cost to neighboring cells within the
    inflation radius; the returned grid has the same shape as the input.
    """

    def inflate(
        self,
        *,
        grid: Any,
        radius: float,
        resolution: float,
        limits: Tuple[int, int, int, int],
    ) -> Any:
        """Inflate an int8 occupancy grid bounded by (x_min, x_max, y_min, y_max)."""
        ...
