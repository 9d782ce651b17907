"""Domain-level strategy implementations that depend only on ports.

These implementations contain the detection policy (bands, thresholds, run
selection, projection math), but delegate all array work (NumPy/OpenCV) to
the `DepthImageBackend` port.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from exceptions.exceptions import PreconditionViolation
from floor_detection.domain.model import (
    BoundingRect,
    DetectedObject,
    DetectionStatus,
    FilteredDepth,
    FloorSamples,
    Frame,
    PlaneModel,
    PlaneOutcome,
    ProjectionOutcome,
    ResidualMap,
    SamplingOutcome,
)
from floor_detection.domain.services import (
    DepthPreprocessor,
    FloorSampler,
    ObjectSegmenter,
    PlaneEstimator,
    ResidualEstimator,
    WorldProjector,
)
from floor_detection.ports import DepthImageBackend


ORIENTATIONS = ("columns", "rows")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _check_fraction(name: str, value: float, upper: float = 1.0) -> None:
    if not 0.0 <= value <= upper:
        raise PreconditionViolation("BAD_CONFIG", f"{name} must be in [0, {upper}], got {value}")


def interior_offsets(run_length: int, count: int) -> List[int]:
    """Up to `count` offsets spread evenly over [run_length // 10, 8 * run_length // 10).

    Run edges are skipped because depth there is the noisiest.
    """
    lo = run_length // 10
    hi = 8 * run_length // 10
    if count <= 0 or hi <= lo:
        return []
    if count == 1:
        return [lo]
    span = hi - 1 - lo
    offsets = [lo + round(i * span / (count - 1)) for i in range(count)]
    return sorted(set(offsets))


def select_floor_run(runs: List[Tuple[int, int]]) -> Tuple[int, int]:
    """(start, length) of the longest run, the earliest one on ties; (0, 0) when empty."""
    if not runs:
        return 0, 0
    return max(runs, key=lambda run: run[1])


def back_project(px: float, py: float, plane: PlaneModel, frame: Frame) -> Tuple[float, float, float] | None:
    """Intersect the ray through pixel (px, py) with the floor plane.

    Returns None when the ray is parallel to the plane (zero denominator).
    """
    k = frame.depth_intrinsics
    denominator = 1.0 - (px - k.cx) * plane.a / k.fx - (py - k.cy) * plane.b / k.fy
    if denominator == 0:
        return None
    depth = plane.c / denominator
    return (px - k.cx) * depth / k.fx, (py - k.cy) * depth / k.fy, depth


# ---------------------------------------------------------------------------
# Strategy Implementations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BackendDepthPreprocessor(DepthPreprocessor):
    """Zero the sensor border bands, then drop depth beyond `max_range`."""

    backend: DepthImageBackend
    edge_height_fraction: float = 0.075
    edge_width_fraction: float = 0.1
    max_range: float = 1.5

    def __post_init__(self) -> None:
        _check_fraction("edge_height_fraction", self.edge_height_fraction, 0.5)
        _check_fraction("edge_width_fraction", self.edge_width_fraction, 0.5)
        if not self.max_range > 0:
            raise PreconditionViolation("BAD_CONFIG", f"max_range must be > 0, got {self.max_range}")

    def preprocess(self, frame: Frame) -> FilteredDepth:
        size = frame.depth_size
        image = self.backend.prepare_depth(depth=frame.depth, size=size)
        image = self.backend.zero_border(
            image=image,
            edge_height=int(self.edge_height_fraction * size.height),
            edge_width=int(self.edge_width_fraction * size.width),
        )
        image = self.backend.threshold_to_zero_above(image=image, max_value=self.max_range)
        return FilteredDepth(image=image, size=size)


@dataclass(frozen=True)
class BackendFloorBandSampler(FloorSampler):
    """Sample the dominant smooth surface on every line of the floor band."""

    backend: DepthImageBackend
    orientation: str = "columns"
    band_start: float = 0.80
    band_stop: float = 0.88
    floor_min_depth: float = 0.65
    smoothness: float = 0.03
    min_run_length: int = 20
    samples_per_line: int = 14
    min_samples: int = 50

    def __post_init__(self) -> None:
        if self.orientation not in ORIENTATIONS:
            raise PreconditionViolation(
                "BAD_CONFIG", f"orientation must be one of {ORIENTATIONS}, got '{self.orientation}'"
            )
        _check_fraction("band_start", self.band_start)
        _check_fraction("band_stop", self.band_stop)
        if self.band_start >= self.band_stop:
            raise PreconditionViolation("BAD_CONFIG", "band_start must be below band_stop")
        if self.samples_per_line < 1 or self.min_samples < 3:
            raise PreconditionViolation("BAD_CONFIG", "samples_per_line >= 1 and min_samples >= 3 required")

    def line_range(self, depth: FilteredDepth) -> range:
        extent = depth.size.width if self.orientation == "columns" else depth.size.height
        return range(int(self.band_start * extent), int(self.band_stop * extent))

    def sample(self, depth: FilteredDepth, frame: Frame) -> SamplingOutcome:
        pixels: List[Tuple[int, int]] = []
        depths: List[float] = []
        lines_used = 0

        for index in self.line_range(depth):
            line = self.backend.scan_line(image=depth.image, index=index, orientation=self.orientation)
            runs = self.backend.label_runs(
                line=line,
                min_depth=self.floor_min_depth,
                smoothness=self.smoothness,
            )
            start, length = select_floor_run(runs)
            if length == 0 or length < self.min_run_length:
                continue

            lines_used += 1
            for offset in interior_offsets(length, self.samples_per_line):
                position = start + offset
                if self.orientation == "columns":
                    pixels.append((index, position))
                else:
                    pixels.append((position, index))
                depths.append(float(line[position]))

        if len(depths) < self.min_samples:
            return SamplingOutcome(status=DetectionStatus.INSUFFICIENT_EVIDENCE)

        directions, observed = self.backend.floor_samples(
            pixels=pixels,
            depths=depths,
            intrinsics=frame.depth_intrinsics,
        )
        return SamplingOutcome(
            status=DetectionStatus.OK,
            data=FloorSamples(directions=directions, depths=observed, lines_used=lines_used),
        )


@dataclass(frozen=True)
class BackendLeastSquaresPlaneEstimator(PlaneEstimator):
    """Closed-form least squares through the normal equations."""

    backend: DepthImageBackend
    max_condition: float = 1e12

    def fit(self, samples: FloorSamples) -> PlaneOutcome:
        coeffs, ok = self.backend.solve_least_squares(
            lhs=samples.directions,
            rhs=samples.depths,
            max_condition=self.max_condition,
        )
        if not ok or coeffs is None:
            return PlaneOutcome(status=DetectionStatus.DEGENERATE_PLANE)
        a, b, c = coeffs
        return PlaneOutcome(status=DetectionStatus.OK, data=PlaneModel(a=float(a), b=float(b), c=float(c)))


@dataclass(frozen=True)
class BackendResidualEstimator(ResidualEstimator):
    backend: DepthImageBackend

    def estimate(self, *, depth: FilteredDepth, plane: PlaneModel, frame: Frame) -> ResidualMap:
        residuals, valid = self.backend.residual_map(
            image=depth.image,
            plane=plane,
            intrinsics=frame.depth_intrinsics,
        )
        return ResidualMap(residuals=residuals, valid_mask=valid)


@dataclass(frozen=True)
class BackendContourObjectSegmenter(ObjectSegmenter):
    """Threshold residuals, trace external contours, keep those covering `min_area` pixels."""

    backend: DepthImageBackend
    residual_threshold: float = 0.035
    min_area: int = 150
    discard_first_contour: bool = True

    def segment(self, residuals: ResidualMap) -> List[BoundingRect]:
        mask = self.backend.threshold_mask(residuals=residuals.residuals, threshold=self.residual_threshold)
        contours = self.backend.find_external_contours(mask=mask)

        # The first contour is usually the background / whole-frame blob
        if self.discard_first_contour:
            contours = contours[1:]

        rects: List[BoundingRect] = []
        for contour in contours:
            if self.backend.contour_pixel_area(contour=contour, mask=mask) < self.min_area:
                continue
            x, y, w, h = self.backend.bounding_rect(contour=contour)
            rects.append(BoundingRect(x=int(x), y=int(y), width=int(w), height=int(h)))
        return rects


@dataclass(frozen=True)
class BackendPlaneWorldProjector(WorldProjector):
    """Back-project the right-hand rect corners onto the floor plane."""

    backend: DepthImageBackend

    def project(
        self,
        *,
        rects: List[BoundingRect],
        plane: PlaneModel,
        depth: FilteredDepth,
        frame: Frame,
    ) -> ProjectionOutcome:
        objects: List[DetectedObject] = []
        for rect in rects:
            top_right = back_project(*rect.tr, plane, frame)
            bottom_right = back_project(*rect.br, plane, frame)
            # One unreliable corner means the plane is unreliable for the whole frame
            if top_right is None or bottom_right is None:
                return ProjectionOutcome(status=DetectionStatus.DEGENERATE_PROJECTION)
            min_depth = self.backend.min_nonzero_in_rect(
                image=depth.image,
                rect=(rect.x, rect.y, rect.width, rect.height),
            )
            objects.append(
                DetectedObject(
                    rect=rect,
                    top_right=top_right,
                    bottom_right=bottom_right,
                    min_depth=float(min_depth),
                )
            )
        return ProjectionOutcome(status=DetectionStatus.OK, data=objects)
