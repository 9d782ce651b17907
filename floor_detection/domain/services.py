"""Domain services (and strategy protocols) for floor object detection."""
from __future__ import annotations

import logging
import math
from typing import List, Protocol

from .model import (
    BoundingRect,
    DetectionStatus,
    FilteredDepth,
    FloorSamples,
    Frame,
    FrameInspection,
    PlaneModel,
    PlaneOutcome,
    ProjectionOutcome,
    ResidualMap,
    SamplingOutcome,
)


# ---------------------------------------------------------------------------
# Strategy Protocols
# ---------------------------------------------------------------------------


class DepthPreprocessor(Protocol):
    """Strategy port: drop sensor edge noise and out-of-range depth."""

    def preprocess(self, frame: Frame) -> FilteredDepth: ...


class FloorSampler(Protocol):
    """Strategy port: collect floor samples from the band expected to see the floor."""

    def sample(self, depth: FilteredDepth, frame: Frame) -> SamplingOutcome: ...


class PlaneEstimator(Protocol):
    """Strategy port: fit the floor plane through the samples."""

    def fit(self, samples: FloorSamples) -> PlaneOutcome: ...


class ResidualEstimator(Protocol):
    """Strategy port: per-pixel signed distance to the floor plane."""

    def estimate(
        self,
        *,
        depth: FilteredDepth,
        plane: PlaneModel,
        frame: Frame,
    ) -> ResidualMap: ...


class ObjectSegmenter(Protocol):
    """Strategy port: raised-region bounding rects from the residual map."""

    def segment(self, residuals: ResidualMap) -> List[BoundingRect]: ...


class WorldProjector(Protocol):
    """Strategy port: back-project rect corners onto the floor plane."""

    def project(
        self,
        *,
        rects: List[BoundingRect],
        plane: PlaneModel,
        depth: FilteredDepth,
        frame: Frame,
    ) -> ProjectionOutcome: ...


# ---------------------------------------------------------------------------
# Orchestration Service
# ---------------------------------------------------------------------------


class FloorObjectDetectionService:
    """Domain service: runs one admitted frame through the pipeline.

    Orchestrates six strategy protocols, strictly forward:
    - DepthPreprocessor
    - FloorSampler
    - PlaneEstimator
    - ResidualEstimator
    - ObjectSegmenter
    - WorldProjector

    Holds no per-frame state; rate gating lives with the detector instance.
    """

    def __init__(
        self,
        *,
        preprocessor: DepthPreprocessor,
        floor_sampler: FloorSampler,
        plane_estimator: PlaneEstimator,
        residual_estimator: ResidualEstimator,
        object_segmenter: ObjectSegmenter,
        world_projector: WorldProjector,
    ) -> None:
        self._preprocessor = preprocessor
        self._floor_sampler = floor_sampler
        self._plane_estimator = plane_estimator
        self._residual_estimator = residual_estimator
        self._object_segmenter = object_segmenter
        self._world_projector = world_projector

    def inspect(self, frame: Frame) -> FrameInspection:
        """Detect raised floor objects in the given frame."""
        intrinsics = frame.depth_intrinsics

        # Step 1: Preprocess
        depth = self._preprocessor.preprocess(frame)

        # Step 2: Floor samples
        match self._floor_sampler.sample(depth, frame):
            case SamplingOutcome(status=DetectionStatus.OK, data=FloorSamples() as samples):
                pass
            case SamplingOutcome(status=fail_status):
                logging.debug("Frame %.3f: not enough floor samples", frame.timestamp)
                return FrameInspection(timestamp=frame.timestamp, status=fail_status, intrinsics=intrinsics)

        logging.debug("Frame %.3f: %d floor samples from %d lines",
                      frame.timestamp, len(samples), samples.lines_used)

        # Step 3: Plane fit
        match self._plane_estimator.fit(samples):
            case PlaneOutcome(status=DetectionStatus.OK, data=PlaneModel() as plane):
                pass
            case PlaneOutcome(status=fail_status):
                logging.debug("Frame %.3f: degenerate floor plane", frame.timestamp)
                return FrameInspection(
                    timestamp=frame.timestamp,
                    status=fail_status,
                    intrinsics=intrinsics,
                    sample_count=len(samples),
                )

        logging.debug("Frame %.3f: plane a=%.4f b=%.4f c=%.4f", frame.timestamp, plane.a, plane.b, plane.c)

        # Step 4: Residual map
        residuals = self._residual_estimator.estimate(depth=depth, plane=plane, frame=frame)

        # Step 5: Segmentation
        rects = self._object_segmenter.segment(residuals)

        # Step 6: Back-projection
        match self._world_projector.project(rects=rects, plane=plane, depth=depth, frame=frame):
            case ProjectionOutcome(status=DetectionStatus.OK, data=objects):
                pass
            case ProjectionOutcome(status=fail_status):
                logging.debug("Frame %.3f: degenerate back-projection", frame.timestamp)
                return FrameInspection(
                    timestamp=frame.timestamp,
                    status=fail_status,
                    intrinsics=intrinsics,
                    plane=plane,
                    sample_count=len(samples),
                )

        if not _all_finite(objects):
            return FrameInspection(
                timestamp=frame.timestamp,
                status=DetectionStatus.DEGENERATE_PROJECTION,
                intrinsics=intrinsics,
                plane=plane,
                sample_count=len(samples),
            )

        logging.debug("Frame %.3f: %d object(s)", frame.timestamp, len(objects))
        return FrameInspection(
            timestamp=frame.timestamp,
            status=DetectionStatus.OK,
            intrinsics=intrinsics,
            plane=plane,
            sample_count=len(samples),
            objects=list(objects),
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _all_finite(objects) -> bool:
    for obj in objects:
        values = (*obj.top_right, *obj.bottom_right, obj.min_depth)
        if not all(math.isfinite(v) for v in values):
            return False
    return True
