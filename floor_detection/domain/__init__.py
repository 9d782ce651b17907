"""Domain layer: value objects, rate gate, services and default strategies for floor object detection."""

from .model import (
    Point3,
    Intrinsics,
    ImageSize,
    Frame,
    FilteredDepth,
    FloorSamples,
    PlaneModel,
    ResidualMap,
    BoundingRect,
    DetectedObject,
    DetectionStatus,
    OutputFormat,
    SamplingOutcome,
    PlaneOutcome,
    ProjectionOutcome,
    FrameInspection,
)
from .gate import FrameGate
from .services import (
    DepthPreprocessor,
    FloorSampler,
    PlaneEstimator,
    ResidualEstimator,
    ObjectSegmenter,
    WorldProjector,
    FloorObjectDetectionService,
)
from .strategies import (
    BackendDepthPreprocessor,
    BackendFloorBandSampler,
    BackendLeastSquaresPlaneEstimator,
    BackendResidualEstimator,
    BackendContourObjectSegmenter,
    BackendPlaneWorldProjector,
)

__all__ = [
    # Value Objects
    "Point3",
    "Intrinsics",
    "ImageSize",
    "Frame",
    "FilteredDepth",
    "FloorSamples",
    "PlaneModel",
    "ResidualMap",
    "BoundingRect",
    "DetectedObject",
    "DetectionStatus",
    "OutputFormat",
    "SamplingOutcome",
    "PlaneOutcome",
    "ProjectionOutcome",
    "FrameInspection",
    # Rate gate
    "FrameGate",
    # Domain Services
    "DepthPreprocessor",
    "FloorSampler",
    "PlaneEstimator",
    "ResidualEstimator",
    "ObjectSegmenter",
    "WorldProjector",
    "FloorObjectDetectionService",
    # Default strategy implementations (domain, backed by ports)
    "BackendDepthPreprocessor",
    "BackendFloorBandSampler",
    "BackendLeastSquaresPlaneEstimator",
    "BackendResidualEstimator",
    "BackendContourObjectSegmenter",
    "BackendPlaneWorldProjector",
]
