"""Application layer: the stateful floor object detector."""

from .detector import FloorObjectDetector

__all__ = ["FloorObjectDetector"]
