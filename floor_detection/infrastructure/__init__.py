"""Infrastructure layer: array backend adapter and flat output encodings."""

from .opencv_backend import OpenCvDepthBackend

__all__ = ["OpenCvDepthBackend"]
