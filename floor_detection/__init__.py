"""Floor object detection bounded context (DDD layered package).

Importing the package is side-effect free: NumPy and OpenCV are only pulled in
by the infrastructure layer.

Use explicit imports for the composition root:
`from floor_detection.entrypoints.floor_objects_detect import build_detector`
"""

__all__: list[str] = []
