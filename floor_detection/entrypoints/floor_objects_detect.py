"""Entrypoint: composition root and `floor-objects-detect` CLI.

Usage:
    floor-objects-detect --depth frame.npy --fx 500 --fy 500 --cx 160 --cy 120 \
        --variant corners --log-level DEBUG
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from common.cli import (
    add_config_arg,
    add_log_level_arg,
    add_variant_arg,
    parse_args_with_config,
    setup_logging,
)
from common.config import Config
from common.logging import CountingHandler
from exceptions.exceptions import PreconditionViolation
from floor_detection.application.detector import FloorObjectDetector
from floor_detection.domain.model import Frame, ImageSize, Intrinsics, OutputFormat
from floor_detection.domain.services import FloorObjectDetectionService
from floor_detection.domain.strategies import (
    BackendContourObjectSegmenter,
    BackendDepthPreprocessor,
    BackendFloorBandSampler,
    BackendLeastSquaresPlaneEstimator,
    BackendPlaneWorldProjector,
    BackendResidualEstimator,
)
from floor_detection.infrastructure.flat_output import encode, inspection_to_dict
from floor_detection.infrastructure.opencv_backend import OpenCvDepthBackend
from floor_detection.ports import DepthImageBackend


EXIT_RESULT = 0
EXIT_NO_RESULT = 1
EXIT_PRECONDITION = 2


def build_detector(cfg: Config, backend: Optional[DepthImageBackend] = None) -> FloorObjectDetector:
    """Wire strategies, the detection service and the detector from a Config."""
    # Infrastructure: array backend (NumPy + OpenCV)
    backend = backend or OpenCvDepthBackend()

    # Domain: strategies (policy only, array work behind the port)
    pre = cfg.preprocessing
    band = cfg.floor_band
    seg = cfg.segmentation
    preprocessor = BackendDepthPreprocessor(
        backend=backend,
        edge_height_fraction=pre.edge_height_fraction,
        edge_width_fraction=pre.edge_width_fraction,
        max_range=pre.max_range,
    )
    floor_sampler = BackendFloorBandSampler(
        backend=backend,
        orientation=band.orientation,
        band_start=band.band_start,
        band_stop=band.band_stop,
        floor_min_depth=band.floor_min_depth,
        smoothness=band.smoothness,
        min_run_length=band.min_run_length,
        samples_per_line=band.samples_per_line,
        min_samples=band.min_samples,
    )
    plane_estimator = BackendLeastSquaresPlaneEstimator(backend=backend, max_condition=cfg.plane.max_condition)
    residual_estimator = BackendResidualEstimator(backend=backend)
    object_segmenter = BackendContourObjectSegmenter(
        backend=backend,
        residual_threshold=seg.residual_threshold,
        min_area=seg.min_area,
        discard_first_contour=seg.discard_first_contour,
    )
    world_projector = BackendPlaneWorldProjector(backend=backend)

    # Domain: orchestration service
    service = FloorObjectDetectionService(
        preprocessor=preprocessor,
        floor_sampler=floor_sampler,
        plane_estimator=plane_estimator,
        residual_estimator=residual_estimator,
        object_segmenter=object_segmenter,
        world_projector=world_projector,
    )

    # Application: stateful detector
    return FloorObjectDetector(
        service=service,
        backend=backend,
        target_fps=cfg.gate.target_fps,
        legacy_fx=cfg.legacy.fx,
        legacy_fy=cfg.legacy.fy,
    )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Detect raised objects on the floor in one depth frame")
    add_config_arg(parser); add_variant_arg(parser); add_log_level_arg(parser)
    parser.add_argument("--depth", required=True, help="Depth frame in meters (.npy, H x W float array)")
    parser.add_argument("--color", help="Raw planar 4:2:0 color bytes matching the depth size (zeros if omitted)")
    parser.add_argument("--fx", type=float, help="Focal length x in pixels")
    parser.add_argument("--fy", type=float, help="Focal length y in pixels")
    parser.add_argument("--cx", type=float, default=None, help="Principal point x (default: width // 2)")
    parser.add_argument("--cy", type=float, default=None, help="Principal point y (default: height // 2)")
    parser.add_argument("--timestamp", type=float, default=1.0, help="Frame timestamp in seconds (> 0)")
    return parser


def _defaults_from_cfg(cfg: Config) -> dict:
    return dict(
        log_level=cfg.logging.level,
        fx=cfg.legacy.fx,
        fy=cfg.legacy.fy,
    )


def _load_frame(args: argparse.Namespace) -> Frame:
    import numpy as np

    try:
        depth = np.load(args.depth)
    except (OSError, ValueError) as e:
        raise PreconditionViolation("MISSING_BUFFER", f"Cannot read depth frame: {e}", context=args.depth) from e
    if not isinstance(depth, np.ndarray) or depth.ndim != 2:
        raise PreconditionViolation("BAD_SIZE", "depth file must hold one 2-D array", context=args.depth)
    height, width = depth.shape
    if args.color:
        try:
            color = np.fromfile(args.color, dtype=np.uint8)
        except (OSError, ValueError) as e:
            raise PreconditionViolation("MISSING_BUFFER", f"Cannot read color frame: {e}", context=args.color) from e
    else:
        color = np.zeros(width * height * 3 // 2, dtype=np.uint8)

    intrinsics = Intrinsics(
        fx=args.fx,
        fy=args.fy,
        cx=float(width // 2) if args.cx is None else args.cx,
        cy=float(height // 2) if args.cy is None else args.cy,
    )
    size = ImageSize(width=width, height=height)
    return Frame(
        timestamp=args.timestamp,
        depth=depth,
        color=color,
        depth_size=size,
        color_size=size,
        depth_intrinsics=intrinsics,
        color_intrinsics=intrinsics,
    )


def _report_violation(e: PreconditionViolation) -> int:
    logging.error("%s: %s (%s)", e.code, e, e.context)
    print(json.dumps({"status": "precondition_violation", "error": e.to_dict()}, indent=2))
    return EXIT_PRECONDITION


def main(argv: Optional[List[str]] = None) -> int:
    try:
        args, cfg = parse_args_with_config(build_parser, _defaults_from_cfg, argv)
    except PreconditionViolation as e:
        return _report_violation(e)

    setup_logging(args.log_level)
    counter = CountingHandler()

    with counter.attached():
        try:
            detector = build_detector(cfg)
            frame = _load_frame(args)
            logging.info("Frame %s: %dx%d, variant %s",
                         args.depth, frame.depth_size.width, frame.depth_size.height, cfg.variant)
            inspection = detector.process(frame)
        except PreconditionViolation as e:
            return _report_violation(e)

    flat = encode(inspection, OutputFormat(cfg.variant))
    payload = inspection_to_dict(inspection)
    payload["flat"] = None if flat is None else [float(v) for v in flat]
    print(json.dumps(payload, indent=2))

    logging.info("Status: %s, objects: %d, warnings: %d, errors: %d",
                 inspection.status.value, len(inspection.objects), counter.warnings, counter.errors)
    if counter.last_error:
        logging.info("Last error: %s", counter.last_error)
    return EXIT_RESULT if flat is not None else EXIT_NO_RESULT


if __name__ == "__main__":
    sys.exit(main())
