from dataclasses import replace

import pytest

from common.config import corners_preset, rect_min_depth_preset
from floor_detection.infrastructure.opencv_backend import OpenCvDepthBackend
from test_utilities.synthetic import SyntheticCamera


@pytest.fixture
def backend():
    return OpenCvDepthBackend()


@pytest.fixture
def camera():
    return SyntheticCamera()


@pytest.fixture
def corners_cfg():
    # Synthetic scenes have no background blob, so every contour is a candidate
    cfg = corners_preset()
    return replace(cfg, segmentation=replace(cfg.segmentation, discard_first_contour=False))


@pytest.fixture
def rect_min_depth_cfg():
    cfg = rect_min_depth_preset()
    return replace(cfg, segmentation=replace(cfg.segmentation, discard_first_contour=False))
