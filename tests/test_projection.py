import numpy as np
import pytest

from floor_detection.domain.model import BoundingRect, DetectionStatus, FilteredDepth, PlaneModel
from floor_detection.domain.strategies import BackendPlaneWorldProjector, back_project
from test_utilities.synthetic import FLOOR_PLANE, generate_floor_depth, make_frame


def test_back_project_onto_floor(camera):
    frame = make_frame(generate_floor_depth(camera), camera)

    x, y, z = back_project(140, 100, PlaneModel(*FLOOR_PLANE), frame)

    assert z == pytest.approx(1.0 / 0.96)
    assert x == pytest.approx(-0.04 * z)
    assert y == pytest.approx(-0.04 * z)


def test_projector_reports_right_corners_and_min_depth(backend, camera):
    depth = generate_floor_depth(camera)
    frame = make_frame(depth, camera)
    rect = BoundingRect(x=100, y=100, width=40, height=40)

    outcome = BackendPlaneWorldProjector(backend=backend).project(
        rects=[rect],
        plane=PlaneModel(*FLOOR_PLANE),
        depth=FilteredDepth(image=depth, size=camera.size),
        frame=frame,
    )

    assert outcome.status is DetectionStatus.OK
    (obj,) = outcome.data
    assert obj.rect == rect
    assert obj.top_right[2] == pytest.approx(1.0 / 0.96)
    assert obj.bottom_right[2] == pytest.approx(1.0 / 1.04)
    assert obj.bottom_right[1] > 0 > obj.top_right[1]
    # Deepest row of the rect is nearest to the camera
    assert obj.min_depth == pytest.approx(float(depth[139, 100]))


def test_zero_denominator_is_degenerate(backend, camera):
    depth = generate_floor_depth(camera)
    # (200 - 160) * 12.5 / 500 == 1.0 exactly
    plane = PlaneModel(a=12.5, b=0.0, c=1.0)

    outcome = BackendPlaneWorldProjector(backend=backend).project(
        rects=[BoundingRect(x=180, y=120, width=20, height=10)],
        plane=plane,
        depth=FilteredDepth(image=depth, size=camera.size),
        frame=make_frame(depth, camera),
    )

    assert outcome.status is DetectionStatus.DEGENERATE_PROJECTION
    assert outcome.data == []


def test_no_rects_is_an_empty_result(backend, camera):
    depth = np.zeros((240, 320), dtype=np.float32)
    outcome = BackendPlaneWorldProjector(backend=backend).project(
        rects=[],
        plane=PlaneModel(*FLOOR_PLANE),
        depth=FilteredDepth(image=depth, size=camera.size),
        frame=make_frame(depth, camera),
    )
    assert outcome.status is DetectionStatus.OK
    assert outcome.data == []
