from dataclasses import replace

import numpy as np
import pytest

from exceptions.exceptions import PreconditionViolation
from floor_detection.domain.model import DetectionStatus, Frame, ImageSize, Intrinsics
from floor_detection.entrypoints.floor_objects_detect import build_detector
from floor_detection.infrastructure.flat_output import decode_corners, decode_rect_min_depth
from test_utilities.synthetic import (
    SyntheticCamera,
    color_buffer,
    floor_with_block_frame,
    generate_floor_depth,
    make_frame,
)


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


def test_single_raised_block_is_detected(corners_cfg):
    detector = build_detector(corners_cfg)

    inspection = detector.process(floor_with_block_frame())

    assert inspection.status is DetectionStatus.OK
    assert inspection.sample_count == 350
    assert inspection.plane.as_list() == pytest.approx([0.0, -1.0, 1.0], abs=1e-3)
    (obj,) = inspection.objects
    for got, expected in zip((obj.rect.x, obj.rect.y, obj.rect.width, obj.rect.height), (100, 100, 40, 40)):
        assert abs(got - expected) <= 1
    tr_x, tr_y, tr_z = obj.top_right
    br_x, br_y, br_z = obj.bottom_right
    assert tr_x < 0 and tr_y < 0
    assert br_x < 0 and br_y > 0
    assert tr_z == pytest.approx(1.0417, abs=1e-2)
    assert br_z == pytest.approx(0.9615, abs=1e-2)


def test_flat_floor_has_no_objects(corners_cfg, camera):
    detector = build_detector(corners_cfg)

    inspection = detector.process(make_frame(generate_floor_depth(camera), camera))

    assert inspection.ok
    assert inspection.objects == []


def test_blank_frame_is_insufficient_evidence(corners_cfg, camera):
    detector = build_detector(corners_cfg)

    inspection = detector.process(make_frame(np.zeros((240, 320), dtype=np.float32), camera))

    assert inspection.status is DetectionStatus.INSUFFICIENT_EVIDENCE
    assert inspection.objects == []


def test_input_buffers_are_left_untouched(corners_cfg):
    frame = floor_with_block_frame()
    depth_before = np.array(frame.depth, copy=True)
    color_before = np.array(frame.color, copy=True)

    build_detector(corners_cfg).process(frame)

    np.testing.assert_array_equal(frame.depth, depth_before)
    np.testing.assert_array_equal(frame.color, color_before)


# ---------------------------------------------------------------------------
# Depth + color entry point
# ---------------------------------------------------------------------------


def _depth_and_color(detector, timestamp, camera=SyntheticCamera(), frame=None):
    frame = frame or floor_with_block_frame(camera)
    return detector.process_depth_and_color(
        timestamp,
        frame.depth,
        frame.color,
        [camera.width, camera.height],
        [camera.width, camera.height],
        camera.as_list(),
        camera.as_list(),
    )


def test_depth_and_color_returns_corner_array(corners_cfg):
    out = _depth_and_color(build_detector(corners_cfg), 1.0)

    assert out.dtype == np.float32
    assert out.shape == (7,)
    assert out[0] == 1
    ((tr, br),) = decode_corners(out)
    assert tr[1] < 0 < br[1]
    assert np.all(np.isfinite(out))


def test_depth_and_color_is_rate_gated(corners_cfg):
    detector = build_detector(corners_cfg)

    assert _depth_and_color(detector, 1.0) is not None
    assert _depth_and_color(detector, 1.05) is None
    assert detector.previous_accepted_timestamp == 1.0
    assert _depth_and_color(detector, 1.2) is not None
    assert detector.previous_accepted_timestamp == 1.2


def test_reset_reopens_the_gate(corners_cfg):
    detector = build_detector(corners_cfg)
    assert _depth_and_color(detector, 5.0) is not None
    assert _depth_and_color(detector, 1.0) is None

    detector.reset()

    assert _depth_and_color(detector, 1.0) is not None


# ---------------------------------------------------------------------------
# Shared intrinsics entry point
# ---------------------------------------------------------------------------


def test_shared_intrinsics_returns_rect_and_min_depth(rect_min_depth_cfg, camera):
    frame = floor_with_block_frame(camera)
    detector = build_detector(rect_min_depth_cfg)

    out = detector.process_shared_intrinsics(
        1.0, frame.depth, frame.color, camera.width, camera.height, 1, camera.as_list()
    )

    assert out.shape == (6,)
    assert out[0] == 1
    ((tl, br, min_depth),) = decode_rect_min_depth(out)
    assert tl == pytest.approx((-0.12, -0.04), abs=4e-3)
    assert br == pytest.approx((-0.04, 0.04), abs=4e-3)
    assert min_depth == pytest.approx(float(np.asarray(frame.depth).reshape(240, 320)[139, 100]), abs=1e-3)


def test_shared_intrinsics_defaults_to_configured_focal_lengths(rect_min_depth_cfg, camera):
    frame = floor_with_block_frame(camera)
    detector = build_detector(rect_min_depth_cfg)

    out = detector.process_shared_intrinsics(1.0, frame.depth, frame.color, camera.width, camera.height, 1)

    ((tl, _, _),) = decode_rect_min_depth(out)
    assert tl[0] == pytest.approx(-60.0 / rect_min_depth_cfg.legacy.fx, abs=2e-3)
    assert tl[1] == pytest.approx(-20.0 / rect_min_depth_cfg.legacy.fy, abs=2e-3)


def test_unsupported_ratio_consumes_the_gate(rect_min_depth_cfg, camera):
    frame = floor_with_block_frame(camera)
    detector = build_detector(rect_min_depth_cfg)

    out = detector.process_shared_intrinsics(
        2.0, frame.depth, frame.color, camera.width, camera.height, 2, camera.as_list()
    )

    assert out is None
    assert detector.previous_accepted_timestamp == 2.0


def test_ratio_is_checked_after_the_gate(rect_min_depth_cfg, camera):
    frame = floor_with_block_frame(camera)
    detector = build_detector(rect_min_depth_cfg)
    assert detector.process_shared_intrinsics(
        2.0, frame.depth, frame.color, camera.width, camera.height, 1, camera.as_list()
    ) is not None

    inspection = detector.process(replace(frame, timestamp=2.5), color_to_depth_ratio=2)

    assert inspection.status is DetectionStatus.RATE_LIMITED


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------


def _frame(camera, **overrides):
    base = dict(
        timestamp=1.0,
        depth=generate_floor_depth(camera).reshape(-1),
        color=color_buffer(camera),
        depth_size=camera.size,
        color_size=camera.size,
        depth_intrinsics=camera.intrinsics,
        color_intrinsics=camera.intrinsics,
    )
    base.update(overrides)
    return Frame(**base)


@pytest.mark.parametrize("overrides, code", [
    (dict(timestamp=0.0), "BAD_TIMESTAMP"),
    (dict(timestamp=-3.0), "BAD_TIMESTAMP"),
    (dict(timestamp=float("nan")), "BAD_TIMESTAMP"),
    (dict(depth_size=ImageSize(width=0, height=240)), "BAD_SIZE"),
    (dict(color_size=ImageSize(width=320, height=-1)), "BAD_SIZE"),
    (dict(depth=None), "MISSING_BUFFER"),
    (dict(color=None), "MISSING_BUFFER"),
    (dict(depth_intrinsics=Intrinsics(fx=0.0, fy=500.0, cx=160.0, cy=120.0)), "BAD_INTRINSICS"),
    (dict(color_intrinsics=Intrinsics(fx=500.0, fy=500.0, cx=160.0, cy=-1.0)), "BAD_INTRINSICS"),
    (dict(depth=np.zeros(100, dtype=np.float32)), "BUFFER_LENGTH"),
    (dict(color=np.zeros(320 * 240, dtype=np.uint8)), "BUFFER_LENGTH"),
])
def test_precondition_violations(corners_cfg, camera, overrides, code):
    detector = build_detector(corners_cfg)

    with pytest.raises(PreconditionViolation) as exc:
        detector.process(_frame(camera, **overrides))

    assert exc.value.code == code
    assert detector.previous_accepted_timestamp == 0.0


def test_flat_entry_points_validate_shapes(corners_cfg, rect_min_depth_cfg, camera):
    frame = floor_with_block_frame(camera)

    with pytest.raises(PreconditionViolation) as exc:
        build_detector(corners_cfg).process_depth_and_color(
            1.0, frame.depth, frame.color, [320], [320, 240], camera.as_list(), camera.as_list()
        )
    assert exc.value.code == "BAD_SIZE"

    with pytest.raises(PreconditionViolation) as exc:
        build_detector(corners_cfg).process_depth_and_color(
            1.0, frame.depth, frame.color, [320, 240], [320, 240], [500.0, 500.0, 160.0], camera.as_list()
        )
    assert exc.value.code == "BAD_INTRINSICS"

    with pytest.raises(PreconditionViolation) as exc:
        build_detector(rect_min_depth_cfg).process_shared_intrinsics(
            1.0, frame.depth, frame.color, 320, 240, 0
        )
    assert exc.value.code == "BAD_SIZE"
