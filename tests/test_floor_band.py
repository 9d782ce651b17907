import numpy as np
import pytest

from exceptions.exceptions import PreconditionViolation
from floor_detection.domain.model import DetectionStatus
from floor_detection.domain.strategies import (
    BackendDepthPreprocessor,
    BackendFloorBandSampler,
    interior_offsets,
)
from test_utilities.synthetic import generate_floor_depth, make_frame


def test_interior_offsets_skip_run_edges():
    offsets = interior_offsets(100, 7)

    assert len(offsets) == 7
    assert offsets == sorted(offsets)
    assert offsets[0] == 10
    assert all(10 <= o < 80 for o in offsets)


def test_interior_offsets_short_runs_yield_fewer_samples():
    offsets = interior_offsets(5, 14)

    assert offsets == [0, 1, 2, 3]
    assert interior_offsets(1, 14) == []


def test_column_band_samples_every_floor_column(backend, camera):
    frame = make_frame(generate_floor_depth(camera), camera)
    depth = BackendDepthPreprocessor(backend=backend).preprocess(frame)
    sampler = BackendFloorBandSampler(backend=backend)

    assert sampler.line_range(depth) == range(256, 281)

    outcome = sampler.sample(depth, frame)

    assert outcome.status is DetectionStatus.OK
    assert outcome.data.lines_used == 25
    assert len(outcome.data) == 25 * 14
    directions = np.asarray(outcome.data.directions)
    assert directions.shape == (350, 3)
    assert np.all(directions[:, 2] == 1.0)
    # Band sits right of the principal point
    assert np.all(directions[:, 0] > 0)


def test_row_band_samples(backend, camera):
    frame = make_frame(generate_floor_depth(camera), camera)
    depth = BackendDepthPreprocessor(backend=backend, edge_height_fraction=0.0, edge_width_fraction=0.0).preprocess(frame)
    sampler = BackendFloorBandSampler(
        backend=backend,
        orientation="rows",
        band_start=0.78,
        band_stop=0.89,
        floor_min_depth=0.0,
        min_run_length=100,
        samples_per_line=7,
        min_samples=100,
    )

    outcome = sampler.sample(depth, frame)

    assert outcome.status is DetectionStatus.OK
    assert outcome.data.lines_used == 26
    assert len(outcome.data) == 26 * 7
    # Band sits below the principal point
    assert np.all(np.asarray(outcome.data.directions)[:, 1] > 0)


def test_short_runs_are_ignored(backend, camera):
    depth = generate_floor_depth(camera)
    # Break every band column into pieces shorter than min_run_length
    depth[::15, :] = 0.0
    frame = make_frame(depth, camera)
    filtered = BackendDepthPreprocessor(backend=backend).preprocess(frame)

    outcome = BackendFloorBandSampler(backend=backend).sample(filtered, frame)

    assert outcome.status is DetectionStatus.INSUFFICIENT_EVIDENCE
    assert outcome.data is None


def test_empty_frame_is_insufficient_evidence(backend, camera):
    frame = make_frame(np.zeros((240, 320), dtype=np.float32), camera)
    filtered = BackendDepthPreprocessor(backend=backend).preprocess(frame)

    outcome = BackendFloorBandSampler(backend=backend).sample(filtered, frame)

    assert outcome.status is DetectionStatus.INSUFFICIENT_EVIDENCE


@pytest.mark.parametrize("kwargs", [
    dict(orientation="diagonal"),
    dict(band_start=0.9, band_stop=0.8),
    dict(band_stop=1.2),
    dict(min_samples=2),
])
def test_invalid_band_settings_are_rejected(backend, kwargs):
    with pytest.raises(PreconditionViolation) as exc:
        BackendFloorBandSampler(backend=backend, **kwargs)
    assert exc.value.code == "BAD_CONFIG"
