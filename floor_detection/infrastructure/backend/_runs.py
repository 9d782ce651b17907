"""1D run-length labeling of depth continuity."""
from __future__ import annotations

from typing import List, Tuple

import numpy as np


def label_runs(line: np.ndarray, min_depth: float, smoothness: float) -> Tuple[np.ndarray, np.ndarray]:
    """Label contiguous smooth runs along a line.

    A sample is valid when its depth exceeds `min_depth`. A valid sample
    continues the current run when its predecessor is valid and the depth step
    is below `smoothness`; otherwise it opens a new run.

    Returns (labels, counts): labels is 0 for invalid samples and 1..K for runs,
    counts[k] is the length of run k (counts[0] is always 0).
    """
    line = np.asarray(line, dtype=np.float64)
    n = line.shape[0]
    if n == 0:
        return np.zeros((0,), dtype=np.int32), np.zeros((1,), dtype=np.int64)

    valid = line > min_depth
    joins = np.zeros(n, dtype=bool)
    joins[1:] = valid[1:] & valid[:-1] & (np.abs(np.diff(line)) < smoothness)
    starts = valid & ~joins

    labels = (np.cumsum(starts) * valid).astype(np.int32)
    counts = np.bincount(labels, minlength=int(labels.max()) + 1).astype(np.int64)
    counts[0] = 0
    return labels, counts


def runs_from_labels(labels: np.ndarray, counts: np.ndarray) -> List[Tuple[int, int]]:
    """Convert a label map into (start, length) tuples ordered by label."""
    if counts.shape[0] <= 1:
        return []
    starts = np.flatnonzero(np.diff(np.concatenate(([0], labels))) > 0)
    return [(int(s), int(counts[k])) for k, s in enumerate(starts, start=1)]
