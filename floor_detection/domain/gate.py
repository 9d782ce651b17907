"""Rate gate: admits at most `target_fps` frames per second of sensor time."""
from __future__ import annotations

from exceptions.exceptions import PreconditionViolation


class FrameGate:
    """Holds the last accepted timestamp for one detector instance."""

    def __init__(self, target_fps: float) -> None:
        if not target_fps > 0:
            raise PreconditionViolation("BAD_CONFIG", f"target_fps must be > 0, got {target_fps}")
        self.target_fps = float(target_fps)
        self.previous_accepted_timestamp = 0.0

    @property
    def min_interval(self) -> float:
        return 1.0 / self.target_fps

    def admit(self, timestamp: float) -> bool:
        """Return True and record `timestamp` if enough time has passed, else leave state alone."""
        if timestamp < self.previous_accepted_timestamp + self.min_interval:
            return False
        self.previous_accepted_timestamp = float(timestamp)
        return True

    def reset(self) -> None:
        self.previous_accepted_timestamp = 0.0
