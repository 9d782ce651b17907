import os
import yaml
from dataclasses import dataclass, fields, replace
from typing import Optional

from exceptions.exceptions import PreconditionViolation


VARIANT_CORNERS = "corners"
VARIANT_RECT_MIN_DEPTH = "rect_min_depth"


def _read(path: str):
    with open(path, "r") as f:
        return yaml.safe_load(f)


@dataclass(frozen=True)
class Logging:
    level: str = "INFO"

@dataclass(frozen=True)
class Gate:
    target_fps: float = 10.0

@dataclass(frozen=True)
class Preprocessing:
    edge_height_fraction: float = 0.075
    edge_width_fraction: float = 0.1
    max_range: float = 1.5

@dataclass(frozen=True)
class FloorBand:
    orientation: str = "columns"  # columns|rows
    band_start: float = 0.80
    band_stop: float = 0.88
    floor_min_depth: float = 0.65
    smoothness: float = 0.03
    min_run_length: int = 20
    samples_per_line: int = 14
    min_samples: int = 50

@dataclass(frozen=True)
class Plane:
    max_condition: float = 1e12

@dataclass(frozen=True)
class Segmentation:
    residual_threshold: float = 0.035
    min_area: int = 150
    discard_first_contour: bool = True

@dataclass(frozen=True)
class Legacy:
    # Shared-intrinsics focal lengths; principal point defaults to the image center.
    fx: float = 1521.046710
    fy: float = 1518.999642


@dataclass(frozen=True)
class Config:
    variant: str = VARIANT_CORNERS
    logging: Logging = Logging()
    gate: Gate = Gate()
    preprocessing: Preprocessing = Preprocessing()
    floor_band: FloorBand = FloorBand()
    plane: Plane = Plane()
    segmentation: Segmentation = Segmentation()
    legacy: Legacy = Legacy()


def corners_preset() -> Config:
    """Depth/color pipeline with independent intrinsics (two 3D corners per object)."""
    return Config()


def rect_min_depth_preset() -> Config:
    """Legacy shared-intrinsics pipeline (image-plane rect + minimum depth per object)."""
    return Config(
        variant=VARIANT_RECT_MIN_DEPTH,
        gate=Gate(target_fps=1.0),
        preprocessing=Preprocessing(edge_height_fraction=0.0, edge_width_fraction=0.0, max_range=1.5),
        floor_band=FloorBand(
            orientation="rows",
            band_start=0.78,
            band_stop=0.89,
            floor_min_depth=0.0,
            smoothness=0.03,
            min_run_length=100,
            samples_per_line=7,
            min_samples=100,
        ),
        segmentation=Segmentation(residual_threshold=0.03, min_area=1000, discard_first_contour=True),
    )


PRESETS = {
    VARIANT_CORNERS: corners_preset,
    VARIANT_RECT_MIN_DEPTH: rect_min_depth_preset,
}


def preset(variant: str) -> Config:
    if variant not in PRESETS:
        raise PreconditionViolation(
            "BAD_CONFIG",
            f"Unknown variant '{variant}'. Available: {list(PRESETS.keys())}",
        )
    return PRESETS[variant]()


def _merge_section(section, data: dict, name: str):
    values = data.get(name, {}) or {}
    if not isinstance(values, dict):
        raise PreconditionViolation("BAD_CONFIG", f"Section '{name}' must be a mapping", context=name)
    known = {f.name for f in fields(section)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise PreconditionViolation(
            "BAD_CONFIG",
            f"Unknown key(s) {unknown} in section '{name}'. Available: {sorted(known)}",
            context=name,
        )
    return replace(section, **values)


def load_config(path: Optional[str], variant: Optional[str] = None) -> Config:
    """Load the YAML config at `path` on top of the variant preset.

    The variant comes from the explicit argument, else the file's `variant` key,
    else the corners preset.
    """
    data = {}
    if path and os.path.isfile(path):
        try:
            data = _read(path) or {}
        except yaml.YAMLError as e:
            raise PreconditionViolation("BAD_CONFIG", f"Config file is not valid YAML: {e}", context=path) from e
    if not isinstance(data, dict):
        raise PreconditionViolation("BAD_CONFIG", "Config file must hold a mapping", context=path or "")
    cfg = preset(variant or data.get("variant") or VARIANT_CORNERS)
    if not data:
        return cfg
    sections = ("logging", "gate", "preprocessing", "floor_band", "plane", "segmentation", "legacy")
    unknown = sorted(set(data) - set(sections) - {"variant"})
    if unknown:
        raise PreconditionViolation("BAD_CONFIG", f"Unknown config section(s) {unknown}", context=path or "")
    return replace(cfg, **{name: _merge_section(getattr(cfg, name), data, name) for name in sections})
