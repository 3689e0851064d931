"""
Engine Parameters

Parameter records consumed by the override engine. Defaults match the
initial values of the control panel. Value ranges are enforced by whoever
edits the parameters; the engine applies whatever it is given.
"""

import json
import os
from dataclasses import asdict, dataclass, field, fields
from typing import Dict, Optional

# Delay config groups: each key drives the delay partitions listed here
DELAY_GROUPS = {
    "left": ("leftArm", "leftLeg"),
    "right": ("rightArm", "rightLeg"),
    "body": ("head", "body"),
}


@dataclass
class SpaceConfig:
    """External body space (valley delay) settings."""

    # Delay added per valley, in seconds
    delay: float = 0.0
    # Frame-to-frame change (percent of the normalized range) that breaks a valley
    threshold: float = 0.005
    # Valleys must be longer than this many frames
    min_window: int = 3
    window_size: int = 30


@dataclass
class CurveConfig:
    """Curve transform selection."""

    equation: str = "none"
    threshold: float = 1.0
    axes: Dict[str, bool] = field(default_factory=lambda: {"x": True, "y": False, "z": False})
    parts: Dict[str, bool] = field(
        default_factory=lambda: {
            "head": False,
            "body": False,
            "leftArm": True,
            "rightArm": True,
            "leftLeg": True,
            "rightLeg": True,
        }
    )

    @property
    def enabled_axes(self):
        return [axis for axis, enabled in self.axes.items() if enabled]

    @property
    def enabled_parts(self):
        return [part for part, enabled in self.parts.items() if enabled]


@dataclass
class RotationConfig:
    x: float = 1.0
    y: float = 1.0
    z: float = 1.0

    def as_tuple(self):
        return (self.x, self.y, self.z)


@dataclass
class EnergyConfig:
    upper: float = 1.0
    lower: float = 1.0

    def factor_for(self, part: Optional[str]) -> Optional[float]:
        if part is None:
            return None
        return getattr(self, part, None)


@dataclass
class DelayConfig:
    left: float = 0.0
    right: float = 0.0
    body: float = 0.0

    def factor_for(self, part: Optional[str]) -> float:
        """Delay parameter for a delay-partition key (0 when unknown)."""
        for group, members in DELAY_GROUPS.items():
            if part in members:
                return getattr(self, group)
        return 0.0


@dataclass
class Params:
    """Full parameter surface of the engine."""

    # Current playback time, in seconds
    time: float = 0.0
    timescale: float = 1.0
    lock_position: bool = False
    rotations: RotationConfig = field(default_factory=RotationConfig)
    energy: EnergyConfig = field(default_factory=EnergyConfig)
    delays: DelayConfig = field(default_factory=DelayConfig)
    curve: CurveConfig = field(default_factory=CurveConfig)
    space: SpaceConfig = field(default_factory=SpaceConfig)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Params":
        """
        Build parameters from a (possibly partial) nested dict.

        camelCase keys (minWindow, windowSize, lockPosition) are accepted.
        Unknown keys are ignored.
        """
        data = _snake_keys(data or {})
        params = cls()

        for name in ("time", "timescale", "lock_position"):
            if name in data:
                setattr(params, name, data[name])

        params.rotations = _merge(RotationConfig, data.get("rotations"))
        params.energy = _merge(EnergyConfig, data.get("energy"))
        params.delays = _merge(DelayConfig, data.get("delays"))
        params.space = _merge(SpaceConfig, data.get("space"))

        curve = data.get("curve") or {}
        params.curve = _merge(CurveConfig, curve)
        if "axes" in curve:
            params.curve.axes = {**CurveConfig().axes, **curve["axes"]}
        if "parts" in curve:
            params.curve.parts = {**CurveConfig().parts, **curve["parts"]}

        return params


@dataclass
class UpdateFlags:
    """Which overrides an update should (re)apply."""

    timing: bool = True
    rotation: bool = False
    curve: bool = False
    lock_position: bool = False

    @classmethod
    def all(cls) -> "UpdateFlags":
        return cls(timing=True, rotation=True, curve=True, lock_position=True)


def load_params(path) -> Params:
    """
    Load parameters from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Parameter file not found: {path}")

    with open(path, "r") as f:
        return Params.from_dict(json.load(f))


def _merge(record_type, data):
    record = record_type()
    if not data:
        return record

    names = {f.name for f in fields(record_type)}
    for key, value in data.items():
        if key in names and not isinstance(value, dict):
            setattr(record, key, value)
    return record


def _snake_keys(data):
    # Only top-level and one nested level; curve axes/parts keep their keys
    aliases = {"minWindow": "min_window", "windowSize": "window_size", "lockPosition": "lock_position"}
    out = {}
    for key, value in data.items():
        key = aliases.get(key, key)
        if isinstance(value, dict) and key not in ("axes", "parts"):
            value = {aliases.get(k, k): v for k, v in value.items()}
        out[key] = value
    return out
