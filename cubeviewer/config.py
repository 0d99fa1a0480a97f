"""
Viewer configuration.

Settings come from an optional YAML file; command-line flags override them.
"""

import logging
import math
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from .core.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewerConfig:
    """Projection, interaction and window settings for a render session"""

    fov_degrees: float = 45.0
    near: float = 0.1
    far: float = 100.0
    distance: float = 6.0
    rotation_speed: float = 0.005
    background: Tuple[float, float, float, float] = (0.1, 0.1, 0.2, 1.0)
    window_size: Tuple[int, int] = (1280, 720)
    shader: str = "cube"

    def __post_init__(self):
        self.validate()

    @property
    def fov(self) -> float:
        """Field of view in radians"""
        return math.radians(self.fov_degrees)

    def validate(self):
        """Raise ConfigError if any value is out of range"""
        errors = []

        if not 0.0 < self.fov_degrees < 180.0:
            errors.append(f"fov_degrees must be in (0, 180), got {self.fov_degrees}")
        if not 0.0 < self.near < self.far:
            errors.append(f"need 0 < near < far, got near={self.near}, far={self.far}")
        if self.distance <= 0.0:
            errors.append(f"distance must be positive, got {self.distance}")
        if not math.isfinite(self.rotation_speed) or self.rotation_speed <= 0.0:
            errors.append(f"rotation_speed must be a positive finite number, got {self.rotation_speed}")
        if len(self.background) != 4:
            errors.append(f"background needs 4 components (RGBA), got {len(self.background)}")
        elif any(not 0.0 <= c <= 1.0 for c in self.background):
            errors.append(f"background components must be in [0, 1], got {self.background}")
        if len(self.window_size) != 2 or any(s <= 0 for s in self.window_size):
            errors.append(f"window_size must be two positive integers, got {self.window_size}")
        if not self.shader:
            errors.append("shader name must not be empty")

        if errors:
            raise ConfigError("Invalid configuration: " + "; ".join(errors))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ViewerConfig":
        """Build a config from a plain mapping, rejecting unknown keys"""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        values = dict(data)
        try:
            if 'background' in values:
                values['background'] = tuple(float(c) for c in values['background'])
            if 'window_size' in values:
                values['window_size'] = tuple(int(s) for s in values['window_size'])
            for name in ('fov_degrees', 'near', 'far', 'distance', 'rotation_speed'):
                if name in values:
                    values[name] = float(values[name])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e

        return cls(**values)

    def with_overrides(self, **overrides) -> "ViewerConfig":
        """Return a copy with the non-None overrides applied"""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if not changes:
            return self
        return replace(self, **changes)


def load_config(config_path: Optional[Union[str, Path]] = None) -> ViewerConfig:
    """
    Load a YAML configuration file.

    Args:
        config_path: Path to the YAML file (None returns the defaults)

    Returns:
        Validated ViewerConfig
    """
    if config_path is None:
        return ViewerConfig()

    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must contain a mapping at the top level")

    logger.debug("Loaded configuration from %s", config_path)
    return ViewerConfig.from_dict(data)
