"""
Configuration for the Path Visualizer.

The host controls two knobs (path type and view mode); everything else here
is a tuning parameter with a default taken from `common.constants`.
Configuration is plain data: it can be built from a dict or a JSON file and
hashed for the audit trail.
"""

import hashlib
import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from common.constants import DEFAULT_BASEMAP_URL, InteractionConstants
from common.logging_config import get_logger
from common.types import PathType, ViewMode, Viewport

logger = get_logger(__name__)


@dataclass
class VisualizerConfig:
    """Configuration for a visualization session.

    Attributes
    ----------
    path_type : PathType
        Path model shown to the user.
    view_mode : ViewMode
        Globe (orthographic) or map (Mercator).
    width, height : float
        Canvas size in pixels.
    loxodrome_segments : int
        Number of segments used to sample a rhumb line.
    great_circle_samples_per_degree : float
        Great-circle samples per degree of central angle.
    auto_fit_duration_ms, reset_duration_ms : float
        Tween durations for framing a new path and for clearing.
    reveal_duration_ms, marker_delay_ms, marker_fade_ms : float
        Presentation timing of the path draw-in and marker fade.
    drag_sensitivity : float
        Globe rotation sensitivity.
    orthographic_zoom_extent, mercator_zoom_extent : tuple of float
        Allowed zoom factor ranges.
    basemap_source : str
        File path or URL of the world-outline dataset.
    request_timeout_s : float
        Timeout for HTTP collaborators (basemap, geocoding).
    """
    path_type: PathType = PathType.ORTHODROMIC
    view_mode: ViewMode = ViewMode.GLOBE
    width: float = 800.0
    height: float = 600.0
    loxodrome_segments: int = InteractionConstants.LOXODROME_SEGMENTS
    great_circle_samples_per_degree: float = InteractionConstants.GREAT_CIRCLE_SAMPLES_PER_DEGREE
    auto_fit_duration_ms: float = InteractionConstants.AUTO_FIT_DURATION_MS
    reset_duration_ms: float = InteractionConstants.RESET_DURATION_MS
    reveal_duration_ms: float = InteractionConstants.REVEAL_DURATION_MS
    marker_delay_ms: float = InteractionConstants.MARKER_DELAY_MS
    marker_fade_ms: float = InteractionConstants.MARKER_FADE_MS
    drag_sensitivity: float = InteractionConstants.DRAG_SENSITIVITY
    orthographic_zoom_extent: Tuple[float, float] = InteractionConstants.ORTHOGRAPHIC_ZOOM_EXTENT
    mercator_zoom_extent: Tuple[float, float] = InteractionConstants.MERCATOR_ZOOM_EXTENT
    basemap_source: str = DEFAULT_BASEMAP_URL
    request_timeout_s: float = 10.0

    def __post_init__(self):
        self.path_type = PathType(self.path_type)
        self.view_mode = ViewMode(self.view_mode)
        self.orthographic_zoom_extent = _as_extent(self.orthographic_zoom_extent)
        self.mercator_zoom_extent = _as_extent(self.mercator_zoom_extent)
        if self.loxodrome_segments < 1:
            raise ValueError(f"loxodrome_segments must be >= 1, got {self.loxodrome_segments}")
        if self.great_circle_samples_per_degree <= 0:
            raise ValueError("great_circle_samples_per_degree must be positive")

    @property
    def viewport(self) -> Viewport:
        return Viewport(self.width, self.height)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VisualizerConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "VisualizerConfig":
        with open(path) as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["path_type"] = self.path_type.value
        data["view_mode"] = self.view_mode.value
        data["orthographic_zoom_extent"] = list(self.orthographic_zoom_extent)
        data["mercator_zoom_extent"] = list(self.mercator_zoom_extent)
        return data

    def config_hash(self) -> str:
        """Truncated SHA-256 of the configuration, as recorded in the audit trail."""
        config_str = json.dumps(self.to_dict(), sort_keys=True, default=str)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]


def _as_extent(value) -> Tuple[float, float]:
    lo, hi = (float(v) for v in value)
    if not 0 < lo <= hi:
        raise ValueError(f"Invalid zoom extent {value}")
    return lo, hi
