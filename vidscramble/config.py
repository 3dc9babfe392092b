"""
Runtime configuration
- Module-level defaults shared by the GUI, the web app and the pipeline
- A few of them can be overridden from the environment
"""

import os
from dataclasses import dataclass

from vidscramble.frame_transform import Direction
from vidscramble.keys import status_line


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


# ── Pipeline ──────────────────────────────────────────────────────────────────
TICK_INTERVAL = _env_float('VIDSCRAMBLE_TICK_MS', 33.0) / 1000.0   # ~30 fps
MAX_CONSECUTIVE_READ_ERRORS = 30

# ── Output sink ───────────────────────────────────────────────────────────────
# Output rate is fixed regardless of the source rate.
OUTPUT_FPS = _env_float('VIDSCRAMBLE_OUTPUT_FPS', 30.0)
OUTPUT_FOURCC = os.environ.get('VIDSCRAMBLE_FOURCC', 'MJPG')

# ── Defaults for the control surface ──────────────────────────────────────────
DEFAULT_INPUT = 'video.mp4'
DEFAULT_OUTPUT = 'output.avi'
DEFAULT_KEY = 12345
DISPLAY_MAX_WIDTH = 480


@dataclass
class RunConfig:
    input_path: str = DEFAULT_INPUT
    output_path: str = DEFAULT_OUTPUT
    key: int = DEFAULT_KEY
    direction: Direction = Direction.FORWARD

    def status_line(self) -> str:
        return status_line(self.key, self.direction, self.output_path)
