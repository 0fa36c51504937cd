"""
config.py — Runtime Configuration
==================================
Plain class-attribute config, loaded into Flask with
``app.config.from_object(Config)`` and overridable from the environment
(``TRAVERSAL_DEFAULT_SPEED=4`` etc.) via ``from_prefixed_env``.

The engine itself only reads the speed bounds and presets; everything
else is consumed by the HTTP layer in main.py.
"""

from typing import Dict


# ---------------------------------------------------------------------------
# Speed presets (steps per second — tick interval is 1 / speed)
# ---------------------------------------------------------------------------
SPEED_PRESETS: Dict[str, float] = {
    "slow":   1.0,    # teaching mode
    "medium": 2.5,
    "fast":   6.0,    # demo mode
    "turbo":  20.0,
}


class Config:
    DEFAULT_SPEED:     float = SPEED_PRESETS["medium"]
    MIN_SPEED:         float = 0.1
    MAX_SPEED:         float = 50.0
    DEFAULT_ALGORITHM: str   = "bfs"
    MAX_RUNS:          int   = 64          # live runs kept by the HTTP layer
    LOG_LEVEL:         str   = "INFO"
