"""Utility modules for cubekit."""

from cubekit.utils.clock import MonotonicClock, ManualClock
from cubekit.utils.logger import SessionLogger
from cubekit.utils.display import StatusDisplay, LiveLogger
from cubekit.utils.renderer import CubeRenderer, save_image

__all__ = [
    "MonotonicClock",
    "ManualClock",
    "SessionLogger",
    "StatusDisplay",
    "LiveLogger",
    "CubeRenderer",
    "save_image",
]
