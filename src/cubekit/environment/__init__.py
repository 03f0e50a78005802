"""
Environment implementations for cubekit.

This package contains the session orchestrator:
- CubeEnvironment: owns the cube state, routes tool calls through the
  gesture mapper and applies committed moves
"""

from cubekit.environment.cube_env import CubeEnvironment

__all__ = [
    "CubeEnvironment",
]
