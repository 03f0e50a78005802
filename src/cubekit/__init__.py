"""
cubekit: Rubik's cube state model, rotation engine and gesture-to-move mapper

A 3x3x3 cube kept geometrically and chromatically consistent under any
number of quarter turns, with swappable input adapters (desktop click +
arrow keys, controller grab + drag, hand pinch + twist) that resolve
gestures into discrete moves.

Example Usage:
```python
from cubekit import CubeEnvironment, Action

env = CubeEnvironment()
env.reset()
env.step(Action("select", {"position": [1, 1, 1], "face": "right"}))
obs = env.step(Action("rotate", {"direction": 1}))
print(obs.description)
```

Command-line Usage:
```bash
cubekit play
cubekit apply --moves "X,1,+1 Y,-1,-1" --render cube.png
cubekit validate-config config.yaml
```
"""

# Normal imports instead of lazy loading to ensure proper registry initialization
from cubekit.core.base import Action, Axis, CubeState, InputEvent, Move, Piece
from cubekit.core.config import Config, load_config, validate_config
from cubekit.cube import apply_move, apply_moves, initialize_cube_state, validate_state, GestureMapper
import cubekit.inputs
from cubekit.environment import CubeEnvironment

__version__ = "0.1.0"

__all__ = [
    "Action",
    "Axis",
    "CubeState",
    "InputEvent",
    "Move",
    "Piece",
    "Config",
    "load_config",
    "validate_config",
    "apply_move",
    "apply_moves",
    "initialize_cube_state",
    "validate_state",
    "GestureMapper",
    "CubeEnvironment",
]
