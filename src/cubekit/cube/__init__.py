"""
Cube model for cubekit.

This package contains the puzzle logic:
- state: solved-cube construction and invariant checks
- resolver: position -> face/axis/layer lookups
- rotation: quarter-turn engine
- mapper: gesture-to-move state machine with the rotating gate
"""

from cubekit.cube.state import (
    initialize_cube_state,
    validate_state,
    color_counts,
    is_solved,
    to_render_records,
)
from cubekit.cube.resolver import (
    detect_face,
    face_axis,
    layer_of,
    face_normal,
    face_from_normal,
    closest_face,
)
from cubekit.cube.rotation import (
    FACE_CYCLES,
    apply_move,
    apply_moves,
    rotate_piece,
    rotation_matrix,
    quarter_turn_matrix,
    face_permutation,
)
from cubekit.cube.mapper import (
    GestureMapper,
    GestureResult,
    GestureStatus,
    drag_direction,
    snap_twist,
)

__all__ = [
    "initialize_cube_state",
    "validate_state",
    "color_counts",
    "is_solved",
    "to_render_records",
    "detect_face",
    "face_axis",
    "layer_of",
    "face_normal",
    "face_from_normal",
    "closest_face",
    "FACE_CYCLES",
    "apply_move",
    "apply_moves",
    "rotate_piece",
    "rotation_matrix",
    "quarter_turn_matrix",
    "face_permutation",
    "GestureMapper",
    "GestureResult",
    "GestureStatus",
    "drag_direction",
    "snap_twist",
]
