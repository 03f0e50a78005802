"""
Face/layer resolver: pure lookups from positions to faces, axes and layers.
"""

from typing import Sequence

import numpy as np

from cubekit.core.base import Axis, FACES, FACE_NORMALS, UnknownFaceError


FACE_AXES = {
    "right": Axis.X,
    "left": Axis.X,
    "top": Axis.Y,
    "bottom": Axis.Y,
    "front": Axis.Z,
    "back": Axis.Z,
}

# (positive label, negative label) per axis
AXIS_FACES = {
    Axis.X: ("right", "left"),
    Axis.Y: ("top", "bottom"),
    Axis.Z: ("front", "back"),
}


def detect_face(position: Sequence[float]) -> str:
    """
    Face of the outer shell a piece sits on.

    The axis with the largest absolute coordinate wins, ties broken X > Y > Z;
    the sign of that coordinate picks the label.
    """
    x, y, z = position
    abs_x, abs_y, abs_z = abs(x), abs(y), abs(z)

    if abs_x >= abs_y and abs_x >= abs_z:
        return "right" if x > 0 else "left"
    elif abs_y >= abs_x and abs_y >= abs_z:
        return "top" if y > 0 else "bottom"
    else:
        return "front" if z > 0 else "back"


def face_axis(face: str) -> Axis:
    """Axis a face is perpendicular to."""
    try:
        return FACE_AXES[face]
    except (KeyError, TypeError):
        raise UnknownFaceError(face)


def layer_of(position: Sequence[float], axis: Axis) -> float:
    """Coordinate of `position` along `axis`; selects one rotating layer."""
    return position[Axis.parse(axis)]


def face_normal(face: str) -> np.ndarray:
    """Outward unit normal of a face."""
    if face not in FACE_NORMALS:
        raise UnknownFaceError(face)
    return np.array(FACE_NORMALS[face], dtype=int)


def face_from_normal(normal: Sequence[float]) -> str:
    """Face whose outward normal is `normal` (must be axis-aligned)."""
    key = tuple(int(round(c)) for c in normal)
    for face, face_vec in FACE_NORMALS.items():
        if face_vec == key:
            return face
    raise ValueError(f"{tuple(normal)} is not an axis-aligned unit normal")


def closest_face(piece_position: Sequence[float], probe_position: Sequence[float]) -> str:
    """
    Face of a piece that points most directly at a probe (e.g. a controller grip).

    Falls back to detect_face when the probe sits on the piece center.
    """
    direction = np.asarray(probe_position, dtype=float) - np.asarray(piece_position, dtype=float)
    length = np.linalg.norm(direction)
    if length < 1e-9:
        return detect_face(piece_position)
    direction /= length

    best_face = FACES[0]
    best_dot = -np.inf
    for face in FACES:
        dot = float(np.dot(FACE_NORMALS[face], direction))
        if dot > best_dot:
            best_face, best_dot = face, dot
    return best_face
