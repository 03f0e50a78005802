"""
Rotation engine: quarter turns of one layer of the cube.

A turn moves the pieces of a layer with a 3D rotation matrix and hands
the colors of the four side faces around a fixed 4-cycle. Both are derived
from the same matrix, so a piece's stickers always follow its geometry.
"""

import math
from typing import Dict, Iterable

import numpy as np

from cubekit.core.base import (
    Axis, FACES, FACE_NORMALS, Move, Piece, CubeState, MalformedLayerError,
)
from cubekit.cube.resolver import face_from_normal


LAYER_EPSILON = 0.1
LAYER_SIZE = 9
# The middle slice shares its ninth cell with the hidden core
SLICE_SIZE = 8

# Positive turn: each face hands its color to the next face in the cycle
FACE_CYCLES: Dict[Axis, tuple] = {
    Axis.X: ("front", "top", "back", "bottom"),
    Axis.Y: ("front", "right", "back", "left"),
    Axis.Z: ("top", "right", "bottom", "left"),
}

# Right-handed sense of a positive turn about each axis, matching FACE_CYCLES
TURN_SENSE: Dict[Axis, int] = {
    Axis.X: -1,
    Axis.Y: 1,
    Axis.Z: -1,
}


def rotation_matrix(axis: Axis, angle: float) -> np.ndarray:
    """Right-handed rotation by `angle` radians about a coordinate axis."""
    c, s = math.cos(angle), math.sin(angle)
    axis = Axis.parse(axis)
    if axis == Axis.X:
        return np.array([
            [1, 0, 0],
            [0, c, -s],
            [0, s, c]
        ])
    if axis == Axis.Y:
        return np.array([
            [c, 0, s],
            [0, 1, 0],
            [-s, 0, c]
        ])
    return np.array([
        [c, -s, 0],
        [s, c, 0],
        [0, 0, 1]
    ])


def turn_angle(axis: Axis, direction: int) -> float:
    """Signed right-handed angle of a quarter turn."""
    return TURN_SENSE[Axis.parse(axis)] * direction * math.pi / 2


def _generate_quarter_turns() -> Dict[tuple, np.ndarray]:
    turns = {}
    for axis in Axis:
        for direction in (1, -1):
            matrix = rotation_matrix(axis, turn_angle(axis, direction))
            turns[(axis, direction)] = np.rint(matrix).astype(int)
    return turns


def _generate_face_permutations() -> Dict[tuple, Dict[str, str]]:
    permutations = {}
    for key, matrix in QUARTER_TURNS.items():
        permutations[key] = {
            face: face_from_normal(matrix @ np.array(FACE_NORMALS[face]))
            for face in FACES
        }
    return permutations


# Precomputed integer matrices and source-face -> destination-face maps
QUARTER_TURNS = _generate_quarter_turns()
FACE_PERMUTATIONS = _generate_face_permutations()


def expected_layer_size(layer: int) -> int:
    """Number of visible pieces a well-formed layer holds."""
    return SLICE_SIZE if layer == 0 else LAYER_SIZE


def quarter_turn_matrix(axis: Axis, direction: int) -> np.ndarray:
    """Integer matrix of a quarter turn."""
    return QUARTER_TURNS[(Axis.parse(axis), direction)]


def face_permutation(axis: Axis, direction: int) -> Dict[str, str]:
    """Where each face's color ends up after a quarter turn."""
    return FACE_PERMUTATIONS[(Axis.parse(axis), direction)]


def rotate_piece(piece: Piece, move: Move) -> Piece:
    """Rotate one piece's position and re-seat its colors."""
    matrix = rotation_matrix(move.axis, turn_angle(move.axis, move.direction))
    rotated = matrix @ np.asarray(piece.position, dtype=float)
    # Snap to the lattice to drop floating drift
    position = tuple(int(v) for v in np.rint(rotated))

    permutation = face_permutation(move.axis, move.direction)
    colors = {face: None for face in FACES}
    for source, destination in permutation.items():
        colors[destination] = piece.colors.get(source)

    return Piece(position=position, colors=colors)


def apply_move(state: CubeState, move: Move) -> CubeState:
    """
    Apply a quarter turn and return the new state.

    The input state is left untouched; every piece of the result is a fresh
    copy, in the same order as the input.

    Raises:
        MalformedLayerError: the layer does not hold 9 pieces (8 for a middle slice)
    """
    indices = state.layer_indices(move.axis, move.layer, LAYER_EPSILON)
    expected = expected_layer_size(move.layer)
    if len(indices) != expected:
        raise MalformedLayerError(move.axis, move.layer, len(indices), expected)

    selected = set(indices)
    pieces = [
        rotate_piece(piece, move) if i in selected else piece.copy()
        for i, piece in enumerate(state)
    ]
    return CubeState(pieces=pieces)


def apply_moves(state: CubeState, moves: Iterable[Move]) -> CubeState:
    """Apply a sequence of moves in order."""
    for move in moves:
        state = apply_move(state, move)
    return state
