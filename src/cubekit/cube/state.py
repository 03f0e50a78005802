"""
Cube state store: the solved configuration and the invariant checks.
"""

from collections import Counter
from typing import Dict, List, Optional

from cubekit.core.base import (
    Axis, FACES, FACE_NORMALS, CANONICAL_PALETTE, Piece, CubeState,
    CardinalityError, DuplicatePositionError, ColorConservationError, ExteriorColorError,
)


CUBE_DIMENSIONS = 3  # 3x3x3 cube
PIECE_COUNT = 26
STICKERS_PER_COLOR = 9


def initialize_cube_state(palette: Optional[Dict[str, str]] = None) -> CubeState:
    """
    Build the solved cube.

    Every lattice cell of {0,1,2}^3 except the fully interior one becomes a
    piece, centered by subtracting (3-1)/2. A face is colored only when it
    lies on the puzzle's outer boundary.

    Args:
        palette: face label -> color, defaults to CANONICAL_PALETTE

    Returns:
        The solved CubeState (26 pieces, x outer loop, z inner loop)
    """
    palette = palette or CANONICAL_PALETTE
    last = CUBE_DIMENSIONS - 1
    offset = last // 2

    pieces: List[Piece] = []
    for x in range(CUBE_DIMENSIONS):
        for y in range(CUBE_DIMENSIONS):
            for z in range(CUBE_DIMENSIONS):
                # Skip internal pieces (not visible)
                if 0 < x < last and 0 < y < last and 0 < z < last:
                    continue

                colors = {
                    "right": palette["right"] if x == last else None,
                    "left": palette["left"] if x == 0 else None,
                    "top": palette["top"] if y == last else None,
                    "bottom": palette["bottom"] if y == 0 else None,
                    "front": palette["front"] if z == last else None,
                    "back": palette["back"] if z == 0 else None,
                }
                pieces.append(Piece(position=(x - offset, y - offset, z - offset), colors=colors))

    return CubeState(pieces=pieces)


def color_counts(state: CubeState) -> Dict[str, int]:
    """Number of stickers of each color across all pieces."""
    counts: Counter = Counter()
    for piece in state:
        counts.update(piece.stickers().values())
    return dict(counts)


def is_exterior(position, face: str) -> bool:
    """Whether `face` of a piece at `position` points out of the puzzle."""
    normal = FACE_NORMALS[face]
    for axis in Axis:
        if normal[axis] != 0:
            return position[axis] == normal[axis]
    return False


def validate_state(state: CubeState, palette: Optional[Dict[str, str]] = None) -> None:
    """
    Check every cube invariant, raising on the first violation.

    Raises:
        CardinalityError: not exactly 26 pieces
        DuplicatePositionError: two pieces share a position
        ExteriorColorError: a face is colored iff it is not on the exterior
        ColorConservationError: some color does not appear exactly 9 times
    """
    if len(state) != PIECE_COUNT:
        raise CardinalityError(f"Cube holds {len(state)} pieces, expected {PIECE_COUNT}")

    seen = set()
    for piece in state:
        if piece.position in seen:
            raise DuplicatePositionError(f"Two pieces share position {piece.position}")
        seen.add(piece.position)

    for piece in state:
        for face in FACES:
            colored = piece.colors.get(face) is not None
            if colored != is_exterior(piece.position, face):
                side = "Interior" if colored else "Exterior"
                state_word = "colored" if colored else "uncolored"
                raise ExteriorColorError(
                    f"{side} face '{face}' of piece at {piece.position} is {state_word}"
                )

    palette = palette or CANONICAL_PALETTE
    counts = color_counts(state)
    expected = {color: STICKERS_PER_COLOR for color in palette.values()}
    if counts != expected:
        raise ColorConservationError(f"Sticker counts {counts} differ from {expected}")


def is_solved(state: CubeState) -> bool:
    """True when each outer face of the puzzle shows a single color."""
    for face, normal in FACE_NORMALS.items():
        axis = next(a for a in Axis if normal[a] != 0)
        colors = {
            piece.colors.get(face)
            for piece in state
            if piece.position[axis] == normal[axis]
        }
        if len(colors) != 1 or None in colors:
            return False
    return True


def to_render_records(state: CubeState, spacing: float = 1.0, color_lookup=None) -> List[Dict]:
    """
    Flatten a state into (position, per-face color) records for a renderer.

    Args:
        state: cube state to flatten
        spacing: distance between piece centers in scene units
        color_lookup: optional callable mapping a color (or None) to a drawable value

    Returns:
        One dict per piece with 'index', 'position' and 'colors'
    """
    records = []
    for index, piece in enumerate(state):
        colors = {face: piece.colors.get(face) for face in FACES}
        if color_lookup is not None:
            colors = {face: color_lookup(color) for face, color in colors.items()}
        records.append({
            "index": index,
            "position": tuple(float(c) * spacing for c in piece.position),
            "colors": colors,
        })
    return records
