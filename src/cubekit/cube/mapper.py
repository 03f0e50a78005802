"""
Gesture-to-move mapper.

Turns a resolved interaction signal into a Move and guards against
overlapping turns. Three states:

    IDLE      nothing selected
    SELECTED  a piece/face is picked, waiting for a direction
    ROTATING  a Move was committed; its visual completion is pending

Every input received while ROTATING is ignored. The gate opens again on
complete() or once `rotation_timeout` seconds have passed on the clock.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Sequence

import numpy as np

from cubekit.core.base import (
    Axis, BaseClock, GestureSelection, MapperState, Move, Piece,
)
from cubekit.core.config import MapperConfig
from cubekit.cube.resolver import face_axis, layer_of
from cubekit.utils.clock import MonotonicClock


class GestureStatus(Enum):
    """Outcome of feeding one input to the mapper."""
    SELECTED = "selected"
    PENDING = "pending"
    COMMITTED = "committed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    IGNORED = "ignored"
    NO_SELECTION = "no_selection"


@dataclass
class GestureResult:
    """What happened to an input."""
    status: GestureStatus
    move: Optional[Move] = None
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "move": self.move.to_dict() if self.move else None,
            "message": self.message,
        }


# Drag axes per rotation axis, primary first. Dragging along the secondary
# axis turns the opposite way.
DRAG_AXES = {
    Axis.X: (Axis.Y, Axis.Z),
    Axis.Y: (Axis.X, Axis.Z),
    Axis.Z: (Axis.X, Axis.Y),
}

QUARTER_TURN = math.pi / 2


def drag_direction(axis: Axis, displacement: Sequence[float], threshold: float) -> Optional[int]:
    """
    Turn direction for a drag, or None while it is below `threshold`.

    The displacement is projected onto the two axes orthogonal to `axis`
    and the dominant component decides. Best-effort: the sign convention
    is a fixed per-axis table, not derived from where the face was grabbed.
    """
    primary, secondary = DRAG_AXES[Axis.parse(axis)]
    along_primary = float(displacement[primary])
    along_secondary = float(displacement[secondary])

    if max(abs(along_primary), abs(along_secondary)) < threshold:
        return None
    if abs(along_primary) >= abs(along_secondary):
        return 1 if along_primary > 0 else -1
    return -1 if along_secondary > 0 else 1


def snap_twist(angle: float, tolerance: float) -> Optional[int]:
    """Snap a twist angle (radians) to the nearest quarter turn; None if that is zero."""
    snapped = round(angle / QUARTER_TURN) * QUARTER_TURN
    if abs(snapped) <= tolerance:
        return None
    return 1 if snapped > 0 else -1


class GestureMapper:
    """State machine from pick/drag/command/release inputs to Moves."""

    def __init__(self, config: MapperConfig,
                 clock: Optional[BaseClock] = None,
                 on_commit: Optional[Callable[[Move], None]] = None,
                 rotation_timeout: Optional[float] = None):
        self.config = config
        self.clock: BaseClock = clock or MonotonicClock()
        self.on_commit = on_commit
        self.rotation_timeout: float = (
            rotation_timeout if rotation_timeout is not None else config.rotation_timeout
        )
        self._state = MapperState.IDLE
        self.selection: Optional[GestureSelection] = None
        self.pending_move: Optional[Move] = None
        self._committed_at: Optional[float] = None

    @property
    def state(self) -> MapperState:
        return self._state

    # ------------------------------------------------------------------ #
    # Gate
    # ------------------------------------------------------------------ #
    def update(self) -> bool:
        """Release the rotating gate if the timeout has elapsed. Returns True if it did."""
        if self._state is not MapperState.ROTATING or self._committed_at is None:
            return False
        if self.clock.now() - self._committed_at >= self.rotation_timeout:
            self._finish_rotation()
            return True
        return False

    def is_rotating(self) -> bool:
        self.update()
        return self._state is MapperState.ROTATING

    def complete(self) -> GestureResult:
        """Signal that the visual turn finished."""
        if self._state is not MapperState.ROTATING:
            return GestureResult(GestureStatus.IGNORED, message="No turn in progress")
        move = self.pending_move
        self._finish_rotation()
        return GestureResult(GestureStatus.COMPLETED, move=move, message=f"Turn {move} completed")

    def _finish_rotation(self) -> None:
        self._state = MapperState.IDLE
        self.pending_move = None
        self._committed_at = None
        self.selection = None

    def _ignored(self) -> GestureResult:
        return GestureResult(
            GestureStatus.IGNORED,
            move=self.pending_move,
            message=f"Turn {self.pending_move} still in progress",
        )

    # ------------------------------------------------------------------ #
    # Inputs
    # ------------------------------------------------------------------ #
    def pick(self, piece_index: int, piece: Piece, face: str,
             origin: Optional[Sequence[float]] = None) -> GestureResult:
        """Select a piece and face. A new pick replaces the current selection."""
        if self.is_rotating():
            return self._ignored()
        face_axis(face)
        self.selection = GestureSelection(
            piece_index=piece_index,
            piece=piece,
            face=face,
            origin=tuple(float(c) for c in origin) if origin is not None else None,
        )
        self._state = MapperState.SELECTED
        return GestureResult(
            GestureStatus.SELECTED,
            message=f"Selected {face} face of piece at {piece.position}",
        )

    def command(self, direction: int) -> GestureResult:
        """Discrete direction command (arrow key, explicit +1/-1)."""
        if self.is_rotating():
            return self._ignored()
        if direction not in (1, -1):
            raise ValueError(f"direction must be +1 or -1, got {direction}")
        if self._state is not MapperState.SELECTED:
            return GestureResult(GestureStatus.NO_SELECTION, message="Nothing selected")
        return self._commit(self.move_for(direction))

    def track(self, position: Sequence[float]) -> GestureResult:
        """
        Feed a manipulator position sample during a grab.

        The first sample of a grab without an origin becomes the origin.
        """
        if self.is_rotating():
            return self._ignored()
        if self._state is not MapperState.SELECTED:
            return GestureResult(GestureStatus.NO_SELECTION, message="Nothing grabbed")

        current = np.asarray(position, dtype=float)
        if self.selection.origin is None:
            self.selection.origin = tuple(float(c) for c in current)
            return GestureResult(GestureStatus.PENDING, message="Drag origin recorded")

        displacement = current - np.asarray(self.selection.origin, dtype=float)
        axis = face_axis(self.selection.face)
        direction = drag_direction(axis, displacement, self.config.movement_threshold)
        if direction is None:
            return GestureResult(GestureStatus.PENDING, message="Movement below threshold")
        return self._commit(self.move_for(direction))

    def release(self, twist: Optional[float] = None) -> GestureResult:
        """
        End a grab. With a twist angle, a non-zero quarter-turn snap commits;
        otherwise the selection is cancelled.
        """
        if self.is_rotating():
            return self._ignored()
        if self._state is not MapperState.SELECTED:
            return GestureResult(GestureStatus.NO_SELECTION, message="Nothing grabbed")
        if twist is not None:
            direction = snap_twist(twist, self.config.twist_snap_tolerance)
            if direction is not None:
                return self._commit(self.move_for(direction))
        self.selection = None
        self._state = MapperState.IDLE
        return GestureResult(GestureStatus.CANCELLED, message="Released without a turn")

    def cancel(self) -> GestureResult:
        """Drop the selection without turning."""
        if self.is_rotating():
            return self._ignored()
        if self._state is not MapperState.SELECTED:
            return GestureResult(GestureStatus.NO_SELECTION, message="Nothing selected")
        self.selection = None
        self._state = MapperState.IDLE
        return GestureResult(GestureStatus.CANCELLED, message="Selection cancelled")

    def submit(self, move: Move) -> GestureResult:
        """Commit an already-resolved Move, still honouring the gate."""
        if self.is_rotating():
            return self._ignored()
        return self._commit(move)

    def reset(self) -> None:
        """Back to IDLE, dropping any selection or turn in flight."""
        self._finish_rotation()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def move_for(self, direction: int) -> Move:
        """Move implied by the current selection and a direction."""
        axis = face_axis(self.selection.face)
        layer = layer_of(self.selection.piece.position, axis)
        return Move(axis, int(round(layer)), direction)

    def _commit(self, move: Move) -> GestureResult:
        self._state = MapperState.ROTATING
        self.pending_move = move
        self._committed_at = self.clock.now()
        self.selection = None
        if self.on_commit is not None:
            try:
                self.on_commit(move)
            except Exception:
                self._finish_rotation()
                raise
        return GestureResult(GestureStatus.COMMITTED, move=move, message=f"Turn {move} committed")
