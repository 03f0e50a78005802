"""
Base classes and interfaces for the cubekit puzzle core.

This module defines the data model shared by every component (axes, faces,
pieces, cube states, moves, selections), the invariant errors raised when a
cube stops being consistent, and the abstract interfaces for environments,
input adapters and clocks.
"""

from __future__ import annotations
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, TYPE_CHECKING
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from abc import ABC, abstractmethod
from PIL import Image
if TYPE_CHECKING:
    from cubekit.core.config import InputConfig


class Axis(IntEnum):
    """Rotation axes. The value indexes a position tuple."""
    X = 0
    Y = 1
    Z = 2

    @classmethod
    def parse(cls, value: Any) -> "Axis":
        """Accept an Axis, its index or its name ('x', 'Y', ...)."""
        if isinstance(value, Axis):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown axis '{value}', expected one of X, Y, Z")
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise ValueError(f"Unknown axis {value!r}, expected 0, 1 or 2")


# Canonical face ordering used for iteration and serialization
FACES: Tuple[str, ...] = ("front", "back", "top", "bottom", "right", "left")

# Outward unit normal of every face
FACE_NORMALS: Dict[str, Tuple[int, int, int]] = {
    "right": (1, 0, 0),
    "left": (-1, 0, 0),
    "top": (0, 1, 0),
    "bottom": (0, -1, 0),
    "front": (0, 0, 1),
    "back": (0, 0, -1),
}

# Solved-cube color of every face
CANONICAL_PALETTE: Dict[str, str] = {
    "right": "red",
    "left": "orange",
    "top": "white",
    "bottom": "yellow",
    "front": "blue",
    "back": "green",
}

Position = Tuple[int, int, int]


# --------------------------------------------------------------------------- #
# Errors
# --------------------------------------------------------------------------- #
class CubeInvariantError(RuntimeError):
    """A cube state is no longer consistent. Indicates a logic bug."""


class MalformedLayerError(CubeInvariantError):
    """A layer selection did not yield the expected number of pieces."""

    def __init__(self, axis: Axis, layer: float, count: int, expected: int = 9):
        self.axis = axis
        self.layer = layer
        self.count = count
        self.expected = expected
        super().__init__(
            f"Layer {Axis(axis).name}={layer} selected {count} pieces, expected {expected}"
        )


class CardinalityError(CubeInvariantError):
    """A cube state does not hold exactly 26 pieces."""


class DuplicatePositionError(CubeInvariantError):
    """Two pieces share the same position."""


class ColorConservationError(CubeInvariantError):
    """The sticker count of some color drifted away from 9."""


class ExteriorColorError(CubeInvariantError):
    """A piece has a colored interior face or an uncolored exterior face."""


class UnknownFaceError(ValueError):
    """A face label outside front/back/top/bottom/right/left was used."""

    def __init__(self, face: Any):
        self.face = face
        super().__init__(f"Unknown face '{face}', expected one of {', '.join(FACES)}")


# --------------------------------------------------------------------------- #
# Data model
# --------------------------------------------------------------------------- #
@dataclass
class Piece:
    """One visible unit cube of the puzzle."""
    position: Position
    colors: Dict[str, Optional[str]]

    def copy(self) -> "Piece":
        return Piece(position=tuple(self.position), colors=dict(self.colors))

    def stickers(self) -> Dict[str, str]:
        """Faces that carry a color."""
        return {face: color for face, color in self.colors.items() if color is not None}

    def to_dict(self) -> Dict[str, Any]:
        """Convert piece to dictionary representation."""
        return {
            "position": list(self.position),
            "colors": {face: self.colors.get(face) for face in FACES},
        }


@dataclass
class CubeState:
    """Ordered collection of the 26 visible pieces."""
    pieces: List[Piece] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.pieces)

    def __iter__(self) -> Iterator[Piece]:
        return iter(self.pieces)

    def __getitem__(self, index: int) -> Piece:
        return self.pieces[index]

    def copy(self) -> "CubeState":
        return CubeState(pieces=[piece.copy() for piece in self.pieces])

    def positions(self) -> List[Position]:
        return [piece.position for piece in self.pieces]

    def index_of(self, position: Sequence[float], epsilon: float = 0.1) -> Optional[int]:
        """Index of the piece at `position`, or None."""
        for i, piece in enumerate(self.pieces):
            if all(abs(piece.position[k] - position[k]) < epsilon for k in range(3)):
                return i
        return None

    def piece_at(self, position: Sequence[float]) -> Optional[Piece]:
        index = self.index_of(position)
        return self.pieces[index] if index is not None else None

    def layer_indices(self, axis: Axis, layer: float, epsilon: float = 0.1) -> List[int]:
        """Indices of the pieces whose coordinate along `axis` equals `layer`."""
        return [
            i for i, piece in enumerate(self.pieces)
            if abs(piece.position[axis] - layer) < epsilon
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Convert cube state to dictionary representation."""
        return {"pieces": [piece.to_dict() for piece in self.pieces]}


@dataclass(frozen=True)
class Move:
    """A quarter turn of one layer."""
    axis: Axis
    layer: int
    direction: int

    def __post_init__(self):
        object.__setattr__(self, "axis", Axis.parse(self.axis))
        if self.layer not in (-1, 0, 1):
            raise ValueError(f"layer must be -1, 0 or 1, got {self.layer}")
        if self.direction not in (1, -1):
            raise ValueError(f"direction must be +1 or -1, got {self.direction}")
        object.__setattr__(self, "layer", int(self.layer))
        object.__setattr__(self, "direction", int(self.direction))

    def inverse(self) -> "Move":
        return Move(self.axis, self.layer, -self.direction)

    def to_dict(self) -> Dict[str, Any]:
        """Convert move to dictionary representation."""
        return {"axis": self.axis.name, "layer": self.layer, "direction": self.direction}

    def __str__(self) -> str:
        return f"{self.axis.name},{self.layer},{self.direction:+d}"

    @classmethod
    def from_string(cls, text: str) -> "Move":
        """Parse the 'X,1,+1' form."""
        parts = [p.strip() for p in text.split(",")]
        if len(parts) != 3:
            raise ValueError(f"Invalid move '{text}'. Use: axis,layer,direction (e.g. X,1,+1)")
        try:
            layer = int(parts[1])
            direction = int(parts[2])
        except ValueError:
            raise ValueError(f"Invalid move '{text}'. Layer and direction must be integers")
        return cls(Axis.parse(parts[0]), layer, direction)


@dataclass
class GestureSelection:
    """The piece/face currently being interacted with."""
    piece_index: int
    piece: Piece
    face: str
    origin: Optional[Tuple[float, float, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "piece_index": self.piece_index,
            "position": list(self.piece.position),
            "face": self.face,
            "origin": list(self.origin) if self.origin is not None else None,
        }


class MapperState(Enum):
    """States of the gesture-to-move mapper."""
    IDLE = "idle"
    SELECTED = "selected"
    ROTATING = "rotating"


@dataclass
class UIState:
    """Presentation-only flags, kept apart from the cube model."""
    selected_index: Optional[int] = None
    selected_face: Optional[str] = None
    grabbed: bool = False
    rotation_progress: float = 0.0
    rotating_move: Optional[Move] = None

    def clear_selection(self) -> None:
        self.selected_index = None
        self.selected_face = None
        self.grabbed = False
        self.rotation_progress = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selected_index": self.selected_index,
            "selected_face": self.selected_face,
            "grabbed": self.grabbed,
            "rotation_progress": self.rotation_progress,
            "rotating_move": self.rotating_move.to_dict() if self.rotating_move else None,
        }


@dataclass
class Action:
    """A tool call to be executed in the environment."""
    action_type: str
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert action to dictionary representation."""
        return {
            "action_type": self.action_type,
            "parameters": self.parameters,
        }


@dataclass
class InputEvent:
    """A raw event from the host input layer (click, key, grab, pinch...)."""
    event_type: str
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"event_type": self.event_type, "parameters": self.parameters}


@dataclass
class Observation:
    """What the environment reports after every step."""
    state: CubeState
    ui: UIState
    mapper_state: MapperState
    description: str
    step: int = 0
    image: Optional[Image.Image] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert observation to dictionary (excluding images)."""
        return {
            "step": self.step,
            "state": self.state.to_dict(),
            "ui": self.ui.to_dict(),
            "mapper_state": self.mapper_state.value,
            "description": self.description,
            "metadata": self.metadata,
        }


# --------------------------------------------------------------------------- #
# Interfaces
# --------------------------------------------------------------------------- #
class BaseClock(ABC):
    """Time source for the rotating-state timeout."""

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds."""
        pass


class BaseEnvironment(ABC):
    """Base class for puzzle environments."""

    @abstractmethod
    def reset(self) -> Observation:
        """Reset environment to initial state."""
        pass

    @abstractmethod
    def step(self, action: Action) -> Observation:
        """Execute action and return new observation."""
        pass

    @abstractmethod
    def render(self, multi_view: bool = False) -> Image.Image:
        """Render the current environment state."""
        pass

    @abstractmethod
    def get_tool_schemas(self) -> List[Dict[str, Any]]:
        """Describe the tools the environment exposes and their arguments."""
        pass

    @abstractmethod
    def execute_tool_call(self, tool_name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Execute a tool call."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Clean up environment resources."""
        pass


class BaseInputAdapter(ABC):
    """Translates host input events into environment tool calls."""

    def __init__(self, config: InputConfig):
        self.config: InputConfig = config

    @abstractmethod
    def supported_events(self) -> List[str]:
        """Event types this adapter understands."""
        pass

    @abstractmethod
    def translate(self, event: InputEvent) -> List[Action]:
        """
        Turn one input event into zero or more actions.

        Unknown or unbound events translate to an empty list.
        """
        pass

    def reset(self) -> None:
        """Drop any per-gesture bookkeeping."""
        pass

    def feed(self, environment: BaseEnvironment, event: InputEvent) -> List[Observation]:
        """Translate `event` and execute the resulting actions in order."""
        return [environment.step(action) for action in self.translate(event)]
