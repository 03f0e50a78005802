"""
Cube environment: the orchestrator of a cubekit session.

Owns the CubeState, feeds tool calls into the gesture mapper, applies
committed Moves with the rotation engine and tells subscribers about them.
Presentation flags (selection highlight, grab, rotation progress) live in
a separate UIState and never touch the cube model.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

from PIL import Image

from cubekit.core.base import (
    Action, BaseClock, BaseEnvironment, CubeState, FACES, FACE_NORMALS,
    MapperState, Move, Observation, UIState,
)
from cubekit.core.config import Config
from cubekit.cube.mapper import GestureMapper, GestureResult, GestureStatus
from cubekit.cube.resolver import detect_face
from cubekit.cube.rotation import apply_move
from cubekit.cube.state import initialize_cube_state, is_solved, to_render_records, validate_state
from cubekit.utils.clock import MonotonicClock
from cubekit.utils.renderer import CubeRenderer


MoveListener = Callable[[Move, CubeState], None]


class CubeEnvironment(BaseEnvironment):
    """Tool-driven wrapper around the cube model and the gesture mapper."""

    def __init__(self, config: Optional[Config] = None,
                 clock: Optional[BaseClock] = None,
                 renderer: Optional[CubeRenderer] = None):
        self.config = config or Config()
        self.clock: BaseClock = clock or MonotonicClock()
        self.renderer = renderer or CubeRenderer(self.config.cube, self.config.render)

        timeout = self.config.input.rotation_timeout
        if timeout is None:
            timeout = self.config.mapper.rotation_timeout
        self.mapper = GestureMapper(
            self.config.mapper,
            clock=self.clock,
            on_commit=self._on_commit,
            rotation_timeout=timeout,
        )

        self.state: CubeState = initialize_cube_state(self.config.cube.palette)
        self.ui = UIState()
        self.step_count: int = 0
        self.move_count: int = 0
        self.last_move: Optional[Move] = None
        self._listeners: List[MoveListener] = []
        self._tool_handlers = {
            "select": self._tool_select,
            "rotate": self._tool_rotate,
            "drag": self._tool_drag,
            "release": self._tool_release,
            "progress": self._tool_progress,
            "cancel": self._tool_cancel,
            "complete": self._tool_complete,
            "turn_face": self._tool_turn_face,
            "apply_move": self._tool_apply_move,
            "state": self._tool_state,
        }

    # ------------------------------------------------------------------ #
    # BaseEnvironment API
    # ------------------------------------------------------------------ #
    def reset(self) -> Observation:
        """Back to the solved cube with nothing selected."""
        self.mapper.reset()
        self.state = initialize_cube_state(self.config.cube.palette)
        self.ui = UIState()
        self.step_count = 0
        self.move_count = 0
        self.last_move = None
        return self._create_observation()

    def step(self, action: Action) -> Observation:
        """Execute an action (tool call) and return the new observation."""
        self.step_count += 1
        tool_result = self.execute_tool_call(action.action_type, action.parameters)
        return self._create_observation(
            metadata={
                "tool_call": action.to_dict(),
                "tool_result": tool_result,
            }
        )

    def render(self, multi_view: bool = False) -> Image.Image:
        """Render the cube, highlighting the selected piece."""
        return self.renderer.render(
            self.render_records(),
            highlight=self.ui.selected_index,
            multi_view=multi_view or self.config.render.multi_view,
        )

    def get_tool_schemas(self) -> List[Dict[str, Any]]:
        """
        Describe every tool: name, description, argument schemas and the
        required argument names. The session REPL prints these for `tools`.
        """
        def build_schema(name: str, desc: str, properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
            return {
                "name": name,
                "description": desc,
                "parameters": properties,
                "required": required,
            }

        vector = {"type": "array", "items": {"type": "number"}, "minItems": 3, "maxItems": 3}
        face = {"type": "string", "enum": list(FACES)}
        direction = {"type": "integer", "enum": [1, -1]}

        return [
            build_schema(
                "select",
                "Select a piece (by index or centered position) and one of its faces. "
                "Without a face, the face of the outer shell the piece sits on is used.",
                {
                    "piece_index": {"type": "integer", "description": "Index of the piece (0-25)."},
                    "position": dict(vector, description="Piece position, coordinates in {-1, 0, 1}."),
                    "face": dict(face, description="Face label to grab."),
                    "origin": dict(vector, description="Manipulator position at grab time, for drags."),
                    "grab": {"type": "boolean", "description": "Mark the selection as a held grab."},
                },
                [],
            ),
            build_schema(
                "rotate",
                "Turn the layer of the selected face by a quarter turn.",
                {"direction": direction},
                ["direction"],
            ),
            build_schema(
                "drag",
                "Feed a manipulator position while holding a grab; turns once the movement passes the threshold.",
                {"position": vector},
                ["position"],
            ),
            build_schema(
                "release",
                "End a grab. A twist angle (radians) snapping to a non-zero quarter turn commits it.",
                {"twist": {"type": "number", "description": "Twist about the grabbed face axis, radians."}},
                [],
            ),
            build_schema(
                "progress",
                "Report visual rotation progress (0-1) of the current gesture.",
                {"value": {"type": "number", "minimum": 0, "maximum": 1}},
                ["value"],
            ),
            build_schema("cancel", "Drop the current selection without turning.", {}, []),
            build_schema("complete", "Signal that the visual turn animation finished.", {}, []),
            build_schema(
                "turn_face",
                "Turn the layer of a face: selects the face's center piece and turns it.",
                {"face": face, "direction": direction},
                ["face", "direction"],
            ),
            build_schema(
                "apply_move",
                "Apply an already-resolved move, as 'X,1,+1' or as axis/layer/direction.",
                {
                    "move": {"type": "string", "description": "Move in 'axis,layer,direction' form."},
                    "axis": {"type": "string", "enum": ["X", "Y", "Z"]},
                    "layer": {"type": "integer", "enum": [-1, 0, 1]},
                    "direction": direction,
                },
                [],
            ),
            build_schema("state", "Show the cube faces and the mapper state.", {}, []),
        ]

    def execute_tool_call(self, tool_name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Dispatch tool calls. Bad arguments come back as an error result."""
        handler = self._tool_handlers.get(tool_name)
        if not handler:
            return {"status": "error", "message": f"Unknown tool '{tool_name}'"}
        self.update()
        try:
            result = handler(**arguments)
        except (TypeError, ValueError) as exc:
            result = {"status": "error", "message": f"Tool '{tool_name}' failed: {exc}"}
        self._sync_ui()
        return result

    def close(self) -> None:
        """Drop listeners and any turn in flight."""
        self._listeners.clear()
        self.mapper.reset()

    # ------------------------------------------------------------------ #
    # Session API
    # ------------------------------------------------------------------ #
    def subscribe(self, listener: MoveListener) -> Callable[[], None]:
        """
        Call `listener(move, new_state)` after every committed move.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self) -> bool:
        """Let the rotating gate time out. Returns True if it just opened."""
        opened = self.mapper.update()
        if opened:
            self._sync_ui()
        return opened

    def render_records(self) -> List[Dict[str, Any]]:
        """Positions and resolved face colors of every piece, for a renderer."""
        return to_render_records(
            self.state,
            spacing=self.config.cube.piece_spacing,
            color_lookup=self.config.cube.hex_color,
        )

    def turn_face(self, face: str, direction: int) -> Dict[str, Any]:
        """Discrete (face, direction) command."""
        return self.execute_tool_call("turn_face", {"face": face, "direction": direction})

    def is_solved(self) -> bool:
        return is_solved(self.state)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _on_commit(self, move: Move) -> None:
        """Mapper commit callback: apply the move and notify listeners."""
        new_state = apply_move(self.state, move)
        if self.config.cube.validate_after_move:
            validate_state(new_state, self.config.cube.palette)
        self.state = new_state
        self.move_count += 1
        self.last_move = move
        for listener in list(self._listeners):
            listener(move, self.state)

    def _sync_ui(self) -> None:
        """Mirror the mapper into the UI flags."""
        mapper_state = self.mapper.state
        if mapper_state is MapperState.SELECTED:
            self.ui.selected_index = self.mapper.selection.piece_index
            self.ui.selected_face = self.mapper.selection.face
            self.ui.rotating_move = None
        elif mapper_state is MapperState.ROTATING:
            self.ui.clear_selection()
            self.ui.rotating_move = self.mapper.pending_move
        else:
            self.ui.clear_selection()
            self.ui.rotating_move = None

    def _resolve_piece(self, piece_index: Optional[int], position: Optional[Sequence[float]]) -> int:
        if piece_index is not None:
            piece_index = int(piece_index)
            if not 0 <= piece_index < len(self.state):
                raise ValueError(f"piece_index {piece_index} out of range 0-{len(self.state) - 1}")
            return piece_index
        if position is None:
            raise ValueError("Provide piece_index or position")
        if len(position) != 3:
            raise ValueError(f"position must have 3 coordinates, got {list(position)}")
        index = self.state.index_of(position)
        if index is None:
            raise ValueError(f"No piece at position {tuple(position)}")
        return index

    @staticmethod
    def _check_face(face: Any) -> str:
        if face not in FACES:
            raise ValueError(f"Unknown face '{face}', expected one of {', '.join(FACES)}")
        return face

    @staticmethod
    def _check_direction(direction: Any) -> int:
        if direction not in (1, -1):
            raise ValueError(f"direction must be +1 or -1, got {direction!r}")
        return int(direction)

    @staticmethod
    def _result(result: GestureResult) -> Dict[str, Any]:
        return result.to_dict()

    def _create_observation(self, metadata: Optional[Dict[str, Any]] = None) -> Observation:
        meta = {
            "move_count": self.move_count,
            "last_move": self.last_move.to_dict() if self.last_move else None,
            "is_solved": is_solved(self.state),
        }
        if metadata:
            meta.update(metadata)
        image = self.render() if self.config.render.render_on_step else None
        return Observation(
            state=self.state.copy(),
            ui=UIState(**vars(self.ui)),
            mapper_state=self.mapper.state,
            description=self._get_state_description(meta),
            step=self.step_count,
            image=image,
            metadata=meta,
        )

    def _get_state_description(self, metadata: Optional[Dict[str, Any]] = None) -> str:
        """Textual description of the session."""
        desc_lines = [
            f"Mapper: {self.mapper.state.value}",
            f"Moves: {self.move_count}" + (f" (last {self.last_move})" if self.last_move else ""),
        ]
        if self.mapper.selection is not None:
            piece = self.mapper.selection.piece
            desc_lines.append(f"Selected: {self.mapper.selection.face} face of piece at {piece.position}")
        if self.mapper.pending_move is not None:
            desc_lines.append(f"Rotating: {self.mapper.pending_move}")
        if metadata:
            tool_call = metadata.get("tool_call")
            tool_res = metadata.get("tool_result")
            if tool_call and tool_res:
                desc_lines.append(
                    f"Last tool: {tool_call.get('action_type')} with {tool_call.get('parameters')}, "
                    f"result: {tool_res.get('status')} - {tool_res.get('message')}"
                )
        if is_solved(self.state):
            desc_lines.append("Cube solved.")
        return "\n".join(desc_lines)

    # ------------------------------------------------------------------ #
    # Tool implementations
    # ------------------------------------------------------------------ #
    def _tool_select(self, piece_index: Optional[int] = None,
                     position: Optional[Sequence[float]] = None,
                     face: Optional[str] = None,
                     origin: Optional[Sequence[float]] = None,
                     grab: bool = False) -> Dict[str, Any]:
        index = self._resolve_piece(piece_index, position)
        piece = self.state[index]
        face = self._check_face(face) if face is not None else detect_face(piece.position)
        if origin is not None and len(origin) != 3:
            raise ValueError(f"origin must have 3 coordinates, got {list(origin)}")
        result = self.mapper.pick(index, piece, face, origin=origin)
        if result.status is GestureStatus.SELECTED:
            self.ui.grabbed = bool(grab)
            self.ui.rotation_progress = 0.0
        return self._result(result)

    def _tool_rotate(self, direction: int) -> Dict[str, Any]:
        return self._result(self.mapper.command(direction))

    def _tool_drag(self, position: Sequence[float]) -> Dict[str, Any]:
        if len(position) != 3:
            raise ValueError(f"position must have 3 coordinates, got {list(position)}")
        return self._result(self.mapper.track(position))

    def _tool_release(self, twist: Optional[float] = None) -> Dict[str, Any]:
        return self._result(self.mapper.release(float(twist) if twist is not None else None))

    def _tool_progress(self, value: float) -> Dict[str, Any]:
        if self.mapper.state is not MapperState.SELECTED:
            return {"status": "ignored", "message": "No gesture in progress"}
        value = float(value)
        self.ui.rotation_progress = min(max(value, 0.0), 1.0)
        return {"status": "success", "message": f"Rotation progress {self.ui.rotation_progress:.2f}"}

    def _tool_cancel(self) -> Dict[str, Any]:
        return self._result(self.mapper.cancel())

    def _tool_complete(self) -> Dict[str, Any]:
        return self._result(self.mapper.complete())

    def _tool_turn_face(self, face: str, direction: int) -> Dict[str, Any]:
        face = self._check_face(face)
        if self.mapper.is_rotating():
            return self._result(self.mapper.command(direction))
        direction = self._check_direction(direction)
        index = self.state.index_of(FACE_NORMALS[face])
        picked = self.mapper.pick(index, self.state[index], face)
        if picked.status is not GestureStatus.SELECTED:
            return self._result(picked)
        return self._result(self.mapper.command(direction))

    def _tool_apply_move(self, move: Optional[str] = None, axis: Any = None,
                         layer: Optional[int] = None, direction: Optional[int] = None) -> Dict[str, Any]:
        if move is not None:
            parsed = Move.from_string(move)
        elif axis is not None and layer is not None and direction is not None:
            parsed = Move(axis, layer, direction)
        else:
            raise ValueError("Provide 'move' or all of axis, layer and direction")
        return self._result(self.mapper.submit(parsed))

    def _tool_state(self) -> Dict[str, Any]:
        faces = {}
        for face, normal in FACE_NORMALS.items():
            axis = next(i for i, c in enumerate(normal) if c != 0)
            faces[face] = [
                piece.colors.get(face)
                for piece in self.state
                if piece.position[axis] == normal[axis]
            ]
        return {
            "status": "success",
            "message": self._get_state_description(),
            "mapper_state": self.mapper.state.value,
            "faces": faces,
            "move_count": self.move_count,
            "is_solved": is_solved(self.state),
        }
