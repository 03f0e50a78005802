"""
Hand-tracking input: pinch a piece, twist the wrist, let go.

Orientations are unit quaternions in (x, y, z, w) order. The twist is the
rotation of the hand since the pinch, measured about the grabbed face's
axis; on release it snaps to the nearest quarter turn.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from cubekit.core.base import Action, BaseInputAdapter, InputEvent
from cubekit.core.config import InputConfig
from cubekit.core.registry import register_input, register_input_config
from cubekit.cube.resolver import detect_face, face_axis
from cubekit.cube.rotation import TURN_SENSE


def normalize_quaternion(q: Sequence[float]) -> np.ndarray:
    q = np.asarray(q, dtype=float)
    if q.shape != (4,):
        raise ValueError(f"Quaternion must have 4 components (x, y, z, w), got {list(q)}")
    norm = np.linalg.norm(q)
    if norm < 1e-12:
        raise ValueError("Quaternion has zero length")
    return q / norm


def quaternion_multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Hamilton product a * b, (x, y, z, w) order."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return np.array([
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    ])


def quaternion_conjugate(q: np.ndarray) -> np.ndarray:
    return np.array([-q[0], -q[1], -q[2], q[3]])


def twist_angle(start: Sequence[float], end: Sequence[float], axis: Sequence[float]) -> float:
    """
    Signed right-handed rotation (radians, in (-pi, pi]) about `axis`
    taking orientation `start` to `end`.
    """
    q_rel = quaternion_multiply(normalize_quaternion(end), quaternion_conjugate(normalize_quaternion(start)))
    # q and -q are the same rotation; take the short way round
    if q_rel[3] < 0:
        q_rel = -q_rel
    axis = np.asarray(axis, dtype=float)
    axis = axis / np.linalg.norm(axis)
    return 2.0 * math.atan2(float(np.dot(q_rel[:3], axis)), float(q_rel[3]))


@register_input_config("hand")
@dataclass
class HandInputConfig(InputConfig):
    """Hand-tracking input."""
    type: str = "hand"


@register_input("hand")
class HandInputAdapter(BaseInputAdapter):
    """
    Events:
        pinch    {position: piece position, orientation: [x, y, z, w]}, optional {face}
        pose     {orientation: [x, y, z, w]}
        unpinch  {orientation: [x, y, z, w]} (orientation optional)
    """

    def __init__(self, config: HandInputConfig):
        super().__init__(config)
        self.face: Optional[str] = None
        self.start_orientation: Optional[np.ndarray] = None
        self.last_orientation: Optional[np.ndarray] = None

    def supported_events(self) -> List[str]:
        return ["pinch", "pose", "unpinch"]

    def reset(self) -> None:
        self.face = None
        self.start_orientation = None
        self.last_orientation = None

    def twist(self, orientation: Sequence[float]) -> float:
        """
        Twist since the pinch, expressed in the cube's turn sense.

        A positive value turns the layer the same way the hand rotated
        when it is fed to `release` as a direction sign.
        """
        axis = face_axis(self.face)
        unit = np.zeros(3)
        unit[axis] = 1.0
        angle = twist_angle(self.start_orientation, orientation, unit)
        return angle * TURN_SENSE[axis]

    def translate(self, event: InputEvent) -> List[Action]:
        params = event.parameters

        if event.event_type == "pinch":
            position = params["position"]
            self.face = params.get("face") or detect_face(position)
            self.start_orientation = normalize_quaternion(params["orientation"])
            self.last_orientation = self.start_orientation
            return [Action("select", {"position": list(position), "face": self.face, "grab": True})]

        if self.start_orientation is None:
            return []

        if event.event_type == "pose":
            self.last_orientation = normalize_quaternion(params["orientation"])
            progress = min(abs(self.twist(self.last_orientation)) / (math.pi / 2), 1.0)
            return [Action("progress", {"value": progress})]

        if event.event_type == "unpinch":
            if params.get("orientation") is not None:
                self.last_orientation = normalize_quaternion(params["orientation"])
            twist = self.twist(self.last_orientation)
            self.reset()
            return [Action("release", {"twist": twist})]

        return []
