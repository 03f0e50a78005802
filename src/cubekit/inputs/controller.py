"""
Tracked-controller input: squeeze on a piece, drag, let go.

The grabbed face is the one pointing most directly at the grip. Drag
samples are grip positions in cube coordinates (one unit per piece).
"""

from dataclasses import dataclass
from typing import List, Optional

from cubekit.core.base import Action, BaseInputAdapter, InputEvent
from cubekit.core.config import InputConfig
from cubekit.core.registry import register_input, register_input_config
from cubekit.cube.resolver import closest_face


@register_input_config("controller")
@dataclass
class ControllerInputConfig(InputConfig):
    """Controller grab input. Turns animate faster than on desktop."""
    type: str = "controller"
    rotation_timeout: Optional[float] = 0.3


@register_input("controller")
class ControllerInputAdapter(BaseInputAdapter):
    """
    Events:
        grab     {position: piece position, grip: [x, y, z]}
        move     {grip: [x, y, z]}
        release  {}
    """

    def __init__(self, config: ControllerInputConfig):
        super().__init__(config)
        self.holding = False

    def supported_events(self) -> List[str]:
        return ["grab", "move", "release"]

    def reset(self) -> None:
        self.holding = False

    def translate(self, event: InputEvent) -> List[Action]:
        params = event.parameters

        if event.event_type == "grab":
            position = params["position"]
            grip = params["grip"]
            self.holding = True
            return [Action("select", {
                "position": list(position),
                "face": closest_face(position, grip),
                "origin": list(grip),
                "grab": True,
            })]

        if event.event_type == "move":
            if not self.holding:
                return []
            return [Action("drag", {"position": list(params["grip"])})]

        if event.event_type == "release":
            if not self.holding:
                return []
            self.holding = False
            return [Action("release", {})]

        return []
