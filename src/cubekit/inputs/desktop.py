"""
Desktop input: click a piece, then press an arrow key to turn its face.
"""

from dataclasses import dataclass
from typing import List

from cubekit.core.base import Action, BaseInputAdapter, InputEvent
from cubekit.core.config import InputConfig
from cubekit.core.registry import register_input, register_input_config


@register_input_config("desktop")
@dataclass
class DesktopInputConfig(InputConfig):
    """Pointer + keyboard input. Arrow keys are bound through `key_bindings`."""
    type: str = "desktop"


@register_input("desktop")
class DesktopInputAdapter(BaseInputAdapter):
    """
    Events:
        click    {position: [x, y, z]} or {piece_index: i}, optional {face}
        keydown  {key: "ArrowRight"}
    """

    def supported_events(self) -> List[str]:
        return ["click", "keydown"]

    def translate(self, event: InputEvent) -> List[Action]:
        if event.event_type == "click":
            params = {
                key: event.parameters[key]
                for key in ("position", "piece_index", "face")
                if event.parameters.get(key) is not None
            }
            return [Action("select", params)]

        if event.event_type == "keydown":
            direction = self.config.key_bindings.get(event.parameters.get("key"))
            if direction is None:
                return []
            return [Action("rotate", {"direction": direction})]

        return []
