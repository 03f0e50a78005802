"""
Input adapters for cubekit.

Each adapter turns host events into environment tool calls:
- DesktopInputAdapter: click + arrow keys
- ControllerInputAdapter: grab, drag, release
- HandInputAdapter: pinch, twist, unpinch
"""

# Normal imports to ensure proper input registration
from cubekit.core.base import BaseInputAdapter
from cubekit.core.config import InputConfig
from cubekit.core.registry import INPUT_REGISTRY
from cubekit.inputs.desktop import DesktopInputAdapter, DesktopInputConfig
from cubekit.inputs.controller import ControllerInputAdapter, ControllerInputConfig
from cubekit.inputs.hand import HandInputAdapter, HandInputConfig


def create_input_adapter(config: InputConfig) -> BaseInputAdapter:
    """Instantiate the adapter registered for `config.type`."""
    adapter_cls = INPUT_REGISTRY.get(config.type)
    if not adapter_cls:
        raise ValueError(f"Unknown input type: {config.type}")
    return adapter_cls(config)


__all__ = [
    "DesktopInputAdapter",
    "DesktopInputConfig",
    "ControllerInputAdapter",
    "ControllerInputConfig",
    "HandInputAdapter",
    "HandInputConfig",
    "create_input_adapter",
]
