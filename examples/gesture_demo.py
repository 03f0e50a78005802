#!/usr/bin/env python3
"""A quick demonstration of cubekit: the same turn from three input sources."""
from pathlib import Path

from cubekit import CubeEnvironment, InputEvent, load_config, validate_config
from cubekit.inputs import DesktopInputAdapter, ControllerInputAdapter, ControllerInputConfig
from cubekit.core.config import InputConfig
from cubekit.utils import ManualClock, StatusDisplay


def main():
    print("\n" + " cubekit Gesture Demo ".center(80, "="))

    config_path = Path(__file__).resolve().parent.parent / "configs" / "desktop.yaml"
    if not config_path.exists():
        print(f"❌ Configuration file not found: {config_path}")
        return 1

    config = load_config(str(config_path))
    issues = validate_config(config)
    if any(issue.startswith("ERROR") for issue in issues):
        print(f"❌ Configuration is not valid: {issues}")
        return 1

    clock = ManualClock()
    env = CubeEnvironment(config, clock=clock)
    env.reset()
    env.subscribe(lambda move, state: print(f"  -> committed {move}"))

    # Desktop: click the corner, press an arrow key
    desktop = DesktopInputAdapter(InputConfig())
    desktop.feed(env, InputEvent("click", {"position": [1, 1, 1], "face": "right"}))
    desktop.feed(env, InputEvent("keydown", {"key": "ArrowRight"}))

    # A second key press while the turn animates is ignored
    obs = desktop.feed(env, InputEvent("keydown", {"key": "ArrowRight"}))
    print(f"  while rotating: {obs[-1].metadata['tool_result']['status'] if obs else 'no action'}")
    env.execute_tool_call("complete", {})

    # Controller: grab the same corner from the right and drag down the Y axis
    controller = ControllerInputAdapter(ControllerInputConfig())
    controller.feed(env, InputEvent("grab", {"position": [1, 1, 1], "grip": [2, 1, 1]}))
    controller.feed(env, InputEvent("move", {"grip": [2, 0.8, 1]}))
    controller.feed(env, InputEvent("release", {}))

    clock.advance(env.mapper.rotation_timeout)
    env.update()

    StatusDisplay.print_cube(env.state, title=f"After {env.move_count} moves")
    print(f"Solved: {env.is_solved()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
