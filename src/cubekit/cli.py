"""
Command-line interface for cubekit.

Subcommands:
- play: interactive cube session (click/key, controller grab, hand pinch)
- apply: apply a move list to a solved cube
- create-config / validate-config / list-components
"""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from cubekit.core.base import Action, BaseClock, FACES, InputEvent, Move, Observation
from cubekit.core.config import Config, load_config, create_default_config, validate_config
from cubekit.core.registry import INPUT_CONFIG_REGISTRY, INPUT_REGISTRY
from cubekit.cube.rotation import apply_moves
from cubekit.cube.state import initialize_cube_state, is_solved, validate_state, to_render_records
from cubekit.environment.cube_env import CubeEnvironment
from cubekit.inputs import create_input_adapter
from cubekit.utils.clock import ManualClock, MonotonicClock
from cubekit.utils.display import StatusDisplay, LiveLogger
from cubekit.utils.logger import SessionLogger
from cubekit.utils.renderer import CubeRenderer, save_image


def get_available_components() -> Dict[str, List[str]]:
    """Get dynamically registered components."""
    return {
        "inputs": list(INPUT_REGISTRY.keys()),
        "input_configs": list(INPUT_CONFIG_REGISTRY.keys()),
    }


# Tool status -> session log step type
STEP_TYPES = {
    "selected": "pick",
    "committed": "commit",
    "ignored": "ignored",
    "cancelled": "cancel",
    "completed": "complete",
    "error": "error",
}


class CubeSession:
    """Line-oriented cube session shared by the REPL and action-list replay."""

    HELP = """
Available commands:
  click <x> <y> <z> [face]          - Select a piece (desktop click)
  key <Key>                         - Press a key (ArrowLeft/Right/Up/Down)
  turn <face> <+1|-1>               - Turn a face directly
  move <axis,layer,dir>             - Apply a move, e.g. move X,1,+1
  grab <x> <y> <z> <gx> <gy> <gz>   - Controller grab of a piece at a grip position
  drag <gx> <gy> <gz>               - Move the controller grip
  release                           - Let go of the controller grab
  pinch <x> <y> <z> <qx> <qy> <qz> <qw> [face] - Pinch a piece with a hand pose
  pose <qx> <qy> <qz> <qw>          - Update the pinching hand orientation
  twist <qx> <qy> <qz> <qw>         - Un-pinch with a final hand orientation
  cancel                            - Drop the current selection
  complete                          - Signal that the turn animation finished
  wait [seconds]                    - Let time pass (default: the rotation timeout)
  state                             - Show mapper state and move count
  tools                             - List the environment tools and their arguments
  view                              - Show every face of the cube
  render <file.png>                 - Save a snapshot image
  help                              - Show this help
  quit/exit                         - Leave the session
"""

    def __init__(self, config: Config, clock: Optional[BaseClock] = None,
                 logger: Optional[SessionLogger] = None, verbose: bool = True):
        self.config = config
        self.clock = clock or MonotonicClock()
        self.env = CubeEnvironment(config, clock=self.clock)
        self.logger = logger
        self.live = LiveLogger(verbose=verbose)
        self.adapters = {}
        for kind in INPUT_REGISTRY:
            input_config = config.input if config.input.type == kind else INPUT_CONFIG_REGISTRY[kind]()
            self.adapters[kind] = create_input_adapter(input_config)
        self.finished = False

        observation = self.env.reset()
        self.env.subscribe(lambda move, state: self.live.log_move(move, self.env.step_count))
        if self.logger:
            self.logger.log_step(0, {
                "step_type": "initial",
                "observation": observation.to_dict(),
            })

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    def execute_line(self, line: str) -> List[Dict[str, Any]]:
        """
        Run one command line.

        Returns:
            The tool results the line produced (empty for display commands)
        """
        parts = line.strip().split()
        if not parts or parts[0].startswith("#"):
            return []
        command, args = parts[0].lower(), parts[1:]

        if command in ("quit", "exit"):
            self.finished = True
            return []
        if command == "help":
            print(self.HELP)
            return []
        if command == "state":
            print(self.env.execute_tool_call("state", {})["message"])
            return []
        if command == "tools":
            for entry in self.describe_tools():
                print(entry)
            return []
        if command == "view":
            StatusDisplay.print_cube(self.env.state)
            return []
        if command == "render":
            if len(args) != 1:
                raise ValueError("Usage: render <file.png>")
            save_image(self.env.render(), args[0])
            self.live.log_info(f"Snapshot saved to {args[0]}")
            return []
        if command == "wait":
            self.wait(float(args[0]) if args else None)
            return []

        observations = self._dispatch(command, args)
        return [self._record(obs) for obs in observations]

    def describe_tools(self) -> List[str]:
        """One line per environment tool: name, arguments (* = required), description."""
        lines = []
        for schema in self.env.get_tool_schemas():
            args = ", ".join(
                name + ("*" if name in schema["required"] else "")
                for name in schema["parameters"]
            )
            lines.append(f"  {schema['name']:<12} ({args}) - {schema['description']}")
        return lines

    def wait(self, seconds: Optional[float] = None) -> None:
        """Let the rotating gate time out."""
        if seconds is None:
            seconds = self.env.mapper.rotation_timeout
        if isinstance(self.clock, ManualClock):
            self.clock.advance(seconds)
        else:
            time.sleep(seconds)
        self.env.update()

    def _dispatch(self, command: str, args: List[str]) -> List[Observation]:
        desktop = self.adapters["desktop"]
        controller = self.adapters["controller"]
        hand = self.adapters["hand"]

        if command == "click":
            if len(args) not in (3, 4):
                raise ValueError("Usage: click <x> <y> <z> [face]")
            params: Dict[str, Any] = {"position": _floats(args[:3])}
            if len(args) == 4:
                params["face"] = args[3]
            return desktop.feed(self.env, InputEvent("click", params))

        if command == "key":
            if len(args) != 1:
                raise ValueError("Usage: key <Key>")
            observations = desktop.feed(self.env, InputEvent("keydown", {"key": args[0]}))
            if not observations:
                self.live.log_warning(f"Key '{args[0]}' is not bound")
            return observations

        if command == "turn":
            if len(args) != 2 or args[0] not in FACES:
                raise ValueError(f"Usage: turn <{'|'.join(FACES)}> <+1|-1>")
            return [self.env.step(Action("turn_face", {"face": args[0], "direction": int(args[1])}))]

        if command == "move":
            if len(args) != 1:
                raise ValueError("Usage: move <axis,layer,direction>")
            return [self.env.step(Action("apply_move", {"move": args[0]}))]

        if command == "grab":
            if len(args) != 6:
                raise ValueError("Usage: grab <x> <y> <z> <gx> <gy> <gz>")
            values = _floats(args)
            return controller.feed(self.env, InputEvent("grab", {"position": values[:3], "grip": values[3:]}))

        if command == "drag":
            if len(args) != 3:
                raise ValueError("Usage: drag <gx> <gy> <gz>")
            return controller.feed(self.env, InputEvent("move", {"grip": _floats(args)}))

        if command == "release":
            return controller.feed(self.env, InputEvent("release", {}))

        if command == "pinch":
            if len(args) not in (7, 8):
                raise ValueError("Usage: pinch <x> <y> <z> <qx> <qy> <qz> <qw> [face]")
            values = _floats(args[:7])
            params = {"position": values[:3], "orientation": values[3:]}
            if len(args) == 8:
                params["face"] = args[7]
            return hand.feed(self.env, InputEvent("pinch", params))

        if command == "pose":
            if len(args) != 4:
                raise ValueError("Usage: pose <qx> <qy> <qz> <qw>")
            return hand.feed(self.env, InputEvent("pose", {"orientation": _floats(args)}))

        if command == "twist":
            if len(args) not in (0, 4):
                raise ValueError("Usage: twist <qx> <qy> <qz> <qw>")
            params = {"orientation": _floats(args)} if args else {}
            return hand.feed(self.env, InputEvent("unpinch", params))

        if command in ("cancel", "complete"):
            return [self.env.step(Action(command, {}))]

        raise ValueError(f"Unknown command: {command}. Type 'help' for commands")

    def _record(self, observation: Observation) -> Dict[str, Any]:
        tool_call = observation.metadata.get("tool_call", {})
        result = observation.metadata.get("tool_result", {})
        self.live.log_tool_result(tool_call.get("action_type", "?"), result)

        if self.logger:
            entry = {
                "step_type": STEP_TYPES.get(result.get("status"), "action"),
                "action": tool_call,
                "tool_result": result,
                "mapper_state": observation.mapper_state.value,
            }
            if result.get("status") == "committed":
                entry["move"] = result.get("move")
                entry["source"] = tool_call.get("action_type")
            if result.get("status") == "error":
                entry["error"] = result.get("message")
            if observation.image is not None:
                entry["image"] = observation.image
            self.logger.log_step(observation.step, entry)
        return result

    # ------------------------------------------------------------------ #
    # Loops
    # ------------------------------------------------------------------ #
    def run_cli(self) -> None:
        """Interactive loop."""
        StatusDisplay.print_header("cubekit Interactive Session")
        print("Type 'help' for commands")

        while not self.finished:
            try:
                line = input("\n> ").strip()
                self.execute_line(line)
            except KeyboardInterrupt:
                print("\nUse 'quit' to exit")
            except EOFError:
                break
            except ValueError as e:
                self.live.log_error(str(e))

    def replay(self, actions: List[str], interval: Optional[float] = None) -> None:
        """
        Run a predefined action list. Time advances by `interval` seconds
        (default: the rotation timeout) after every line.
        """
        for i, line in enumerate(actions, 1):
            if self.finished:
                break
            self.live.log_step_start(i, f"Action {i}/{len(actions)}: {line}")
            try:
                results = self.execute_line(line)
            except ValueError as e:
                self.live.log_error(str(e))
                self.live.log_step_end(i, "invalid action", success=False)
            else:
                failed = any(result.get("status") == "error" for result in results)
                self.live.log_step_end(i, f"{len(results)} tool call(s)", success=not failed)
            self.wait(interval)


def _floats(values: List[str]) -> List[float]:
    try:
        return [float(v) for v in values]
    except ValueError:
        raise ValueError(f"Expected numbers, got {' '.join(values)}")


def load_action_list(path: str) -> List[str]:
    """Action list from a JSON list (or {"actions": [...]}) or a text file, one command per line."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Action list file not found: {path}")
    if path.suffix.lower() == ".json":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict) and "actions" in data:
            data = data["actions"]
        if not isinstance(data, list):
            raise ValueError("Invalid JSON format. Expected list of actions or dict with 'actions' key.")
        return [str(line) for line in data]
    with open(path, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip() and not line.strip().startswith("#")]


def parse_moves(text: str) -> List[Move]:
    """Moves separated by whitespace, each in 'axis,layer,direction' form."""
    return [Move.from_string(token) for token in text.split()]


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser."""
    components = get_available_components()

    parser = argparse.ArgumentParser(
        description="cubekit: Rubik's cube state model, rotation engine and gesture mapper",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  # Interactive session
  cubekit play

  # Replay an action list with logging
  cubekit play --actions actions.txt --log

  # Apply moves and render the result
  cubekit apply --moves "X,1,+1 Y,-1,-1" --render cube.png

  # Create and validate a configuration
  cubekit create-config --output config.yaml --input-type controller
  cubekit validate-config config.yaml

Available Inputs: {', '.join(components['inputs']) if components['inputs'] else 'None registered'}
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    play_parser = subparsers.add_parser("play", help="Interactive cube session")
    play_parser.add_argument("--config", "-c", help="Path to configuration file")
    play_parser.add_argument("--actions", "-a", help="Action list file to replay instead of prompting")
    play_parser.add_argument("--interval", type=float, help="Seconds between replayed actions (default: rotation timeout)")
    play_parser.add_argument("--log", action="store_true", help="Write session logs")
    play_parser.add_argument("--log-dir", help="Override log directory")
    play_parser.add_argument("--quiet", "-q", action="store_true", help="Less console output")

    apply_parser = subparsers.add_parser("apply", help="Apply a move list to a solved cube")
    apply_parser.add_argument("--moves", "-m", required=True, help='Moves, e.g. "X,1,+1 Y,-1,-1"')
    apply_parser.add_argument("--config", "-c", help="Path to configuration file")
    apply_parser.add_argument("--render", "-r", help="Save a PNG snapshot of the result")
    apply_parser.add_argument("--multi-view", action="store_true", help="Render front/right/top/perspective views")

    config_parser = subparsers.add_parser("create-config", help="Create default configuration file")
    config_parser.add_argument("--output", "-o", default="config.yaml", help="Output configuration file")
    config_parser.add_argument("--input-type", choices=components['inputs'] or ["desktop"], default="desktop",
                               help="Default input adapter")
    config_parser.add_argument("--force", action="store_true", help="Overwrite an existing file")

    validate_parser = subparsers.add_parser("validate-config", help="Validate configuration file")
    validate_parser.add_argument("config", help="Configuration file to validate")
    validate_parser.add_argument("--strict", action="store_true", help="Treat warnings as errors")

    list_parser = subparsers.add_parser("list-components", help="List available components")
    list_parser.add_argument("--format", choices=["table", "json"], default="table", help="Output format")

    return parser


def _load_and_validate_config(config_path: Optional[str], logger: LiveLogger) -> Optional[Config]:
    """Load and validate configuration with error handling."""
    if not config_path:
        return Config()
    try:
        config = load_config(config_path)
    except FileNotFoundError:
        logger.log_error(f"Configuration file not found: {config_path}")
        logger.log_info("Use 'cubekit create-config' to create a default configuration")
        return None
    except ValueError as e:
        logger.log_error(f"Configuration error: {e}")
        return None

    issues = validate_config(config)
    errors = [issue for issue in issues if issue.startswith("ERROR")]
    warnings = [issue for issue in issues if not issue.startswith("ERROR")]
    if errors:
        StatusDisplay.print_section("Configuration Errors")
        for error in errors:
            logger.log_error(error.replace("ERROR: ", ""))
        return None
    for warning in warnings:
        logger.log_warning(warning.replace("WARNING: ", ""))
    return config


def play_command(args) -> int:
    """Execute play command."""
    verbose = not args.quiet
    logger = LiveLogger(verbose=verbose)
    config = _load_and_validate_config(args.config, logger)
    if config is None:
        return 1
    if args.log_dir:
        config.session.log_dir = args.log_dir
    verbose = verbose and config.session.verbose

    session_logger = SessionLogger(config.session.log_dir, config.session.session_name) if args.log else None

    if args.actions:
        try:
            actions = load_action_list(args.actions)
        except (FileNotFoundError, ValueError) as e:
            logger.log_error(str(e))
            return 1
        session = CubeSession(config, clock=ManualClock(), logger=session_logger, verbose=verbose)
        session.replay(actions, interval=args.interval)
    else:
        session = CubeSession(config, logger=session_logger, verbose=verbose)
        session.run_cli()

    StatusDisplay.print_results({
        "Moves": session.env.move_count,
        "Solved": session.env.is_solved(),
    }, "Session Summary")

    if session_logger:
        session_logger.save_logs()
        session_logger.save_moves_csv()
    session.env.close()
    return 0


def apply_command(args) -> int:
    """Execute apply command."""
    logger = LiveLogger(verbose=True)
    config = _load_and_validate_config(args.config, logger)
    if config is None:
        return 1

    try:
        moves = parse_moves(args.moves)
    except ValueError as e:
        logger.log_error(str(e))
        return 1

    state = apply_moves(initialize_cube_state(config.cube.palette), moves)
    validate_state(state, config.cube.palette)

    StatusDisplay.print_header("cubekit Apply")
    StatusDisplay.print_results({
        "Moves": " ".join(str(m) for m in moves) or "(none)",
        "Solved": is_solved(state),
    }, "Result")
    StatusDisplay.print_cube(state)

    if args.render:
        renderer = CubeRenderer(config.cube, config.render)
        records = to_render_records(state, spacing=config.cube.piece_spacing, color_lookup=config.cube.hex_color)
        image = renderer.render(records, multi_view=args.multi_view or None)
        save_image(image, args.render)
        logger.log_result(f"Snapshot saved to {args.render}")
    return 0


def create_config_command(args) -> int:
    """Execute create-config command."""
    logger = LiveLogger(verbose=True)

    StatusDisplay.print_header("Creating Configuration File")
    if Path(args.output).exists() and not args.force:
        logger.log_error(f"Configuration file already exists: {args.output} (use --force to overwrite)")
        return 1

    create_default_config(args.output, input_type=args.input_type)
    logger.log_result(f"Configuration created: {args.output}")
    StatusDisplay.print_results({
        "Output File": args.output,
        "Input Type": args.input_type,
    }, "Configuration Summary")
    logger.log_info("Next: cubekit validate-config " + args.output)
    return 0


def _display_config_summary(config: Config) -> None:
    """Display configuration summary."""
    StatusDisplay.print_config({
        "Session": config.session.session_name,
        "Input": config.input.type,
        "Threshold": config.mapper.movement_threshold,
        "Rotation Timeout": config.input.rotation_timeout
        if config.input.rotation_timeout is not None else config.mapper.rotation_timeout,
        "Log Dir": config.session.log_dir,
    }, "Configuration Overview")


def validate_config_command(args) -> int:
    """Execute validate-config command."""
    logger = LiveLogger(verbose=True)
    StatusDisplay.print_header("Configuration Validation")

    try:
        config = load_config(args.config)
    except FileNotFoundError:
        logger.log_error(f"Configuration file not found: {args.config}")
        return 1
    except ValueError as e:
        logger.log_error(f"Failed to load config: {e}")
        return 1

    _display_config_summary(config)

    issues = validate_config(config)
    errors = [issue for issue in issues if issue.startswith("ERROR")]
    warnings = [issue for issue in issues if not issue.startswith("ERROR")]

    if args.strict and warnings:
        errors.extend(warnings)
        warnings = []

    if errors:
        StatusDisplay.print_section("Configuration Errors")
        for i, error in enumerate(errors, 1):
            logger.log_error(f"{i}. {error.replace('ERROR: ', '')}")
        StatusDisplay.print_results({"Valid": False, "Errors Found": len(errors)}, "Validation Summary")
        return 1

    if warnings:
        StatusDisplay.print_section("Configuration Warnings")
        for i, warning in enumerate(warnings, 1):
            logger.log_warning(f"{i}. {warning}")

    StatusDisplay.print_results({"Valid": True, "Warnings Found": len(warnings)}, "Validation Summary")
    return 0


def list_components_command(args) -> int:
    """Execute list-components command."""
    components = get_available_components()
    if args.format == "json":
        print(json.dumps(components, indent=2))
        return 0

    StatusDisplay.print_header("Available Components")
    for comp_type, comp_list in components.items():
        StatusDisplay.print_section(comp_type.replace("_", " ").title())
        for comp in comp_list:
            print(f"  • {comp}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    argv = sys.argv[1:] if argv is None else argv

    if not argv:
        parser.print_help()
        return 1

    args = parser.parse_args(argv)

    command_handlers = {
        "play": play_command,
        "apply": apply_command,
        "create-config": create_config_command,
        "validate-config": validate_config_command,
        "list-components": list_components_command,
    }

    handler = command_handlers.get(args.command)
    if not handler:
        parser.print_help()
        return 1
    try:
        return handler(args)
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
