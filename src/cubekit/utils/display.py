"""
User-friendly console output for cubekit sessions.
"""

import time
from typing import Optional, Dict, Any, List
from datetime import datetime

from cubekit.core.base import Axis, CubeState, FACE_NORMALS


class StatusDisplay:
    """Handles status display for different operations."""

    @staticmethod
    def print_header(title: str, width: int = 80):
        """Print a formatted header."""
        print("\n" + "=" * width)
        print(f"{title:^{width}}")
        print("=" * width)

    @staticmethod
    def print_section(title: str, width: int = 60):
        """Print a section header."""
        print(f"\n📋 {title}")
        print("-" * width)

    @staticmethod
    def print_config(config_dict: Dict[str, Any], title: str = "Configuration"):
        """Print configuration in a nice format."""
        StatusDisplay.print_section(title)
        for key, value in config_dict.items():
            print(f"  {key:<20} : {value}")

    @staticmethod
    def print_status(message: str, status: str = "info"):
        """Print a status message with appropriate emoji."""
        icons = {
            "info": "ℹ️",
            "success": "✅",
            "warning": "⚠️",
            "error": "❌",
            "ignored": "⏸️",
            "rotating": "🔄",
        }
        icon = icons.get(status, "ℹ️")
        timestamp = datetime.now().strftime("%H:%M:%S")
        print(f"{icon} [{timestamp}] {message}")

    @staticmethod
    def print_results(results: Dict[str, Any], title: str = "Results"):
        """Print results in a nice format."""
        StatusDisplay.print_section(title)
        for key, value in results.items():
            if isinstance(value, bool):
                icon = "✅" if value else "❌"
                print(f"  {key:<20} : {icon} {value}")
            elif isinstance(value, float):
                print(f"  {key:<20} : {value:.3f}")
            else:
                print(f"  {key:<20} : {value}")

    @staticmethod
    def format_faces(state: CubeState) -> List[str]:
        """
        One line per outer face listing its 9 sticker colors.

        Stickers are ordered by the two remaining coordinates, so the same
        face always prints in the same layout.
        """
        lines = []
        for face, normal in FACE_NORMALS.items():
            axis = next(a for a in Axis if normal[a] != 0)
            others = [a for a in Axis if a != axis]
            stickers = sorted(
                (piece.position[others[0]], piece.position[others[1]], piece.colors.get(face))
                for piece in state
                if piece.position[axis] == normal[axis]
            )
            colors = " ".join(f"{color or '-':<6}" for _, _, color in stickers)
            lines.append(f"{face:<6}: {colors}")
        return lines

    @staticmethod
    def print_cube(state: CubeState, title: str = "Cube"):
        """Print every outer face of the cube."""
        StatusDisplay.print_section(title)
        for line in StatusDisplay.format_faces(state):
            print(f"  {line}")


class LiveLogger:
    """Live logging with real-time updates."""

    def __init__(self, verbose: bool = True):
        self.verbose = verbose
        self.step_times = {}

    def log_step_start(self, step: int, description: str):
        """Log the start of a step."""
        if self.verbose:
            StatusDisplay.print_status(f"Starting Step {step}: {description}", "info")
        self.step_times[step] = time.time()

    def log_step_end(self, step: int, result: str, success: bool = True):
        """Log the end of a step."""
        if self.verbose:
            elapsed = time.time() - self.step_times.get(step, time.time())
            status = "success" if success else "error"
            StatusDisplay.print_status(f"Step {step} completed: {result} ({elapsed:.2f}s)", status)

    def log_tool_result(self, tool_name: str, result: Dict[str, Any]):
        """Log a tool result using the icon that matches its status."""
        if not self.verbose:
            return
        status = result.get("status", "info")
        icon_status = {
            "success": "success",
            "committed": "rotating",
            "ignored": "ignored",
            "error": "error",
        }.get(status, "info")
        StatusDisplay.print_status(f"{tool_name}: {result.get('message', '')}", icon_status)

    def log_move(self, move, step: Optional[int] = None):
        """Log a committed move."""
        if self.verbose:
            prefix = f"Step {step}: " if step is not None else ""
            StatusDisplay.print_status(f"{prefix}Turned {move}", "rotating")

    def log_result(self, message: str, success: bool = True):
        """Log a result."""
        if self.verbose:
            status = "success" if success else "error"
            StatusDisplay.print_status(message, status)

    def log_info(self, message: str):
        """Log an info message."""
        if self.verbose:
            StatusDisplay.print_status(message, "info")

    def log_warning(self, message: str):
        """Log a warning message."""
        if self.verbose:
            StatusDisplay.print_status(message, "warning")

    def log_error(self, message: str):
        """Log an error message."""
        if self.verbose:
            StatusDisplay.print_status(message, "error")
