import os
import json
import pandas as pd
from datetime import datetime
from typing import Any, Dict, List

from PIL import Image


class SessionLogger:
    def __init__(self, log_dir: str, session_name: str):
        """
        Initializes the logger for an interactive session.

        Args:
            log_dir (str): The base directory for logs.
            session_name (str): A name for the session; a timestamp is appended.
        """
        self.timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.session_name = f"{session_name}_{self.timestamp}"
        self.run_dir = os.path.join(log_dir, self.session_name)
        self.images_dir = os.path.join(self.run_dir, "images")
        self.logs: List[Dict[str, Any]] = []

        os.makedirs(self.run_dir, exist_ok=True)
        os.makedirs(self.images_dir, exist_ok=True)

    def log_step(self, step: int, data: Dict[str, Any], verbose: bool = False):
        """
        Logs a single step of the session.

        Args:
            step (int): The current step number.
            data (Dict[str, Any]): Data to log. `step_type` is one of
                initial, pick, commit, ignored, cancel, complete, action, error.
            verbose (bool): Whether to print step information to console.
        """
        log_entry = {"step": step, "timestamp": datetime.now().isoformat(), **data}

        if "image" in log_entry and isinstance(log_entry["image"], Image.Image):
            image_path = os.path.join(self.images_dir, f"step_{step}.png")
            log_entry["image"].save(image_path)
            log_entry["image_path"] = image_path
            del log_entry["image"]

            if verbose:
                print(f"  📷 Saved image: step_{step}.png")

        if verbose:
            step_type = data.get("step_type", "unknown")
            if step_type == "initial":
                print(f"🚀 Step {step}: Session started")
            elif step_type == "commit":
                print(f"🔄 Step {step}: Turned {data.get('move')}")
            elif step_type == "ignored":
                print(f"⏸️ Step {step}: Input ignored while rotating")
            elif step_type == "error":
                print(f"❌ Step {step}: Error occurred")
                print(f"  🔍 Details: {data.get('error', 'Unknown error')}")
            else:
                action_type = data.get("action", {}).get("action_type", step_type)
                print(f"⚡ Step {step}: {action_type}")

        self.logs.append(log_entry)

    def committed_moves(self) -> List[Dict[str, Any]]:
        """Committed moves in order, one row per move."""
        rows = []
        for log in self.logs:
            if log.get("step_type") != "commit" or not log.get("move"):
                continue
            move = log["move"]
            rows.append({
                "step": log.get("step"),
                "timestamp": log.get("timestamp"),
                "axis": move.get("axis"),
                "layer": move.get("layer"),
                "direction": move.get("direction"),
                "source": log.get("source", ""),
            })
        return rows

    def save_logs(self):
        """Saves all collected logs to a JSON file and writes a summary."""
        log_file = os.path.join(self.run_dir, "session_log.json")
        with open(log_file, "w") as f:
            json.dump(self.logs, f, indent=2, default=str)

        summary_file = os.path.join(self.run_dir, "summary.txt")
        self._create_summary_file(summary_file)

        print(f"📁 Logs saved to: {log_file}")
        print(f"📋 Summary saved to: {summary_file}")
        return log_file

    def _create_summary_file(self, summary_file: str):
        """Create a human-readable summary file."""
        count = lambda kind: len([log for log in self.logs if log.get("step_type") == kind])

        with open(summary_file, "w") as f:
            f.write(f"Session Summary: {self.session_name}\n")
            f.write("=" * 60 + "\n")
            f.write(f"Total Steps: {len([log for log in self.logs if log.get('step_type') != 'initial'])}\n")
            f.write(f"Moves Committed: {count('commit')}\n")
            f.write(f"Inputs Ignored: {count('ignored')}\n")
            f.write(f"Selections Cancelled: {count('cancel')}\n")
            f.write(f"Errors Occurred: {count('error')}\n")
            f.write(f"Images Saved: {len([log for log in self.logs if 'image_path' in log])}\n")
            f.write("\nStep-by-step breakdown:\n")
            f.write("-" * 30 + "\n")

            for log in self.logs:
                step = log.get("step", "?")
                step_type = log.get("step_type", "unknown")

                if step_type == "initial":
                    f.write(f"Step {step}: Initial setup\n")
                elif step_type == "commit":
                    move = log.get("move") or {}
                    f.write(f"Step {step}: Turn {move.get('axis')},{move.get('layer')},{move.get('direction'):+d}\n")
                elif step_type == "error":
                    f.write(f"Step {step}: ERROR - {log.get('error', 'Unknown')}\n")
                else:
                    action = log.get("action", {})
                    f.write(f"Step {step}: {step_type} '{action.get('action_type', '')}'\n")
                    if log.get("tool_result"):
                        f.write(f"  Result: {log['tool_result']}\n")

    def save_moves_csv(self, csv_path: str = None) -> str:
        """
        Saves the committed moves to a CSV file.
        If the file exists, it appends the new moves.

        Args:
            csv_path (str): Output path; defaults to moves.csv in the session directory.
        """
        csv_path = csv_path or os.path.join(self.run_dir, "moves.csv")
        moves_df = pd.DataFrame(
            self.committed_moves(),
            columns=["step", "timestamp", "axis", "layer", "direction", "source"],
        )

        if os.path.exists(csv_path):
            existing_df = pd.read_csv(csv_path)
            moves_df = pd.concat([existing_df, moves_df], ignore_index=True)

        moves_df.to_csv(csv_path, index=False)
        print(f"Moves saved to {csv_path}")
        return csv_path
