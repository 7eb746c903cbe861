"""
File logs written next to the outputs of a run.

`PlanLog` records planned command lists as YAML, one entry per run, so a plan
can be inspected or replayed by hand after the temporary directory is gone.
"""
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Union

import yaml
from loguru import logger


class Log:
    """Common setup for file logs: resolves and creates the log directory."""

    def __init__(self, log_path: Path):
        self.log_file_path: Path = log_path.resolve()
        self.log_dir: Path = self.log_file_path.parent
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def write(self, log_content: Union[dict, list, str]):
        raise NotImplementedError("Subclasses must implement the write() method.")


class PlanLog(Log):
    """
    Keeps a YAML list of planned runs.

    The existing list is read, the new entry appended with the next index, and
    the whole list written back, so the file is always a valid YAML document.
    """

    def __init__(self, log_path: Path):
        super().__init__(log_path)
        self.log_entries: List[Dict] = []

    def _load_entries(self) -> List[Dict]:
        if not self.log_file_path.is_file():
            return []
        try:
            with self.log_file_path.open("r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error reading plan log {self.log_file_path}: {e}. Starting a new log.")
            return []
        if loaded is None:
            return []
        if not isinstance(loaded, list):
            logger.warning(f"Plan log {self.log_file_path} contained unexpected data. Starting a new log.")
            return []
        return loaded

    def write(self, new_log_entry: dict):
        if not isinstance(new_log_entry, dict):
            logger.error("PlanLog.write expects a dictionary as a log entry.")
            return

        self.log_entries = self._load_entries()
        current_max_index = max(
            (entry.get("index", 0) for entry in self.log_entries if isinstance(entry, dict)),
            default=0,
        )
        entry = {
            "index": current_max_index + 1,
            "planned_at": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            **new_log_entry,
        }
        self.log_entries.append(entry)

        try:
            with self.log_file_path.open("w", encoding="utf-8") as f:
                yaml.dump(
                    self.log_entries,
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True,
                    indent=4,
                    width=220,
                )
        except OSError as e:
            logger.error(f"Failed to write to plan log {self.log_file_path}: {e}")
