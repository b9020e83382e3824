"""Task trackers notified after successful agent runs."""

from __future__ import annotations

import json
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, List, Protocol

from .logging import get_logger

_TASK_ID = re.compile(r"task_(\d+)")

logger = get_logger("tracker")


class TaskTracker(Protocol):
    def record_task(self, project_id: str, task: Dict[str, Any]) -> str:
        ...


class JsonTaskTracker:
    """Keeps ``<root>/<project_id>/tasks.json`` with running status counts."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def tasks_path(self, project_id: str) -> Path:
        return self.root / project_id / "tasks.json"

    def load(self, project_id: str) -> Dict[str, Any]:
        path = self.tasks_path(project_id)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {"project_id": project_id, "tasks": []}
        if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
            raise ValueError(f"Malformed task file: {path}")
        return data

    def record_task(self, project_id: str, task: Dict[str, Any]) -> str:
        """Append a task and return its generated ``task_NNN`` identifier."""
        data = self.load(project_id)
        tasks: List[Dict[str, Any]] = data["tasks"]

        numbers = [0]
        for existing in tasks:
            match = _TASK_ID.fullmatch(str(existing.get("id", "")))
            if match:
                numbers.append(int(match.group(1)))
        task_id = f"task_{max(numbers) + 1:03d}"

        entry = {
            "id": task_id,
            "title": task.get("title", ""),
            "description": task.get("description", ""),
            "status": task.get("status", "done"),
            "agent_used": task.get("agent_used"),
            "notes": task.get("notes", ""),
            "completed_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        }
        tasks.append(entry)
        for status in ("done", "in_progress", "pending"):
            data[f"{status}_count"] = sum(1 for item in tasks if item.get("status") == status)

        path = self.tasks_path(project_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        logger.debug("Recorded %s for project %s", task_id, project_id)
        return task_id


__all__ = ["JsonTaskTracker", "TaskTracker"]
