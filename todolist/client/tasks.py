"""Copie locale des tâches; le serveur reste la seule source de vérité."""

import logging
from typing import List, Optional

from todolist.client.api import ApiClient
from todolist.client.storage import TaskCache

logger = logging.getLogger(__name__)


def is_valid_description(description) -> bool:
    return isinstance(description, str) and bool(description.strip())


class TaskManager:
    def __init__(self, api: ApiClient, cache: Optional[TaskCache] = None):
        self.api = api
        self.cache = cache
        # avant authentification, on montre le cache local
        self.tasks: List[dict] = cache.load_tasks() if cache else []

    def get_tasks(self) -> List[dict]:
        return [dict(t) for t in self.tasks]

    def find(self, task_id: str) -> Optional[dict]:
        return next((t for t in self.tasks if t["id"] == task_id), None)

    def reset(self) -> None:
        self.tasks = []

    async def refresh(self) -> List[dict]:
        data = await self.api.get("tasks")
        self.tasks = list(data.get("tasks", []))
        return self.get_tasks()

    async def add_task(self, description: str) -> Optional[dict]:
        if not is_valid_description(description):
            return None
        data = await self.api.post("tasks", {"description": description.strip()})
        return data["task"]

    async def delete_task(self, task_id: str) -> bool:
        data = await self.api.delete(f"tasks/{task_id}")
        return bool(data.get("success"))

    async def toggle_task_completion(self, task_id: str) -> Optional[dict]:
        task = self.find(task_id)
        if task is None:
            logger.warning("Toggle requested for unknown task %s", task_id)
            return None
        data = await self.api.put(f"tasks/{task_id}", {"completed": not task["completed"]})
        return data["task"]
