"""Stockage persistant côté client (équivalent du localStorage du navigateur)."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class MemoryStorage:
    """Stockage clé -> chaîne, en mémoire."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class JsonFileStorage(MemoryStorage):
    """Même interface, persistée dans un fichier JSON à chaque écriture."""

    def __init__(self, path):
        self.path = Path(path)
        super().__init__(self._read())

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Storage file %s is corrupt, starting empty", self.path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._data), encoding="utf-8")
        os.replace(tmp, self.path)

    def set_item(self, key: str, value: str) -> None:
        super().set_item(key, value)
        self._flush()

    def remove_item(self, key: str) -> None:
        super().remove_item(key)
        self._flush()


def _is_valid_task(task: Any) -> bool:
    return (
        isinstance(task, dict)
        and isinstance(task.get("id"), str)
        and isinstance(task.get("description"), str)
        and isinstance(task.get("completed"), bool)
    )


class TaskCache:
    """Liste de tâches mise en cache localement, utilisée seulement hors session."""

    def __init__(self, storage, key: str = "todoTasks"):
        self.storage = storage
        self.key = key

    def load_tasks(self) -> List[dict]:
        raw = self.storage.get_item(self.key)
        if raw is None:
            return []
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.error("Cached tasks are not valid JSON, ignoring them")
            return []
        if not isinstance(parsed, list):
            logger.warning("Cached tasks are not a list, ignoring them")
            return []

        valid = [task for task in parsed if _is_valid_task(task)]
        if len(valid) != len(parsed):
            logger.warning("Filtered out %d invalid task(s)", len(parsed) - len(valid))
        return valid

    def save_tasks(self, tasks: List[dict]) -> None:
        if not isinstance(tasks, list):
            raise TypeError("save_tasks expects a list")
        self.storage.set_item(self.key, json.dumps(tasks))

    def clear_tasks(self) -> None:
        self.storage.remove_item(self.key)
