"""Local key/value config store with dotted keys."""

from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any


class ConfigStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Any:
        """Value at dotted *key*, or None."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any, persist: bool = False) -> None:
        """Set dotted *key*. Unpersisted values live until the process exits."""
        ...


class JsonFileConfigStore(ConfigStore):
    """Config held in a JSON file such as the project's ``.aio``.

    ``get("project.workspace.id")`` walks nested objects.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._data: dict[str, Any] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Any:
        node: Any = self._load()
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def set(self, key: str, value: Any, persist: bool = False) -> None:
        node = self._load()
        *parents, leaf = key.split(".")
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[leaf] = value
        if persist:
            self._write()

    def _load(self) -> dict[str, Any]:
        if self._data is None:
            if self._path.exists():
                self._data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
            else:
                self._data = {}
        return self._data

    def _write(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
        os.replace(tmp, self._path)
