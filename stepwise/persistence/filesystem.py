"""Directory-backed implementation of the definition repository."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from .repository import DefinitionRepository

logger = logging.getLogger(__name__)


class FilesystemDefinitionRepository(DefinitionRepository):
    """Persist each workflow as ``<id>.json`` inside ``directory``."""

    suffix = ".json"

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def path_for(self, workflow_id: str) -> Path:
        return self.directory / f"{workflow_id}{self.suffix}"

    # ------------------------------------------------------------------
    # Blocking helpers
    def _read_all(self) -> list[tuple[str, str]]:
        if not self.directory.exists():
            return []
        documents = []
        for path in sorted(self.directory.glob(f"*{self.suffix}")):
            try:
                documents.append((path.name, path.read_text(encoding="utf-8")))
            except (OSError, UnicodeDecodeError) as exc:
                logger.error(f"Failed to read workflow file {path}: {exc}")
        return documents

    def _write(self, workflow_id: str, text: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(workflow_id)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(path)

    def _remove(self, workflow_id: str) -> None:
        self.path_for(workflow_id).unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # Repository API
    async def load_all(self) -> list[tuple[str, str]]:
        return await asyncio.to_thread(self._read_all)

    async def write(self, workflow_id: str, document: dict[str, Any]) -> None:
        text = json.dumps(document, indent=2)
        await asyncio.to_thread(self._write, workflow_id, text)

    async def remove(self, workflow_id: str) -> None:
        await asyncio.to_thread(self._remove, workflow_id)
