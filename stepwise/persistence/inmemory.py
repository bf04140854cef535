"""In-memory implementation of the definition repository."""

from __future__ import annotations

import json
from typing import Any, Dict

from .repository import DefinitionRepository


class InMemoryDefinitionRepository(DefinitionRepository):
    """Keep serialized definitions in local memory.

    Useful for tests or when no workflows directory is configured. Data is
    not persisted across process restarts.
    """

    def __init__(self) -> None:
        self._documents: Dict[str, str] = {}

    async def load_all(self) -> list[tuple[str, str]]:
        return list(self._documents.items())

    async def write(self, workflow_id: str, document: dict[str, Any]) -> None:
        self._documents[workflow_id] = json.dumps(document, indent=2)

    async def remove(self, workflow_id: str) -> None:
        self._documents.pop(workflow_id, None)

    def put_raw(self, source: str, text: str) -> None:
        """Store ``text`` verbatim, bypassing serialization."""
        self._documents[source] = text
