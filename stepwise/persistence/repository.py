"""Repository abstraction for workflow definition persistence."""

from __future__ import annotations

from typing import Any, Protocol


class DefinitionRepository(Protocol):
    """Protocol for workflow definition storage backends.

    Backends deal in raw text so that the store decides how undecodable or
    invalid documents are reported.
    """

    async def load_all(self) -> list[tuple[str, str]]:
        """Return ``(source, raw_text)`` for every stored document."""

    async def write(self, workflow_id: str, document: dict[str, Any]) -> None:
        """Persist ``document`` under ``workflow_id``, replacing any previous one."""

    async def remove(self, workflow_id: str) -> None:
        """Delete the stored document for ``workflow_id`` if present."""
