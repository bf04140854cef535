"""Workflow definition store: validation, lookup, search and persistence."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from .contracts import WorkflowDefinition
from .errors import ValidationError, WorkflowNotFoundError
from .events import WORKFLOW_DELETED, WORKFLOW_SAVED, EventBus
from .persistence import DefinitionRepository

logger = logging.getLogger(__name__)

WorkflowDocument = Union[WorkflowDefinition, Dict[str, Any]]


def parse_definition(document: WorkflowDocument) -> WorkflowDefinition:
    """Validate ``document`` and return the definition with defaults applied.

    Raises:
        ValidationError: If required fields are missing or mistyped.
    """
    if isinstance(document, WorkflowDefinition):
        document = document.to_document()
    try:
        return WorkflowDefinition.model_validate(document)
    except PydanticValidationError as exc:
        workflow_id = document.get("id") if isinstance(document, dict) else None
        raise ValidationError(f"Invalid workflow definition: {exc}", workflow_id) from exc


def check_references(definition: WorkflowDefinition) -> None:
    """Reject definitions whose edges name steps that do not exist."""
    dangling = definition.dangling_references()
    if dangling:
        details = ", ".join(f"{step} -> {ref}" for step, ref in dangling)
        raise ValidationError(
            f"Workflow {definition.id} references unknown steps: {details}",
            definition.id,
        )


class WorkflowStore:
    """Owns the set of known workflow definitions."""

    def __init__(
        self,
        repository: DefinitionRepository,
        events: Optional[EventBus] = None,
        strict_references: bool = True,
    ) -> None:
        self._repository = repository
        self._events = events or EventBus()
        self._strict_references = strict_references
        self._workflows: Dict[str, WorkflowDefinition] = {}

    def _validate(self, document: WorkflowDocument) -> WorkflowDefinition:
        definition = parse_definition(document)
        if self._strict_references:
            check_references(definition)
        return definition

    async def load(self) -> int:
        """Load every persisted definition, skipping corrupt ones.

        Returns:
            Number of definitions loaded.
        """
        loaded = 0
        for source, text in await self._repository.load_all():
            try:
                definition = self._validate(json.loads(text))
            except (json.JSONDecodeError, ValidationError) as exc:
                logger.error(f"Failed to load workflow {source}: {exc}")
                continue
            self._workflows[definition.id] = definition
            loaded += 1
            logger.info(f"Loaded workflow: {definition.name}")
        return loaded

    async def install_defaults(self, templates: Iterable[Dict[str, Any]]) -> List[str]:
        """Save each template whose ID is not yet known."""
        installed = []
        for template in templates:
            if template["id"] in self._workflows:
                continue
            definition = await self.save(template)
            installed.append(definition.id)
        return installed

    async def save(self, document: WorkflowDocument) -> WorkflowDefinition:
        """Validate, store and persist a definition, replacing any with the same ID."""
        definition = self._validate(document)
        await self._repository.write(definition.id, definition.to_document())
        self._workflows[definition.id] = definition
        logger.info(f"Saved workflow: {definition.name}")
        self._events.emit(WORKFLOW_SAVED, definition)
        return definition

    async def import_workflow(self, document: Dict[str, Any]) -> WorkflowDefinition:
        return await self.save(document)

    def export_workflow(self, workflow_id: str) -> Optional[Dict[str, Any]]:
        definition = self.get(workflow_id)
        return definition.to_document() if definition else None

    def get(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        return self._workflows.get(workflow_id)

    def list(self) -> List[WorkflowDefinition]:
        return list(self._workflows.values())

    async def delete(self, workflow_id: str) -> None:
        """Remove a definition from memory and storage.

        Raises:
            WorkflowNotFoundError: If no definition has ``workflow_id``.
        """
        if workflow_id not in self._workflows:
            raise WorkflowNotFoundError(workflow_id)
        await self._repository.remove(workflow_id)
        del self._workflows[workflow_id]
        logger.info(f"Deleted workflow: {workflow_id}")
        self._events.emit(WORKFLOW_DELETED, workflow_id)

    def search(self, query: str) -> List[WorkflowDefinition]:
        """Case-insensitive substring match over name, description and tags."""
        needle = query.lower()
        return [
            wf
            for wf in self._workflows.values()
            if needle in wf.name.lower()
            or needle in wf.description.lower()
            or any(needle in tag.lower() for tag in wf.tags)
        ]

    def __contains__(self, workflow_id: object) -> bool:
        return workflow_id in self._workflows

    def __len__(self) -> int:
        return len(self._workflows)
