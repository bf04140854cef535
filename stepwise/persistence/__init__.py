"""Persistence layer for workflow definitions."""

from __future__ import annotations

from typing import Optional

from ..config import StepwiseConfig, load_config
from .filesystem import FilesystemDefinitionRepository
from .inmemory import InMemoryDefinitionRepository
from .repository import DefinitionRepository


def get_repository(config: Optional[StepwiseConfig] = None) -> DefinitionRepository:
    """Build the definition repository selected by ``config.storage``."""

    config = config or load_config()
    backend = config.storage.backend

    if backend == "inmemory":
        return InMemoryDefinitionRepository()
    if backend == "filesystem":
        return FilesystemDefinitionRepository(config.storage.workflows_dir)
    raise ValueError(f"Unsupported storage backend: {backend}")


__all__ = [
    "DefinitionRepository",
    "FilesystemDefinitionRepository",
    "InMemoryDefinitionRepository",
    "get_repository",
]
