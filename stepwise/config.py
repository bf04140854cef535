from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import (
    DEFAULT_DELAY_MS,
    DEFAULT_MAX_EXECUTIONS,
    DEFAULT_TOOL_TIMEOUT,
    DEFAULT_WORKFLOWS_DIR,
)


class EngineConfig(BaseModel):
    """Execution engine settings."""

    max_executions: int = Field(default=DEFAULT_MAX_EXECUTIONS, ge=1)
    default_delay_ms: float = Field(default=DEFAULT_DELAY_MS, ge=0)
    strict_references: bool = True


class StorageConfig(BaseModel):
    """Workflow definition storage settings."""

    backend: Literal["filesystem", "inmemory"] = "filesystem"
    workflows_dir: str = DEFAULT_WORKFLOWS_DIR
    install_defaults: bool = True


class ToolsConfig(BaseModel):
    """Tool collaborator settings."""

    gateway_url: Optional[str] = None
    timeout: float = DEFAULT_TOOL_TIMEOUT


class StepwiseConfig(BaseModel):
    """Top-level configuration model."""

    model_config = ConfigDict(validate_assignment=True)

    engine: EngineConfig = Field(default_factory=EngineConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v


def load_config(path: Optional[str] = None) -> StepwiseConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to STEPWISE_CONFIG env
            variable or 'stepwise.yaml' in the current directory.
    """

    config_path = path or os.getenv("STEPWISE_CONFIG", "stepwise.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = StepwiseConfig(**data)
    else:
        config = StepwiseConfig()

    if workflows_dir := os.getenv("STEPWISE_WORKFLOWS_DIR"):
        config.storage.workflows_dir = workflows_dir
    if tools_url := os.getenv("STEPWISE_TOOLS_URL"):
        config.tools.gateway_url = tools_url
    if log_level := os.getenv("STEPWISE_LOG_LEVEL"):
        config.log_level = log_level
    return config
