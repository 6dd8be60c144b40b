"""
Runtime configuration for deskmate.

Resolves the workspace location and assistant settings from defaults,
environment variables and CLI overrides, in that order. Provides a single
configuration object that the CLI, web server and MCP server share.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from deskmate.llm import DEFAULT_MODEL


def default_db_path() -> str:
    return os.environ.get("DESKMATE_DB") or str(Path.home() / ".deskmate" / "workspace.db")


@dataclass
class RuntimeConfig:
    """
    Runtime configuration for the workspace and the assistant.

    Attributes:
        db_path: SQLite workspace file (":memory:" for a throwaway workspace)
        llm_model: Model name passed to the LLM client
        temperature: Sampling temperature for assistant replies
        assistant_enabled: When False, chat returns a notice instead of calling the LLM
        timestamp_interval: Minutes of silence after which the current time is sent again
        verbose: Print debug information
    """

    db_path: str = field(default_factory=default_db_path)

    # Assistant settings
    llm_model: str = field(default_factory=lambda: os.environ.get("DESKMATE_LLM_MODEL") or DEFAULT_MODEL)
    temperature: float = 0.7
    assistant_enabled: bool = True
    timestamp_interval: int = 5

    # Debug
    verbose: bool = False

    def __post_init__(self):
        if self.timestamp_interval < 0:
            raise ValueError(f"timestamp_interval must be >= 0, got {self.timestamp_interval}")
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError(f"temperature must be between 0 and 2, got {self.temperature}")


def get_runtime_config(
    db_path: str | None = None,
    llm_model: str | None = None,
    temperature: float | None = None,
    assistant_enabled: bool = True,
    verbose: bool = False,
) -> RuntimeConfig:
    """
    Create a runtime configuration with sensible defaults.

    Args:
        db_path: Override workspace database path
        llm_model: Override LLM model
        temperature: Override sampling temperature
        assistant_enabled: Turn the assistant on or off
        verbose: Enable verbose output

    Returns:
        Configured RuntimeConfig instance
    """
    config = RuntimeConfig(
        assistant_enabled=assistant_enabled,
        verbose=verbose,
    )

    if db_path:
        config.db_path = db_path
    if llm_model:
        config.llm_model = llm_model
    if temperature is not None:
        config.temperature = temperature

    if verbose:
        print(f"Workspace: {config.db_path}")
        print(f"Model: {config.llm_model}")

    return config


# Global config instance (can be set by CLI/web server)
_global_config: RuntimeConfig | None = None


def set_global_config(config: RuntimeConfig) -> None:
    """Set the global runtime configuration."""
    global _global_config
    _global_config = config


def get_global_config() -> RuntimeConfig:
    """Get the global runtime configuration, creating default if needed."""
    global _global_config
    if _global_config is None:
        _global_config = RuntimeConfig()
    return _global_config
