"""Configuration schema for frame-commander."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings


class StoreConfig(BaseModel):
    """Local project store settings."""

    marker_dir: str = ".frame"
    config_file: str = "config.json"
    tasks_file: str = "tasks.json"
    max_file_bytes: int = 2 * 1024 * 1024
    tree_max_depth: int = 6
    tree_max_entries: int = 2000
    tree_ignore: list[str] = Field(
        default_factory=lambda: [".git", "node_modules", "__pycache__", ".venv", ".DS_Store", ".frame"]
    )


class RequestsConfig(BaseModel):
    """Store request handling."""

    timeout_s: float | None = None  # None: wait forever


class FocusConfig(BaseModel):
    """Focus restore behaviour."""

    history_depth: int = 1


class TerminalConfig(BaseModel):
    """Terminal collaborator."""

    agent_command: str = "claude"
    echo_commands: bool = True


class LoggingConfig(BaseModel):
    level: str = "WARNING"


class Config(BaseSettings):
    """Root configuration for frame-commander."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    requests: RequestsConfig = Field(default_factory=RequestsConfig)
    focus: FocusConfig = Field(default_factory=FocusConfig)
    terminal: TerminalConfig = Field(default_factory=TerminalConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(
        env_prefix="FRAME_COMMANDER_",
        env_nested_delimiter="__",
        extra="ignore",
    )
