from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bothost.core.lifecycle import AppLifecycleEvents


class PathsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    data_dir: str = "data"
    assets_dir: str = "assets"
    modules_dir: str = "modules"
    logs_dir: str = "logs"


class ModuleLoaderConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    # lifecycle event the deferred ("ready") phase waits for
    ready_event: AppLifecycleEvents = AppLifecycleEvents.HTTP_SERVER_READY
    # None waits forever
    ready_timeout_seconds: Optional[float] = Field(default=None, ge=0)

    @field_validator("ready_event", mode="before")
    @classmethod
    def _norm_event(cls, v):  # noqa: ANN001
        if isinstance(v, str):
            return v.strip().upper()
        return v


class ErrorsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    include_tracebacks: bool = False


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        vv = str(v or "").strip().upper()
        if vv not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("unknown log level")
        return vv


class HostConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    schema_version: int = Field(default=1, ge=1, le=10)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    modules: ModuleLoaderConfig = Field(default_factory=ModuleLoaderConfig)
    errors: ErrorsConfig = Field(default_factory=ErrorsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
