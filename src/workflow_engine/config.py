"""Configuration for the workflow engine service.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Nothing is required: with no configuration the service keeps its state under
`./data` and listens on localhost.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from workflow_engine.store import DEFINITIONS_FILENAME, INSTANCES_FILENAME


class EngineSettings(BaseSettings):
    """Settings for the engine, its store and the REST API.

    Environment variables:
    - LOG_LEVEL                     (optional)
    - WORKFLOW_DATA_DIR             (optional)
    - WORKFLOW_PERSISTENCE_ENABLED  (optional)
    - WORKFLOW_HOST / WORKFLOW_PORT (optional)
    - WORKFLOW_CORS_ORIGINS         (optional)

    Notes:
        Tests can point at a different env file via
        `EngineSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    data_dir: Path = Field(
        default=Path("data"),
        validation_alias="WORKFLOW_DATA_DIR",
        description="Directory where definitions and instances are persisted",
    )
    persistence_enabled: bool = Field(
        default=True,
        validation_alias="WORKFLOW_PERSISTENCE_ENABLED",
        description="If false, state lives in memory only and is lost on restart.",
    )

    host: str = Field(default="127.0.0.1", validation_alias="WORKFLOW_HOST")
    port: int = Field(default=8000, validation_alias="WORKFLOW_PORT", ge=1, le=65535)

    cors_origins: str = Field(
        default="*",
        validation_alias="WORKFLOW_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    @property
    def definitions_file(self) -> Path:
        return self.data_dir / DEFINITIONS_FILENAME

    @property
    def instances_file(self) -> Path:
        return self.data_dir / INSTANCES_FILENAME

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
