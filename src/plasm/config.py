"""Client configuration."""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from plasm.codes import DEFAULT_RUNNER_PATH, TransportMode
from plasm.errors import ConfigError


ENV_MODE = "PLASM_MODE"
ENV_RUNNER_PATH = "PLASMD_PATH"
ENV_WAIT_TIMEOUT = "PLASM_WAIT_TIMEOUT"


class ClientConfig(BaseModel):
    """Validated client options; the transport mode is fixed at construction."""
    mode: TransportMode = TransportMode.LOCAL
    runner_path: str = Field(DEFAULT_RUNNER_PATH, min_length=1)  # plasmd binary for local mode
    wait_timeout: Optional[int] = Field(None, ge=1)  # remote wait bound; None uses manifest timeout

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def create(cls, **options) -> "ClientConfig":
        """Build a config, turning validation failures into ConfigError."""
        try:
            return cls(**options)
        except ValidationError as e:
            raise ConfigError(f"Invalid client configuration: {e}") from e

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "ClientConfig":
        """Build a config from PLASM_* environment variables plus overrides."""
        env = os.environ if environ is None else environ
        options = {}
        if env.get(ENV_MODE):
            options["mode"] = env[ENV_MODE]
        if env.get(ENV_RUNNER_PATH):
            options["runner_path"] = env[ENV_RUNNER_PATH]
        if env.get(ENV_WAIT_TIMEOUT):
            options["wait_timeout"] = env[ENV_WAIT_TIMEOUT]
        options.update(overrides)
        return cls.create(**options)
