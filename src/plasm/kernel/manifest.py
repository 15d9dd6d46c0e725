"""Pydantic models for job manifests.

A manifest binds a module's content hash to the resources a job asks for.
It is a value: changing resources produces a new manifest.
"""

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from plasm.codes import MANIFEST_VERSION
from plasm.errors import FormatError
from plasm.kernel.hash_utils import HASH_PREFIX, hash_module_file


DEFAULT_CPU_CORES = 1
DEFAULT_MEMORY_MB = 128
DEFAULT_TIMEOUT_SECONDS = 300


class ResourceLimits(BaseModel):
    """Validated resource requirements for one job."""
    cpu_cores: int = Field(DEFAULT_CPU_CORES, ge=1)
    memory_mb: int = Field(DEFAULT_MEMORY_MB, ge=1)
    timeout_seconds: int = Field(DEFAULT_TIMEOUT_SECONDS, ge=1)

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)


class Manifest(BaseModel):
    """Resource manifest for a content-addressed module."""
    version: str = MANIFEST_VERSION
    module_hash: str  # "sha256:" + hex digest of the module bytes
    cpu_cores: int = Field(DEFAULT_CPU_CORES, ge=1)
    memory_mb: int = Field(DEFAULT_MEMORY_MB, ge=1)
    timeout_seconds: int = Field(DEFAULT_TIMEOUT_SECONDS, ge=1)

    model_config = ConfigDict(frozen=True, extra="ignore", strict=True)

    @field_validator('module_hash')
    @classmethod
    def validate_module_hash(cls, v: str) -> str:
        """Validate module_hash carries the "sha256:" prefix."""
        if not v.startswith(HASH_PREFIX) or len(v) == len(HASH_PREFIX):
            raise ValueError(f"module_hash '{v}' must look like 'sha256:<hex>'")
        return v

    @classmethod
    def from_module_file(
        cls,
        module_path: Union[str, Path],
        limits: Optional[ResourceLimits] = None,
    ) -> "Manifest":
        """Build a manifest by hashing a module file.

        Raises:
            FileNotFoundError: If the module file does not exist
        """
        limits = limits or ResourceLimits()
        return cls(module_hash=hash_module_file(module_path), **limits.model_dump())

    @classmethod
    def from_dict(cls, data: dict) -> "Manifest":
        """Parse a manifest from its serialized dict form.

        Missing resource fields take their defaults; module_hash is required
        and taken verbatim.
        """
        if not isinstance(data, dict):
            raise FormatError("Invalid manifest: expected a JSON object")
        try:
            return cls(**data)
        except ValidationError as e:
            raise FormatError(f"Invalid manifest: {e}") from e

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "Manifest":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise FormatError(f"Invalid JSON: {e.msg}") from e
        except UnicodeDecodeError as e:
            raise FormatError(f"Invalid JSON: not UTF-8 ({e.reason})") from e
        return cls.from_dict(data)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(), indent=2)

    @property
    def limits(self) -> ResourceLimits:
        return ResourceLimits(
            cpu_cores=self.cpu_cores,
            memory_mb=self.memory_mb,
            timeout_seconds=self.timeout_seconds,
        )

    def with_limits(self, **changes) -> "Manifest":
        """Return a copy with some resource limits replaced.

        Raises:
            FormatError: If a limit is unknown or out of range
        """
        try:
            limits = ResourceLimits(**{**self.limits.model_dump(), **changes})
        except ValidationError as e:
            raise FormatError(f"Invalid resource limits: {e}") from e
        return self.model_copy(update=limits.model_dump())
