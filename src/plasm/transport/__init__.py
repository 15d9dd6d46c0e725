"""Execution transports: local subprocess and remote worker."""

from .base import Transport
from .local import LocalTransport
from .output import extract_module_output
from .remote import (
    JobSubmitter,
    NodeDiscovery,
    NodeInfo,
    RemoteJobRequest,
    RemoteJobResult,
    RemoteTransport,
)

__all__ = [
    "Transport",
    "LocalTransport",
    "RemoteTransport",
    "NodeDiscovery",
    "JobSubmitter",
    "NodeInfo",
    "RemoteJobRequest",
    "RemoteJobResult",
    "extract_module_output",
]
