"""plasm: WASM execution with verifiable Ed25519 receipts."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("plasm")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from plasm.client import Client, Job
from plasm.config import ClientConfig
from plasm.codes import TransportMode, TrustKind
from plasm.errors import (
    ConfigError,
    FormatError,
    JobTimeoutError,
    MissingKeyMaterialError,
    NoEligibleNodeError,
    PlasmError,
    TransportError,
)
from plasm.kernel.manifest import Manifest, ResourceLimits
from plasm.kernel.receipt import AttestedTrust, LocalTrust, Receipt, canonical_message
from plasm.kernel.verifier import sign_receipt, verify_receipt, verify_signature
from plasm.result import Result
from plasm.transport import LocalTransport, RemoteTransport, Transport, extract_module_output

__all__ = [
    "__version__",
    "Client",
    "Job",
    "ClientConfig",
    "TransportMode",
    "TrustKind",
    "PlasmError",
    "FormatError",
    "MissingKeyMaterialError",
    "TransportError",
    "NoEligibleNodeError",
    "JobTimeoutError",
    "ConfigError",
    "Manifest",
    "ResourceLimits",
    "Receipt",
    "LocalTrust",
    "AttestedTrust",
    "canonical_message",
    "verify_receipt",
    "verify_signature",
    "sign_receipt",
    "Result",
    "Transport",
    "LocalTransport",
    "RemoteTransport",
    "extract_module_output",
]
