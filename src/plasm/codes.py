"""Protocol constants for plasm.

These constants prevent stringly-typed modes and trust markers from
leaking through client code.
"""

from enum import Enum


RECEIPT_VERSION = "0.1"
MANIFEST_VERSION = "0.1"

# Wire-level trust markers for receipts produced by a local subprocess.
# They are never valid key material.
LOCAL_PUBKEY_SENTINEL = "local_execution"
UNSIGNED_SIGNATURE_SENTINEL = "unsigned"

DEFAULT_RUNNER_PATH = "plasmd"


class TransportMode(str, Enum):
    """Where a job is executed."""

    LOCAL = "local"
    REMOTE = "remote"


class TrustKind(str, Enum):
    """Who vouches for a receipt."""

    LOCAL = "local"
    ATTESTED = "attested"
