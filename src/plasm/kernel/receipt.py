"""Execution receipts and their canonical signable form.

A receipt is a fact about a past execution: which module ran, how it exited,
how long it took, when it finished, and who vouches for it. Receipts are
frozen once built.

Canonical message (byte-exact, shared by every signer and verifier):

    "{version}|{module_hash}|{exit_code}|{wall_time_ms}|{timestamp}"

Two lineages exist:
- attested: parsed from the JSON a remote node signed, carrying a hex
  Ed25519 public key and signature
- local: built by LocalTransport after a subprocess exits, carrying the
  "local_execution" / "unsigned" markers

Local receipts always verify True. That is a trust boundary: the caller ran
the subprocess itself. Never accept a local receipt that arrived from
somewhere else.
"""

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from plasm.codes import (
    LOCAL_PUBKEY_SENTINEL,
    RECEIPT_VERSION,
    UNSIGNED_SIGNATURE_SENTINEL,
    TrustKind,
)
from plasm.errors import FormatError


INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1
UINT64_MAX = 2 ** 64 - 1


@dataclass(frozen=True)
class LocalTrust:
    """The caller executed the module itself; no attestation exists."""
    kind = TrustKind.LOCAL


@dataclass(frozen=True)
class AttestedTrust:
    """A node vouches for the receipt with an Ed25519 signature (both hex)."""
    pubkey: str
    signature: str
    kind = TrustKind.ATTESTED


Trust = Union[LocalTrust, AttestedTrust]


def canonical_message(
    version: str,
    module_hash: str,
    exit_code: int,
    wall_time_ms: int,
    timestamp: int,
) -> str:
    """Format the receipt fields into the message that gets hashed and signed."""
    return f"{version}|{module_hash}|{int(exit_code)}|{int(wall_time_ms)}|{int(timestamp)}"


class Receipt(BaseModel):
    """Execution receipt proving work was done."""
    version: str
    module_hash: str  # "sha256:" + hex digest of the executed module
    exit_code: int = Field(..., ge=INT32_MIN, le=INT32_MAX)
    wall_time_ms: int = Field(..., ge=0, le=UINT64_MAX)
    timestamp: int = Field(..., ge=0, le=UINT64_MAX)  # unix seconds
    node_pubkey: str = ""  # hex Ed25519 key, or the local marker; empty means untrusted
    signature: str = ""  # hex Ed25519 signature, or the unsigned marker

    # Unknown fields are dropped; they are not part of the signed message.
    model_config = ConfigDict(frozen=True, extra="ignore", strict=True)

    @classmethod
    def local(
        cls,
        module_hash: str,
        exit_code: int,
        wall_time_ms: int,
        timestamp: Optional[int] = None,
    ) -> "Receipt":
        """Create an unsigned receipt for a module the caller executed itself."""
        return cls(
            version=RECEIPT_VERSION,
            module_hash=module_hash,
            exit_code=exit_code,
            wall_time_ms=wall_time_ms,
            timestamp=int(time.time()) if timestamp is None else timestamp,
            node_pubkey=LOCAL_PUBKEY_SENTINEL,
            signature=UNSIGNED_SIGNATURE_SENTINEL,
        )

    @property
    def trust(self) -> Trust:
        if self.node_pubkey == LOCAL_PUBKEY_SENTINEL:
            return LocalTrust()
        return AttestedTrust(pubkey=self.node_pubkey, signature=self.signature)

    @property
    def is_local(self) -> bool:
        return isinstance(self.trust, LocalTrust)

    @property
    def is_success(self) -> bool:
        return self.exit_code == 0

    def canonical_message(self) -> str:
        return canonical_message(
            self.version,
            self.module_hash,
            self.exit_code,
            self.wall_time_ms,
            self.timestamp,
        )

    def verify(self, pubkey: Optional[str] = None) -> bool:
        """Verify the receipt signature.

        Args:
            pubkey: Hex public key to check against; defaults to node_pubkey

        Returns:
            True for local receipts and valid signatures, False for a
            well-formed signature that does not validate

        Raises:
            FormatError: If key material is missing or malformed
        """
        from plasm.kernel.verifier import verify_receipt

        return verify_receipt(self, pubkey)

    @classmethod
    def from_dict(cls, data: dict) -> "Receipt":
        if not isinstance(data, dict):
            raise FormatError("Invalid receipt: expected a JSON object")
        try:
            return cls(**data)
        except ValidationError as e:
            raise FormatError(f"Invalid receipt: {e}") from e

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "Receipt":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise FormatError(f"Invalid JSON: {e.msg}") from e
        except UnicodeDecodeError as e:
            raise FormatError(f"Invalid JSON: not UTF-8 ({e.reason})") from e
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return self.model_dump()

    def to_json(self) -> str:
        """Serialize to pretty JSON with fields in declaration order."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Receipt":
        return cls.from_json(Path(path).read_bytes())

    def to_file(self, path: Union[str, Path]) -> None:
        Path(path).write_text(self.to_json() + "\n", encoding="utf-8")
