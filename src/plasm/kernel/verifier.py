"""Ed25519 signing and verification for execution receipts.

Scheme (must match every signer in the network):
1. Build the canonical message from the receipt's own fields
2. Hash it with SHA-256
3. Sign / verify the 32-byte digest with Ed25519 (detached signature)

Format problems raise FormatError. A well-formed signature that does not
validate returns False.
"""

import logging
from typing import Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from plasm.codes import LOCAL_PUBKEY_SENTINEL, UNSIGNED_SIGNATURE_SENTINEL
from plasm.errors import FormatError, MissingKeyMaterialError
from plasm.kernel.hash_utils import decode_hex, message_digest
from plasm.kernel.receipt import LocalTrust, Receipt


logger = logging.getLogger(__name__)

PUBLIC_KEY_BYTES = 32
SIGNATURE_BYTES = 64
PRIVATE_KEY_BYTES = 32


def _load_public_key(pubkey_hex: str) -> Ed25519PublicKey:
    if pubkey_hex == LOCAL_PUBKEY_SENTINEL:
        raise FormatError(f"'{LOCAL_PUBKEY_SENTINEL}' is a trust marker, not a public key")
    raw = decode_hex(pubkey_hex, PUBLIC_KEY_BYTES, "public key")
    try:
        return Ed25519PublicKey.from_public_bytes(raw)
    except ValueError as e:
        raise FormatError(f"Invalid public key format: {e}") from e


def _verify_digest(digest: bytes, signature_hex: str, pubkey_hex: str) -> bool:
    public_key = _load_public_key(pubkey_hex)
    signature = decode_hex(signature_hex, SIGNATURE_BYTES, "signature")
    try:
        public_key.verify(signature, digest)
    except InvalidSignature:
        return False
    return True


def verify_signature(message: str, signature_hex: str, pubkey_hex: str) -> bool:
    """Verify a hex signature over the SHA-256 digest of a message.

    Raises:
        FormatError: If the key or signature is not valid hex of the right length
    """
    return _verify_digest(message_digest(message), signature_hex, pubkey_hex)


def verify_receipt(receipt: Receipt, pubkey: Optional[str] = None) -> bool:
    """Verify an execution receipt.

    Local receipts are trusted unconditionally. Otherwise the signature is
    checked against `pubkey` if given, else against the receipt's own
    node_pubkey, over a message recomputed from the receipt fields.

    Raises:
        MissingKeyMaterialError: If there is no key or no signature to check
        FormatError: If the key or signature is malformed
    """
    if isinstance(receipt.trust, LocalTrust):
        return True

    pubkey_hex = pubkey if pubkey is not None else receipt.node_pubkey
    if not pubkey_hex:
        raise MissingKeyMaterialError("Receipt has no public key")
    if not receipt.signature or receipt.signature == UNSIGNED_SIGNATURE_SENTINEL:
        raise MissingKeyMaterialError("Receipt has no signature")

    ok = verify_signature(receipt.canonical_message(), receipt.signature, pubkey_hex)
    if not ok:
        logger.debug(
            "receipt.signature_invalid",
            extra={"module_hash": receipt.module_hash, "pubkey": pubkey_hex},
        )
    return ok


def generate_signing_key() -> Ed25519PrivateKey:
    """Generate a new random Ed25519 signing key."""
    return Ed25519PrivateKey.generate()


def public_key_hex(signing_key: Ed25519PrivateKey) -> str:
    """Hex-encoded raw public key, used as a node's key id."""
    raw = signing_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return raw.hex()


def private_key_hex(signing_key: Ed25519PrivateKey) -> str:
    """Hex-encoded raw 32-byte private seed."""
    raw = signing_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return raw.hex()


def load_signing_key(seed_hex: str) -> Ed25519PrivateKey:
    """Load a signing key from its hex-encoded 32-byte seed.

    Raises:
        FormatError: If the seed is not valid hex of the right length
    """
    raw = decode_hex(seed_hex.strip(), PRIVATE_KEY_BYTES, "private key")
    return Ed25519PrivateKey.from_private_bytes(raw)


def sign_message(message: str, signing_key: Ed25519PrivateKey) -> str:
    """Sign the SHA-256 digest of a message; returns the hex signature."""
    return signing_key.sign(message_digest(message)).hex()


def sign_receipt(
    receipt: Receipt,
    signing_key: Union[Ed25519PrivateKey, str],
) -> Receipt:
    """Attest a receipt, returning a new receipt carrying key and signature.

    Args:
        receipt: Receipt whose execution fields are being attested
        signing_key: Ed25519 private key or its hex seed

    Returns:
        New attested Receipt (the input is left untouched)
    """
    if isinstance(signing_key, str):
        signing_key = load_signing_key(signing_key)

    return receipt.model_copy(update={
        "node_pubkey": public_key_hex(signing_key),
        "signature": sign_message(receipt.canonical_message(), signing_key),
    })
