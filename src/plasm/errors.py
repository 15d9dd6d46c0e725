"""Exception taxonomy for plasm.

Format problems ("can't check") are exceptions. A well-formed signature that
does not validate ("checked and invalid") is a plain ``False`` from
``verify()`` and never appears here.
"""


class PlasmError(Exception):
    """Base class for all plasm errors."""
    pass


class FormatError(PlasmError, ValueError):
    """Raised for malformed receipts, manifests, hex strings or key material."""
    pass


class MissingKeyMaterialError(FormatError):
    """Raised when a non-local receipt has no public key or no signature."""
    pass


class TransportError(PlasmError, RuntimeError):
    """Raised when execution could not be carried out or broke its contract."""
    pass


class NoEligibleNodeError(TransportError):
    """Raised when discovery finds no peer able to run a job."""
    pass


class JobTimeoutError(TransportError):
    """Raised when waiting for a remote job exceeds its timeout."""
    pass


class ConfigError(PlasmError, ValueError):
    """Raised for an invalid client configuration."""
    pass
