"""Transport contract for module execution."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from plasm.errors import TransportError
from plasm.kernel.manifest import Manifest
from plasm.result import Result


class Transport(ABC):
    """
    Base class for execution strategies.

    A transport runs a module described by a manifest and returns the
    captured output with a receipt. Whatever the strategy, the receipt must
    be bound to the manifest's module hash; `execute` enforces that.
    """

    @abstractmethod
    def _execute(
        self,
        module_path: Path,
        manifest: Manifest,
        input: Optional[bytes],
    ) -> Result:
        """
        Run the module and build the result.

        Args:
            module_path: Path to the WASM module
            manifest: Job manifest (module hash and resource limits)
            input: Bytes for the module's stdin, or None

        Returns:
            Result with output and receipt
        """
        pass

    def execute(
        self,
        module_path: Union[str, Path],
        manifest: Manifest,
        input: Optional[Union[str, bytes]] = None,
    ) -> Result:
        """Execute a module and return its output and receipt.

        Raises:
            TransportError: If execution fails or the receipt is bound to
                another module
        """
        if isinstance(input, str):
            input = input.encode("utf-8")

        result = self._execute(Path(module_path), manifest, input)

        if result.receipt.module_hash != manifest.module_hash:
            raise TransportError(
                f"Receipt module hash mismatch. Expected {manifest.module_hash}, "
                f"got {result.receipt.module_hash}"
            )
        return result
