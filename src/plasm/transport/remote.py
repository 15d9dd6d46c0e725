"""Remote transport executing modules on a discovered worker node.

The network side is injected: a NodeDiscovery picks the peer, a JobSubmitter
moves the job over whatever wire protocol the deployment speaks. This module
owns the contract around them: request validation, bounded waiting, and
refusing receipts that do not come from the node that was picked.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from plasm.codes import LOCAL_PUBKEY_SENTINEL
from plasm.errors import (
    FormatError,
    JobTimeoutError,
    NoEligibleNodeError,
    TransportError,
)
from plasm.kernel.hash_utils import hash_module_bytes
from plasm.kernel.manifest import Manifest
from plasm.kernel.receipt import LocalTrust, Receipt
from plasm.result import Result
from plasm.transport.base import Transport


logger = logging.getLogger(__name__)


class NodeInfo(BaseModel):
    """A worker node picked by discovery."""
    peer_id: str
    pubkey: str  # hex Ed25519 key the node signs receipts with
    addresses: List[str] = Field(default_factory=list)
    capabilities: Dict[str, str] = Field(default_factory=dict)  # e.g. {"arch": "x86_64", "wasm_runtime": "wasmtime"}

    model_config = ConfigDict(frozen=True)


class RemoteJobRequest(BaseModel):
    """Job request shipped to a worker: module bytes plus requirements."""
    job_id: str
    module_hash: str
    wasm_bytes: bytes
    args: List[str] = Field(default_factory=list)
    manifest: Manifest

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_module_file(
        cls,
        module_path: Path,
        manifest: Manifest,
        job_id: Optional[str] = None,
        args: Optional[List[str]] = None,
    ) -> "RemoteJobRequest":
        p = Path(module_path)
        if not p.is_file():
            raise FileNotFoundError(f"WASM file not found: {p}")
        return cls(
            job_id=job_id or str(uuid.uuid4()),
            module_hash=manifest.module_hash,
            wasm_bytes=p.read_bytes(),
            args=args or [],
            manifest=manifest,
        )

    def validate_request(self) -> None:
        """Check the request before it leaves the client.

        Raises:
            FormatError: If the request is empty or its bytes do not match
                the module hash
        """
        if not self.job_id:
            raise FormatError("job_id cannot be empty")
        if not self.wasm_bytes:
            raise FormatError("wasm_bytes cannot be empty")
        computed = hash_module_bytes(self.wasm_bytes)
        if computed != self.module_hash:
            raise FormatError(
                f"Module hash mismatch: expected {self.module_hash}, got {computed}"
            )


class RemoteJobResult(BaseModel):
    """What a worker hands back once a job has finished."""
    job_id: str
    stdout: str
    stderr: str
    exit_code: int
    receipt_json: str  # receipt exactly as the node serialized and signed it

    model_config = ConfigDict(frozen=True)


class NodeDiscovery(ABC):
    """Resolves which peer should execute a job."""

    @abstractmethod
    def find_node(self, manifest: Manifest) -> Optional[NodeInfo]:
        """Return an eligible node for the manifest, or None if there is none."""
        pass


class JobSubmitter(ABC):
    """Moves jobs to and from worker nodes."""

    @abstractmethod
    def submit(
        self,
        node: NodeInfo,
        request: RemoteJobRequest,
        input: Optional[bytes],
    ) -> str:
        """Submit a job to a node; returns the job id the node accepted."""
        pass

    @abstractmethod
    def wait(self, job_id: str, timeout_seconds: float) -> bool:
        """Block until the job finishes; False if the timeout elapsed first."""
        pass

    @abstractmethod
    def fetch_result(self, job_id: str) -> RemoteJobResult:
        """Fetch the result of a finished job."""
        pass


class RemoteTransport(Transport):
    """Execute modules on remote nodes and return their attested receipts.

    There is no retry here: a failed discovery, submission, or wait surfaces
    to the caller as a TransportError.
    """

    def __init__(
        self,
        discovery: NodeDiscovery,
        submitter: JobSubmitter,
        wait_timeout: Optional[float] = None,
    ):
        self.discovery = discovery
        self.submitter = submitter
        self.wait_timeout = wait_timeout

    def _execute(
        self,
        module_path: Path,
        manifest: Manifest,
        input: Optional[bytes],
    ) -> Result:
        request = RemoteJobRequest.from_module_file(module_path, manifest)
        request.validate_request()

        try:
            node = self.discovery.find_node(manifest)
        except (OSError, ConnectionError) as e:
            raise TransportError(f"Node discovery failed: {e}") from e
        if node is None:
            raise NoEligibleNodeError(
                f"No eligible node found for {manifest.module_hash} "
                f"(cpu={manifest.cpu_cores}, memory_mb={manifest.memory_mb})"
            )
        if node.pubkey == LOCAL_PUBKEY_SENTINEL:
            raise TransportError(f"Node {node.peer_id} advertises a local trust marker as its key")

        timeout = self.wait_timeout if self.wait_timeout is not None else manifest.timeout_seconds
        logger.info(
            "transport.remote.submit",
            extra={"peer_id": node.peer_id, "job_id": request.job_id, "timeout": timeout},
        )

        try:
            job_id = self.submitter.submit(node, request, input)
            finished = self.submitter.wait(job_id, timeout)
            if not finished:
                logger.warning(
                    "transport.remote.timeout",
                    extra={"peer_id": node.peer_id, "job_id": job_id, "timeout": timeout},
                )
                raise JobTimeoutError(f"Job {job_id} did not finish within {timeout}s")
            job_result = self.submitter.fetch_result(job_id)
        except (OSError, ConnectionError) as e:
            raise TransportError(f"Remote peer {node.peer_id} unreachable: {e}") from e

        return self._build_result(node, job_id, job_result)

    def _build_result(
        self,
        node: NodeInfo,
        job_id: str,
        job_result: RemoteJobResult,
    ) -> Result:
        if job_result.job_id != job_id:
            raise TransportError(
                f"Result job id mismatch. Expected {job_id}, got {job_result.job_id}"
            )

        receipt = Receipt.from_json(job_result.receipt_json)
        if isinstance(receipt.trust, LocalTrust):
            raise TransportError("Remote node returned a receipt with the local trust marker")
        if receipt.node_pubkey != node.pubkey:
            raise TransportError(
                f"Receipt signed by {receipt.node_pubkey or '<none>'}, "
                f"expected node key {node.pubkey}"
            )
        if receipt.exit_code != job_result.exit_code:
            raise TransportError(
                f"Receipt exit code {receipt.exit_code} does not match "
                f"reported exit code {job_result.exit_code}"
            )

        logger.info(
            "transport.remote.complete",
            extra={"peer_id": node.peer_id, "job_id": job_id, "exit_code": receipt.exit_code},
        )
        return Result(stdout=job_result.stdout, stderr=job_result.stderr, receipt=receipt)
