"""Client and job wrappers around a transport.

    client = Client(mode="local", runner_path="/usr/local/bin/plasmd")
    result = client.create_job("hello.wasm").with_timeout(30).submit("Hello, World")
    assert result.receipt.verify()
"""

from pathlib import Path
from typing import Optional, Union

from plasm.codes import TransportMode
from plasm.config import ClientConfig
from plasm.errors import ConfigError
from plasm.kernel.manifest import Manifest
from plasm.result import Result
from plasm.transport.base import Transport
from plasm.transport.local import LocalTransport
from plasm.transport.remote import JobSubmitter, NodeDiscovery, RemoteTransport


class Job:
    """A module paired with its manifest, bound to a client's transport.

    Resource setters return a new Job; the manifest is never mutated.
    """

    def __init__(self, transport: Transport, module_path: Union[str, Path], manifest: Optional[Manifest] = None):
        self._transport = transport
        self._module_path = Path(module_path)
        self._manifest = manifest if manifest is not None else Manifest.from_module_file(self._module_path)

    @property
    def module_path(self) -> Path:
        return self._module_path

    @property
    def manifest(self) -> Manifest:
        return self._manifest

    def with_limits(self, **changes) -> "Job":
        """Return a job whose manifest has some resource limits replaced."""
        return Job(self._transport, self._module_path, self._manifest.with_limits(**changes))

    def with_cpu(self, cores: int) -> "Job":
        return self.with_limits(cpu_cores=cores)

    def with_memory(self, memory_mb: int) -> "Job":
        return self.with_limits(memory_mb=memory_mb)

    def with_timeout(self, timeout_seconds: int) -> "Job":
        return self.with_limits(timeout_seconds=timeout_seconds)

    def submit(self, input: Optional[Union[str, bytes]] = None) -> Result:
        """Execute the job and return its result."""
        return self._transport.execute(self._module_path, self._manifest, input)

    def wait(self, input: Optional[Union[str, bytes]] = None) -> Result:
        """Submit and block for the result (execution is synchronous)."""
        return self.submit(input)


class Client:
    """Entry point: picks the transport once, from validated configuration."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        discovery: Optional[NodeDiscovery] = None,
        submitter: Optional[JobSubmitter] = None,
        **options,
    ):
        if config is not None and options:
            raise ConfigError("Pass either a ClientConfig or keyword options, not both")
        self.config = config if config is not None else ClientConfig.create(**options)
        self._transport = self._build_transport(discovery, submitter)

    def _build_transport(
        self,
        discovery: Optional[NodeDiscovery],
        submitter: Optional[JobSubmitter],
    ) -> Transport:
        if self.config.mode == TransportMode.LOCAL:
            return LocalTransport(self.config.runner_path)
        if self.config.mode == TransportMode.REMOTE:
            if discovery is None or submitter is None:
                raise ConfigError("Remote mode requires a node discovery and a job submitter")
            return RemoteTransport(discovery, submitter, wait_timeout=self.config.wait_timeout)
        raise ConfigError(f"Invalid mode: {self.config.mode}")

    @property
    def transport(self) -> Transport:
        return self._transport

    def create_job(self, module_path: Union[str, Path]) -> Job:
        """Create a job for a module file (hashes the file once)."""
        return Job(self._transport, module_path)
