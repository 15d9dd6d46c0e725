"""Local transport executing modules through the plasmd CLI."""

import logging
import subprocess
import time
from pathlib import Path
from typing import List, Optional

from plasm.codes import DEFAULT_RUNNER_PATH
from plasm.errors import TransportError
from plasm.kernel.manifest import Manifest
from plasm.kernel.receipt import Receipt
from plasm.result import Result
from plasm.transport.base import Transport
from plasm.transport.output import extract_module_output


logger = logging.getLogger(__name__)


class LocalTransport(Transport):
    """Run modules with a local plasmd binary and issue unsigned receipts.

    The receipts carry the local trust marker and always verify. They are
    only meaningful to the process that ran the subprocess.
    """

    def __init__(self, runner_path: str = DEFAULT_RUNNER_PATH):
        self.runner_path = runner_path

    def build_command(self, module_path: Path) -> List[str]:
        return [self.runner_path, "run", "--quiet", str(module_path)]

    def _execute(
        self,
        module_path: Path,
        manifest: Manifest,
        input: Optional[bytes],
    ) -> Result:
        cmd = self.build_command(module_path)
        logger.debug(
            "transport.local.spawn",
            extra={"cmd": cmd, "module_hash": manifest.module_hash},
        )

        start = time.monotonic()
        try:
            # communicate() feeds stdin while draining both output pipes, and
            # the context manager closes every pipe and reaps the child.
            with subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            ) as proc:
                stdout_bytes, stderr_bytes = proc.communicate(input=input)
                exit_code = proc.returncode
        except OSError as e:
            logger.error(
                "transport.local.spawn_failed",
                extra={"runner": self.runner_path, "error": str(e)},
            )
            raise TransportError(f"Failed to start plasmd process: {e}") from e
        wall_time_ms = int((time.monotonic() - start) * 1000)

        receipt = Receipt.local(
            module_hash=manifest.module_hash,
            exit_code=exit_code,
            wall_time_ms=wall_time_ms,
        )
        logger.info(
            "transport.local.complete",
            extra={
                "module_hash": manifest.module_hash,
                "exit_code": exit_code,
                "wall_time_ms": wall_time_ms,
            },
        )

        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")
        return Result(
            stdout=extract_module_output(stdout),
            stderr=stderr,
            receipt=receipt,
        )
