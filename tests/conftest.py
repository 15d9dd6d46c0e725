"""Pytest configuration and shared fixtures.

No sys.path hacks - tests import from the installed plasm package.
"""

import os
import stat
import sys
from pathlib import Path

import pytest

from plasm.kernel.receipt import Receipt
from plasm.kernel.verifier import generate_signing_key, sign_receipt


WASM_BYTES = b"\x00asm\x01\x00\x00\x00hello"

# Stand-in for the plasmd daemon. It reverses stdin like the hello example
# module, prints it without a newline, then logs on the same stream the way
# the real daemon does.
FAKE_PLASMD_SOURCE = '''\
import os
import sys

args = sys.argv[1:]
if args[:2] != ["run", "--quiet"] or len(args) != 3:
    sys.stderr.write("bad args: %r\\n" % (args,))
    sys.exit(64)
if not os.path.exists(args[2]):
    sys.stderr.write("module not found\\n")
    sys.exit(66)

mode = os.environ.get("FAKE_PLASMD_MODE", "reverse")
out = sys.stdout.buffer
if mode == "stream":
    # Echo while reading, before stdin is fully consumed.
    while True:
        chunk = sys.stdin.buffer.read(4096)
        if not chunk:
            break
        out.write(chunk)
        out.flush()
    out.write(b"\\n")
else:
    data = sys.stdin.buffer.read().decode("utf-8")
    out.write(data[::-1].encode("utf-8"))
    out.write(b"\\x1b[2m2025-11-09T04:50:35.000Z\\x1b[0m \\x1b[32mINFO\\x1b[0m plasmd: module finished\\n")
    out.write(b"2025-11-09T04:50:36.000Z INFO plasmd: exit\\n")
out.flush()
sys.stderr.write("plasmd diagnostics\\n")
sys.exit(int(os.environ.get("FAKE_PLASMD_EXIT", "0")))
'''


def pytest_collection_modifyitems(config, items):
    """Skip subprocess tests where a shebang script cannot be executed."""
    if os.name != "nt":
        return
    skip_e2e = pytest.mark.skip(reason="stand-in plasmd relies on a shebang script")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


@pytest.fixture
def module_file(tmp_path: Path) -> Path:
    path = tmp_path / "hello.wasm"
    path.write_bytes(WASM_BYTES)
    return path


@pytest.fixture
def fake_plasmd(tmp_path: Path) -> Path:
    path = tmp_path / "plasmd"
    path.write_text(f"#!{sys.executable}\n" + FAKE_PLASMD_SOURCE, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def signing_key():
    return generate_signing_key()


@pytest.fixture
def unsigned_receipt() -> Receipt:
    return Receipt(
        version="0.1",
        module_hash="sha256:" + "ab" * 32,
        exit_code=0,
        wall_time_ms=1500,
        timestamp=1762663835,
    )


@pytest.fixture
def signed_receipt(unsigned_receipt: Receipt, signing_key) -> Receipt:
    return sign_receipt(unsigned_receipt, signing_key)
