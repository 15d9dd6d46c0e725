"""Packaging regression tests.

Tests that verify the package structure and import boundary.
"""

import re
from pathlib import Path


def test_source_layout():
    """The package and its subpackages live under src/ with __init__ files."""
    repo_root = Path(__file__).resolve().parent.parent
    src_plasm = repo_root / "src" / "plasm"

    assert src_plasm.exists(), "plasm package should exist in src/"
    for sub in ("kernel", "transport", "_internal"):
        assert (src_plasm / sub / "__init__.py").exists(), f"plasm.{sub} must be a regular package"


def test_import_boundary():
    import plasm
    import plasm.kernel  # noqa: F401
    import plasm.transport  # noqa: F401

    # "dev" when running from a checkout that was never installed
    assert plasm.__version__ in ("0.1.0", "dev")


def test_kernel_does_not_import_transports():
    """Receipts and verification must stay usable without subprocess or remote code."""
    kernel_dir = Path(__file__).resolve().parent.parent / "src" / "plasm" / "kernel"
    for path in kernel_dir.glob("*.py"):
        text = path.read_text(encoding="utf-8")
        assert not re.search(r"^\s*(import|from)\s+plasm\.transport", text, re.M), f"{path.name} imports a transport"
        assert not re.search(r"^\s*(import|from)\s+subprocess", text, re.M), f"{path.name} imports subprocess"
