"""CLI tests for plasm subcommands."""

import json
import sys

import pytest

from plasm import cli
from plasm.kernel.hash_utils import hash_module_bytes
from plasm.kernel.receipt import Receipt
from plasm.kernel.verifier import private_key_hex, public_key_hex

from conftest import WASM_BYTES


def _run_cli(args, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["plasm"] + args)
    return cli.main()


def test_hash(module_file, monkeypatch, capsys):
    _run_cli(["hash", str(module_file)], monkeypatch)
    assert capsys.readouterr().out.strip() == hash_module_bytes(WASM_BYTES)


def test_hash_missing_file(tmp_path, monkeypatch, capsys):
    with pytest.raises(SystemExit) as excinfo:
        _run_cli(["hash", str(tmp_path / "nope.wasm")], monkeypatch)
    assert excinfo.value.code == 1
    assert "WASM file not found" in capsys.readouterr().err


def test_manifest(module_file, monkeypatch, capsys):
    _run_cli(["manifest", str(module_file), "--cpu", "2", "--timeout", "30"], monkeypatch)
    data = json.loads(capsys.readouterr().out)
    assert data == {
        "version": "0.1",
        "module_hash": hash_module_bytes(WASM_BYTES),
        "cpu_cores": 2,
        "memory_mb": 128,
        "timeout_seconds": 30,
    }


def test_verify_local_receipt_ok(tmp_path, monkeypatch, capsys):
    path = tmp_path / "receipt.json"
    Receipt.local("sha256:abc", 0, 5).to_file(path)
    _run_cli(["verify", str(path)], monkeypatch)
    out = capsys.readouterr().out
    assert "Status: OK" in out
    assert "Trust: local" in out


def test_verify_signed_receipt_writes_report(tmp_path, signed_receipt, monkeypatch, capsys):
    path = tmp_path / "receipt.json"
    signed_receipt.to_file(path)
    out_dir = tmp_path / "reports"
    _run_cli(["verify", str(path), "--output-dir", str(out_dir)], monkeypatch)

    out = capsys.readouterr().out
    assert "Status: OK" in out
    report = json.loads((out_dir / "verify_receipt.json").read_text(encoding="utf-8"))
    assert report["ok"] is True
    assert report["trust"] == "attested"
    assert report["node_pubkey"] == signed_receipt.node_pubkey


def test_verify_tampered_receipt_fails(tmp_path, signed_receipt, monkeypatch, capsys):
    path = tmp_path / "receipt.json"
    Receipt(**{**signed_receipt.to_dict(), "exit_code": 1}).to_file(path)
    with pytest.raises(SystemExit) as excinfo:
        _run_cli(["verify", str(path)], monkeypatch)
    assert excinfo.value.code == 1
    assert "Status: FAILED" in capsys.readouterr().out


def test_verify_malformed_key_is_format_error(tmp_path, signed_receipt, monkeypatch, capsys):
    path = tmp_path / "receipt.json"
    signed_receipt.to_file(path)
    with pytest.raises(SystemExit) as excinfo:
        _run_cli(["verify", str(path), "--pubkey", "abcd"], monkeypatch)
    assert excinfo.value.code == 2
    assert "Invalid public key format" in capsys.readouterr().err


def test_verify_non_utf8_receipt_is_format_error(tmp_path, monkeypatch, capsys):
    path = tmp_path / "receipt.json"
    path.write_bytes(b'{"version": "\xff\xfe"}')
    with pytest.raises(SystemExit) as excinfo:
        _run_cli(["verify", str(path)], monkeypatch)
    assert excinfo.value.code == 2
    assert "not UTF-8" in capsys.readouterr().err


def test_keygen_and_sign(tmp_path, unsigned_receipt, monkeypatch, capsys):
    key_path = tmp_path / "node.key"
    _run_cli(["keygen", "--out", str(key_path)], monkeypatch)
    out = capsys.readouterr().out
    assert "[OK] Key generated" in out

    receipt_path = tmp_path / "receipt.json"
    signed_path = tmp_path / "signed.json"
    unsigned_receipt.to_file(receipt_path)
    _run_cli(
        ["sign", str(receipt_path), "--key", str(key_path), "--out", str(signed_path)],
        monkeypatch,
    )
    signed = Receipt.from_file(signed_path)
    assert signed.verify() is True
    assert signed.node_pubkey in out


def test_sign_refuses_local_receipt(tmp_path, signing_key, monkeypatch, capsys):
    key_path = tmp_path / "node.key"
    key_path.write_text(private_key_hex(signing_key), encoding="utf-8")
    receipt_path = tmp_path / "receipt.json"
    Receipt.local("sha256:abc", 0, 5).to_file(receipt_path)
    with pytest.raises(SystemExit) as excinfo:
        _run_cli(["sign", str(receipt_path), "--key", str(key_path)], monkeypatch)
    assert excinfo.value.code == 1
    assert "local execution receipt" in capsys.readouterr().err


def test_sign_prints_json_without_out(tmp_path, signing_key, unsigned_receipt, monkeypatch, capsys):
    key_path = tmp_path / "node.key"
    key_path.write_text(private_key_hex(signing_key), encoding="utf-8")
    receipt_path = tmp_path / "receipt.json"
    unsigned_receipt.to_file(receipt_path)
    _run_cli(["sign", str(receipt_path), "--key", str(key_path)], monkeypatch)
    signed = Receipt.from_json(capsys.readouterr().out)
    assert signed.node_pubkey == public_key_hex(signing_key)


@pytest.mark.e2e
def test_run_local(fake_plasmd, module_file, tmp_path, monkeypatch, capsys):
    receipt_path = tmp_path / "receipt.json"
    with pytest.raises(SystemExit) as excinfo:
        _run_cli(
            [
                "run", str(module_file),
                "--runner", str(fake_plasmd),
                "--input", "Hello, World",
                "--receipt-out", str(receipt_path),
            ],
            monkeypatch,
        )
    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert out.startswith("dlroW ,olleH\n")
    assert "Exit code: 0" in out
    assert "Receipt verified: yes" in out
    assert Receipt.from_file(receipt_path).is_local


@pytest.mark.e2e
def test_run_failure_exit_code(fake_plasmd, module_file, monkeypatch, capsys):
    monkeypatch.setenv("FAKE_PLASMD_EXIT", "2")
    with pytest.raises(SystemExit) as excinfo:
        _run_cli(["run", str(module_file), "--runner", str(fake_plasmd), "--quiet"], monkeypatch)
    assert excinfo.value.code == 1
    assert "Execution complete" not in capsys.readouterr().out


@pytest.mark.e2e
def test_run_runner_from_env(fake_plasmd, module_file, tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("PLASMD_PATH", str(fake_plasmd))
    input_path = tmp_path / "input.txt"
    input_path.write_text("abc", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        _run_cli(["run", str(module_file), "--input-file", str(input_path)], monkeypatch)
    assert excinfo.value.code == 0
    assert capsys.readouterr().out.startswith("cba\n")


def test_run_missing_runner(tmp_path, module_file, monkeypatch, capsys):
    with pytest.raises(SystemExit) as excinfo:
        _run_cli(["run", str(module_file), "--runner", str(tmp_path / "absent")], monkeypatch)
    assert excinfo.value.code == 1
    assert "Failed to start plasmd process" in capsys.readouterr().err


def test_no_command_prints_help(monkeypatch):
    with pytest.raises(SystemExit) as excinfo:
        _run_cli([], monkeypatch)
    assert excinfo.value.code == 1
