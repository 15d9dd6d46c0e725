"""Plasm CLI: run modules locally and check execution receipts."""

import argparse
import logging
import os
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import Optional


def _read_input(args) -> Optional[bytes]:
    if args.input is not None and args.input_file is not None:
        print("Error: Cannot specify both --input and --input-file.", file=sys.stderr)
        sys.exit(1)
    if args.input_file is not None:
        return Path(args.input_file).read_bytes()
    if args.input is not None:
        return args.input.encode("utf-8")
    return None


def _add_limit_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--cpu", type=int, default=None, help="CPU cores required")
    parser.add_argument("--memory", type=int, default=None, help="Memory limit (MB)")
    parser.add_argument("--timeout", type=int, default=None, help="Timeout (seconds)")


def _limit_changes(args) -> dict:
    changes = {
        "cpu_cores": args.cpu,
        "memory_mb": args.memory,
        "timeout_seconds": args.timeout,
    }
    return {k: v for k, v in changes.items() if v is not None}


def main():
    """Main CLI entry point for plasm commands."""
    try:
        plasm_version = get_version("plasm")
    except PackageNotFoundError:
        plasm_version = "dev"

    parser = argparse.ArgumentParser(
        prog="plasm",
        description="Plasm: WASM execution with verifiable receipts"
    )
    parser.add_argument("--version", action="version", version=f"plasm {plasm_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log transport and verification events to stderr."
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Execute a WASM module locally through plasmd",
        parents=[parent_parser]
    )
    run_parser.add_argument("module_path", type=Path, help="Path to WASM module")
    run_parser.add_argument("--input", default=None, help="Text fed to the module's stdin")
    run_parser.add_argument("--input-file", type=Path, default=None, help="File fed to the module's stdin")
    run_parser.add_argument(
        "--runner",
        default=None,
        help="Path to plasmd binary (defaults to $PLASMD_PATH or 'plasmd')"
    )
    run_parser.add_argument("--receipt-out", type=Path, default=None, help="Write the receipt JSON here")
    _add_limit_arguments(run_parser)

    # verify command
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify an execution receipt",
        parents=[parent_parser]
    )
    verify_parser.add_argument("receipt_path", type=Path, help="Path to receipt JSON")
    verify_parser.add_argument(
        "--pubkey",
        default=None,
        help="Hex public key to verify against (defaults to the receipt's node_pubkey)"
    )
    verify_parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output directory for report"
    )

    # manifest command
    manifest_parser = subparsers.add_parser(
        "manifest",
        help="Print the job manifest for a module",
        parents=[parent_parser]
    )
    manifest_parser.add_argument("module_path", type=Path, help="Path to WASM module")
    _add_limit_arguments(manifest_parser)

    # hash command
    hash_parser = subparsers.add_parser(
        "hash",
        help="Print the content hash of a module",
        parents=[parent_parser]
    )
    hash_parser.add_argument("module_path", type=Path, help="Path to WASM module")

    # keygen command
    keygen_parser = subparsers.add_parser(
        "keygen",
        help="Generate an Ed25519 signing key",
        parents=[parent_parser]
    )
    keygen_parser.add_argument("--out", type=Path, default=None, help="Write the hex private seed here")

    # sign command
    sign_parser = subparsers.add_parser(
        "sign",
        help="Attest a receipt with a signing key",
        parents=[parent_parser]
    )
    sign_parser.add_argument("receipt_path", type=Path, help="Path to receipt JSON")
    sign_parser.add_argument("--key", type=Path, required=True, help="Path to hex private seed")
    sign_parser.add_argument("--out", type=Path, default=None, help="Write the signed receipt here")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )

    from .errors import FormatError, PlasmError

    if args.command == "run":
        try:
            from .client import Client
            from .config import ClientConfig

            overrides = {"mode": "local"}
            if args.runner:
                overrides["runner_path"] = args.runner
            client = Client(ClientConfig.from_env(**overrides))

            job = client.create_job(Path(args.module_path).resolve())
            changes = _limit_changes(args)
            if changes:
                job = job.with_limits(**changes)

            result = job.submit(_read_input(args))

            if result.stdout:
                print(result.stdout)
            if args.receipt_out:
                result.receipt.to_file(args.receipt_out)

            if not args.quiet:
                status = "OK" if result.success else "FAILED"
                print(f"[{status}] Execution complete")
                print(f"  Exit code: {result.exit_code}")
                print(f"  Wall time: {result.receipt.wall_time_ms}ms")
                print(f"  Module: {result.receipt.module_hash}")
                print(f"  Receipt verified: {'yes' if result.receipt.verify() else 'no'}")
                if args.receipt_out:
                    print(f"  Receipt: {args.receipt_out}")
            sys.exit(0 if result.success else 1)
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except PlasmError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    elif args.command == "verify":
        try:
            from .kernel.receipt import Receipt
            from ._internal.canonical_json import write_report

            receipt = Receipt.from_file(Path(args.receipt_path).resolve())
            ok = receipt.verify(args.pubkey)

            report_out = None
            if args.output_dir is not None:
                report = {
                    "ok": ok,
                    "trust": receipt.trust.kind.value,
                    "module_hash": receipt.module_hash,
                    "exit_code": receipt.exit_code,
                    "node_pubkey": args.pubkey or receipt.node_pubkey,
                }
                report_out = write_report(Path(args.output_dir).resolve(), "verify_receipt.json", report)
            if not args.quiet:
                print(f"[{'OK' if ok else 'FAILED'}] Verification complete")
                if report_out is not None:
                    print(f"  Report: {report_out}")
                print(f"  Status: {'OK' if ok else 'FAILED'}")
                print(f"  Trust: {receipt.trust.kind.value}")
                print(f"  Module: {receipt.module_hash}")
            if not ok:
                sys.exit(1)
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except FormatError as e:
            # Malformed input: nothing could be checked.
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(2)
    elif args.command == "manifest":
        try:
            from .kernel.manifest import Manifest, ResourceLimits

            limits = ResourceLimits(**_limit_changes(args))
            manifest = Manifest.from_module_file(Path(args.module_path).resolve(), limits)
            print(manifest.to_json())
        except (FileNotFoundError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    elif args.command == "hash":
        try:
            from .kernel.hash_utils import hash_module_file

            print(hash_module_file(Path(args.module_path).resolve()))
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    elif args.command == "keygen":
        from .kernel.verifier import generate_signing_key, private_key_hex, public_key_hex

        signing_key = generate_signing_key()
        if args.out is not None:
            args.out.write_text(private_key_hex(signing_key) + "\n", encoding="utf-8")
            os.chmod(args.out, 0o600)
            if not args.quiet:
                print("[OK] Key generated")
                print(f"  Private key: {args.out}")
                print(f"  Public key: {public_key_hex(signing_key)}")
        else:
            print(f"private_key: {private_key_hex(signing_key)}")
            print(f"public_key: {public_key_hex(signing_key)}")
    elif args.command == "sign":
        try:
            from .kernel.receipt import Receipt
            from .kernel.verifier import load_signing_key, sign_receipt

            receipt = Receipt.from_file(Path(args.receipt_path).resolve())
            if receipt.is_local:
                print("Error: Refusing to attest a local execution receipt.", file=sys.stderr)
                sys.exit(1)
            signing_key = load_signing_key(args.key.read_text(encoding="utf-8"))
            signed = sign_receipt(receipt, signing_key)

            if args.out is not None:
                signed.to_file(args.out)
                if not args.quiet:
                    print("[OK] Receipt signed")
                    print(f"  Receipt: {args.out}")
                    print(f"  Public key: {signed.node_pubkey}")
            else:
                print(signed.to_json())
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except FormatError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(2)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
