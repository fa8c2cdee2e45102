from __future__ import annotations

import argparse
import sys
from typing import List, Optional, Tuple

from .domain.errors import MultisigToolError

DEFAULT_KEY_WEIGHT = 1


def _parse_key(text: str) -> Tuple[str, int]:
    """Parse ``account-hash-<hex>[:weight]``."""
    account_hash, sep, weight = text.rpartition(":")
    if not sep:
        return text, DEFAULT_KEY_WEIGHT
    try:
        return account_hash, int(weight)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid weight in {text!r}") from exc


def _add_configuration_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--key",
        dest="keys",
        action="append",
        type=_parse_key,
        default=[],
        metavar="HASH[:WEIGHT]",
        help="Associated key; repeat for more. The first one is the primary key.",
    )
    parser.add_argument("--remove-primary", action="store_true", help="Remove the primary key after setup.")
    parser.add_argument("--key-management", type=int, default=1, help="Key management threshold (default: 1)")
    parser.add_argument("--deployment", type=int, default=1, help="Deployment threshold (default: 1)")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject duplicate keys, too many keys and inconsistent thresholds.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="multisig-tool")
    sub = parser.add_subparsers(dest="cmd", required=True)

    acct = sub.add_parser("account-hash", help="Print the formatted account hash of a public key.")
    source = acct.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", default=None, help="PEM or hex public key file.")
    source.add_argument("--hex", default=None, help="Tag-prefixed hex public key.")
    source.add_argument("--validate", default=None, help="Formatted account hash to validate.")

    preview = sub.add_parser("preview", help="Print the contract source for a key configuration.")
    _add_configuration_args(preview)

    gen = sub.add_parser("generate", help="Write the contract project and build it.")
    _add_configuration_args(gen)
    gen.add_argument("--root", default=None, help="Parent folder of the project (default: home directory)")
    gen.add_argument("--name", default=None, help="Contract name (default: multisig_setup_contract)")

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser


def _configure(pipeline, args: argparse.Namespace) -> None:
    pipeline.set_configuration(
        args.keys,
        args.remove_primary,
        args.key_management,
        args.deployment,
        strict=args.strict,
    )


def _run(args: argparse.Namespace) -> int:
    if args.cmd == "account-hash":
        from .domain.identity import (
            account_hash_from_file,
            account_hash_from_hex_public_key,
            validate_account_hash,
        )

        if args.file is not None:
            print(account_hash_from_file(args.file))
        elif args.hex is not None:
            print(account_hash_from_hex_public_key(args.hex))
        else:
            validate_account_hash(args.validate)
            print(args.validate)
        return 0

    if args.cmd == "preview":
        from .services.pipeline import get_pipeline

        pipeline = get_pipeline()
        _configure(pipeline, args)
        sys.stdout.write(pipeline.preview_source())
        return 0

    if args.cmd == "generate":
        from .services.pipeline import get_pipeline

        pipeline = get_pipeline()
        _configure(pipeline, args)
        pipeline.set_project_root(args.root or pipeline.default_project_root())
        pipeline.set_contract_name(args.name or pipeline.default_contract_name())
        build = pipeline.generate()
        with build.output:
            for line in build.output:
                print(line, flush=True)
        returncode = build.wait()
        return int(returncode or 0)

    if args.cmd == "serve":
        import uvicorn

        uvicorn.run("multisig_tool.api.main:app", host=args.host, port=args.port)
        return 0

    raise SystemExit(f"Unknown command: {args.cmd}")


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        return _run(args)
    except MultisigToolError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
