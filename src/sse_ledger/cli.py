"""Command line access to a ledger: store batches, search, and dump the namespace."""

# ruff: noqa: T201  # CLI intentionally prints results

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from pathlib import Path

import orjson

from sse_ledger.config import Settings
from sse_ledger.domain.errors import LedgerError
from sse_ledger.observability.logging import configure_logging
from sse_ledger.observability.metrics import get_metrics, init_metrics
from sse_ledger.observability.tracing import init_tracing
from sse_ledger.service_layer.contract import SseContract


def _decode(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def _read_payload(path: Path | None) -> bytes | None:
    if path is None:
        return None
    return path.read_bytes()


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sse-ledger", description=__doc__)
    parser.add_argument(
        "--sqlite",
        type=Path,
        default=None,
        help="SQLite ledger file (default: backend from SSE_LEDGER_* settings)",
    )
    parser.add_argument(
        "--metrics-file",
        type=Path,
        default=None,
        help="Write the Prometheus text exposition here after the command finishes",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    store = subcommands.add_parser("store", help="Store segment and index pair documents")
    store.add_argument(
        "--segments",
        type=Path,
        help="JSON file holding a list of {pointer, data} objects",
    )
    store.add_argument(
        "--indices",
        type=Path,
        help="JSON file holding a list of {token, pointers} objects",
    )

    search = subcommands.add_parser("search", help="Print ciphertexts matching any query token")
    search.add_argument("query", nargs="+", help="Query tokens")

    subcommands.add_parser("dump", help="Print every stored value in key order")
    subcommands.add_parser("export", help="Print every stored key, category and value")
    return parser


async def run_command(args: argparse.Namespace, contract: SseContract) -> bytes:
    """Execute one parsed command and return its JSON output."""
    if args.command == "store":
        await contract.store_from_pairs(_read_payload(args.segments), _read_payload(args.indices))
        return orjson.dumps({"status": "ok"})
    if args.command == "search":
        results = await contract.search(" ".join(args.query))
        return orjson.dumps([_decode(value) for value in results])
    if args.command == "dump":
        return orjson.dumps([_decode(value) for value in await contract.read_all()])
    if args.command == "export":
        assets = await contract.export()
        return orjson.dumps(
            [
                {
                    "key": asset.key,
                    "category": asset.category.name.lower() if asset.category else None,
                    "value": _decode(asset.value),
                }
                for asset in assets
            ]
        )
    raise ValueError(f"Unknown command: {args.command}")


async def _run(args: argparse.Namespace, settings: Settings) -> bytes:
    if args.sqlite is not None:
        settings = settings.model_copy(update={"ledger_backend": "sqlite", "sqlite_path": args.sqlite})
    async with SseContract.from_settings(settings) as contract:
        return await run_command(args, contract)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    settings = Settings()
    configure_logging(settings.log_level, settings.log_json)
    init_metrics(service_name=settings.service_name)
    init_tracing(service_name=settings.service_name)

    try:
        output = asyncio.run(_run(args, settings))
    except LedgerError as exc:
        print(f"Error: {exc}")
        return 1
    except OSError as exc:
        print(f"Error: {exc}")
        return 1
    finally:
        if args.metrics_file is not None:
            args.metrics_file.write_bytes(get_metrics())

    print(output.decode("utf-8"))
    return 0
