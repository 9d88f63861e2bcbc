"""
Command-line interface for bulk transfer planning.

Prints the unsigned transactions a distribution would need. Nothing is
signed or submitted.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, List

import structlog

from bulk_transfer import __version__
from bulk_transfer.config import NetworkType, TransferSettings, get_settings, set_settings
from bulk_transfer.core.generator import (
    NativeTransferConfig,
    TokenTransferConfig,
    generate_bulk_native_transfers,
    generate_bulk_token_transfers,
    generate_complete_bulk_token_transfers,
)
from bulk_transfer.errors import BulkTransferError, ConfigError
from bulk_transfer.node.rpc import SolanaRpcAdapter


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Logs go to stderr so the JSON plan on stdout stays parseable
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="bulk-transfer",
        description="Plan unsigned Solana bulk transfer transactions",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    plan_parser = subparsers.add_parser("plan", help="Plan a distribution")
    plan_parser.add_argument(
        "kind",
        choices=["native", "token"],
        help="Asset to distribute",
    )
    plan_parser.add_argument(
        "--sender",
        required=True,
        help="Wallet paying out the transfers",
    )
    source = plan_parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--transfers",
        type=Path,
        help="JSON file with a list of {recipient, amount} entries",
    )
    source.add_argument(
        "--recipients",
        type=Path,
        help="File with one recipient address per line",
    )
    plan_parser.add_argument(
        "--amount",
        type=int,
        help="Fixed amount per recipient (with --recipients)",
    )
    plan_parser.add_argument(
        "--per-tx",
        type=int,
        help="Transfer instructions per transaction",
    )
    plan_parser.add_argument(
        "--memo",
        help="Memo appended to every transaction",
    )
    plan_parser.add_argument(
        "--mint",
        help="Token mint address (token only)",
    )
    plan_parser.add_argument(
        "--decimals",
        type=int,
        help="Mint decimals; emits TransferChecked (token only)",
    )
    plan_parser.add_argument(
        "--token-program",
        help="Token program id for Token-2022 mints (token only)",
    )
    plan_parser.add_argument(
        "--check-accounts",
        action="store_true",
        help="Query the cluster and plan missing account creations (token only)",
    )
    plan_parser.add_argument(
        "--creations-per-tx",
        type=int,
        help="Account creations per transaction (with --check-accounts)",
    )
    plan_parser.add_argument(
        "--network",
        choices=["mainnet-beta", "devnet", "testnet", "localnet"],
        help="Cluster to query (default from settings)",
    )
    plan_parser.add_argument(
        "--rpc-url",
        help="Custom RPC endpoint",
    )
    plan_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    plan_parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )

    return parser


def load_transfers(path: Path) -> List[Any]:
    """Load transfer entries from a JSON file."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ConfigError(f"{path} must contain a JSON list")
    return data


def load_recipients(path: Path) -> List[str]:
    """Load recipient addresses, one per line; blank lines and # comments are skipped."""
    recipients = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            recipients.append(line)
    return recipients


def build_settings(args: argparse.Namespace) -> TransferSettings:
    """Overlay command-line options on the environment settings."""
    overrides = {}
    if args.network:
        overrides["network"] = NetworkType(args.network)
    if args.rpc_url:
        overrides["rpc_url"] = args.rpc_url
    settings = get_settings()
    if overrides:
        settings = settings.model_copy(update=overrides)
    set_settings(settings)
    return settings


async def plan_distribution(args: argparse.Namespace) -> dict:
    """Run the requested generation and return the JSON-ready plan."""
    settings = build_settings(args)

    options = {
        "sender": args.sender,
        "transfers": load_transfers(args.transfers) if args.transfers else None,
        "recipients": load_recipients(args.recipients) if args.recipients else None,
        "fixed_amount": args.amount,
        "instructions_per_tx": args.per_tx,
        "memo": args.memo,
    }

    if args.kind == "native":
        txs = generate_bulk_native_transfers(NativeTransferConfig(**options), settings)
        return {"transfer_txs": [tx.to_dict() for tx in txs]}

    config = TokenTransferConfig(
        **options,
        mint=args.mint or "",
        decimals=args.decimals,
        token_program_id=args.token_program,
        creations_per_tx=args.creations_per_tx,
    )

    if not args.check_accounts:
        txs = generate_bulk_token_transfers(config, settings)
        return {"transfer_txs": [tx.to_dict() for tx in txs]}

    async with SolanaRpcAdapter(settings) as node:
        plan = await generate_complete_bulk_token_transfers(node, config, settings)
    return plan.to_dict()


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level, args.log_json)

    if args.command == "plan":
        try:
            plan = asyncio.run(plan_distribution(args))
        except (BulkTransferError, OSError, json.JSONDecodeError) as e:
            print(f"error: {e}", file=sys.stderr)
            sys.exit(2)
        json.dump(plan, sys.stdout, indent=2)
        print()


if __name__ == "__main__":
    main()
