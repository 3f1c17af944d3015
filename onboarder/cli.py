#!/usr/bin/env python3
"""
Operator onboarding command line.

Stakes into the network's strategies, registers with the delegation
registry, then allowlists and registers the operator with the dependent
service.

Usage:
    # Onboard a validator on the local network
    OPERATOR_PRIVATE_KEY=0x... onboarder --cross-chain-address 0x1234...

    # Onboard a bridging service provider on another network
    onboarder --network stagenet --operator-type bsp --rpc-url https://rpc.example

    # Allowlist with the service owner's key
    onboarder --allowlist-key-env SERVICE_OWNER_KEY

Settings not given as flags come from ONBOARDER_* environment variables
(a .env file in the working directory is loaded first).

Exit codes:
    0  onboarding complete
    1  onboarding failed (state reached is printed)
    2  invalid configuration
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Optional, Sequence

from dotenv import find_dotenv, load_dotenv

from onboarder.__version__ import __version__
from onboarder.allowlist import get_variant
from onboarder.chain import ChainGateway, Web3Backend, connect
from onboarder.config import OPERATOR_TYPES, OnboardingConfig
from onboarder.exceptions import ConfigurationError, OnboardingError
from onboarder.identity import load_account, load_operator_identity
from onboarder.logging_config import configure_logging, get_logger
from onboarder.orchestrator import OnboardingOrchestrator
from onboarder.resolver import DeploymentResolver

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="onboarder",
        description="Onboard an operator into the staking protocol and the dependent service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  onboarder --cross-chain-address 0xd43593c7        # Validator on the default network
  onboarder --network stagenet --operator-type msp  # Messaging service provider
  onboarder --log-format json --json-summary        # Machine-readable output
        """,
    )
    parser.add_argument("--network", help="Deployment network name (default: anvil)")
    parser.add_argument(
        "--operator-type",
        choices=OPERATOR_TYPES,
        help="Kind of operator to onboard (default: validator)",
    )
    parser.add_argument("--rpc-url", help="JSON-RPC endpoint of the chain node")
    parser.add_argument(
        "--deployments-dir",
        help="Directory holding <network>.json deployment files (default: deployments)",
    )
    parser.add_argument(
        "--key-env",
        dest="private_key_env",
        help="Environment variable holding the operator private key "
        "(default: OPERATOR_PRIVATE_KEY)",
    )
    parser.add_argument(
        "--allowlist-key-env",
        dest="allowlist_private_key_env",
        help="Environment variable holding the key allowed to edit the service allowlist",
    )
    parser.add_argument(
        "--cross-chain-address",
        help="Hex operator address on the secondary chain",
    )
    parser.add_argument(
        "--receipt-timeout",
        dest="receipt_timeout_seconds",
        type=float,
        help="Seconds to wait for each transaction receipt (default: 120)",
    )
    parser.add_argument(
        "--no-skip-registered",
        dest="skip_registered_operator_sets",
        action="store_false",
        default=None,
        help="Fail instead of skipping when already in the operator set",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Log output format (default: ONBOARDER_LOG_FORMAT or text)",
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--json-summary",
        action="store_true",
        help="Print the run summary as JSON on stdout",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def resolve_config(args: argparse.Namespace, environ: Optional[dict[str, str]] = None) -> OnboardingConfig:
    """Merge environment settings with command-line overrides."""
    overrides: dict[str, Any] = {
        "network": args.network,
        "operator_type": args.operator_type,
        "rpc_url": args.rpc_url,
        "deployments_dir": args.deployments_dir,
        "private_key_env": args.private_key_env,
        "allowlist_private_key_env": args.allowlist_private_key_env,
        "cross_chain_address": args.cross_chain_address,
        "receipt_timeout_seconds": args.receipt_timeout_seconds,
        "skip_registered_operator_sets": args.skip_registered_operator_sets,
    }
    return OnboardingConfig.from_env(environ).with_overrides(**overrides)


def build_orchestrator(
    config: OnboardingConfig,
    environ: Optional[dict[str, str]] = None,
    web3: Any = None,
) -> OnboardingOrchestrator:
    """Wire identity, chain access and resolver for ``config``.

    Raises:
        ConfigurationError: Identity material is invalid or the node is unreachable.
    """
    identity = load_operator_identity(config.private_key_env, config.cross_chain_address, environ)
    web3 = web3 if web3 is not None else connect(config.rpc_url)

    gateway = ChainGateway(web3, identity.account, config.receipt_timeout_seconds)
    allowlist_gateway = None
    if config.allowlist_private_key_env:
        allowlist_account = load_account(config.allowlist_private_key_env, environ)
        allowlist_gateway = ChainGateway(web3, allowlist_account, config.receipt_timeout_seconds)

    return OnboardingOrchestrator(
        network=config.network,
        identity=identity,
        variant=get_variant(config.operator_type),
        resolver=DeploymentResolver(config.deployments_dir),
        backend=Web3Backend(gateway, allowlist_gateway),
        skip_registered_operator_sets=config.skip_registered_operator_sets,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv(find_dotenv(usecwd=True))
    args = build_parser().parse_args(argv)

    try:
        configure_logging(
            level="DEBUG" if args.verbose else None,
            json_output=None if args.log_format is None else args.log_format == "json",
            log_file=args.log_file,
        )
        config = resolve_config(args)
        orchestrator = build_orchestrator(config)
    except (ValueError, ConfigurationError) as e:
        print(f"onboarder: configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    try:
        result = orchestrator.run()
    except OnboardingError as e:
        print(
            f"onboarder: onboarding failed in state '{orchestrator.state.value}' "
            f"(progress {orchestrator.progress}): {e}",
            file=sys.stderr,
        )
        return EXIT_FAILED

    if args.json_summary:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(
            f"{result.operator_type} operator {result.operator} onboarded on "
            f"{result.network} ({result.completed_steps}/{result.total_steps} steps, "
            f"{result.total_staked} staked across {len(result.stakes)} strategies)"
        )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
