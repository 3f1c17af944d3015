"""
Registry resolution from deployment documents.

Each network has one JSON document, ``<deployments_dir>/<network>.json``,
listing the addresses of the staking protocol and the dependent service:

    {
        "StrategyManager": "0x...",
        "DelegationManager": "0x...",
        "AllocationManager": "0x...",
        "ServiceManager": "0x...",
        "Allowlist": "0x...",
        "DeployedStrategies": [{"address": "0x..."}, "0x..."]
    }

The entries may also be nested under a top-level ``"addresses"`` object.
``Allowlist`` is optional and defaults to the service manager, which holds
the allowlist in the reference deployments.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from web3 import Web3

from onboarder.core_types import RegistrySet, StrategyEntry
from onboarder.exceptions import ResolutionError
from onboarder.logging_config import get_logger
from onboarder.types import Address, NetworkName

logger = get_logger(__name__)

_NETWORK_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")

# RegistrySet field -> deployment document key
REQUIRED_ENTRIES = {
    "strategy_registry": "StrategyManager",
    "delegation_registry": "DelegationManager",
    "allocation_registry": "AllocationManager",
    "service_registry": "ServiceManager",
}
ALLOWLIST_ENTRY = "Allowlist"
STRATEGIES_ENTRY = "DeployedStrategies"


class DeploymentResolver:
    """Resolve registries from per-network JSON deployment documents."""

    def __init__(self, deployments_dir: str | Path):
        self.deployments_dir = Path(deployments_dir)

    def path_for(self, network: str) -> Path:
        return self.deployments_dir / f"{network}.json"

    def resolve(self, network: str) -> RegistrySet:
        """Resolve every registry for ``network``.

        Either the whole set resolves or ResolutionError is raised; no
        partial result is ever returned.

        Raises:
            ResolutionError: If the network is unknown or malformed, or a
                required entry is missing or not an address.
        """
        if not network or not _NETWORK_PATTERN.match(network):
            raise ResolutionError(network, "invalid network name")

        path = self.path_for(network)
        if not path.is_file():
            raise ResolutionError(network, f"unknown network (no deployment file at {path})")

        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ResolutionError(network, f"unreadable deployment file {path}: {e}") from e

        registry_set = parse_deployment(network, document)
        logger.debug(
            f"Resolved registries for {network}",
            path=str(path),
            strategies=len(registry_set.strategies),
        )
        return registry_set


def parse_deployment(network: str, document: Any) -> RegistrySet:
    """Build a RegistrySet from a decoded deployment document."""
    if not isinstance(document, dict):
        raise ResolutionError(network, "deployment document must be a JSON object")
    addresses = document.get("addresses", document)
    if not isinstance(addresses, dict):
        raise ResolutionError(network, "'addresses' must be a JSON object")

    registries: dict[str, Address] = {}
    for field_name, key in REQUIRED_ENTRIES.items():
        registries[field_name] = _address(network, key, addresses.get(key))

    allowlist_raw = addresses.get(ALLOWLIST_ENTRY)
    if allowlist_raw is None:
        allowlist = registries["service_registry"]
    else:
        allowlist = _address(network, ALLOWLIST_ENTRY, allowlist_raw)

    strategies = _strategies(network, addresses.get(STRATEGIES_ENTRY, []))

    return RegistrySet(
        network=NetworkName(network),
        strategies=strategies,
        allowlist=allowlist,
        **registries,
    )


def _strategies(network: str, raw: Any) -> tuple[StrategyEntry, ...]:
    if not isinstance(raw, list):
        raise ResolutionError(network, f"'{STRATEGIES_ENTRY}' must be a list")

    entries = []
    for index, item in enumerate(raw):
        value = item.get("address") if isinstance(item, dict) else item
        # Zero addresses pass through; staking rejects them per strategy
        entries.append(StrategyEntry(strategy=_address(network, f"{STRATEGIES_ENTRY}[{index}]", value)))
    return tuple(entries)


def _address(network: str, key: str, value: Any) -> Address:
    if value is None or value == "":
        raise ResolutionError(network, f"missing required entry '{key}'")
    if not isinstance(value, str) or not Web3.is_address(value):
        raise ResolutionError(network, f"entry '{key}' is not an address: {value!r}")
    return Address(Web3.to_checksum_address(value))
