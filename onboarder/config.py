"""
Onboarding configuration module.

Provides the settings for a run, with environment variable overrides.
Every field can be set through an ``ONBOARDER_*`` variable; CLI flags are
applied on top with ``with_overrides``.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, fields, replace
from typing import Any, Optional

OPERATOR_TYPES = ("validator", "bsp", "msp")

_NETWORK_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class OnboardingConfig:
    """Configuration for an onboarding run.

    Attributes:
        network: Deployment network name, used to find the deployment document.
        rpc_url: HTTP JSON-RPC endpoint of the chain node.
        deployments_dir: Directory holding ``<network>.json`` deployment documents.
        operator_type: One of ``validator``, ``bsp``, ``msp``.
        private_key_env: Name of the environment variable holding the operator key.
        allowlist_private_key_env: Optional variable holding the key that may
            edit the service allowlist. The operator key is used when unset.
        cross_chain_address: Hex-encoded operator identity on the secondary chain.
        receipt_timeout_seconds: How long to wait for each transaction receipt.
        skip_registered_operator_sets: Skip operator-set registration when the
            operator is already a member instead of failing.

    Example:
        config = OnboardingConfig.from_env().with_overrides(network="stagenet")
    """

    network: str = "anvil"
    rpc_url: str = "http://127.0.0.1:8545"
    deployments_dir: str = "deployments"
    operator_type: str = "validator"
    private_key_env: str = "OPERATOR_PRIVATE_KEY"
    allowlist_private_key_env: Optional[str] = None
    cross_chain_address: Optional[str] = None
    receipt_timeout_seconds: float = 120.0
    skip_registered_operator_sets: bool = True

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not _NETWORK_PATTERN.match(self.network):
            raise ValueError(f"network must be a simple name, got {self.network!r}")
        if not self.rpc_url:
            raise ValueError("rpc_url must not be empty")
        if self.operator_type not in OPERATOR_TYPES:
            raise ValueError(
                f"operator_type must be one of {', '.join(OPERATOR_TYPES)}, "
                f"got {self.operator_type!r}"
            )
        if not self.private_key_env:
            raise ValueError("private_key_env must not be empty")
        if self.receipt_timeout_seconds <= 0:
            raise ValueError("receipt_timeout_seconds must be positive")

    def with_overrides(self, **overrides: Any) -> OnboardingConfig:
        """Create a new config with the non-None overrides applied.

        Raises:
            TypeError: If an override names an unknown field.
        """
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown config fields: {sorted(unknown)}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> OnboardingConfig:
        """Build a config from ``ONBOARDER_*`` environment variables.

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        for name, var in _ENV_VARS.items():
            raw = env.get(var)
            if raw is None or raw == "":
                continue
            if name == "receipt_timeout_seconds":
                values[name] = float(raw)
            elif name == "skip_registered_operator_sets":
                values[name] = _parse_bool(var, raw)
            else:
                values[name] = raw

        return cls(**values)


_ENV_VARS = {
    "network": "ONBOARDER_NETWORK",
    "rpc_url": "ONBOARDER_RPC_URL",
    "deployments_dir": "ONBOARDER_DEPLOYMENTS_DIR",
    "operator_type": "ONBOARDER_OPERATOR_TYPE",
    "private_key_env": "ONBOARDER_PRIVATE_KEY_ENV",
    "allowlist_private_key_env": "ONBOARDER_ALLOWLIST_PRIVATE_KEY_ENV",
    "cross_chain_address": "ONBOARDER_CROSS_CHAIN_ADDRESS",
    "receipt_timeout_seconds": "ONBOARDER_RECEIPT_TIMEOUT",
    "skip_registered_operator_sets": "ONBOARDER_SKIP_REGISTERED_OPERATOR_SETS",
}


def _parse_bool(var: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{var} must be a boolean, got {raw!r}")
