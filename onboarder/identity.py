"""Operator identity loading from environment-held key material."""

from __future__ import annotations

import binascii
import os
from typing import Any, Optional

from eth_account import Account

from onboarder.core_types import OperatorIdentity
from onboarder.exceptions import ConfigurationError
from onboarder.types import Address


def load_account(key_env: str, environ: Optional[dict[str, str]] = None) -> Any:
    """Load a signing account from the private key held in ``key_env``.

    Raises:
        ConfigurationError: If the variable is unset or holds an invalid key.
    """
    env = os.environ if environ is None else environ
    private_key = env.get(key_env, "").strip()
    if not private_key:
        raise ConfigurationError("identity", f"environment variable {key_env} is not set")
    try:
        return Account.from_key(private_key)
    except (ValueError, TypeError) as e:
        # Never echo the key itself
        raise ConfigurationError("identity", f"{key_env} does not hold a valid private key") from e


def decode_cross_chain_address(value: Optional[str]) -> bytes:
    """Decode a hex cross-chain address, with or without 0x prefix."""
    if not value:
        raise ConfigurationError("identity", "cross-chain address is not set")
    digits = value[2:] if value.lower().startswith("0x") else value
    try:
        decoded = binascii.unhexlify(digits)
    except (binascii.Error, ValueError) as e:
        raise ConfigurationError("identity", f"cross-chain address is not hex: {value!r}") from e
    if not decoded:
        raise ConfigurationError("identity", "cross-chain address is empty")
    return decoded


def load_operator_identity(
    key_env: str,
    cross_chain_address: Optional[str],
    environ: Optional[dict[str, str]] = None,
) -> OperatorIdentity:
    """Build the OperatorIdentity for a run."""
    account = load_account(key_env, environ)
    return OperatorIdentity(
        address=Address(account.address),
        account=account,
        cross_chain_address=decode_cross_chain_address(cross_chain_address),
    )
