"""
Shared type definitions for onboarder.

This module provides type aliases and NewTypes for values that flow between
the onboarding phases and the chain adapters.

Usage:
    from onboarder.types import Address, OperatorSetId, TokenAmount

    def stake(strategy: Address, amount: TokenAmount) -> None:
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, NewType, TypeAlias

# === Semantic String Types ===

Address = NewType("Address", str)
"""A 20-byte EVM address in 0x-prefixed, checksummed hex form."""

NetworkName = NewType("NetworkName", str)
"""Name of a deployment network (e.g., 'anvil', 'stagenet')."""

RunId = NewType("RunId", str)
"""Unique identifier for a single onboarding run."""

# === Numeric Types ===

TokenAmount = NewType("TokenAmount", int)
"""An amount of an ERC-20 token in its smallest unit."""

OperatorSetId = NewType("OperatorSetId", int)
"""A uint32 operator-set identifier within the dependent service."""

# === Common Type Aliases ===

JsonDict: TypeAlias = dict[str, Any]
"""A JSON-serializable dictionary."""

ShareBalances: TypeAlias = dict[Address, int]
"""Mapping of strategy address to the operator's shares in it."""

# === Callback Types ===

if TYPE_CHECKING:
    from onboarder.progress import ProgressState

ProgressCallback: TypeAlias = "Callable[[ProgressState, str], None]"
"""Callback for progress updates: (new state, label of the completed step)."""

# === Constants ===

NULL_ADDRESS: Address = Address("0x0000000000000000000000000000000000000000")
"""The zero address, used as 'no delegation approver' and 'unset'."""


def is_null_address(value: str | None) -> bool:
    """Return True for None, empty strings and the zero address."""
    if not value:
        return True
    digits = value[2:] if value.lower().startswith("0x") else value
    return not digits or set(digits) <= {"0"}


__all__ = [
    "Address",
    "NetworkName",
    "RunId",
    "TokenAmount",
    "OperatorSetId",
    "JsonDict",
    "ShareBalances",
    "ProgressCallback",
    "NULL_ADDRESS",
    "is_null_address",
]
