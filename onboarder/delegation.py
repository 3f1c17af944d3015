"""
Delegation registrar.

Registration with the delegation registry is a one-time transition, so it
is guarded by an ``is_operator`` read: a second run finds the operator
already registered and moves on. An existing registration is never
updated here.
"""

from __future__ import annotations

from typing import Sequence

from onboarder.core_types import OperatorIdentity, StrategyEntry
from onboarder.logging_config import get_logger
from onboarder.protocols import ContractBackend
from onboarder.types import NULL_ADDRESS, Address, ShareBalances

logger = get_logger(__name__)

ALLOCATION_DELAY = 0
METADATA_URI = ""


class DelegationRegistrar:
    """Registers the operator with the delegation registry."""

    def __init__(self, backend: ContractBackend, delegation_registry: str):
        self.registry = backend.delegation_registry(delegation_registry)

    def ensure_registered(self, identity: OperatorIdentity) -> bool:
        """Register ``identity`` unless it already is an operator.

        Returns:
            True if registration was performed by this call.
        """
        if self.registry.is_operator(identity.address):
            logger.info(
                "Operator already registered with delegation registry, skipping",
                registry=self.registry.address,
            )
            return False

        self.registry.register_as_operator(NULL_ADDRESS, ALLOCATION_DELAY, METADATA_URI)
        logger.info("Registered as delegation operator", registry=self.registry.address)
        return True

    def read_operator_shares(
        self,
        identity: OperatorIdentity,
        strategies: Sequence[StrategyEntry],
    ) -> ShareBalances:
        """Read and log the operator's shares in every strategy."""
        shares: ShareBalances = {}
        for index, entry in enumerate(strategies):
            amount = self.registry.operator_shares(identity.address, entry.strategy)
            shares[Address(entry.strategy)] = amount
            logger.info(
                f"Operator shares in strategy #{index}: {amount}",
                strategy_index=index,
                strategy=entry.strategy,
                shares=amount,
            )
        return shares
