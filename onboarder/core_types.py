"""
Core data types for operator onboarding.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from onboarder.types import Address, JsonDict, NetworkName, OperatorSetId, RunId, TokenAmount


class OnboardingState(str, Enum):
    """States of a single onboarding run, in execution order.

    Because this inherits from ``str``, states compare equal to their
    values and serialize cleanly into log fields::

        assert OnboardingState.STAKED == "staked"
    """

    INIT = "init"
    CONTRACTS_LOADED = "contracts_loaded"
    STAKED = "staked"
    DELEGATION_REGISTERED = "delegation_registered"
    SERVICE_REGISTERED = "service_registered"
    COMPLETE = "complete"


# Strictly linear: no skipping, no going back
VALID_TRANSITIONS: dict[OnboardingState, frozenset[OnboardingState]] = {
    OnboardingState.INIT: frozenset({OnboardingState.CONTRACTS_LOADED}),
    OnboardingState.CONTRACTS_LOADED: frozenset({OnboardingState.STAKED}),
    OnboardingState.STAKED: frozenset({OnboardingState.DELEGATION_REGISTERED}),
    OnboardingState.DELEGATION_REGISTERED: frozenset({OnboardingState.SERVICE_REGISTERED}),
    OnboardingState.SERVICE_REGISTERED: frozenset({OnboardingState.COMPLETE}),
    OnboardingState.COMPLETE: frozenset(),
}


def is_valid_transition(current: OnboardingState, target: OnboardingState) -> bool:
    """Return True if ``current -> target`` is an allowed transition."""
    return target in VALID_TRANSITIONS.get(current, frozenset())


@dataclass(frozen=True)
class OperatorIdentity:
    """The operator being onboarded.

    Attributes:
        address: The operator's EVM address.
        account: Signing authority for ``address`` (an eth_account LocalAccount).
        cross_chain_address: Operator identity on the secondary chain, embedded
            as opaque payload in the operator-set registration.
    """

    address: Address
    account: Any = field(repr=False, compare=False)
    cross_chain_address: bytes = b""


@dataclass(frozen=True)
class StrategyEntry:
    """One configured staking strategy."""

    strategy: Address


@dataclass(frozen=True)
class RegistrySet:
    """Registry addresses resolved for one network."""

    network: NetworkName
    strategies: tuple[StrategyEntry, ...]
    strategy_registry: Address
    delegation_registry: Address
    allocation_registry: Address
    service_registry: Address
    allowlist: Address


@dataclass(frozen=True)
class RegistrationRequest:
    """Payload submitted to the allocation registry for operator-set registration."""

    target_service: Address
    operator_set_ids: tuple[OperatorSetId, ...]
    payload: bytes


@dataclass(frozen=True)
class StakeReceipt:
    """Record of one committed stake."""

    index: int
    strategy: Address
    token: Address
    balance: TokenAmount
    amount: TokenAmount


@dataclass
class OnboardingResult:
    """Summary of a completed onboarding run."""

    run_id: RunId
    network: str
    operator: Address
    operator_type: str
    state: OnboardingState
    completed_steps: int
    total_steps: int
    stakes: list[StakeReceipt] = field(default_factory=list)
    delegation_registered_now: bool = False
    operator_set_registered_now: bool = False
    shares: dict[Address, int] = field(default_factory=dict)

    @property
    def total_staked(self) -> int:
        return sum(stake.amount for stake in self.stakes)

    def to_dict(self) -> JsonDict:
        """Convert to a JSON-friendly dictionary."""
        return {
            "run_id": self.run_id,
            "network": self.network,
            "operator": self.operator,
            "operator_type": self.operator_type,
            "state": self.state.value,
            "progress": f"{self.completed_steps}/{self.total_steps}",
            "stakes": [
                {
                    "index": s.index,
                    "strategy": s.strategy,
                    "token": s.token,
                    "balance": s.balance,
                    "amount": s.amount,
                }
                for s in self.stakes
            ],
            "delegation_registered_now": self.delegation_registered_now,
            "operator_set_registered_now": self.operator_set_registered_now,
            "shares": dict(self.shares),
        }
