"""
Protocol definitions for the registries and contracts onboarding drives.

These protocols define the interfaces the chain adapters must follow,
enabling type checking and easy testing with in-memory implementations.

Usage:
    from onboarder.protocols import ContractBackend, DelegationRegistry

    def is_registered(backend: ContractBackend, registry: str, operator: str) -> bool:
        return backend.delegation_registry(registry).is_operator(operator)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from onboarder.core_types import RegistrationRequest, RegistrySet


@runtime_checkable
class RegistryResolver(Protocol):
    """Protocol for resolving a network's registry addresses."""

    def resolve(self, network: str) -> RegistrySet:
        """Resolve every registry for ``network``.

        Raises:
            ResolutionError: If the network is unknown or entries are missing.
        """
        ...


@runtime_checkable
class TokenContract(Protocol):
    """Protocol for an ERC-20 token."""

    address: str

    def balance_of(self, owner: str) -> int:
        """Get the token balance of ``owner``."""
        ...

    def approve(self, spender: str, amount: int) -> None:
        """Authorize ``spender`` to transfer ``amount``. Blocks until confirmed."""
        ...


@runtime_checkable
class StrategyContract(Protocol):
    """Protocol for a strategy vault."""

    address: str

    def underlying_token(self) -> str:
        """Get the address of the token this strategy accepts."""
        ...


@runtime_checkable
class StakingRegistry(Protocol):
    """Protocol for the staking-strategy registry (strategy manager)."""

    address: str

    def deposit_into_strategy(self, strategy: str, token: str, amount: int) -> None:
        """Deposit ``amount`` of ``token`` into ``strategy``. Blocks until confirmed.

        Requires a prior token approval for ``amount``.
        """
        ...


@runtime_checkable
class DelegationRegistry(Protocol):
    """Protocol for the delegation registry."""

    address: str

    def is_operator(self, operator: str) -> bool:
        """Check whether ``operator`` is a registered operator."""
        ...

    def register_as_operator(
        self,
        delegation_approver: str,
        allocation_delay: int,
        metadata_uri: str,
    ) -> None:
        """Register the sending account as an operator. Blocks until confirmed."""
        ...

    def operator_shares(self, operator: str, strategy: str) -> int:
        """Get the shares delegated to ``operator`` in ``strategy``."""
        ...


@runtime_checkable
class AllocationRegistry(Protocol):
    """Protocol for the allocation / operator-set registry."""

    address: str

    def register_for_operator_sets(self, operator: str, request: RegistrationRequest) -> None:
        """Register ``operator`` for the request's operator sets. Blocks until confirmed."""
        ...

    def is_member_of_operator_set(self, operator: str, service: str, operator_set_id: int) -> bool:
        """Check whether ``operator`` belongs to operator set ``operator_set_id`` of ``service``."""
        ...


@runtime_checkable
class ServiceAllowlist(Protocol):
    """Protocol for the dependent service's operator allowlist."""

    address: str

    def add_validator_to_allowlist(self, operator: str) -> None:
        """Allowlist a validator. Blocks until confirmed."""
        ...

    def add_bsp_to_allowlist(self, operator: str) -> None:
        """Allowlist a bridging service provider. Blocks until confirmed."""
        ...

    def add_msp_to_allowlist(self, operator: str) -> None:
        """Allowlist a messaging service provider. Blocks until confirmed."""
        ...


@runtime_checkable
class ContractBackend(Protocol):
    """Protocol for binding addresses to contract handles."""

    def token(self, address: str) -> TokenContract:
        ...

    def strategy(self, address: str) -> StrategyContract:
        ...

    def staking_registry(self, address: str) -> StakingRegistry:
        ...

    def delegation_registry(self, address: str) -> DelegationRegistry:
        ...

    def allocation_registry(self, address: str) -> AllocationRegistry:
        ...

    def service_allowlist(self, address: str) -> ServiceAllowlist:
        ...
