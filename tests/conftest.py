"""
Shared pytest fixtures for the onboarder test suite.

Provides an in-memory ledger that implements every contract protocol and
records each external call in order, so tests can assert exactly which
calls a phase issued and in what sequence.
"""

import logging
from typing import Optional

import pytest
from eth_account import Account
from web3 import Web3

from onboarder.core_types import OperatorIdentity, RegistrationRequest, RegistrySet, StrategyEntry
from onboarder.exceptions import ExternalCallError, ResolutionError
from onboarder.logging_config import clear_context
from onboarder.types import Address

# Well-known development key (anvil account #0)
OPERATOR_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
OWNER_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
CROSS_CHAIN_ADDRESS = bytes.fromhex("d43593c715fdd31c61141abd04a99fd6822c8558")


def _addr(byte: str) -> Address:
    return Address(Web3.to_checksum_address("0x" + byte * 20))


STRATEGY_MANAGER = _addr("51")
DELEGATION_MANAGER = _addr("de")
ALLOCATION_MANAGER = _addr("a1")
SERVICE_MANAGER = _addr("5e")
STRATEGY_A = _addr("aa")
STRATEGY_B = _addr("bb")
TOKEN_A = _addr("0a")
TOKEN_B = _addr("0b")


# ============================================================================
# In-memory Chain
# ============================================================================


class FakeLedger:
    """Shared state behind the fake contracts, plus an ordered call log."""

    def __init__(self, sender: str):
        self.sender = sender
        self.calls: list[tuple] = []
        self.underlying: dict[str, str] = {}
        self.balances: dict[tuple[str, str], int] = {}
        self.allowances: dict[tuple[str, str], int] = {}
        self.shares: dict[tuple[str, str], int] = {}
        self.operators: set[str] = set()
        self.members: set[tuple[str, str, int]] = set()
        self.allowlists: dict[str, set[str]] = {"validator": set(), "bsp": set(), "msp": set()}
        self.fail_on: set[str] = set()

    def record(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if operation in self.fail_on:
            raise ExternalCallError(operation, "execution reverted", tx_hash="0xdead")

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def fund(self, strategy: str, token: str, balance: int) -> None:
        self.underlying[strategy] = token
        self.balances[(token, self.sender)] = balance


class FakeToken:
    def __init__(self, ledger: FakeLedger, address: str):
        self.ledger = ledger
        self.address = address

    def balance_of(self, owner: str) -> int:
        self.ledger.record("balanceOf", self.address, owner)
        return self.ledger.balances.get((self.address, owner), 0)

    def approve(self, spender: str, amount: int) -> None:
        self.ledger.record("approve", self.address, spender, amount)
        self.ledger.allowances[(self.address, spender)] = amount


class FakeStrategy:
    def __init__(self, ledger: FakeLedger, address: str):
        self.ledger = ledger
        self.address = address

    def underlying_token(self) -> str:
        self.ledger.record("underlyingToken", self.address)
        return self.ledger.underlying[self.address]


class FakeStrategyManager:
    def __init__(self, ledger: FakeLedger, address: str):
        self.ledger = ledger
        self.address = address

    def deposit_into_strategy(self, strategy: str, token: str, amount: int) -> None:
        self.ledger.record("depositIntoStrategy", strategy, token, amount)
        allowance = self.ledger.allowances.get((token, self.address), 0)
        if allowance < amount:
            raise ExternalCallError("depositIntoStrategy", "insufficient allowance")
        self.ledger.allowances[(token, self.address)] = allowance - amount
        key = (self.ledger.sender, strategy)
        self.ledger.shares[key] = self.ledger.shares.get(key, 0) + amount


class FakeDelegationManager:
    def __init__(self, ledger: FakeLedger, address: str):
        self.ledger = ledger
        self.address = address

    def is_operator(self, operator: str) -> bool:
        self.ledger.record("isOperator", operator)
        return operator in self.ledger.operators

    def register_as_operator(self, delegation_approver: str, allocation_delay: int, metadata_uri: str) -> None:
        self.ledger.record("registerAsOperator", delegation_approver, allocation_delay, metadata_uri)
        if self.ledger.sender in self.ledger.operators:
            raise ExternalCallError("registerAsOperator", "operator already registered")
        self.ledger.operators.add(self.ledger.sender)

    def operator_shares(self, operator: str, strategy: str) -> int:
        self.ledger.record("operatorShares", operator, strategy)
        return self.ledger.shares.get((operator, strategy), 0)


class FakeAllocationManager:
    def __init__(self, ledger: FakeLedger, address: str):
        self.ledger = ledger
        self.address = address

    def register_for_operator_sets(self, operator: str, request: RegistrationRequest) -> None:
        self.ledger.record("registerForOperatorSets", operator, request)
        for set_id in request.operator_set_ids:
            key = (operator, request.target_service, set_id)
            if key in self.ledger.members:
                raise ExternalCallError("registerForOperatorSets", "already member of set")
            self.ledger.members.add(key)

    def is_member_of_operator_set(self, operator: str, service: str, operator_set_id: int) -> bool:
        self.ledger.record("isMemberOfOperatorSet", operator, service, operator_set_id)
        return (operator, service, operator_set_id) in self.ledger.members


class FakeAllowlist:
    def __init__(self, ledger: FakeLedger, address: str):
        self.ledger = ledger
        self.address = address

    def _add(self, operation: str, kind: str, operator: str) -> None:
        self.ledger.record(operation, operator)
        self.ledger.allowlists[kind].add(operator)

    def add_validator_to_allowlist(self, operator: str) -> None:
        self._add("addValidatorToAllowlist", "validator", operator)

    def add_bsp_to_allowlist(self, operator: str) -> None:
        self._add("addBspToAllowlist", "bsp", operator)

    def add_msp_to_allowlist(self, operator: str) -> None:
        self._add("addMspToAllowlist", "msp", operator)


class FakeBackend:
    """ContractBackend over a FakeLedger."""

    def __init__(self, ledger: FakeLedger):
        self.ledger = ledger

    def token(self, address: str) -> FakeToken:
        return FakeToken(self.ledger, address)

    def strategy(self, address: str) -> FakeStrategy:
        return FakeStrategy(self.ledger, address)

    def staking_registry(self, address: str) -> FakeStrategyManager:
        return FakeStrategyManager(self.ledger, address)

    def delegation_registry(self, address: str) -> FakeDelegationManager:
        return FakeDelegationManager(self.ledger, address)

    def allocation_registry(self, address: str) -> FakeAllocationManager:
        return FakeAllocationManager(self.ledger, address)

    def service_allowlist(self, address: str) -> FakeAllowlist:
        return FakeAllowlist(self.ledger, address)


class StaticResolver:
    """Resolver returning a fixed RegistrySet for one network."""

    def __init__(self, registries: RegistrySet):
        self.registries = registries
        self.requests: list[str] = []

    def resolve(self, network: str) -> RegistrySet:
        self.requests.append(network)
        if network != self.registries.network:
            raise ResolutionError(network, "unknown network")
        return self.registries


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def operator_account():
    return Account.from_key(OPERATOR_KEY)


@pytest.fixture
def identity(operator_account) -> OperatorIdentity:
    return OperatorIdentity(
        address=Address(operator_account.address),
        account=operator_account,
        cross_chain_address=CROSS_CHAIN_ADDRESS,
    )


@pytest.fixture
def ledger(identity) -> FakeLedger:
    return FakeLedger(sender=identity.address)


@pytest.fixture
def backend(ledger) -> FakeBackend:
    return FakeBackend(ledger)


@pytest.fixture
def make_registries():
    """Factory for a 'test' network RegistrySet with the given strategies."""

    def _make(*strategies: str, network: str = "test") -> RegistrySet:
        return RegistrySet(
            network=network,
            strategies=tuple(StrategyEntry(strategy=s) for s in strategies),
            strategy_registry=STRATEGY_MANAGER,
            delegation_registry=DELEGATION_MANAGER,
            allocation_registry=ALLOCATION_MANAGER,
            service_registry=SERVICE_MANAGER,
            allowlist=SERVICE_MANAGER,
        )

    return _make


@pytest.fixture
def make_resolver(make_registries):
    """Factory for a StaticResolver, optionally over existing registries."""

    def _make(*strategies: str, registries: Optional[RegistrySet] = None) -> StaticResolver:
        return StaticResolver(registries or make_registries(*strategies))

    return _make


@pytest.fixture(autouse=True)
def reset_log_context():
    """Clear structured-log context so runs don't leak fields between tests."""
    clear_context()
    yield
    clear_context()


@pytest.fixture(autouse=True)
def capture_onboarder_logs(caplog):
    """Capture onboarder logs at DEBUG for every test."""
    caplog.set_level(logging.DEBUG, logger="onboarder")
    yield


@pytest.fixture
def restore_logging():
    """Undo configure_logging: root handlers, levels and package propagation."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    named = {n: logging.getLogger(n).level for n in ("web3", "urllib3", "onboarder")}
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, saved in named.items():
        logging.getLogger(name).setLevel(saved)
    logging.getLogger("onboarder").propagate = True
