"""
web3.py adapters for the onboarding protocols.

ChainGateway owns the node connection and the signing account; every
state-mutating call is built, signed locally, broadcast and then awaited
until its receipt arrives. A reverted receipt, a timeout or any RPC error
surfaces as ExternalCallError. Nothing is retried.

Usage:
    from onboarder.chain import ChainGateway, Web3Backend, connect

    web3 = connect("http://127.0.0.1:8545")
    gateway = ChainGateway(web3, account)
    backend = Web3Backend(gateway)
    backend.delegation_registry(address).is_operator(account.address)
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from onboarder.abi import (
    ERC20_ABI,
    IALLOCATION_MANAGER_ABI,
    IDELEGATION_MANAGER_ABI,
    ISTRATEGY_ABI,
    ISTRATEGY_MANAGER_ABI,
    SERVICE_ALLOWLIST_ABI,
)
from onboarder.core_types import RegistrationRequest
from onboarder.exceptions import ConfigurationError, ExternalCallError
from onboarder.logging_config import get_logger, log_function
from onboarder.types import Address

logger = get_logger(__name__)

DEFAULT_RPC_TIMEOUT = 30.0

# Errors a node interaction can raise before or while a call executes
_CALL_ERRORS = (Web3Exception, ValueError, OSError)

# Errors binding arguments to an ABI function can raise
_BUILD_ERRORS = (Web3Exception, ValueError, TypeError)


def connect(rpc_url: str, timeout: float = DEFAULT_RPC_TIMEOUT) -> Web3:
    """Create a Web3 client for ``rpc_url`` and check the node answers.

    Raises:
        ConfigurationError: If the node cannot be reached.
    """
    web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
    if not web3.is_connected():
        raise ConfigurationError("rpc", f"cannot reach node at {rpc_url}")
    logger.debug("Connected to node", rpc_url=rpc_url)
    return web3


class ChainGateway:
    """Executes contract calls under one signing account."""

    def __init__(self, web3: Web3, account: Any, receipt_timeout: float = 120.0):
        self.web3 = web3
        self.account = account
        self.receipt_timeout = receipt_timeout

    @property
    def address(self) -> Address:
        return Address(self.account.address)

    def contract(self, address: str, abi: list[dict[str, Any]]) -> Any:
        return self.web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def call(self, operation: str, fn: Any) -> Any:
        """Run a view function and return its result."""
        try:
            return fn.call({"from": self.address})
        except ContractLogicError as e:
            raise ExternalCallError(operation, f"call reverted: {e}") from e
        except _CALL_ERRORS as e:
            raise ExternalCallError(operation, str(e)) from e

    @log_function(level="DEBUG")
    def transact(self, operation: str, fn: Any) -> Any:
        """Sign and send a transaction, then wait for its receipt.

        Returns:
            The transaction receipt.

        Raises:
            ExternalCallError: If the transaction cannot be built or sent,
                reverts, or is not mined within ``receipt_timeout``.
        """
        try:
            tx = fn.build_transaction(
                {
                    "from": self.address,
                    "nonce": self.web3.eth.get_transaction_count(self.address, "pending"),
                }
            )
            signed = self.account.sign_transaction(tx)
            tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        except ContractLogicError as e:
            raise ExternalCallError(operation, f"transaction would revert: {e}") from e
        except _CALL_ERRORS as e:
            raise ExternalCallError(operation, str(e)) from e

        hex_hash = Web3.to_hex(tx_hash)
        try:
            receipt = self.web3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except TimeExhausted as e:
            raise ExternalCallError(
                operation, f"no receipt after {self.receipt_timeout}s", tx_hash=hex_hash
            ) from e
        except _CALL_ERRORS as e:
            raise ExternalCallError(operation, str(e), tx_hash=hex_hash) from e

        if receipt["status"] != 1:
            raise ExternalCallError(operation, "transaction reverted", tx_hash=hex_hash)

        logger.debug(
            f"{operation} confirmed", block=receipt["blockNumber"], tx_hash=hex_hash
        )
        return receipt


class _BoundContract:
    abi: list[dict[str, Any]] = []

    def __init__(self, gateway: ChainGateway, address: str):
        self.gateway = gateway
        self.address = Address(Web3.to_checksum_address(address))
        self._contract = gateway.contract(self.address, self.abi)

    def _function(self, operation: str, build: Callable[[Any], Any]) -> Any:
        try:
            return build(self._contract.functions)
        except _BUILD_ERRORS as e:
            raise ExternalCallError(operation, f"invalid call arguments: {e}") from e

    def _call(self, operation: str, build: Callable[[Any], Any]) -> Any:
        return self.gateway.call(operation, self._function(operation, build))

    def _transact(self, operation: str, build: Callable[[Any], Any]) -> Any:
        return self.gateway.transact(operation, self._function(operation, build))


class Erc20Token(_BoundContract):
    abi = ERC20_ABI

    def balance_of(self, owner: str) -> int:
        return int(self._call("balanceOf", lambda f: f.balanceOf(owner)))

    def approve(self, spender: str, amount: int) -> None:
        self._transact("approve", lambda f: f.approve(spender, amount))


class Strategy(_BoundContract):
    abi = ISTRATEGY_ABI

    def underlying_token(self) -> str:
        return self._call("underlyingToken", lambda f: f.underlyingToken())


class StrategyManager(_BoundContract):
    abi = ISTRATEGY_MANAGER_ABI

    def deposit_into_strategy(self, strategy: str, token: str, amount: int) -> None:
        self._transact(
            "depositIntoStrategy", lambda f: f.depositIntoStrategy(strategy, token, amount)
        )


class DelegationManager(_BoundContract):
    abi = IDELEGATION_MANAGER_ABI

    def is_operator(self, operator: str) -> bool:
        return bool(self._call("isOperator", lambda f: f.isOperator(operator)))

    def register_as_operator(
        self,
        delegation_approver: str,
        allocation_delay: int,
        metadata_uri: str,
    ) -> None:
        self._transact(
            "registerAsOperator",
            lambda f: f.registerAsOperator(delegation_approver, allocation_delay, metadata_uri),
        )

    def operator_shares(self, operator: str, strategy: str) -> int:
        return int(self._call("operatorShares", lambda f: f.operatorShares(operator, strategy)))


class AllocationManager(_BoundContract):
    abi = IALLOCATION_MANAGER_ABI

    def register_for_operator_sets(self, operator: str, request: RegistrationRequest) -> None:
        params = (request.target_service, list(request.operator_set_ids), request.payload)
        self._transact(
            "registerForOperatorSets", lambda f: f.registerForOperatorSets(operator, params)
        )

    def is_member_of_operator_set(self, operator: str, service: str, operator_set_id: int) -> bool:
        return bool(
            self._call(
                "isMemberOfOperatorSet",
                lambda f: f.isMemberOfOperatorSet(operator, (service, operator_set_id)),
            )
        )


class ServiceManagerAllowlist(_BoundContract):
    abi = SERVICE_ALLOWLIST_ABI

    def add_validator_to_allowlist(self, operator: str) -> None:
        self._transact("addValidatorToAllowlist", lambda f: f.addValidatorToAllowlist(operator))

    def add_bsp_to_allowlist(self, operator: str) -> None:
        self._transact("addBspToAllowlist", lambda f: f.addBspToAllowlist(operator))

    def add_msp_to_allowlist(self, operator: str) -> None:
        self._transact("addMspToAllowlist", lambda f: f.addMspToAllowlist(operator))


class Web3Backend:
    """ContractBackend over web3.py.

    Allowlist edits go through ``allowlist_gateway`` when one is given, so
    a service owner key can allowlist the operator; everything else is
    signed by the operator's gateway.
    """

    def __init__(self, gateway: ChainGateway, allowlist_gateway: Optional[ChainGateway] = None):
        self.gateway = gateway
        self.allowlist_gateway = allowlist_gateway or gateway

    def token(self, address: str) -> Erc20Token:
        return Erc20Token(self.gateway, address)

    def strategy(self, address: str) -> Strategy:
        return Strategy(self.gateway, address)

    def staking_registry(self, address: str) -> StrategyManager:
        return StrategyManager(self.gateway, address)

    def delegation_registry(self, address: str) -> DelegationManager:
        return DelegationManager(self.gateway, address)

    def allocation_registry(self, address: str) -> AllocationManager:
        return AllocationManager(self.gateway, address)

    def service_allowlist(self, address: str) -> ServiceManagerAllowlist:
        return ServiceManagerAllowlist(self.allowlist_gateway, address)
