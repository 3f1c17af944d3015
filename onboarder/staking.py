"""
Staking executor.

Commits a fixed fraction of the operator's balance into every configured
strategy, in resolution order. Each strategy goes through the same checks
before anything is sent:

1. the strategy handle is set (InvalidStrategyError otherwise)
2. the operator holds some of the underlying token (NoBalanceError)
3. the stake, ``balance // STAKE_DIVISOR``, is non-zero (StakeTooSmallError)

and is then committed as an approval followed by a deposit, each awaited.
The first failure stops the phase; strategies after it are not touched.
"""

from __future__ import annotations

from typing import Sequence

from onboarder.core_types import OperatorIdentity, StakeReceipt, StrategyEntry
from onboarder.exceptions import InvalidStrategyError, NoBalanceError, StakeTooSmallError
from onboarder.logging_config import get_logger
from onboarder.protocols import ContractBackend
from onboarder.types import Address, TokenAmount, is_null_address

logger = get_logger(__name__)

# Only a tenth of the liquid balance is ever staked by one run
STAKE_DIVISOR = 10


def compute_stake_amount(balance: int) -> TokenAmount:
    """Return the amount to stake out of ``balance``."""
    return TokenAmount(balance // STAKE_DIVISOR)


class StakingExecutor:
    """Stakes into each strategy through the staking registry."""

    def __init__(self, backend: ContractBackend):
        self.backend = backend

    def execute(
        self,
        identity: OperatorIdentity,
        strategies: Sequence[StrategyEntry],
        staking_registry: str,
    ) -> list[StakeReceipt]:
        """Stake into every strategy and return one receipt per strategy.

        Raises:
            InvalidStrategyError: A strategy handle is zero or unset.
            NoBalanceError: The operator holds none of a strategy's token.
            StakeTooSmallError: A balance is below STAKE_DIVISOR units.
            ExternalCallError: A registry or token call failed.
        """
        registry = self.backend.staking_registry(staking_registry)
        receipts = []
        for index, entry in enumerate(strategies):
            receipts.append(self._stake_one(index, entry, identity, registry))
        if not receipts:
            logger.info("No strategies configured, nothing to stake")
        return receipts

    def _stake_one(self, index, entry, identity, registry) -> StakeReceipt:
        if is_null_address(entry.strategy):
            raise InvalidStrategyError(index, entry.strategy)

        token_address = Address(self.backend.strategy(entry.strategy).underlying_token())
        token = self.backend.token(token_address)

        balance = token.balance_of(identity.address)
        if balance == 0:
            raise NoBalanceError(index, token_address, identity.address)

        amount = compute_stake_amount(balance)
        if amount == 0:
            raise StakeTooSmallError(index, token_address, balance)

        token.approve(registry.address, amount)
        registry.deposit_into_strategy(entry.strategy, token_address, amount)

        logger.info(
            f"Staked {amount} into strategy #{index}",
            strategy_index=index,
            strategy=entry.strategy,
            token=token_address,
            amount=amount,
        )
        return StakeReceipt(
            index=index,
            strategy=entry.strategy,
            token=token_address,
            balance=TokenAmount(balance),
            amount=amount,
        )
