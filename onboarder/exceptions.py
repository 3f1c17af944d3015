"""
Custom exception types for onboarder.

This module defines the hierarchy of exceptions raised while onboarding an
operator. Every error is fatal to the run that raised it: the orchestrator
stops at the failing phase and nothing already committed on chain is undone.

Using specific exception types enables:
- Precise handling in the CLI (configuration vs. onboarding failures)
- Operator-correctable errors (funding) to be told apart from call failures
- Structured details for logging
"""

from __future__ import annotations

from typing import Any


class OnboardingError(Exception):
    """Base exception for all onboarder errors.

    All custom exceptions in onboarder inherit from this class so a caller
    can catch every onboarding failure with a single handler.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(OnboardingError):
    """Raised when configuration or identity material is missing or invalid."""

    def __init__(self, component: str, reason: str):
        super().__init__(
            f"Configuration error in {component}: {reason}",
            {"component": component, "reason": reason},
        )
        self.component = component
        self.reason = reason


# ============================================================================
# Resolution Errors
# ============================================================================


class ResolutionError(OnboardingError):
    """Raised when a network's registries cannot be fully resolved."""

    def __init__(self, network: str, reason: str):
        super().__init__(
            f"Cannot resolve registries for network '{network}': {reason}",
            {"network": network, "reason": reason},
        )
        self.network = network
        self.reason = reason


# ============================================================================
# Staking Errors
# ============================================================================


class StakingError(OnboardingError):
    """Base exception for staking phase errors."""

    pass


class InvalidStrategyError(StakingError):
    """Raised when a configured strategy handle is zero or unset."""

    def __init__(self, index: int, strategy: str | None):
        super().__init__(
            f"Strategy #{index} has no valid address: {strategy!r}",
            {"index": index, "strategy": strategy},
        )
        self.index = index
        self.strategy = strategy


class InsufficientFundsError(StakingError):
    """Base exception for operator-correctable funding errors."""

    pass


class NoBalanceError(InsufficientFundsError):
    """Raised when the operator holds none of a strategy's underlying token."""

    def __init__(self, index: int, token: str, operator: str):
        super().__init__(
            f"Operator {operator} has no balance of token {token} (strategy #{index})",
            {"index": index, "token": token, "operator": operator},
        )
        self.index = index
        self.token = token
        self.operator = operator


class StakeTooSmallError(InsufficientFundsError):
    """Raised when the computed stake for a strategy rounds down to zero."""

    def __init__(self, index: int, token: str, balance: int):
        super().__init__(
            f"Balance {balance} of token {token} is too small to stake (strategy #{index})",
            {"index": index, "token": token, "balance": balance},
        )
        self.index = index
        self.token = token
        self.balance = balance


# ============================================================================
# External Call Errors
# ============================================================================


class ExternalCallError(OnboardingError):
    """Raised when a registry call reverts, is rejected or never confirms."""

    def __init__(self, operation: str, reason: str, tx_hash: str | None = None):
        details: dict[str, Any] = {"operation": operation, "reason": reason}
        if tx_hash:
            details["tx_hash"] = tx_hash
        super().__init__(f"External call '{operation}' failed: {reason}", details)
        self.operation = operation
        self.reason = reason
        self.tx_hash = tx_hash


class AlreadyRegisteredError(OnboardingError):
    """Raised when an operator is already a member of the target operator set."""

    def __init__(self, operator: str, service: str, operator_set_id: int):
        super().__init__(
            f"Operator {operator} is already registered in operator set "
            f"{operator_set_id} of {service}",
            {"operator": operator, "service": service, "operator_set_id": operator_set_id},
        )
        self.operator = operator
        self.service = service
        self.operator_set_id = operator_set_id


# ============================================================================
# Orchestration Errors
# ============================================================================


class OnboardingStateError(OnboardingError):
    """Raised on an illegal onboarding state transition."""

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Invalid onboarding transition: {current} -> {target}",
            {"current": current, "target": target},
        )
        self.current = current
        self.target = target


class ProgressOverflowError(OnboardingError):
    """Raised when progress would advance past its total step count."""

    def __init__(self, completed: int, total: int):
        super().__init__(
            f"Progress cannot advance past {total} steps (at {completed})",
            {"completed": completed, "total": total},
        )
        self.completed = completed
        self.total = total


__all__ = [
    "OnboardingError",
    "ConfigurationError",
    "ResolutionError",
    "StakingError",
    "InvalidStrategyError",
    "InsufficientFundsError",
    "NoBalanceError",
    "StakeTooSmallError",
    "ExternalCallError",
    "AlreadyRegisteredError",
    "OnboardingStateError",
    "ProgressOverflowError",
]
