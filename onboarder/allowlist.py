"""
Operator-type variants.

The set of operator types is closed: each one fixes the operator set it
joins, the name used in logs and the allowlist call that admits it to the
dependent service. The orchestrator is bound to exactly one variant.

Usage:
    from onboarder.allowlist import OperatorType, get_variant

    variant = get_variant(OperatorType.BSP)
    variant.add_to_allowlist(allowlist, identity)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from onboarder.core_types import OperatorIdentity
from onboarder.logging_config import get_logger
from onboarder.protocols import ServiceAllowlist
from onboarder.types import OperatorSetId

logger = get_logger(__name__)


class OperatorType(str, Enum):
    """Kinds of operator the dependent service accepts."""

    VALIDATOR = "validator"
    BSP = "bsp"
    MSP = "msp"


AllowlistFn = Callable[[ServiceAllowlist, OperatorIdentity], None]


@dataclass(frozen=True)
class OperatorVariant:
    """Capabilities of one operator type."""

    operator_type: OperatorType
    operator_set_id: OperatorSetId
    display_name: str
    allowlist_fn: AllowlistFn

    def add_to_allowlist(self, allowlist: ServiceAllowlist, identity: OperatorIdentity) -> None:
        self.allowlist_fn(allowlist, identity)
        logger.info(
            f"Added {self.display_name} to allowlist",
            allowlist=allowlist.address,
            operator_set_id=self.operator_set_id,
        )


def _allowlist_validator(allowlist: ServiceAllowlist, identity: OperatorIdentity) -> None:
    allowlist.add_validator_to_allowlist(identity.address)


def _allowlist_bsp(allowlist: ServiceAllowlist, identity: OperatorIdentity) -> None:
    allowlist.add_bsp_to_allowlist(identity.address)


def _allowlist_msp(allowlist: ServiceAllowlist, identity: OperatorIdentity) -> None:
    allowlist.add_msp_to_allowlist(identity.address)


VARIANTS: dict[OperatorType, OperatorVariant] = {
    OperatorType.VALIDATOR: OperatorVariant(
        operator_type=OperatorType.VALIDATOR,
        operator_set_id=OperatorSetId(0),
        display_name="Validator",
        allowlist_fn=_allowlist_validator,
    ),
    OperatorType.BSP: OperatorVariant(
        operator_type=OperatorType.BSP,
        operator_set_id=OperatorSetId(1),
        display_name="Bridging Service Provider",
        allowlist_fn=_allowlist_bsp,
    ),
    OperatorType.MSP: OperatorVariant(
        operator_type=OperatorType.MSP,
        operator_set_id=OperatorSetId(2),
        display_name="Messaging Service Provider",
        allowlist_fn=_allowlist_msp,
    ),
}


def get_variant(operator_type: OperatorType | str) -> OperatorVariant:
    """Look up the variant for an operator type or its string value.

    Raises:
        ValueError: If ``operator_type`` is not a known type.
    """
    return VARIANTS[OperatorType(operator_type)]
