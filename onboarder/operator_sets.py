"""
Operator-set registrar.

Registers the operator for its variant's operator set on the allocation
registry, carrying the cross-chain address as the registration payload.
A membership read runs first so a re-run can skip the registration
instead of reverting on chain.
"""

from __future__ import annotations

from onboarder.allowlist import OperatorVariant
from onboarder.core_types import OperatorIdentity, RegistrationRequest
from onboarder.exceptions import AlreadyRegisteredError
from onboarder.logging_config import get_logger
from onboarder.protocols import ContractBackend
from onboarder.types import Address

logger = get_logger(__name__)


def build_registration_request(
    identity: OperatorIdentity,
    variant: OperatorVariant,
    target_service: str,
) -> RegistrationRequest:
    """Build the single-set registration request for ``identity``."""
    return RegistrationRequest(
        target_service=Address(target_service),
        operator_set_ids=(variant.operator_set_id,),
        payload=identity.cross_chain_address,
    )


class OperatorSetRegistrar:
    """Registers operators for operator sets of the dependent service."""

    def __init__(
        self,
        backend: ContractBackend,
        allocation_registry: str,
        skip_registered: bool = True,
    ):
        self.registry = backend.allocation_registry(allocation_registry)
        self.skip_registered = skip_registered

    def register(
        self,
        identity: OperatorIdentity,
        variant: OperatorVariant,
        target_service: str,
    ) -> bool:
        """Register ``identity`` for ``variant``'s operator set.

        Returns:
            True if registration was submitted, False if it was skipped
            because the operator is already a member.

        Raises:
            AlreadyRegisteredError: Already a member and skipping is disabled.
            ExternalCallError: The registry call failed.
        """
        request = build_registration_request(identity, variant, target_service)

        if self.registry.is_member_of_operator_set(
            identity.address, target_service, variant.operator_set_id
        ):
            if not self.skip_registered:
                raise AlreadyRegisteredError(
                    identity.address, target_service, variant.operator_set_id
                )
            logger.info(
                f"Already registered in {variant.display_name} operator set, skipping",
                operator_set_id=variant.operator_set_id,
                service=target_service,
            )
            return False

        self.registry.register_for_operator_sets(identity.address, request)
        logger.info(
            f"Registered in {variant.display_name} operator set",
            operator_set_id=variant.operator_set_id,
            service=target_service,
            payload_bytes=len(request.payload),
        )
        return True
