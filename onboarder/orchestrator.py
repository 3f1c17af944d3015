"""
Onboarding orchestrator.

Drives one operator through the onboarding phases in strict order:

    INIT -> CONTRACTS_LOADED -> STAKED -> DELEGATION_REGISTERED
         -> SERVICE_REGISTERED -> COMPLETE

Progress advances by one after contracts are loaded, after staking, after
delegation registration and after service registration. A failing phase
stops the run where it is: the error is logged with the state reached and
re-raised unchanged. Nothing committed by earlier phases is rolled back,
so a re-run relies on the registrars' membership checks.

Usage:
    orchestrator = OnboardingOrchestrator(
        network="anvil",
        identity=identity,
        variant=get_variant("validator"),
        resolver=DeploymentResolver("deployments"),
        backend=Web3Backend(gateway),
    )
    result = orchestrator.run()
"""

from __future__ import annotations

import uuid
from typing import Optional

from onboarder.allowlist import OperatorVariant
from onboarder.core_types import (
    OnboardingResult,
    OnboardingState,
    OperatorIdentity,
    is_valid_transition,
)
from onboarder.delegation import DelegationRegistrar
from onboarder.exceptions import OnboardingStateError
from onboarder.logging_config import LogContext, get_logger
from onboarder.operator_sets import OperatorSetRegistrar
from onboarder.progress import ProgressState, ProgressTracker
from onboarder.protocols import ContractBackend, RegistryResolver
from onboarder.staking import StakingExecutor
from onboarder.types import RunId

logger = get_logger(__name__)


class OnboardingOrchestrator:
    """Sequences the onboarding phases for one operator and one variant."""

    def __init__(
        self,
        network: str,
        identity: OperatorIdentity,
        variant: OperatorVariant,
        resolver: RegistryResolver,
        backend: ContractBackend,
        tracker: Optional[ProgressTracker] = None,
        skip_registered_operator_sets: bool = True,
    ):
        self.network = network
        self.identity = identity
        self._variant = variant
        self.resolver = resolver
        self.backend = backend
        self.tracker = tracker or ProgressTracker()
        self.skip_registered_operator_sets = skip_registered_operator_sets

        self._state = OnboardingState.INIT
        self._progress = ProgressState()

    @property
    def variant(self) -> OperatorVariant:
        return self._variant

    @property
    def state(self) -> OnboardingState:
        return self._state

    @property
    def progress(self) -> ProgressState:
        return self._progress

    def _transition(self, target: OnboardingState) -> None:
        if not is_valid_transition(self._state, target):
            raise OnboardingStateError(self._state.value, target.value)
        logger.debug(f"State {self._state.value} -> {target.value}")
        self._state = target

    def _complete_step(self, target: OnboardingState, label: str) -> None:
        self._transition(target)
        self._progress = self.tracker.step(self._progress, label)

    def run(self) -> OnboardingResult:
        """Run every phase once.

        Returns:
            Summary of the completed run.

        Raises:
            OnboardingError: Any phase failure, unchanged. ``state`` and
                ``progress`` keep the point the run reached.
        """
        self._state = OnboardingState.INIT
        self._progress = ProgressState()
        run_id = RunId(uuid.uuid4().hex)
        variant = self._variant

        with LogContext(run_id=run_id, network=self.network, operator=self.identity.address):
            logger.info(
                f"Onboarding {variant.display_name} operator {self.identity.address}",
                operator_type=variant.operator_type.value,
                operator_set_id=variant.operator_set_id,
            )
            try:
                result = self._run_phases(run_id)
            except Exception as e:
                logger.error(
                    f"Onboarding failed in state '{self._state.value}'",
                    progress=str(self._progress),
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise

            logger.info(
                f"Onboarding complete: {variant.display_name} operator {self.identity.address}",
                operator_type=variant.display_name,
                progress=str(self._progress),
                total_staked=result.total_staked,
                strategies=len(result.stakes),
                delegation_registered_now=result.delegation_registered_now,
                operator_set_registered_now=result.operator_set_registered_now,
            )
            return result

    def _run_phases(self, run_id: RunId) -> OnboardingResult:
        identity = self.identity
        variant = self._variant

        logger.info("Loading contracts")
        registries = self.resolver.resolve(self.network)
        logger.info(
            "Contracts loaded",
            strategies=len(registries.strategies),
            delegation_registry=registries.delegation_registry,
            allocation_registry=registries.allocation_registry,
            service_registry=registries.service_registry,
        )
        self._complete_step(OnboardingState.CONTRACTS_LOADED, "contracts loaded")

        logger.info("Staking into strategies", strategies=len(registries.strategies))
        stakes = StakingExecutor(self.backend).execute(
            identity, registries.strategies, registries.strategy_registry
        )
        self._complete_step(OnboardingState.STAKED, "staking done")

        logger.info("Registering as staking-protocol operator")
        delegation = DelegationRegistrar(self.backend, registries.delegation_registry)
        delegation_registered_now = delegation.ensure_registered(identity)
        shares = delegation.read_operator_shares(identity, registries.strategies)
        self._complete_step(OnboardingState.DELEGATION_REGISTERED, "protocol registration done")

        logger.info(f"Registering with {variant.display_name} operator set")
        variant.add_to_allowlist(self.backend.service_allowlist(registries.allowlist), identity)
        operator_sets = OperatorSetRegistrar(
            self.backend,
            registries.allocation_registry,
            skip_registered=self.skip_registered_operator_sets,
        )
        operator_set_registered_now = operator_sets.register(
            identity, variant, registries.service_registry
        )
        self._complete_step(OnboardingState.SERVICE_REGISTERED, "service registration done")

        self._transition(OnboardingState.COMPLETE)

        return OnboardingResult(
            run_id=run_id,
            network=self.network,
            operator=identity.address,
            operator_type=variant.display_name,
            state=self._state,
            completed_steps=self._progress.completed_steps,
            total_steps=self._progress.total_steps,
            stakes=stakes,
            delegation_registered_now=delegation_registered_now,
            operator_set_registered_now=operator_set_registered_now,
            shares=shares,
        )
