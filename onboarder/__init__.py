"""
onboarder: staking-network operator onboarding

Brings a validator, bridging service provider or messaging service
provider from a funded account to an active operator:

- resolves the staking protocol and service registries for a network
- stakes a tenth of the operator's balance into each strategy
- registers the operator with the delegation registry (once)
- allowlists the operator and registers it for its operator set

Usage:
    from onboarder import OnboardingOrchestrator, get_variant

    result = OnboardingOrchestrator(
        network, identity, get_variant("validator"), resolver, backend
    ).run()
"""

from __future__ import annotations

import importlib
from typing import Any

from onboarder.__version__ import __version__

_EXPORT_MAP = {
    'OnboardingOrchestrator': ('onboarder.orchestrator', 'OnboardingOrchestrator'),
    'OnboardingConfig': ('onboarder.config', 'OnboardingConfig'),
    'OnboardingResult': ('onboarder.core_types', 'OnboardingResult'),
    'OnboardingState': ('onboarder.core_types', 'OnboardingState'),
    'OperatorIdentity': ('onboarder.core_types', 'OperatorIdentity'),
    'RegistrySet': ('onboarder.core_types', 'RegistrySet'),
    'StrategyEntry': ('onboarder.core_types', 'StrategyEntry'),
    'OperatorType': ('onboarder.allowlist', 'OperatorType'),
    'OperatorVariant': ('onboarder.allowlist', 'OperatorVariant'),
    'get_variant': ('onboarder.allowlist', 'get_variant'),
    'DeploymentResolver': ('onboarder.resolver', 'DeploymentResolver'),
    'ProgressState': ('onboarder.progress', 'ProgressState'),
    'ProgressTracker': ('onboarder.progress', 'ProgressTracker'),
    'OnboardingError': ('onboarder.exceptions', 'OnboardingError'),
}


def __getattr__(name: str) -> Any:
    """Lazily import public symbols so importing the package stays cheap."""
    try:
        module_name, attr_name = _EXPORT_MAP[name]
    except KeyError as exc:
        raise AttributeError(f"module 'onboarder' has no attribute {name!r}") from exc
    module = importlib.import_module(module_name)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(set(globals()) | set(__all__))


__all__ = [
    "__version__",
    # Orchestration
    "OnboardingOrchestrator",
    "OnboardingResult",
    "OnboardingState",
    # Configuration
    "OnboardingConfig",
    "DeploymentResolver",
    # Data model
    "OperatorIdentity",
    "RegistrySet",
    "StrategyEntry",
    "OperatorType",
    "OperatorVariant",
    "get_variant",
    "ProgressState",
    "ProgressTracker",
    # Errors
    "OnboardingError",
]
