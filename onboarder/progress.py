"""
Progress tracking for onboarding runs.

Progress is an immutable value: each completed phase produces a new
ProgressState via ``advance()``, so phases never share a mutable counter.
ProgressTracker only reports; it owns no state beyond its callback.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from onboarder.exceptions import ProgressOverflowError
from onboarder.logging_config import get_logger
from onboarder.types import ProgressCallback

logger = get_logger(__name__)

TOTAL_STEPS = 4


@dataclass(frozen=True)
class ProgressState:
    """Completed steps out of a fixed total."""

    completed_steps: int = 0
    total_steps: int = TOTAL_STEPS

    def __post_init__(self) -> None:
        if self.total_steps < 1:
            raise ValueError("total_steps must be at least 1")
        if self.completed_steps < 0:
            raise ValueError("completed_steps must not be negative")
        if self.completed_steps > self.total_steps:
            raise ProgressOverflowError(self.completed_steps, self.total_steps)

    def advance(self) -> ProgressState:
        """Return the state after one more completed step.

        Raises:
            ProgressOverflowError: If all steps are already complete.
        """
        if self.is_complete:
            raise ProgressOverflowError(self.completed_steps, self.total_steps)
        return ProgressState(self.completed_steps + 1, self.total_steps)

    @property
    def is_complete(self) -> bool:
        return self.completed_steps == self.total_steps

    def as_tuple(self) -> tuple[int, int]:
        return (self.completed_steps, self.total_steps)

    def __str__(self) -> str:
        return f"{self.completed_steps}/{self.total_steps}"


class ProgressTracker:
    """Reports progress after each completed step."""

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self._callback = callback

    def step(self, state: ProgressState, label: str) -> ProgressState:
        """Advance ``state`` by one step and report it.

        Returns:
            The advanced state.
        """
        new_state = state.advance()
        logger.info(
            f"Step {new_state} complete: {label}",
            step=new_state.completed_steps,
            total=new_state.total_steps,
        )
        if self._callback is not None:
            self._callback(new_state, label)
        return new_state
