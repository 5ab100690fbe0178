from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PityState:
    counter: int = 0
    """Draws since the last top-tier result"""
    forced_used: bool = False
    """Whether this batch has already spent its one guaranteed draw"""


@dataclass(frozen=True, slots=True)
class PityStep:
    counter: int
    """Counter after this draw's increment, before any reset"""
    forced: bool
    """Whether this draw must be top-tier"""


class PityTracker:
    """Pure pity state machine. Knows nothing about probabilities.

    Every draw increments the counter first. When the incremented counter reaches the
    threshold that same draw is forced to the top tier, at most once per batch. A top-tier
    result, natural or forced, resets the counter to zero.
    """

    def __init__(self, threshold: int) -> None:
        if threshold < 1:
            msg = f"Pity threshold must be positive, got {threshold}"
            raise ValueError(msg)
        self.threshold = threshold

    def start_batch(self, counter: int) -> PityState:
        return PityState(counter=max(0, min(counter, self.threshold)), forced_used=False)

    def advance(self, state: PityState) -> PityStep:
        counter = min(state.counter + 1, self.threshold)
        forced = counter >= self.threshold and not state.forced_used
        return PityStep(counter=counter, forced=forced)

    def settle(self, state: PityState, step: PityStep, *, top_tier: bool) -> PityState:
        return PityState(
            counter=0 if top_tier else step.counter,
            forced_used=state.forced_used or step.forced,
        )

    def remaining(self, counter: int) -> int:
        """Draws left until the guarantee, counting the guaranteed draw itself."""
        return max(0, self.threshold - counter)
