import time
from enum import Enum
from typing import Callable


class BreakerState(str, Enum):
    AVAILABLE = "available"
    COOLING_DOWN = "cooling_down"


class EmbeddingBreaker:
    """Two-state availability switch for the remote embedding endpoint.

    AVAILABLE lets every call through. A tripping failure moves to
    COOLING_DOWN until now + cooldown_seconds; during the cooldown callers go
    straight to the fallback. Once the deadline passes calls probe the remote
    again, and the first success returns the breaker to AVAILABLE.
    """

    def __init__(self, cooldown_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._state = BreakerState.AVAILABLE
        self._until: float | None = None

    @property
    def state(self) -> BreakerState:
        return self._state

    @property
    def until(self) -> float | None:
        """Clock value at which the cooldown ends, None while AVAILABLE."""
        return self._until

    def allows_request(self) -> bool:
        if self._state is BreakerState.AVAILABLE:
            return True
        return self._clock() >= self._until

    def record_success(self) -> None:
        self._state = BreakerState.AVAILABLE
        self._until = None

    def record_failure(self) -> None:
        self._state = BreakerState.COOLING_DOWN
        self._until = self._clock() + self.cooldown_seconds
