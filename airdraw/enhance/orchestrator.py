import math
import time
from enum import Enum
from typing import Callable, Optional

import numpy as np

from airdraw.canvas.surface import encode_png, to_data_url
from airdraw.core.logger import get_logger
from airdraw.core.tasks import TaskOutcome, TaskRunner

from .client import EnhanceResult

logger = get_logger("Orchestrator")

FALLBACK_MESSAGE = "Enhancement failed. Try again once the cooldown ends."


class RequestState(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    COOLDOWN = "cooldown"


class RequestOrchestrator:
    """
    Serializes and rate-limits the enhancement call.

    IDLE -> IN_FLIGHT -> COOLDOWN -> IDLE. Only IDLE accepts a trigger;
    anything else is dropped without side effects. Every completed call,
    failed or not, starts the same fixed cooldown.

    All methods must be called on the GUI thread; the runner delivers the
    call's outcome back there.
    """

    def __init__(
        self,
        send: Callable[[str], EnhanceResult],
        snapshot: Callable[[], np.ndarray],
        runner: TaskRunner,
        cooldown_ms: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
        on_state_changed: Optional[Callable[[RequestState], None]] = None,
        on_result: Optional[Callable[[EnhanceResult], None]] = None,
        on_countdown: Optional[Callable[[int], None]] = None,
        on_started: Optional[Callable[[], None]] = None,
    ):
        self._send = send
        self._snapshot = snapshot
        self._runner = runner
        self.cooldown_ms = cooldown_ms
        self._clock = clock
        self._on_state_changed = on_state_changed
        self._on_result = on_result
        self._on_countdown = on_countdown
        self._on_started = on_started

        self.state = RequestState.IDLE
        self.cooldown_until: Optional[float] = None
        self.requests_sent = 0
        self.last_result: Optional[EnhanceResult] = None

    def can_trigger(self) -> bool:
        return self.state is RequestState.IDLE

    def cooldown_remaining_ms(self) -> int:
        if self.state is not RequestState.COOLDOWN or self.cooldown_until is None:
            return 0
        return max(0, int(math.ceil((self.cooldown_until - self._clock()) * 1000)))

    def trigger(self) -> bool:
        """Returns True when a request was issued."""
        # An expired cooldown may not have been ticked yet
        self.tick()
        if not self.can_trigger():
            logger.debug("Enhancement trigger ignored (%s)", self.state.value)
            return False

        self._set_state(RequestState.IN_FLIGHT)
        self.requests_sent += 1
        if self._on_started:
            self._on_started()

        try:
            image = self._snapshot()
        except Exception as e:
            logger.exception("Could not snapshot the drawing")
            self._complete(TaskOutcome(error=e))
            return True

        self._runner(lambda: self._send(to_data_url(encode_png(image))), self._complete)
        return True

    def tick(self):
        """Advance the cooldown; called by the countdown timer."""
        if self.state is not RequestState.COOLDOWN:
            return
        remaining = self.cooldown_remaining_ms()
        if self._on_countdown:
            self._on_countdown(remaining)
        if remaining <= 0:
            self.cooldown_until = None
            self._set_state(RequestState.IDLE)

    def _complete(self, outcome: TaskOutcome):
        if outcome.ok and isinstance(outcome.value, EnhanceResult):
            result = outcome.value
        else:
            if outcome.error is not None:
                logger.error(
                    "Enhancement request failed: %s", outcome.error,
                    exc_info=(type(outcome.error), outcome.error, outcome.error.__traceback__),
                )
            result = EnhanceResult(message=FALLBACK_MESSAGE)

        self.last_result = result
        self.cooldown_until = self._clock() + self.cooldown_ms / 1000.0
        self._set_state(RequestState.COOLDOWN)
        if self._on_countdown:
            self._on_countdown(self.cooldown_ms)
        if self._on_result:
            self._on_result(result)

    def _set_state(self, state: RequestState):
        if state is self.state:
            return
        logger.info("Enhancement state: %s -> %s", self.state.value, state.value)
        self.state = state
        if self._on_state_changed:
            self._on_state_changed(state)
