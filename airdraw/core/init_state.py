from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional

from airdraw.core.logger import get_logger

logger = get_logger("InitState")


class InitState(str, Enum):
    LOADING = "loading"
    LOAD_FAILED = "load_failed"
    ACQUIRING_CAMERA = "acquiring_camera"
    PERMISSION_DENIED = "permission_denied"
    CAMERA_READY = "camera_ready"
    DETECTION_ACTIVE = "detection_active"
    STOPPED = "stopped"


TERMINAL_STATES: FrozenSet[InitState] = frozenset(
    {InitState.LOAD_FAILED, InitState.PERMISSION_DENIED, InitState.STOPPED}
)

_TRANSITIONS: Dict[InitState, FrozenSet[InitState]] = {
    InitState.LOADING: frozenset({InitState.ACQUIRING_CAMERA, InitState.LOAD_FAILED}),
    InitState.ACQUIRING_CAMERA: frozenset({InitState.CAMERA_READY, InitState.PERMISSION_DENIED}),
    InitState.CAMERA_READY: frozenset({InitState.DETECTION_ACTIVE}),
    InitState.DETECTION_ACTIVE: frozenset(),
    InitState.LOAD_FAILED: frozenset(),
    InitState.PERMISSION_DENIED: frozenset(),
    InitState.STOPPED: frozenset(),
}


class InvalidTransitionError(RuntimeError):
    pass


class InitializationStateMachine:
    """
    Loading -> (camera) -> CameraReady -> DetectionActive.

    With `require_confirmation` the machine waits in CAMERA_READY for
    `confirm()`; otherwise it activates as soon as the camera is ready.
    Failed loading and denied camera access are terminal; only a full
    restart gets out of them. `teardown()` ends any state in STOPPED.
    """

    def __init__(
        self,
        require_confirmation: bool = True,
        on_activate: Optional[Callable[[], None]] = None,
        on_deactivate: Optional[Callable[[], None]] = None,
        on_state_changed: Optional[Callable[[InitState], None]] = None,
    ):
        self.require_confirmation = require_confirmation
        self.state = InitState.LOADING
        self.error: Optional[BaseException] = None
        self._on_activate = on_activate
        self._on_deactivate = on_deactivate
        self._on_state_changed = on_state_changed

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def awaiting_confirmation(self) -> bool:
        return self.state is InitState.CAMERA_READY and self.require_confirmation

    def detector_ready(self):
        self._move(InitState.ACQUIRING_CAMERA)

    def detector_failed(self, error: BaseException):
        self.error = error
        logger.error("Hand detector failed to initialize: %s", error)
        self._move(InitState.LOAD_FAILED)

    def camera_ready(self):
        self._move(InitState.CAMERA_READY)
        if not self.require_confirmation:
            self._activate()

    def camera_failed(self, error: BaseException):
        self.error = error
        logger.error("Camera unavailable: %s", error)
        self._move(InitState.PERMISSION_DENIED)

    def confirm(self):
        """Explicit user activation (the start button)."""
        if not self.require_confirmation:
            raise InvalidTransitionError("activation is automatic in this configuration")
        self._activate()

    def teardown(self):
        if self.state is InitState.STOPPED:
            return
        was_active = self.state is InitState.DETECTION_ACTIVE
        self._set(InitState.STOPPED)
        if was_active and self._on_deactivate:
            self._on_deactivate()

    def _activate(self):
        self._move(InitState.DETECTION_ACTIVE)
        if self._on_activate:
            self._on_activate()

    def _move(self, target: InitState):
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(f"{self.state.value} -> {target.value}")
        self._set(target)

    def _set(self, target: InitState):
        logger.info("Init state: %s -> %s", self.state.value, target.value)
        self.state = target
        if self._on_state_changed:
            self._on_state_changed(target)
