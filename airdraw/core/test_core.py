import numpy as np
import pytest

from airdraw.canvas.surface import encode_png
from airdraw.core.config import AppConfig
from airdraw.core.core import AppCore
from airdraw.core.init_state import InitState
from airdraw.core.tasks import TaskOutcome
from airdraw.enhance.client import EnhanceResult
from airdraw.enhance.orchestrator import RequestState
from airdraw.vision.frame_data import Point


class FakeDetector:
    def __init__(self):
        self.closed = False

    def detect(self, frame, timestamp_ms):
        return None

    def close(self):
        self.closed = True


class RecordingRunner:
    def __init__(self):
        self.jobs = []

    def __call__(self, job, done):
        self.jobs.append((job, done))


@pytest.fixture
def core(qapp):
    c = AppCore(["airdraw", "--no-log-file"], config=AppConfig())
    c.runner = RecordingRunner()
    yield c
    c.shutdown()


def test_startup_to_active(core):
    detector = FakeDetector()
    core._on_detector_loaded(TaskOutcome(value=detector))
    assert core.init_state.state is InitState.ACQUIRING_CAMERA
    assert len(core.runner.jobs) == 1

    core._on_camera_opened(TaskOutcome(value=core.camera))
    assert core.init_state.awaiting_confirmation
    assert core.frame_loop is None

    core._on_start_requested()
    assert core.init_state.state is InitState.DETECTION_ACTIVE
    assert core.frame_loop.running

    core.shutdown()
    assert not core.frame_loop.running
    assert detector.closed


def test_auto_start_skips_confirmation(qapp):
    c = AppCore(["airdraw", "--no-log-file", "--auto-start"], config=AppConfig())
    c.runner = RecordingRunner()
    try:
        c._on_detector_loaded(TaskOutcome(value=FakeDetector()))
        c._on_camera_opened(TaskOutcome(value=c.camera))
        assert c.init_state.state is InitState.DETECTION_ACTIVE
    finally:
        c.shutdown()


def test_detector_failure_is_shown(core):
    core._on_detector_loaded(TaskOutcome(error=RuntimeError("no model")))
    assert core.init_state.state is InitState.LOAD_FAILED
    assert core.window.init_overlay.error_label.text() == "no model"
    assert core.runner.jobs == []


def test_late_detector_after_shutdown_is_closed(core):
    core.shutdown()
    detector = FakeDetector()
    core._on_detector_loaded(TaskOutcome(value=detector))
    assert detector.closed
    assert core.init_state.state is InitState.STOPPED


def test_selection_updates_brush(core):
    core.select_color("#EF4444")
    core.select_size(24)
    assert core.brush.color == "#EF4444"
    assert core.brush.size == 24
    assert core.window.toolbar.swatch("#EF4444")._is_selected
    assert core.window.toolbar.size_button(24)._is_active


def test_clear_canvas_wipes_surface(core):
    core.surface.resize(50, 50)
    core.tracker.extend(Point(5, 5), "#FFFFFF", 4)
    core.tracker.extend(Point(40, 40), "#FFFFFF", 4)
    core.clear_canvas()
    assert core.surface.is_blank()
    assert not core.tracker.in_stroke


def test_enhance_flow_updates_button(core):
    core.surface.resize(20, 20)
    core.orchestrator._runner = core.runner
    assert core.orchestrator.trigger()
    button = core.window.toolbar.enhance_button
    assert button.text() == "ENHANCING..."

    job, done = core.runner.jobs[-1]
    done(TaskOutcome(value=EnhanceResult(message="nope")))
    assert core.orchestrator.state is RequestState.COOLDOWN
    assert button.text() == "WAIT 10s"
    assert core.countdown_timer.isActive()
    assert core.window.status_bar.currentMessage() == "nope"


class RecordingCamera:
    def __init__(self):
        self.releases = 0

    def open(self, ready_timeout_s=5.0):
        return self

    def current_frame(self):
        return None

    def release(self):
        self.releases += 1


def result_png():
    return encode_png(np.full((8, 8, 4), 255, dtype=np.uint8))


def test_trigger_hides_previous_result(core):
    core.surface.resize(20, 20)
    core.orchestrator._runner = core.runner
    core.window.show_result(result_png())
    assert core.window.result_dialog.isVisible()

    assert core.orchestrator.trigger()
    assert not core.window.result_dialog.isVisible()
    assert core.orchestrator.state is RequestState.IN_FLIGHT


def test_clear_hides_result(core):
    core.window.show_result(result_png())
    assert core.window.result_dialog.isVisible()

    core.clear_canvas()
    assert not core.window.result_dialog.isVisible()


def test_result_keeps_mime_type(core):
    core._on_enhance_result(EnhanceResult(image=result_png(), mime_type="image/jpeg"))
    dialog = core.window.result_dialog
    assert dialog.isVisible()
    assert dialog.mime_type == "image/jpeg"
    assert dialog.suggested_filename() == "airdraw-enhanced.jpg"


def test_shutdown_while_camera_opens_defers_release(core):
    camera = RecordingCamera()
    core.camera = camera
    core._on_detector_loaded(TaskOutcome(value=FakeDetector()))
    assert core.init_state.state is InitState.ACQUIRING_CAMERA

    core.shutdown()
    assert camera.releases == 0

    core._on_camera_opened(TaskOutcome(value=camera))
    assert camera.releases == 1
    assert core.frame_loop is None
